"""Dependency graph service: edge mutation and queries over one store.

Direct calls here propagate tracker failures to the caller. Traversal code
uses ``lookup_edges`` and ``resolve_item`` instead, which return failures as
values so one broken item never aborts a whole walk.
"""

import asyncio

import structlog

from issuegraph.errors import TrackerError
from issuegraph.models import EdgeLookup, ItemResult, normalize_item_id
from issuegraph.storage.base import DependencyStore, check_edge

logger = structlog.get_logger(__name__)


class DependencyService:
    """Add, remove and query "depends-on" edges.

    Example:
        >>> service = DependencyService(LocalDependencyStore(".issuegraph"))
        >>> await service.add_dependency("12", "7")  # 12 depends on 7
        >>> await service.get_dependencies("12")
        ['7']
    """

    def __init__(self, store: DependencyStore):
        """Initialize the service.

        Args:
            store: Persistence backend for edges
        """
        self.store = store

    async def _ensure_exists(self, *item_ids: str) -> None:
        """Raise ItemNotFoundError if any item is missing (remote stores only)."""
        if not self.store.is_remote:
            return
        await asyncio.gather(*(self.store.fetch_item(item_id) for item_id in item_ids))

    async def add_dependency(self, source: str, target: str) -> bool:
        """Record that ``source`` depends on ``target``.

        Args:
            source: Dependent (blocked) item
            target: Dependency (blocking) item

        Returns:
            True if the edge is new, False if it already existed

        Raises:
            SelfDependencyError: If source and target are the same item
            ItemNotFoundError: If either item is missing (remote modes)
            TransientTrackerError: On tracker failures
        """
        source, target = check_edge(source, target)
        await self._ensure_exists(source, target)

        added = await self.store.add_edge(source, target)
        logger.info(
            "dependency_added" if added else "dependency_already_present",
            source=source,
            target=target,
            mode=self.store.mode,
        )
        return added

    async def remove_dependency(self, source: str, target: str) -> bool:
        """Remove the edge ``source -> target``; a missing edge is a no-op.

        Returns:
            True if an edge was removed

        Raises:
            SelfDependencyError: If source and target are the same item
            ItemNotFoundError: If either item is missing (remote modes)
            TransientTrackerError: On tracker failures
        """
        source, target = check_edge(source, target)
        await self._ensure_exists(source, target)

        removed = await self.store.remove_edge(source, target)
        logger.info(
            "dependency_removed" if removed else "dependency_not_present",
            source=source,
            target=target,
            mode=self.store.mode,
        )
        return removed

    async def get_dependencies(self, item_id: str) -> list[str]:
        """Return the ids ``item_id`` depends on."""
        return await self.store.get_edges(normalize_item_id(item_id))

    async def get_dependencies_detailed(self, item_id: str) -> list[ItemResult]:
        """Return the dependencies of ``item_id`` resolved to snapshots or errors."""
        return await self.store.get_edges_detailed(normalize_item_id(item_id))

    async def get_blocked_items(self, item_id: str) -> list[str]:
        """Return the ids of items that depend on ``item_id``."""
        return await self.store.get_reverse_edges(normalize_item_id(item_id))

    async def get_blocked_items_detailed(self, item_id: str) -> list[ItemResult]:
        """Return the dependents of ``item_id`` resolved to snapshots or errors."""
        return await self.store.resolve_items(await self.get_blocked_items(item_id))

    async def resolve_item(self, item_id: str) -> ItemResult:
        """Fetch one item as a result value."""
        return await self.store.resolve_item(item_id)

    async def lookup_edges(self, item_id: str) -> EdgeLookup:
        """Read the dependencies of ``item_id`` as a result value."""
        item_id = normalize_item_id(item_id)
        try:
            targets = await self.store.get_edges(item_id)
        except TrackerError as e:
            logger.warning("edge_lookup_failed", item_id=item_id, error=e.message)
            return EdgeLookup(item_id=item_id, error=e.message)
        return EdgeLookup(item_id=item_id, targets=tuple(targets))
