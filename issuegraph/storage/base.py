"""Persistence interface for dependency edges.

Every backend implements DependencyStore; the graph service, validators and
builder only ever call this interface.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Protocol

import structlog

from issuegraph.errors import SelfDependencyError, TrackerError
from issuegraph.models import ItemResult, ItemSnapshot, normalize_item_id

logger = structlog.get_logger(__name__)


class ItemStore(Protocol):
    """Tracker primitives required by the remote stores."""

    async def get_item(self, item_id: str) -> ItemSnapshot: ...

    async def list_items(self, state: str = "all") -> list[ItemSnapshot]: ...

    async def update_item_labels(self, item_id: str, labels: list[str]) -> None: ...

    def close(self) -> None: ...

def check_edge(source: str, target: str) -> tuple[str, str]:
    """Normalize an edge's endpoints and reject self-loops.

    Raises:
        SelfDependencyError: If source and target are the same item
    """
    source = normalize_item_id(source)
    target = normalize_item_id(target)
    if source == target:
        raise SelfDependencyError(source)
    return source, target


class DependencyStore(ABC):
    """Stores and retrieves "source depends on target" edges.

    Attributes:
        is_remote: Whether endpoints live in a remote tracker; only remote
            stores have their endpoints checked for existence.
        mode: Short backend name used in logs
    """

    is_remote: bool = True
    mode: str = "abstract"

    @abstractmethod
    async def add_edge(self, source: str, target: str) -> bool:
        """Record that ``source`` depends on ``target``.

        Returns:
            True if a new edge was written, False if it already existed

        Raises:
            SelfDependencyError: If source == target
        """

    @abstractmethod
    async def remove_edge(self, source: str, target: str) -> bool:
        """Remove the edge if present.

        Returns:
            True if an edge was removed, False if there was nothing to remove
        """

    @abstractmethod
    async def get_edges(self, source: str) -> list[str]:
        """Return the ids ``source`` depends on."""

    @abstractmethod
    async def get_reverse_edges(self, target: str) -> list[str]:
        """Return the ids of every item that depends on ``target``."""

    @abstractmethod
    async def fetch_item(self, item_id: str) -> ItemSnapshot:
        """Return a snapshot of one item.

        Raises:
            ItemNotFoundError: If a remote store cannot find the item
            TransientTrackerError: On tracker failures
        """

    async def resolve_item(self, item_id: str) -> ItemResult:
        """Fetch one item, turning tracker failures into an error result."""
        item_id = normalize_item_id(item_id)
        try:
            snapshot = await self.fetch_item(item_id)
        except TrackerError as e:
            logger.warning("item_fetch_failed", item_id=item_id, mode=self.mode, error=e.message)
            return ItemResult(item_id=item_id, error=e.message)
        return ItemResult(item_id=item_id, snapshot=snapshot)

    async def resolve_items(self, item_ids: list[str]) -> list[ItemResult]:
        """Fetch several items concurrently; one failure never cancels the rest."""
        return list(await asyncio.gather(*(self.resolve_item(item_id) for item_id in item_ids)))

    async def get_edges_detailed(self, source: str) -> list[ItemResult]:
        """Return each dependency of ``source`` resolved to an ItemResult."""
        targets = await self.get_edges(source)
        return await self.resolve_items(targets)

    async def close(self) -> None:
        """Release backend resources."""
