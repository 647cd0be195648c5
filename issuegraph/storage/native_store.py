"""Dependency edges stored through the tracker's native relation API.

Requests the relation endpoint rejects as unsupported are retried through the
label store without surfacing an error. Reads merge both sources so edges
written by either path stay visible.
"""

import structlog

from issuegraph.errors import UnsupportedRelationError
from issuegraph.models import ItemSnapshot, normalize_item_id
from issuegraph.storage.base import DependencyStore, ItemStore, check_edge
from issuegraph.storage.label_store import LabelDependencyStore
from issuegraph.tracker.relations_api import GitHubRelationsAPI

logger = structlog.get_logger(__name__)


def _merge(*id_lists: list[str]) -> list[str]:
    return list(dict.fromkeys(item_id for ids in id_lists for item_id in ids))


class NativeDependencyStore(DependencyStore):
    """Stores edges as native "blocked by" relations, falling back to labels."""

    is_remote = True
    mode = "native"

    def __init__(
        self,
        tracker: ItemStore,
        relations: GitHubRelationsAPI,
        fallback: LabelDependencyStore | None = None,
    ):
        """Initialize the store.

        Args:
            tracker: Item store used for snapshots and internal ids
            relations: Native relation API client
            fallback: Label store used when the relation API is unsupported
        """
        self.tracker = tracker
        self.relations = relations
        self.fallback = fallback or LabelDependencyStore(tracker)

    async def fetch_item(self, item_id: str) -> ItemSnapshot:
        return await self.tracker.get_item(normalize_item_id(item_id))

    async def _native_edges(self, source: str) -> list[str]:
        try:
            return await self.relations.list_blocked_by(source)
        except UnsupportedRelationError as e:
            logger.info("native_relation_unsupported", operation="list_blocked_by", error=e.message)
            return []

    async def add_edge(self, source: str, target: str) -> bool:
        source, target = check_edge(source, target)
        if target in await self.get_edges(source):
            logger.debug("dependency_relation_exists", source=source, target=target)
            return False

        target_item = await self.tracker.get_item(target)
        if target_item.internal_id is None:
            return await self.fallback.add_edge(source, target)

        try:
            await self.relations.create_relation(source, target_item.internal_id)
        except UnsupportedRelationError as e:
            logger.info(
                "native_relation_fallback",
                operation="create",
                source=source,
                target=target,
                error=e.message,
            )
            return await self.fallback.add_edge(source, target)

        logger.info("dependency_relation_added", source=source, target=target)
        return True

    async def remove_edge(self, source: str, target: str) -> bool:
        source, target = check_edge(source, target)
        removed = False

        if target in await self._native_edges(source):
            target_item = await self.tracker.get_item(target)
            if target_item.internal_id is not None:
                try:
                    await self.relations.delete_relation(source, target_item.internal_id)
                    removed = True
                except UnsupportedRelationError as e:
                    logger.info(
                        "native_relation_fallback",
                        operation="delete",
                        source=source,
                        target=target,
                        error=e.message,
                    )

        removed_label = await self.fallback.remove_edge(source, target)
        if removed:
            logger.info("dependency_relation_removed", source=source, target=target)
        return removed or removed_label

    async def get_edges(self, source: str) -> list[str]:
        source = normalize_item_id(source)
        return _merge(await self._native_edges(source), await self.fallback.get_edges(source))

    async def get_reverse_edges(self, target: str) -> list[str]:
        target = normalize_item_id(target)
        try:
            native = await self.relations.list_blocking(target)
        except UnsupportedRelationError as e:
            logger.info("native_relation_unsupported", operation="list_blocking", error=e.message)
            native = []
        return _merge(native, await self.fallback.get_reverse_edges(target))

    async def close(self) -> None:
        """Close the relations client and the tracker session shared with the fallback."""
        try:
            await self.relations.close()
        finally:
            self.tracker.close()
