"""Dependency edges encoded as labels on the dependent item.

Writes are a read-modify-write of the item's whole label set with no locking:
two writers changing the same item's dependencies at once can overwrite each
other. The native store should be preferred where the tracker supports it.
"""

import structlog

from issuegraph.models import ItemSnapshot, normalize_item_id
from issuegraph.storage.base import DependencyStore, ItemStore, check_edge
from issuegraph.tracker.labels import DependencyLabelCodec

logger = structlog.get_logger(__name__)


class LabelDependencyStore(DependencyStore):
    """Stores ``source -> target`` as a ``depends-on:<target>`` label on source."""

    is_remote = True
    mode = "label"

    def __init__(self, tracker: ItemStore, codec: DependencyLabelCodec | None = None):
        """Initialize the store.

        Args:
            tracker: Item store providing labels
            codec: Label codec; defaults to the ``depends-on:`` prefix
        """
        self.tracker = tracker
        self.codec = codec or DependencyLabelCodec()

    async def fetch_item(self, item_id: str) -> ItemSnapshot:
        return await self.tracker.get_item(normalize_item_id(item_id))

    async def add_edge(self, source: str, target: str) -> bool:
        source, target = check_edge(source, target)
        item = await self.tracker.get_item(source)
        if target in self.codec.decode(item.labels):
            logger.debug("dependency_label_exists", source=source, target=target)
            return False

        await self.tracker.update_item_labels(source, self.codec.add(item.labels, target))
        logger.info("dependency_label_added", source=source, target=target)
        return True

    async def remove_edge(self, source: str, target: str) -> bool:
        source, target = check_edge(source, target)
        item = await self.tracker.get_item(source)
        if target not in self.codec.decode(item.labels):
            logger.debug("dependency_label_absent", source=source, target=target)
            return False

        await self.tracker.update_item_labels(source, self.codec.remove(item.labels, target))
        logger.info("dependency_label_removed", source=source, target=target)
        return True

    async def get_edges(self, source: str) -> list[str]:
        item = await self.tracker.get_item(normalize_item_id(source))
        return self.codec.decode(item.labels)

    async def get_reverse_edges(self, target: str) -> list[str]:
        target = normalize_item_id(target)
        items = await self.tracker.list_items(state="all")
        dependents = [item.id for item in items if target in self.codec.decode(item.labels)]
        logger.debug("reverse_label_scan", target=target, scanned=len(items), found=len(dependents))
        return dependents

    async def close(self) -> None:
        self.tracker.close()
