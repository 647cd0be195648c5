"""Offline dependency store backed by JSON files.

``dependencies.json`` maps item id -> list of dependency ids and is rewritten
wholesale on every change. ``items.json`` optionally records item metadata so
offline validation knows which items are closed; items without a record have
state ``unknown``. Endpoint existence is never checked.
"""

import json
from pathlib import Path
from typing import Any

import structlog

from issuegraph.models import ItemSnapshot, ItemState, normalize_item_id
from issuegraph.storage.base import DependencyStore, check_edge

logger = structlog.get_logger(__name__)

DEPENDENCIES_FILE = "dependencies.json"
ITEMS_FILE = "items.json"


class LocalDependencyStore(DependencyStore):
    """Adjacency map persisted under a local cache directory."""

    is_remote = False
    mode = "local"

    def __init__(self, cache_dir: str | Path):
        """Initialize the store.

        Args:
            cache_dir: Directory holding the JSON files; created on first write
        """
        self.cache_dir = Path(cache_dir)
        self.dependencies_path = self.cache_dir / DEPENDENCIES_FILE
        self.items_path = self.cache_dir / ITEMS_FILE

    def _read(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        with path.open() as f:
            content = f.read()
        if not content.strip():
            return {}
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            msg = f"Corrupt local cache file {path}: {e}"
            raise ValueError(msg) from e
        if not isinstance(data, dict):
            msg = f"Local cache file {path} must contain a JSON object"
            raise ValueError(msg)
        return data

    def _write(self, path: Path, data: dict[str, Any]) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        with path.open("w") as f:
            json.dump(data, f, indent=2, sort_keys=True)
            f.write("\n")

    def load_map(self) -> dict[str, list[str]]:
        """Return the whole adjacency map."""
        raw = self._read(self.dependencies_path)
        return {str(source): [str(t) for t in targets] for source, targets in raw.items()}

    def save_map(self, adjacency: dict[str, list[str]]) -> None:
        """Rewrite the whole adjacency map, dropping sources with no edges."""
        self._write(
            self.dependencies_path,
            {source: targets for source, targets in adjacency.items() if targets},
        )

    async def add_edge(self, source: str, target: str) -> bool:
        source, target = check_edge(source, target)
        adjacency = self.load_map()
        targets = adjacency.setdefault(source, [])
        if target in targets:
            logger.debug("local_dependency_exists", source=source, target=target)
            return False

        targets.append(target)
        self.save_map(adjacency)
        logger.info("local_dependency_added", source=source, target=target)
        return True

    async def remove_edge(self, source: str, target: str) -> bool:
        source, target = check_edge(source, target)
        adjacency = self.load_map()
        targets = adjacency.get(source, [])
        if target not in targets:
            logger.debug("local_dependency_absent", source=source, target=target)
            return False

        adjacency[source] = [t for t in targets if t != target]
        self.save_map(adjacency)
        logger.info("local_dependency_removed", source=source, target=target)
        return True

    async def get_edges(self, source: str) -> list[str]:
        return list(self.load_map().get(normalize_item_id(source), []))

    async def get_reverse_edges(self, target: str) -> list[str]:
        target = normalize_item_id(target)
        return [source for source, targets in self.load_map().items() if target in targets]

    async def fetch_item(self, item_id: str) -> ItemSnapshot:
        item_id = normalize_item_id(item_id)
        record = self._read(self.items_path).get(item_id)
        if record is None:
            return ItemSnapshot(id=item_id)
        return ItemSnapshot(
            id=item_id,
            title=record.get("title", ""),
            state=ItemState.parse(record.get("state")),
            labels=tuple(record.get("labels", ())),
            assignees=tuple(record.get("assignees", ())),
        )

    def save_item(self, snapshot: ItemSnapshot) -> None:
        """Record item metadata for offline use."""
        items = self._read(self.items_path)
        items[snapshot.id] = {
            "title": snapshot.title,
            "state": snapshot.state.value,
            "labels": list(snapshot.labels),
            "assignees": list(snapshot.assignees),
        }
        self._write(self.items_path, items)
        logger.debug("local_item_saved", item_id=snapshot.id, state=snapshot.state.value)
