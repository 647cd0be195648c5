"""Shared fixtures: an in-memory item tracker and stores built on it."""

import dataclasses
from pathlib import Path

import pytest

from issuegraph.errors import ItemNotFoundError, TransientTrackerError
from issuegraph.graph.service import DependencyService
from issuegraph.models import ItemSnapshot, ItemState
from issuegraph.storage.label_store import LabelDependencyStore
from issuegraph.storage.local_store import LocalDependencyStore


class InMemoryTracker:
    """Item store double with the same async surface as GitHubTracker."""

    def __init__(self) -> None:
        self.items: dict[str, ItemSnapshot] = {}
        self.failing: set[str] = set()
        self.label_updates: list[tuple[str, list[str]]] = []
        self.list_calls = 0
        self.close_calls = 0

    def add_item(
        self,
        item_id: str,
        title: str = "",
        state: str = "open",
        labels: tuple[str, ...] = (),
        assignees: tuple[str, ...] = (),
        internal_id: int | None = None,
    ) -> ItemSnapshot:
        snapshot = ItemSnapshot(
            id=item_id,
            title=title or f"Issue {item_id}",
            state=ItemState(state),
            labels=tuple(labels),
            assignees=tuple(assignees),
            internal_id=internal_id,
        )
        self.items[item_id] = snapshot
        return snapshot

    def set_state(self, item_id: str, state: str) -> None:
        self.items[item_id] = dataclasses.replace(self.items[item_id], state=ItemState(state))

    def link(self, source: str, *targets: str) -> None:
        """Attach depends-on labels directly, bypassing the store."""
        snapshot = self.items[source]
        labels = list(snapshot.labels) + [f"depends-on:{target}" for target in targets]
        self.items[source] = dataclasses.replace(snapshot, labels=tuple(labels))

    async def get_item(self, item_id: str) -> ItemSnapshot:
        if item_id in self.failing:
            msg = f"Simulated outage fetching #{item_id}"
            raise TransientTrackerError(msg, status=502)
        if item_id not in self.items:
            raise ItemNotFoundError(item_id)
        return self.items[item_id]

    async def list_items(self, state: str = "all") -> list[ItemSnapshot]:
        self.list_calls += 1
        return [item for item in self.items.values() if state == "all" or item.state.value == state]

    async def update_item_labels(self, item_id: str, labels: list[str]) -> None:
        if item_id in self.failing:
            msg = f"Simulated outage updating #{item_id}"
            raise TransientTrackerError(msg, status=502)
        self.label_updates.append((item_id, list(labels)))
        self.items[item_id] = dataclasses.replace(self.items[item_id], labels=tuple(labels))

    def close(self) -> None:
        self.close_calls += 1


@pytest.fixture
def tracker() -> InMemoryTracker:
    """Tracker pre-populated with open issues 1 through 6."""
    fake = InMemoryTracker()
    for number in range(1, 7):
        fake.add_item(str(number))
    return fake


@pytest.fixture
def label_store(tracker: InMemoryTracker) -> LabelDependencyStore:
    return LabelDependencyStore(tracker)


@pytest.fixture
def service(label_store: LabelDependencyStore) -> DependencyService:
    return DependencyService(label_store)


@pytest.fixture
def local_store(tmp_path: Path) -> LocalDependencyStore:
    return LocalDependencyStore(tmp_path / "cache")


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
