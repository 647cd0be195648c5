"""Data model shared by the stores, graph service, validators and renderers.

All types are plain dataclasses. Snapshots are read-only copies of tracker
state; nothing here writes back to the tracker.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ItemState(str, Enum):
    """Lifecycle state of a tracked item as seen by issuegraph.

    UNKNOWN is used when no tracker data is available (local mode without an
    item record). ERROR marks a placeholder for an item that failed to load.
    """

    OPEN = "open"
    CLOSED = "closed"
    UNKNOWN = "unknown"
    ERROR = "error"

    @classmethod
    def parse(cls, value: str | None) -> "ItemState":
        """Map a tracker state string onto ItemState, defaulting to UNKNOWN."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.lower())
        except ValueError:
            return cls.UNKNOWN


def normalize_item_id(item_id: str | int) -> str:
    """Normalize an item reference such as ``#12`` or ``12`` to ``"12"``.

    Raises:
        ValueError: If the reference is empty
    """
    normalized = str(item_id).strip().lstrip("#").strip()
    if not normalized:
        msg = f"Invalid item id: {item_id!r}"
        raise ValueError(msg)
    return normalized


@dataclass(frozen=True)
class ItemSnapshot:
    """Read-only view of a tracked item.

    Attributes:
        id: Stable item identifier (issue number as a string)
        title: Item title
        state: Current lifecycle state
        labels: Label names attached to the item
        assignees: Logins of assigned users
        internal_id: Tracker-internal numeric id, used by the native relation API
    """

    id: str
    title: str = ""
    state: ItemState = ItemState.UNKNOWN
    labels: tuple[str, ...] = ()
    assignees: tuple[str, ...] = ()
    internal_id: int | None = None

    @property
    def is_closed(self) -> bool:
        return self.state is ItemState.CLOSED


@dataclass(frozen=True)
class ItemResult:
    """Outcome of resolving one item: a snapshot or an error message."""

    item_id: str
    snapshot: ItemSnapshot | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.snapshot is not None and self.error is None

    @property
    def state(self) -> ItemState:
        if self.snapshot is None:
            return ItemState.ERROR
        return self.snapshot.state

    @property
    def title(self) -> str:
        if self.snapshot is None:
            return ""
        return self.snapshot.title


@dataclass(frozen=True)
class EdgeLookup:
    """Outcome of reading one item's dependency targets."""

    item_id: str
    targets: tuple[str, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class GraphNode:
    """A node in a built dependency graph.

    Error placeholders carry ``state == ItemState.ERROR`` and the error text.
    """

    id: str
    title: str = ""
    state: ItemState = ItemState.UNKNOWN
    labels: tuple[str, ...] = ()
    assignees: tuple[str, ...] = ()
    blocked_by: tuple[str, ...] = ()
    error: str | None = None

    @property
    def is_error(self) -> bool:
        return self.state is ItemState.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "state": self.state.value,
            "labels": list(self.labels),
            "assignees": list(self.assignees),
        }


@dataclass(frozen=True)
class GraphEdge:
    """Directed edge: ``source`` depends on ``target``."""

    source: str
    target: str

    def to_dict(self) -> dict[str, str]:
        return {"from": self.source, "to": self.target}


@dataclass
class DependencyGraph:
    """Bounded node/edge set rooted at one item, rebuilt per traversal.

    Attributes:
        root_id: Item the traversal started from
        nodes: Nodes keyed by id, in discovery order
        edges: Dependency edges in discovery order
        circular: True when the traversal re-entered a node on its own path
        max_depth: Depth bound the graph was built with
    """

    root_id: str
    nodes: dict[str, GraphNode] = field(default_factory=dict)
    edges: list[GraphEdge] = field(default_factory=list)
    circular: bool = False
    max_depth: int = 10

    def add_node(self, node: GraphNode) -> None:
        self.nodes.setdefault(node.id, node)

    def add_edge(self, source: str, target: str) -> None:
        edge = GraphEdge(source, target)
        if edge not in self.edges:
            self.edges.append(edge)

    def children(self, item_id: str) -> list[str]:
        """Return the dependency targets of ``item_id`` in edge order."""
        return [edge.target for edge in self.edges if edge.source == item_id]

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes.values()],
            "edges": [edge.to_dict() for edge in self.edges],
            "circular": self.circular,
            "rootId": self.root_id,
        }


@dataclass(frozen=True)
class UnresolvedDependency:
    """Minimal identifying info for a dependency that is not closed."""

    id: str
    title: str = ""
    state: ItemState = ItemState.UNKNOWN

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "title": self.title, "state": self.state.value}


@dataclass
class ValidationResult:
    """Dependency resolution result for one item.

    ``error`` is set when the item's own dependencies could not be read; such
    a result is never valid.
    """

    item_id: str
    valid: bool
    unresolved_dependencies: list[UnresolvedDependency] = field(default_factory=list)
    message: str = ""
    checked_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "itemId": self.item_id,
            "valid": self.valid,
            "unresolvedDependencies": [dep.to_dict() for dep in self.unresolved_dependencies],
            "message": self.message,
            "checkedAt": self.checked_at.isoformat(),
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class CircularCheck:
    """Cycles reachable from a start item.

    Each cycle is a path whose first and last elements are the same item.
    """

    has_circular: bool = False
    cycles: list[list[str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"hasCircular": self.has_circular, "cycles": [list(c) for c in self.cycles]}


@dataclass
class ClosureDecision:
    """Whether an item may be closed, with blocking and advisory details."""

    item_id: str
    can_close: bool
    reason: str
    blocking_issues: list[UnresolvedDependency] = field(default_factory=list)
    affected_issues: list[UnresolvedDependency] = field(default_factory=list)
    warning: str | None = None
    cycles: list[list[str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "itemId": self.item_id,
            "canClose": self.can_close,
            "reason": self.reason,
        }
        if self.blocking_issues:
            data["blockingIssues"] = [dep.to_dict() for dep in self.blocking_issues]
        if self.affected_issues:
            data["affectedIssues"] = [dep.to_dict() for dep in self.affected_issues]
        if self.warning:
            data["warning"] = self.warning
        if self.cycles:
            data["cycles"] = [list(c) for c in self.cycles]
        return data


@dataclass
class DependencyStatus:
    """Dependency overview for one item.

    Attributes:
        item: The item itself
        dependencies: Resolved dependency targets
        dependents: Resolved items depending on this one
        error: Set when the dependency list could not be read
        dependents_error: Set when the reverse lookup failed
    """

    item: ItemResult
    dependencies: list[ItemResult] = field(default_factory=list)
    dependents: list[ItemResult] = field(default_factory=list)
    error: str | None = None
    dependents_error: str | None = None

    @property
    def open_dependencies(self) -> list[ItemResult]:
        return [dep for dep in self.dependencies if dep.state is not ItemState.CLOSED]

    @property
    def open_dependents(self) -> list[ItemResult]:
        return [dep for dep in self.dependents if dep.state is ItemState.OPEN]

    @property
    def ready(self) -> bool:
        """True when the dependencies were read and every one is closed."""
        return self.error is None and not self.open_dependencies

    def to_dict(self) -> dict[str, Any]:
        def describe(result: ItemResult) -> dict[str, Any]:
            entry: dict[str, Any] = {
                "id": result.item_id,
                "title": result.title,
                "state": result.state.value,
            }
            if result.error:
                entry["error"] = result.error
            return entry

        data: dict[str, Any] = {
            "item": describe(self.item),
            "dependencies": [describe(dep) for dep in self.dependencies],
            "dependents": [describe(dep) for dep in self.dependents],
            "openDependencies": len(self.open_dependencies),
            "openDependents": len(self.open_dependents),
            "ready": self.ready,
        }
        if self.error:
            data["error"] = self.error
        if self.dependents_error:
            data["dependentsError"] = self.dependents_error
        return data
