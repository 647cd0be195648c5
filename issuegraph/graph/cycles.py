"""Cycle detection with path reporting.

Walks the dependency edges depth-first from one item, keeping the current
path as an ordered list so every cycle can be reported exactly.
"""

import structlog

from issuegraph.graph.service import DependencyService
from issuegraph.models import CircularCheck, normalize_item_id

logger = structlog.get_logger(__name__)

DEFAULT_MAX_DEPTH = 10


class CycleDetector:
    """Find all cycles reachable from a start item.

    A branch stops silently at ``max_depth`` or when its edges cannot be
    fetched; neither condition raises.
    """

    def __init__(self, service: DependencyService, max_depth: int = DEFAULT_MAX_DEPTH):
        """Initialize the detector.

        Args:
            service: Graph service used to read edges
            max_depth: Maximum path length explored from the start item
        """
        self.service = service
        self.max_depth = max_depth

    async def detect(self, item_id: str) -> CircularCheck:
        """Detect circular dependencies reachable from ``item_id``.

        Returns:
            CircularCheck whose cycles each start and end with the same item,
            e.g. ``["1", "2", "3", "1"]``
        """
        item_id = normalize_item_id(item_id)
        cycles: list[list[str]] = []
        explored: set[str] = set()

        await self._visit(item_id, [], explored, cycles)

        if cycles:
            logger.warning(
                "circular_dependencies_detected",
                item_id=item_id,
                cycle_count=len(cycles),
                cycles=[" -> ".join(cycle) for cycle in cycles],
            )
        else:
            logger.debug("no_circular_dependencies", item_id=item_id, explored=len(explored))

        return CircularCheck(has_circular=bool(cycles), cycles=cycles)

    async def _visit(
        self,
        node: str,
        path: list[str],
        explored: set[str],
        cycles: list[list[str]],
    ) -> None:
        if node in path:
            start = path.index(node)
            cycle = [*path[start:], node]
            if not any(_same_cycle(cycle, known) for known in cycles):
                cycles.append(cycle)
            return

        if node in explored:
            return

        if len(path) >= self.max_depth:
            logger.debug("cycle_search_depth_limit", item_id=node, depth=len(path))
            return

        lookup = await self.service.lookup_edges(node)
        if not lookup.ok:
            return

        path.append(node)
        for dependency in lookup.targets:
            await self._visit(dependency, path, explored, cycles)
        path.pop()

        explored.add(node)


def _same_cycle(first: list[str], second: list[str]) -> bool:
    """Compare two closed cycles regardless of their starting node."""
    a, b = first[:-1], second[:-1]
    if len(a) != len(b) or set(a) != set(b):
        return False
    start = b.index(a[0])
    return a == b[start:] + b[:start]


def cycle_contains(cycle: list[str], item_id: str) -> bool:
    """Return True if ``item_id`` is a member of ``cycle``."""
    return normalize_item_id(item_id) in cycle
