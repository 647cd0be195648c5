"""Build a bounded dependency graph rooted at one item for rendering."""

import structlog

from issuegraph.graph.service import DependencyService
from issuegraph.models import DependencyGraph, GraphNode, ItemResult, ItemState, normalize_item_id
from issuegraph.tracker.labels import DependencyLabelCodec

logger = structlog.get_logger(__name__)

DEFAULT_MAX_DEPTH = 10


class GraphBuilder:
    """Materialize the nodes and edges reachable from a root item.

    Every discovered item is expanded at most once, however many paths lead to
    it. Items that fail to load become error placeholder nodes. Nodes at
    ``max_depth`` are included but not expanded.
    """

    def __init__(
        self,
        service: DependencyService,
        max_depth: int = DEFAULT_MAX_DEPTH,
        codec: DependencyLabelCodec | None = None,
    ):
        """Initialize the builder.

        Args:
            service: Graph service used to read edges and items
            max_depth: Maximum depth below the root that is expanded
            codec: Label codec used to read secondary blocked-by labels
        """
        self.service = service
        self.max_depth = max_depth
        self.codec = codec or DependencyLabelCodec()

    async def build(self, root_id: str, max_depth: int | None = None) -> DependencyGraph:
        """Build the graph rooted at ``root_id``.

        Args:
            root_id: Item to start from
            max_depth: Override of the configured depth bound

        Returns:
            DependencyGraph; ``circular`` is set when a node on the current
            path is reached again
        """
        root_id = normalize_item_id(root_id)
        depth_bound = self.max_depth if max_depth is None else max_depth
        graph = DependencyGraph(root_id=root_id, max_depth=depth_bound)

        await self._visit(graph, root_id, depth=0, path=[], seen=set())

        logger.info(
            "dependency_graph_built",
            root_id=root_id,
            nodes=len(graph.nodes),
            edges=len(graph.edges),
            circular=graph.circular,
            errors=sum(1 for node in graph.nodes.values() if node.is_error),
        )
        return graph

    async def _visit(
        self,
        graph: DependencyGraph,
        item_id: str,
        depth: int,
        path: list[str],
        seen: set[str],
    ) -> None:
        if item_id in seen:
            if item_id in path:
                graph.circular = True
            return
        seen.add(item_id)

        result = await self.service.resolve_item(item_id)
        node = self._node_from_result(result)

        if depth >= graph.max_depth:
            graph.add_node(node)
            logger.debug("graph_depth_limit", item_id=item_id, depth=depth)
            return

        lookup = await self.service.lookup_edges(item_id)
        if not lookup.ok:
            if not node.is_error:
                node = GraphNode(
                    id=item_id,
                    title=node.title,
                    state=ItemState.ERROR,
                    error=lookup.error,
                )
            graph.add_node(node)
            return

        graph.add_node(node)
        path.append(item_id)
        for dependency in lookup.targets:
            graph.add_edge(item_id, dependency)
            await self._visit(graph, dependency, depth + 1, path, seen)
        path.pop()

    def _node_from_result(self, result: ItemResult) -> GraphNode:
        if not result.ok or result.snapshot is None:
            return GraphNode(id=result.item_id, state=ItemState.ERROR, error=result.error)
        snapshot = result.snapshot
        return GraphNode(
            id=snapshot.id,
            title=snapshot.title,
            state=snapshot.state,
            labels=snapshot.labels,
            assignees=snapshot.assignees,
            blocked_by=tuple(self.codec.decode_blocked_by(snapshot.labels)),
        )
