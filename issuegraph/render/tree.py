"""Text tree rendering of a built dependency graph."""

from issuegraph.models import DependencyGraph, GraphNode, ItemState

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "
SPACE = "    "
CIRCULAR_MARKER = "(circular)"

STATE_MARKERS = {
    ItemState.OPEN: "[ ]",
    ItemState.CLOSED: "[x]",
    ItemState.UNKNOWN: "[?]",
    ItemState.ERROR: "[!]",
}


def _label(node: GraphNode | None, item_id: str) -> str:
    if node is None:
        return f"{STATE_MARKERS[ItemState.UNKNOWN]} #{item_id}"
    marker = STATE_MARKERS[node.state]
    if node.is_error:
        detail = f" ({node.error})" if node.error else ""
        return f"{marker} #{node.id} <error>{detail}"
    title = f" {node.title}" if node.title else ""
    return f"{marker} #{node.id}{title}"


def render_tree(graph: DependencyGraph) -> str:
    """Render ``graph`` as an indented tree rooted at ``graph.root_id``.

    A node that has already been printed is shown once more as a
    ``(circular)`` leaf and not expanded again, so shared dependencies appear
    in full only the first time.

    Example output::

        [ ] #1 Release
        ├── [x] #2 Schema
        └── [ ] #3 API
            └── [x] #2 (circular)
    """
    lines = [_label(graph.nodes.get(graph.root_id), graph.root_id)]
    printed = {graph.root_id}

    def walk(item_id: str, prefix: str) -> None:
        children = graph.children(item_id)
        for index, child in enumerate(children):
            last = index == len(children) - 1
            connector = LAST_BRANCH if last else BRANCH
            if child in printed:
                marker = STATE_MARKERS[_state(graph, child)]
                lines.append(f"{prefix}{connector}{marker} #{child} {CIRCULAR_MARKER}")
                continue
            printed.add(child)
            lines.append(f"{prefix}{connector}{_label(graph.nodes.get(child), child)}")
            walk(child, prefix + (SPACE if last else PIPE))

    walk(graph.root_id, "")
    return "\n".join(lines)


def _state(graph: DependencyGraph, item_id: str) -> ItemState:
    node = graph.nodes.get(item_id)
    return node.state if node is not None else ItemState.UNKNOWN
