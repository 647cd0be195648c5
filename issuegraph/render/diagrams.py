"""Diagram exporters: Mermaid flowcharts and Graphviz DOT.

Both grammars consume a built DependencyGraph, escape and truncate titles,
and color nodes by state from the same small palette.
"""

import re

from issuegraph.models import DependencyGraph, GraphNode, ItemState

DEFAULT_TITLE_MAX_LENGTH = 40
ELLIPSIS = "..."

# Fill / stroke colors per state
PALETTE = {
    ItemState.OPEN: ("#fff3cd", "#d39e00"),
    ItemState.CLOSED: ("#d4edda", "#28a745"),
    ItemState.UNKNOWN: ("#e2e3e5", "#6c757d"),
    ItemState.ERROR: ("#f8d7da", "#dc3545"),
}

_MERMAID_UNSAFE = re.compile(r"[\"`<>]")
_NODE_ID_UNSAFE = re.compile(r"[^A-Za-z0-9_]")


def truncate_title(title: str, max_length: int = DEFAULT_TITLE_MAX_LENGTH) -> str:
    """Collapse whitespace and shorten ``title`` to at most ``max_length`` characters."""
    title = " ".join(title.split())
    if len(title) <= max_length:
        return title
    return title[: max_length - len(ELLIPSIS)].rstrip() + ELLIPSIS


def _node_text(node: GraphNode | None, item_id: str, max_length: int) -> str:
    if node is None:
        return f"#{item_id}"
    if node.is_error:
        return f"#{item_id} (error)"
    title = truncate_title(node.title, max_length)
    return f"#{item_id}: {title}" if title else f"#{item_id}"


def _mermaid_id(item_id: str) -> str:
    return "issue_" + _NODE_ID_UNSAFE.sub("_", item_id)


def escape_mermaid(text: str) -> str:
    """Replace characters that break Mermaid node labels."""
    return _MERMAID_UNSAFE.sub(lambda m: f"#{ord(m.group(0))};", text)


def escape_dot(text: str) -> str:
    """Escape backslashes and double quotes for a DOT quoted string."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


def render_mermaid(
    graph: DependencyGraph,
    title_max_length: int = DEFAULT_TITLE_MAX_LENGTH,
    include_blocked_by: bool = True,
) -> str:
    """Generate a Mermaid flowchart.

    Node statements come first, then solid dependency edges, then dashed
    edges for the secondary blocked-by relation (only between nodes already
    in the graph), then state classes.

    Args:
        graph: Built dependency graph
        title_max_length: Maximum title length in node labels
        include_blocked_by: Emit dashed blocked-by edges

    Returns:
        Mermaid flowchart syntax
    """
    lines = ["graph TD"]

    for item_id, node in graph.nodes.items():
        text = escape_mermaid(_node_text(node, item_id, title_max_length))
        lines.append(f'    {_mermaid_id(item_id)}["{text}"]')

    for edge in graph.edges:
        lines.append(f"    {_mermaid_id(edge.source)} --> {_mermaid_id(edge.target)}")

    if include_blocked_by:
        for item_id, node in graph.nodes.items():
            for blocker in node.blocked_by:
                if blocker in graph.nodes and blocker != item_id:
                    lines.append(
                        f"    {_mermaid_id(item_id)} -.->|blocked by| {_mermaid_id(blocker)}",
                    )

    for state, (fill, stroke) in PALETTE.items():
        lines.append(f"    classDef {state.value} fill:{fill},stroke:{stroke}")

    by_state: dict[ItemState, list[str]] = {}
    for item_id, node in graph.nodes.items():
        by_state.setdefault(node.state, []).append(_mermaid_id(item_id))
    for state, node_ids in by_state.items():
        lines.append(f"    class {','.join(node_ids)} {state.value}")

    return "\n".join(lines)


def render_dot(
    graph: DependencyGraph,
    title_max_length: int = DEFAULT_TITLE_MAX_LENGTH,
) -> str:
    """Generate a Graphviz DOT digraph with a left-to-right layout.

    Args:
        graph: Built dependency graph
        title_max_length: Maximum title length in node labels

    Returns:
        Graphviz DOT syntax
    """
    lines = ["digraph dependencies {"]
    lines.append("    rankdir=LR;")
    lines.append('    node [shape=box, style="rounded,filled", fontname="Helvetica"];')

    for item_id, node in graph.nodes.items():
        fill, stroke = PALETTE[node.state]
        text = escape_dot(_node_text(node, item_id, title_max_length))
        lines.append(
            f'    "{escape_dot(item_id)}" [label="{text}", fillcolor="{fill}", color="{stroke}"];',
        )

    lines.extend(
        f'    "{escape_dot(edge.source)}" -> "{escape_dot(edge.target)}";'
        for edge in graph.edges
    )

    lines.append("}")
    return "\n".join(lines)
