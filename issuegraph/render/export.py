"""Structured exports of a built dependency graph: JSON and stats."""

import json
from typing import Any

from issuegraph.models import DependencyGraph, ItemState


def render_json(graph: DependencyGraph, indent: int | None = 2) -> str:
    """Serialize ``graph`` for external tooling.

    Shape: ``{"nodes": [{id, title, state, labels, assignees}],
    "edges": [{"from", "to"}], "circular": bool, "rootId": str}``.
    """
    return json.dumps(graph.to_dict(), indent=indent)


def compute_stats(graph: DependencyGraph) -> dict[str, Any]:
    """Aggregate counts over an already-built graph.

    Returns:
        Dictionary with:
            - root_id: Root item of the graph
            - total_nodes: Number of nodes
            - total_edges: Number of dependency edges
            - by_state: Node count per state
            - circular: Whether the graph contains a cycle
            - percent_closed: Share of closed nodes, rounded to one decimal
    """
    by_state = {state.value: 0 for state in ItemState}
    for node in graph.nodes.values():
        by_state[node.state.value] += 1

    total = len(graph.nodes)
    closed = by_state[ItemState.CLOSED.value]
    return {
        "root_id": graph.root_id,
        "total_nodes": total,
        "total_edges": len(graph.edges),
        "by_state": by_state,
        "circular": graph.circular,
        "percent_closed": round(closed * 100 / total, 1) if total else 0.0,
    }


def render_stats(graph: DependencyGraph) -> str:
    """Human-readable summary of ``compute_stats``."""
    stats = compute_stats(graph)
    lines = [
        f"Dependency graph for #{stats['root_id']}",
        f"Items: {stats['total_nodes']}",
        f"Dependencies: {stats['total_edges']}",
    ]
    lines.extend(
        f"  {state.capitalize()}: {count}" for state, count in stats["by_state"].items() if count
    )
    lines.append(f"Closed: {stats['percent_closed']}%")
    lines.append(f"Circular: {'yes' if stats['circular'] else 'no'}")
    return "\n".join(lines)
