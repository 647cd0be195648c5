"""Renderers for built dependency graphs."""

from issuegraph.render.diagrams import render_dot, render_mermaid, truncate_title
from issuegraph.render.export import compute_stats, render_json, render_stats
from issuegraph.render.tree import render_tree

__all__ = [
    "compute_stats",
    "render_dot",
    "render_json",
    "render_mermaid",
    "render_stats",
    "render_tree",
    "truncate_title",
]
