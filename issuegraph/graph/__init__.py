"""Graph module for dependency traversal, cycle detection and closure checks."""

from issuegraph.graph.builder import GraphBuilder
from issuegraph.graph.cycles import CycleDetector
from issuegraph.graph.service import DependencyService
from issuegraph.graph.validator import ClosureValidator, ValidationCache

__all__ = [
    "ClosureValidator",
    "CycleDetector",
    "DependencyService",
    "GraphBuilder",
    "ValidationCache",
]
