"""issuegraph: dependency graph engine for GitHub issues."""

from issuegraph.manager import DependencyManager

__version__ = "0.1.0"

__all__ = ["DependencyManager", "__version__"]
