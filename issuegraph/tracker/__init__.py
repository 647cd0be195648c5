"""GitHub tracker clients and the dependency label codec."""

from .labels import DependencyLabelCodec
from .relations_api import GitHubRelationsAPI
from .rest_api import GitHubTracker

__all__ = ["DependencyLabelCodec", "GitHubRelationsAPI", "GitHubTracker"]
