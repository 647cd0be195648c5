"""Select a DependencyStore implementation from configuration."""

import structlog

from issuegraph.config import IssueGraphConfig
from issuegraph.storage.base import DependencyStore, ItemStore
from issuegraph.storage.label_store import LabelDependencyStore
from issuegraph.storage.local_store import LocalDependencyStore
from issuegraph.storage.native_store import NativeDependencyStore
from issuegraph.tracker.labels import DependencyLabelCodec
from issuegraph.tracker.relations_api import GitHubRelationsAPI
from issuegraph.tracker.rest_api import GitHubTracker

logger = structlog.get_logger(__name__)


def create_store(
    config: IssueGraphConfig,
    tracker: ItemStore | None = None,
    relations: GitHubRelationsAPI | None = None,
) -> DependencyStore:
    """Build the store for ``config.storage.mode``.

    Args:
        config: Loaded configuration
        tracker: Item store to use instead of a GitHubTracker built from config
        relations: Relation client to use instead of one built from config

    Returns:
        A ready DependencyStore

    Raises:
        ValueError: If a remote mode has neither a tracker nor tracker config
    """
    storage = config.storage
    logger.info("creating_dependency_store", mode=storage.mode)

    if storage.mode == "local":
        return LocalDependencyStore(storage.cache_dir)

    if tracker is None:
        if config.tracker is None:
            msg = f"Storage mode '{storage.mode}' requires tracker configuration"
            raise ValueError(msg)
        tracker = GitHubTracker(
            token=config.tracker.token,
            repo_name=config.tracker.repository,
            base_url=config.tracker.api_url,
        )

    codec = DependencyLabelCodec(storage.label_prefix, storage.blocked_by_prefix)
    label_store = LabelDependencyStore(tracker, codec)
    if storage.mode == "label":
        return label_store

    if relations is None:
        if config.tracker is None:
            msg = "Native storage mode requires tracker configuration"
            raise ValueError(msg)
        relations = GitHubRelationsAPI(
            token=config.tracker.token,
            repo_name=config.tracker.repository,
            base_url=config.tracker.api_url,
        )
    return NativeDependencyStore(tracker, relations, fallback=label_store)
