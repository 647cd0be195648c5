"""GitHub REST API item store using PyGithub.

Provides the item primitives the dependency engine needs: fetch one item,
list items, and rewrite an item's labels. PyGithub is blocking, so every call
runs in a worker thread to keep the public methods awaitable.
"""

import asyncio

import requests
from github import Github, GithubException
from github.Issue import Issue
from github.Repository import Repository

from issuegraph.errors import ItemNotFoundError, TrackerError, TransientTrackerError
from issuegraph.log_config import get_logger
from issuegraph.models import ItemSnapshot, ItemState, normalize_item_id

logger = get_logger(__name__)

# Constants
NOT_FOUND_STATUS_CODE = 404
GONE_STATUS_CODE = 410


def snapshot_from_issue(issue: Issue) -> ItemSnapshot:
    """Convert a PyGithub Issue into a read-only ItemSnapshot."""
    return ItemSnapshot(
        id=str(issue.number),
        title=issue.title or "",
        state=ItemState.parse(issue.state),
        labels=tuple(label.name for label in issue.labels),
        assignees=tuple(user.login for user in issue.assignees),
        internal_id=issue.id,
    )


def translate_github_error(error: GithubException, item_id: str | None = None) -> TrackerError:
    """Map a PyGithub exception onto the tracker error taxonomy.

    Args:
        error: Exception raised by PyGithub
        item_id: Item the request referred to, if any

    Returns:
        ItemNotFoundError for 404/410 on an item request, TransientTrackerError otherwise
    """
    if item_id is not None and error.status in (NOT_FOUND_STATUS_CODE, GONE_STATUS_CODE):
        return ItemNotFoundError(item_id)
    return TransientTrackerError(f"GitHub request failed: {error.data}", status=error.status)


def translate_network_error(error: requests.exceptions.RequestException) -> TransientTrackerError:
    """Map a connection, timeout or other transport failure to a transient error."""
    return TransientTrackerError(f"GitHub request failed: {error}")


class GitHubTracker:
    """Async item store backed by a GitHub repository's issues.

    Attributes:
        repo_name: Repository name in format 'owner/repo'
    """

    def __init__(self, token: str, repo_name: str, base_url: str = "https://api.github.com"):
        """Initialize the tracker client.

        Args:
            token: GitHub personal access token or OAuth token
            repo_name: Repository name in format 'owner/repo'
            base_url: GitHub REST API base URL
        """
        self.github = Github(token, base_url=base_url)
        self.repo_name = repo_name
        self._repository: Repository | None = None
        logger.info("github_tracker_initialized", repository=repo_name)

    def _get_repository(self) -> Repository:
        """Get (and memoize) the repository object.

        Raises:
            TransientTrackerError: If the repository cannot be accessed
        """
        if self._repository is None:
            try:
                self._repository = self.github.get_repo(self.repo_name)
            except GithubException as e:
                raise TransientTrackerError(
                    f"Failed to access repository '{self.repo_name}': {e.data}",
                    status=e.status,
                ) from e
            except requests.exceptions.RequestException as e:
                raise translate_network_error(e) from e
        return self._repository

    def _get_issue(self, item_id: str) -> Issue:
        repo = self._get_repository()
        try:
            return repo.get_issue(int(item_id))
        except ValueError as e:
            raise ItemNotFoundError(item_id) from e
        except GithubException as e:
            raise translate_github_error(e, item_id) from e
        except requests.exceptions.RequestException as e:
            raise translate_network_error(e) from e

    def _fetch_item(self, item_id: str) -> ItemSnapshot:
        issue = self._get_issue(item_id)
        try:
            return snapshot_from_issue(issue)
        except GithubException as e:
            raise translate_github_error(e, item_id) from e
        except requests.exceptions.RequestException as e:
            raise translate_network_error(e) from e

    def _list_items(self, state: str) -> list[ItemSnapshot]:
        repo = self._get_repository()
        try:
            # GitHub returns pull requests through the issues endpoint
            return [
                snapshot_from_issue(issue)
                for issue in repo.get_issues(state=state)
                if not issue.pull_request
            ]
        except GithubException as e:
            raise translate_github_error(e) from e
        except requests.exceptions.RequestException as e:
            raise translate_network_error(e) from e

    def _update_labels(self, item_id: str, labels: list[str]) -> None:
        issue = self._get_issue(item_id)
        try:
            issue.edit(labels=labels)
        except GithubException as e:
            raise translate_github_error(e, item_id) from e
        except requests.exceptions.RequestException as e:
            raise translate_network_error(e) from e

    async def get_item(self, item_id: str) -> ItemSnapshot:
        """Fetch one item.

        Args:
            item_id: Issue number as a string

        Returns:
            ItemSnapshot of the issue

        Raises:
            ItemNotFoundError: If the issue does not exist
            TransientTrackerError: For any other GitHub failure
        """
        item_id = normalize_item_id(item_id)
        return await asyncio.to_thread(self._fetch_item, item_id)

    async def list_items(self, state: str = "all") -> list[ItemSnapshot]:
        """List issues in the repository, excluding pull requests.

        Args:
            state: Issue state filter ('open', 'closed', 'all')

        Returns:
            List of ItemSnapshot objects
        """
        items = await asyncio.to_thread(self._list_items, state)
        logger.debug("tracker_items_listed", state=state, count=len(items))
        return items

    async def update_item_labels(self, item_id: str, labels: list[str]) -> None:
        """Replace the full label set of an item.

        Args:
            item_id: Issue number as a string
            labels: Complete new list of label names
        """
        item_id = normalize_item_id(item_id)
        await asyncio.to_thread(self._update_labels, item_id, labels)
        logger.debug("tracker_labels_updated", item_id=item_id, label_count=len(labels))

    def close(self) -> None:
        """Close the GitHub client connection."""
        self.github.close()
