"""GitHub issue-dependency REST endpoints using httpx.

GitHub exposes first-class "blocked by" relations under
``/repos/{owner}/{repo}/issues/{number}/dependencies``. Repositories or
instances without the feature answer 404/410/422; those responses raise
UnsupportedRelationError so callers can fall back to label encoding.
"""

import types
from typing import Any

import httpx

from issuegraph.errors import TransientTrackerError, UnsupportedRelationError
from issuegraph.log_config import get_logger

logger = get_logger(__name__)

UNSUPPORTED_STATUS_CODES = frozenset({404, 410, 422})
PAGE_SIZE = 100


class GitHubRelationsAPI:
    """Async client for GitHub's native issue dependency relations.

    The "blocked by" list of issue N holds the issues N depends on; the
    "blocking" list holds the issues that depend on N.
    """

    def __init__(
        self,
        token: str,
        repo_name: str,
        base_url: str = "https://api.github.com",
    ):
        """Initialize the relations client with authentication.

        Args:
            token: GitHub personal access token or OAuth token
            repo_name: Repository name in format 'owner/repo'
            base_url: GitHub REST API base URL
        """
        self.token = token
        self.repo_name = repo_name
        self.base_url = base_url
        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=30.0,
        )
        logger.info("github_relations_initialized", repository=repo_name)

    def _path(self, item_id: str, relation: str) -> str:
        return f"/repos/{self.repo_name}/issues/{item_id}/dependencies/{relation}"

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request and translate failures.

        Raises:
            UnsupportedRelationError: On 404/410/422
            TransientTrackerError: On any other HTTP or transport failure
        """
        try:
            response = await self.client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status in UNSUPPORTED_STATUS_CODES:
                msg = f"Relation endpoint rejected {method} {path} ({status})"
                raise UnsupportedRelationError(msg) from e
            msg = f"Relation request failed: {method} {path} ({status})"
            raise TransientTrackerError(msg, status=status) from e
        except httpx.HTTPError as e:
            msg = f"Relation request failed: {method} {path}: {e}"
            raise TransientTrackerError(msg) from e
        return response

    async def create_relation(self, source: str, target_internal_id: int) -> None:
        """Record that ``source`` is blocked by the issue with ``target_internal_id``.

        Args:
            source: Issue number of the dependent item
            target_internal_id: Tracker-internal id of the blocking issue
        """
        await self._request(
            "POST",
            self._path(source, "blocked_by"),
            json={"issue_id": target_internal_id},
        )

    async def delete_relation(self, source: str, target_internal_id: int) -> None:
        """Remove a blocked-by relation from ``source``."""
        await self._request(
            "DELETE",
            f"{self._path(source, 'blocked_by')}/{target_internal_id}",
        )

    async def list_blocked_by(self, item_id: str) -> list[str]:
        """Return issue numbers ``item_id`` depends on."""
        return await self._list(self._path(item_id, "blocked_by"))

    async def list_blocking(self, item_id: str) -> list[str]:
        """Return issue numbers that depend on ``item_id``."""
        return await self._list(self._path(item_id, "blocking"))

    async def _list(self, path: str) -> list[str]:
        """Collect issue numbers across every page, following the Link header."""
        numbers: list[str] = []
        url: str | None = path
        params: dict[str, Any] | None = {"per_page": PAGE_SIZE}
        pages = 0
        while url is not None:
            response = await self._request("GET", url, params=params)
            numbers.extend(str(issue["number"]) for issue in response.json())
            pages += 1
            # The next URL already carries the query string
            url = response.links.get("next", {}).get("url")
            params = None
        logger.debug("relations_listed", path=path, count=len(numbers), pages=pages)
        return numbers

    async def close(self) -> None:
        """Close the httpx client and cleanup resources."""
        await self.client.aclose()

    async def __aenter__(self) -> "GitHubRelationsAPI":
        """Enter async context manager."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        """Exit async context manager and cleanup."""
        await self.close()
