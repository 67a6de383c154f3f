"""GitHub REST client wrapper.

Provides:
- one outbound request per operation, no retries, no redirects
- bearer-token auth and a configurable User-Agent
- error translation, including rate-limit detection
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

import httpx

from .config import HostingConfig
from .errors import AdapterError, ErrorKind

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.github.com"
MAX_PER_PAGE = 100

_HEADS_PREFIX = "refs/heads/"
PROTECTED_BRANCH = "main"


def normalize_branch(branch: str) -> str:
    """Strip a leading `refs/heads/` from a branch name."""
    if branch.startswith(_HEADS_PREFIX):
        return branch[len(_HEADS_PREFIX):]
    return branch


def qualify_branch(branch: str) -> str:
    """Return the fully qualified ref for a branch name.

    Names already starting with `refs/` are passed through unchanged.
    """
    if branch.startswith("refs/"):
        return branch
    return f"{_HEADS_PREFIX}{branch}"


def branch_path(branch: str) -> str:
    """URL-encode each segment of a normalized branch name for use in a path."""
    return "/".join(quote(segment, safe="") for segment in normalize_branch(branch).split("/"))


def clamp_per_page(per_page: int) -> int:
    """Keep a page size within GitHub's 1..100 bounds."""
    return max(1, min(per_page, MAX_PER_PAGE))


def format_reset(reset_epoch_s: int) -> str:
    """Render a rate-limit reset epoch as an RFC 3339 UTC timestamp."""
    return datetime.fromtimestamp(reset_epoch_s, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def _compact(body: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in body.items() if v is not None}


def _seg(value: str | int) -> str:
    return quote(str(value), safe="")


class GitHubClient:
    """Minimal GitHub REST client."""

    def __init__(
        self,
        *,
        config: HostingConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create a GitHub REST client.

        Args:
            config: Token, User-Agent and default owner.
            transport: Optional httpx transport for tests.
        """
        self._config = config
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._config.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": self._config.user_agent,
        }

    def _error_from_response(self, resp: httpx.Response) -> AdapterError:
        message = f"GitHub API request failed with {resp.status_code}"
        try:
            payload = resp.json()
            if isinstance(payload, dict) and isinstance(payload.get("message"), str) and payload["message"]:
                message = f"{message}: {payload['message']}"
        except ValueError:
            pass  # non-JSON error body; status code alone is reported

        remaining = resp.headers.get("x-ratelimit-remaining")
        reset_raw = resp.headers.get("x-ratelimit-reset")
        if remaining == "0" and reset_raw:
            try:
                reset_epoch = int(reset_raw)
            except ValueError:
                reset_epoch = None
            if reset_epoch is not None:
                return AdapterError(
                    kind=ErrorKind.RATE_LIMITED,
                    message=f"{message}. Rate limit resets at {format_reset(reset_epoch)}.",
                    status_code=resp.status_code,
                    reset_at=datetime.fromtimestamp(reset_epoch, tz=timezone.utc),
                )

        return AdapterError(kind=ErrorKind.HTTP, message=message, status_code=resp.status_code)

    async def request_json(
        self,
        *,
        method: str,
        path: str,
        json_body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Make exactly one request and return decoded JSON (None for 204)."""
        url = f"{API_BASE_URL}{path}"
        logger.debug("GitHub %s %s", method, path)

        try:
            async with httpx.AsyncClient(
                follow_redirects=False,
                timeout=None,
                transport=self._transport,
            ) as client:
                resp = await client.request(
                    method,
                    url,
                    headers=self._headers(),
                    json=json_body,
                    params=params,
                )
        except httpx.HTTPError as exc:
            raise AdapterError(
                kind=ErrorKind.HTTP,
                message="Network request failed",
                details=str(exc) or type(exc).__name__,
            ) from exc

        if not resp.is_success:
            raise self._error_from_response(resp)

        if resp.status_code == 204:
            return None

        try:
            return resp.json()
        except ValueError as exc:
            raise AdapterError(kind=ErrorKind.HTTP, message="GitHub returned invalid JSON") from exc

    async def list_repositories(
        self,
        *,
        owner: str | None = None,
        owner_type: str = "user",
        per_page: int = 30,
        include_private: bool = False,
    ) -> list[dict[str, Any]]:
        """List repositories for an org, a user, or the authenticated user when no owner is given."""
        params = {"per_page": str(clamp_per_page(per_page)), "sort": "pushed"}
        if include_private:
            params["visibility"] = "all"

        if owner:
            path = f"/orgs/{_seg(owner)}/repos" if owner_type == "org" else f"/users/{_seg(owner)}/repos"
        else:
            path = "/user/repos"

        return await self.request_json(method="GET", path=path, params=params)

    async def get_issue(self, *, owner: str, repo: str, issue_number: int) -> dict[str, Any]:
        """Fetch one issue by number."""
        return await self.request_json(
            method="GET",
            path=f"/repos/{_seg(owner)}/{_seg(repo)}/issues/{issue_number}",
        )

    async def search_issues(self, *, query: str, per_page: int = 10) -> tuple[int, list[dict[str, Any]]]:
        """Search issues and pull requests; returns (total_count, items)."""
        data = await self.request_json(
            method="GET",
            path="/search/issues",
            params={"q": query, "per_page": str(clamp_per_page(per_page))},
        )
        if not isinstance(data, dict):
            raise AdapterError(kind=ErrorKind.HTTP, message="Unexpected search response")
        return int(data.get("total_count") or 0), list(data.get("items") or [])

    async def get_rate_limit(self) -> dict[str, Any]:
        """Return the `resources` map of `/rate_limit`."""
        data = await self.request_json(method="GET", path="/rate_limit")
        if not isinstance(data, dict) or not isinstance(data.get("resources"), dict):
            raise AdapterError(kind=ErrorKind.HTTP, message="Unexpected rate limit response")
        return data["resources"]

    async def create_pull_request(
        self,
        *,
        owner: str,
        repo: str,
        title: str,
        head: str,
        base: str,
        body: str | None = None,
        draft: bool | None = None,
        maintainer_can_modify: bool | None = None,
    ) -> dict[str, Any]:
        """Open a pull request. Unset optional fields are left out of the body."""
        return await self.request_json(
            method="POST",
            path=f"/repos/{_seg(owner)}/{_seg(repo)}/pulls",
            json_body=_compact(
                {
                    "title": title,
                    "head": head,
                    "base": base,
                    "body": body,
                    "draft": draft,
                    "maintainer_can_modify": maintainer_can_modify,
                }
            ),
        )

    async def approve_pull_request(
        self, *, owner: str, repo: str, pull_number: int, body: str | None = None
    ) -> dict[str, Any]:
        """Submit an APPROVE review."""
        return await self.request_json(
            method="POST",
            path=f"/repos/{_seg(owner)}/{_seg(repo)}/pulls/{pull_number}/reviews",
            json_body=_compact({"event": "APPROVE", "body": body}),
        )

    async def merge_pull_request(
        self,
        *,
        owner: str,
        repo: str,
        pull_number: int,
        merge_method: str | None = None,
        commit_title: str | None = None,
        commit_message: str | None = None,
        expected_head_sha: str | None = None,
    ) -> dict[str, Any]:
        """Merge a pull request; `expected_head_sha` is sent as `sha`."""
        return await self.request_json(
            method="PUT",
            path=f"/repos/{_seg(owner)}/{_seg(repo)}/pulls/{pull_number}/merge",
            json_body=_compact(
                {
                    "commit_title": commit_title,
                    "commit_message": commit_message,
                    "merge_method": merge_method,
                    "sha": expected_head_sha,
                }
            ),
        )

    async def create_branch(self, *, owner: str, repo: str, branch: str, sha: str) -> dict[str, Any]:
        """Create `refs/heads/<branch>` pointing at `sha`."""
        return await self.request_json(
            method="POST",
            path=f"/repos/{_seg(owner)}/{_seg(repo)}/git/refs",
            json_body={"ref": qualify_branch(branch), "sha": sha},
        )

    async def update_branch(
        self, *, owner: str, repo: str, branch: str, sha: str, force: bool = False
    ) -> dict[str, Any]:
        """Move a branch ref to `sha`, optionally forcing a non-fast-forward update."""
        return await self.request_json(
            method="PATCH",
            path=f"/repos/{_seg(owner)}/{_seg(repo)}/git/refs/heads/{branch_path(branch)}",
            json_body={"sha": sha, "force": force},
        )

    async def delete_branch(self, *, owner: str, repo: str, branch: str) -> None:
        """Delete a remote branch. The `main` branch is refused without a request."""
        if normalize_branch(branch.strip()) == PROTECTED_BRANCH:
            raise AdapterError(kind=ErrorKind.VALIDATION, message="Refusing to delete the remote main branch.")

        await self.request_json(
            method="DELETE",
            path=f"/repos/{_seg(owner)}/{_seg(repo)}/git/refs/heads/{branch_path(branch.strip())}",
        )

    async def get_commit_status(self, *, owner: str, repo: str, ref: str) -> dict[str, Any]:
        """Fetch the combined status for a ref."""
        return await self.request_json(
            method="GET",
            path=f"/repos/{_seg(owner)}/{_seg(repo)}/commits/{_seg(ref)}/status",
        )
