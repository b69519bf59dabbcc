"""GitHub REST API client for pull request checks."""
from __future__ import annotations

import asyncio
import base64
import os
from typing import Any, Literal, NamedTuple, Optional

import httpx

from green_licenses.constants import MONOREPO_PACKAGES_DIR, PACKAGE_JSON
from green_licenses.exceptions import (
    ContentNotFoundError,
    GitHubError,
    MergeabilityUnknownError,
    MissingCommitShaError,
    NetworkError,
    PRNotMergeableError,
)
from green_licenses.logging import get_logger

log = get_logger("green_licenses.github")

GITHUB_API_URL = "https://api.github.com"

# GitHub computes the mergeable field in the background; give up after this
MAX_MERGEABLE_ATTEMPTS = 10

CommitState = Literal["error", "failure", "pending", "success"]


class PRCommits(NamedTuple):
    """Merge and head commit SHAs of a pull request."""

    merge_commit_sha: str
    head_commit_sha: str


class PackageJsonFile(NamedTuple):
    """A package.json found in a repository snapshot."""

    file_path: str
    content: str


class GitHubRepository:
    """Read-mostly view over one GitHub repository.

    Sends ``Authorization: token <token>`` when a token is given or the
    ``GITHUB_TOKEN`` environment variable is set.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        retry_delay: float = 1.0,
    ) -> None:
        """Initialize the repository client.

        Args:
            owner: Repository owner (user or organization).
            repo: Repository name.
            token: API token. Defaults to the GITHUB_TOKEN environment variable.
            client: Optional shared httpx.AsyncClient for connection reuse.
            retry_delay: Seconds to wait between mergeable-field polls.
        """
        self.owner = owner
        self.repo = repo
        self._token = token if token is not None else os.environ.get("GITHUB_TOKEN")
        self._client = client
        self._retry_delay = retry_delay

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self._token:
            headers["Authorization"] = f"token {self._token}"
        return headers

    def _url(self, path: str) -> str:
        return f"{GITHUB_API_URL}/repos/{self.owner}/{self.repo}/{path.lstrip('/')}"

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, str]] = None,
        body: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Send an API request and decode the JSON answer.

        Returns:
            Decoded JSON, or None when the response has no body.

        Raises:
            GitHubError: On HTTP error status.
            NetworkError: On transport failure.
        """
        url = self._url(path)

        async def do_request(c: httpx.AsyncClient) -> Any:
            try:
                response = await c.request(
                    method,
                    url,
                    params=params,
                    json=body,
                    headers=self._headers(),
                    timeout=httpx.Timeout(30.0),
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise GitHubError(
                    f"GitHub API {method} {path} failed with HTTP "
                    f"{e.response.status_code}"
                ) from e
            except httpx.RequestError as e:
                raise NetworkError(f"GitHub API {method} {path} failed: {e}") from e
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                raise GitHubError(f"GitHub API {method} {path}: invalid JSON") from e

        if self._client:
            return await do_request(self._client)

        async with httpx.AsyncClient() as new_client:
            return await do_request(new_client)

    async def _get_single(
        self, path: str, params: Optional[dict[str, str]] = None
    ) -> Optional[dict[str, Any]]:
        answer = await self._request("GET", path, params=params)
        if isinstance(answer, list):
            raise GitHubError("Expected a single response, got multiple.")
        return answer

    async def get_pr_commits(self, pr_id: int, attempt: int = 1) -> PRCommits:
        """Get the merge and head commit SHAs of a pull request.

        GitHub reports ``mergeable: null`` until it has computed the test
        merge, so the pull request is polled until the field is set.

        Args:
            pr_id: Pull request number.
            attempt: Current attempt number (1-based).

        Returns:
            PRCommits of the test merge commit and the PR head.

        Raises:
            MergeabilityUnknownError: If the field is still unset after the
                last attempt.
            PRNotMergeableError: If the pull request has conflicts.
            MissingCommitShaError: If either SHA is absent.
        """
        answer = await self._get_single(f"pulls/{pr_id}") or {}
        mergeable = answer.get("mergeable")
        if mergeable is None:
            if attempt > MAX_MERGEABLE_ATTEMPTS:
                raise MergeabilityUnknownError(
                    f"Tried {attempt} times but the mergeable field is not set. "
                    "Giving up"
                )
            log.info(
                "mergeable field is not set yet, retrying",
                pr=pr_id,
                attempt=attempt,
            )
            await asyncio.sleep(self._retry_delay)
            return await self.get_pr_commits(pr_id, attempt + 1)
        if not mergeable:
            raise PRNotMergeableError("PR is not mergeable")

        merge_commit_sha = answer.get("merge_commit_sha")
        if not merge_commit_sha:
            raise MissingCommitShaError("Merge commit SHA is not found")
        head_commit_sha = (answer.get("head") or {}).get("sha")
        if not head_commit_sha:
            raise MissingCommitShaError("HEAD commit SHA is not found")
        return PRCommits(merge_commit_sha, head_commit_sha)

    async def get_file_content(self, commit_sha: str, path: str) -> Optional[str]:
        """Get the text of a file at a commit.

        Args:
            commit_sha: Commit to read at.
            path: Repository-relative file path.

        Returns:
            Decoded file content, or None if the API answers with an error
            (most commonly because the file does not exist).

        Raises:
            GitHubError: If the path is a directory.
            ContentNotFoundError: If the response carries no content.
        """
        try:
            answer = await self._request(
                "GET", f"contents/{path.lstrip('/')}", params={"ref": commit_sha}
            )
        except GitHubError:
            return None
        if isinstance(answer, list):
            raise GitHubError("Expected a single response, got multiple.")
        content = answer.get("content") if isinstance(answer, dict) else None
        if content is None:
            raise ContentNotFoundError(f"Content of {path} not found")
        return base64.b64decode(content).decode("utf-8")

    async def get_package_json_files(self, commit_sha: str) -> list[PackageJsonFile]:
        """Collect the package.json files of a snapshot.

        The root package.json comes first, followed by
        ``packages/<name>/package.json`` for each directory under
        ``packages``.

        Args:
            commit_sha: Commit to read at.

        Returns:
            Files found, in listing order.
        """
        files: list[PackageJsonFile] = []

        root_content = await self.get_file_content(commit_sha, PACKAGE_JSON)
        if root_content is not None:
            files.append(PackageJsonFile(f"/{PACKAGE_JSON}", root_content))

        try:
            listing = await self._request(
                "GET", f"contents/{MONOREPO_PACKAGES_DIR}", params={"ref": commit_sha}
            )
        except GitHubError:
            # No packages directory: not a monorepo.
            return files
        if not isinstance(listing, list):
            return files

        for entry in listing:
            if entry.get("type") != "dir":
                continue
            file_path = f"{MONOREPO_PACKAGES_DIR}/{entry['name']}/{PACKAGE_JSON}"
            content = await self.get_file_content(commit_sha, file_path)
            if content is not None:
                files.append(PackageJsonFile(f"/{file_path}", content))
        return files

    async def create_pr_review(self, pr_id: int, commit_sha: str, body: str) -> None:
        """Post a comment-only review on a pull request."""
        await self._request(
            "POST",
            f"pulls/{pr_id}/reviews",
            body={"commit_id": commit_sha, "body": body, "event": "COMMENT"},
        )

    async def set_commit_status(
        self,
        commit_sha: str,
        state: CommitState,
        description: str,
        context: Optional[str] = None,
    ) -> None:
        """Set the status of a commit."""
        body: dict[str, Any] = {"state": state, "description": description}
        if context:
            body["context"] = context
        await self._request("POST", f"statuses/{commit_sha}", body=body)
