"""Tests for the GitHub repository client."""
from __future__ import annotations

import base64
import json
from typing import Any, Callable

import httpx
import pytest

from green_licenses.exceptions import (
    ContentNotFoundError,
    GitHubError,
    MergeabilityUnknownError,
    MissingCommitShaError,
    PRNotMergeableError,
)
from green_licenses.resolvers.github import GitHubRepository, PackageJsonFile

API = "https://api.github.com/repos/google/js-green-licenses"

Handler = Callable[[httpx.Request], httpx.Response]


def _encode(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def _repo(handler: Handler, token: str | None = "secret-token") -> GitHubRepository:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GitHubRepository(
        "google", "js-green-licenses", token=token, client=client, retry_delay=0
    )


class TestGetPRCommits:
    """Tests for GitHubRepository.get_pr_commits()."""

    @pytest.mark.asyncio
    async def test_mergeable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == f"{API}/pulls/1"
            return httpx.Response(
                200,
                json={
                    "mergeable": True,
                    "merge_commit_sha": "merge_commit_sha",
                    "head": {"sha": "head_commit_sha"},
                },
            )

        commits = await _repo(handler).get_pr_commits(1)
        assert commits.merge_commit_sha == "merge_commit_sha"
        assert commits.head_commit_sha == "head_commit_sha"

    @pytest.mark.asyncio
    async def test_retries_until_mergeable_is_set(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            if calls < 3:
                return httpx.Response(200, json={"mergeable": None})
            return httpx.Response(
                200,
                json={
                    "mergeable": True,
                    "merge_commit_sha": "merge",
                    "head": {"sha": "head"},
                },
            )

        commits = await _repo(handler).get_pr_commits(1)
        assert commits == ("merge", "head")
        assert calls == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_eleven_attempts(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, json={"mergeable": None})

        with pytest.raises(MergeabilityUnknownError, match="11"):
            await _repo(handler).get_pr_commits(1)
        assert calls == 11

    @pytest.mark.asyncio
    async def test_attempt_past_limit_fails_immediately(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, json={"mergeable": None})

        with pytest.raises(MergeabilityUnknownError) as exc_info:
            await _repo(handler).get_pr_commits(1, attempt=11)
        assert str(exc_info.value) == (
            "Tried 11 times but the mergeable field is not set. Giving up"
        )
        assert calls == 1

    @pytest.mark.asyncio
    async def test_not_mergeable(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, json={"mergeable": False})

        with pytest.raises(PRNotMergeableError):
            await _repo(handler).get_pr_commits(1)
        assert calls == 1

    @pytest.mark.asyncio
    async def test_missing_merge_commit_sha(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"mergeable": True, "head": {"sha": "head"}})

        with pytest.raises(MissingCommitShaError, match="Merge commit SHA is not found"):
            await _repo(handler).get_pr_commits(1)

    @pytest.mark.asyncio
    async def test_missing_head_commit_sha(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"mergeable": True, "merge_commit_sha": "m"})

        with pytest.raises(MissingCommitShaError, match="HEAD commit SHA is not found"):
            await _repo(handler).get_pr_commits(1)

    @pytest.mark.asyncio
    async def test_http_error_is_raised(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"message": "Not Found"})

        with pytest.raises(GitHubError, match="404"):
            await _repo(handler).get_pr_commits(1)


class TestGetFileContent:
    """Tests for GitHubRepository.get_file_content()."""

    @pytest.mark.asyncio
    async def test_decodes_content(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path.endswith("/contents/package.json")
            assert request.url.params["ref"] == "abc123"
            return httpx.Response(200, json={"content": _encode('{"name": "foo"}')})

        content = await _repo(handler).get_file_content("abc123", "package.json")
        assert content == '{"name": "foo"}'

    @pytest.mark.asyncio
    async def test_sends_token(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers.get("Authorization", ""))
            return httpx.Response(200, json={"content": _encode("x")})

        await _repo(handler).get_file_content("abc123", "package.json")
        assert seen == ["token secret-token"]

    @pytest.mark.asyncio
    async def test_token_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers.get("Authorization", ""))
            return httpx.Response(200, json={"content": _encode("x")})

        await _repo(handler, token=None).get_file_content("abc123", "package.json")
        assert seen == ["token env-token"]

    @pytest.mark.asyncio
    async def test_not_found_is_none(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"message": "Not Found"})

        assert await _repo(handler).get_file_content("abc123", "package.json") is None

    @pytest.mark.asyncio
    async def test_empty_response_has_no_content(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200)

        with pytest.raises(ContentNotFoundError, match="Content of package.json not found"):
            await _repo(handler).get_file_content("abc123", "package.json")

    @pytest.mark.asyncio
    async def test_directory_listing_is_an_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"name": "a"}, {"name": "b"}])

        with pytest.raises(GitHubError, match="multiple"):
            await _repo(handler).get_file_content("abc123", "packages")


class TestGetPackageJsonFiles:
    """Tests for GitHubRepository.get_package_json_files()."""

    @staticmethod
    def _snapshot(files: dict[str, str], listing: Any) -> Handler:
        def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.path.split("/contents/", 1)[1]
            if path == "packages":
                if listing is None:
                    return httpx.Response(404)
                return httpx.Response(200, json=listing)
            if path in files:
                return httpx.Response(200, json={"content": _encode(files[path])})
            return httpx.Response(404)

        return handler

    @pytest.mark.asyncio
    async def test_single_package(self) -> None:
        root = json.dumps({"name": "hello", "version": "1.0.0"})
        handler = self._snapshot({"package.json": root}, listing=None)

        files = await _repo(handler).get_package_json_files("abc123")
        assert files == [PackageJsonFile("/package.json", root)]

    @pytest.mark.asyncio
    async def test_monorepo(self) -> None:
        root = json.dumps({"name": "hello", "version": "1.0.0"})
        sub = json.dumps({"name": "hello-sub", "version": "1.0.0"})
        handler = self._snapshot(
            {"package.json": root, "packages/sub-package/package.json": sub},
            listing=[
                {"name": "sub-package", "type": "dir"},
                {"name": "README.md", "type": "file"},
                {"name": "empty", "type": "dir"},
            ],
        )

        files = await _repo(handler).get_package_json_files("abc123")
        assert files == [
            PackageJsonFile("/package.json", root),
            PackageJsonFile("/packages/sub-package/package.json", sub),
        ]


class TestWriteOperations:
    @pytest.mark.asyncio
    async def test_create_pr_review(self) -> None:
        captured: list[tuple[str, str, Any]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append((request.method, request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={"id": 1})

        await _repo(handler).create_pr_review(7, "abc123", "Looks green")
        assert captured == [
            (
                "POST",
                "/repos/google/js-green-licenses/pulls/7/reviews",
                {"commit_id": "abc123", "body": "Looks green", "event": "COMMENT"},
            )
        ]

    @pytest.mark.asyncio
    async def test_set_commit_status(self) -> None:
        captured: list[Any] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append((request.url.path, json.loads(request.content)))
            return httpx.Response(201, json={})

        await _repo(handler).set_commit_status(
            "abc123", "failure", "2 non-green licenses", context="green-licenses"
        )
        assert captured == [
            (
                "/repos/google/js-green-licenses/statuses/abc123",
                {
                    "state": "failure",
                    "description": "2 non-green licenses",
                    "context": "green-licenses",
                },
            )
        ]
