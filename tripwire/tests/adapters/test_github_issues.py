"""Tests for the GitHub Issues tracker adapter."""

import json

import httpx
import pytest

from tripwire.adapters.tracker.github_issues import GitHubIssueTracker
from tripwire.core.ports import IssueTrackerError, LabelNotFoundError, TeamNotFoundError


class RestRecorder:
    """Serves canned REST responses keyed by (method, path)."""

    def __init__(self, routes: dict[tuple[str, str], httpx.Response]):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(404, json={"message": "Not Found"})
        return response

    def body(self, index: int = 0) -> dict:
        return json.loads(self.requests[index].content)


def make_tracker(recorder: RestRecorder) -> GitHubIssueTracker:
    return GitHubIssueTracker(
        github_token="ghp_test", transport=httpx.MockTransport(recorder)
    )


class TestGitHubInitialization:
    """Tests for construction."""

    def test_empty_token_raises(self) -> None:
        with pytest.raises(ValueError, match="token"):
            GitHubIssueTracker(github_token="")


class TestGitHubIssues:
    """Tests for issue and comment creation."""

    @pytest.mark.asyncio
    async def test_create_issue(self) -> None:
        recorder = RestRecorder(
            {
                ("POST", "/repos/acme/shop/issues"): httpx.Response(
                    201,
                    json={
                        "number": 17,
                        "html_url": "https://github.com/acme/shop/issues/17",
                    },
                )
            }
        )
        tracker = make_tracker(recorder)

        issue = await tracker.create_issue("[Error] boom", "body", "acme/shop", ["bug"])
        await tracker.close()

        assert issue.id == "acme/shop#17"
        assert issue.identifier == "#17"
        assert issue.url == "https://github.com/acme/shop/issues/17"
        assert recorder.body() == {"title": "[Error] boom", "body": "body", "labels": ["bug"]}
        assert recorder.requests[0].headers["Authorization"] == "token ghp_test"

    @pytest.mark.asyncio
    async def test_create_issue_failure_raises(self) -> None:
        recorder = RestRecorder(
            {("POST", "/repos/acme/shop/issues"): httpx.Response(422, json={})}
        )
        tracker = make_tracker(recorder)

        with pytest.raises(IssueTrackerError, match="422"):
            await tracker.create_issue("t", "d", "acme/shop")
        await tracker.close()

    @pytest.mark.asyncio
    async def test_add_comment_targets_issue_number(self) -> None:
        recorder = RestRecorder(
            {
                ("POST", "/repos/acme/shop/issues/17/comments"): httpx.Response(
                    201, json={"id": 9001}
                )
            }
        )
        tracker = make_tracker(recorder)

        comment_id = await tracker.add_comment("acme/shop#17", "again")
        await tracker.close()

        assert comment_id == "9001"
        assert recorder.body() == {"body": "again"}

    @pytest.mark.asyncio
    async def test_malformed_issue_id_raises(self) -> None:
        tracker = make_tracker(RestRecorder({}))

        with pytest.raises(IssueTrackerError, match="Malformed"):
            await tracker.add_comment("not-an-issue", "body")

    @pytest.mark.asyncio
    async def test_transport_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        tracker = GitHubIssueTracker(
            github_token="ghp_test", transport=httpx.MockTransport(handler)
        )

        with pytest.raises(IssueTrackerError, match="request failed"):
            await tracker.create_issue("t", "d", "acme/shop")
        await tracker.close()


class TestGitHubResolution:
    """Tests for repository and label lookup."""

    @pytest.mark.asyncio
    async def test_resolve_repository(self) -> None:
        recorder = RestRecorder(
            {("GET", "/repos/Acme/Shop"): httpx.Response(200, json={"full_name": "acme/shop"})}
        )
        tracker = make_tracker(recorder)

        team = await tracker.resolve_team("Acme/Shop")
        await tracker.close()

        assert team.id == "acme/shop"

    @pytest.mark.asyncio
    async def test_missing_repository_raises(self) -> None:
        tracker = make_tracker(RestRecorder({}))

        with pytest.raises(TeamNotFoundError):
            await tracker.resolve_team("acme/missing")
        await tracker.close()

    @pytest.mark.parametrize("identifier", ["acme", "acme/shop/extra", "/shop"])
    @pytest.mark.asyncio
    async def test_invalid_repository_format_raises(self, identifier: str) -> None:
        tracker = make_tracker(RestRecorder({}))

        with pytest.raises(TeamNotFoundError, match="owner/repo"):
            await tracker.resolve_team(identifier)

    @pytest.mark.asyncio
    async def test_resolve_label(self) -> None:
        recorder = RestRecorder(
            {("GET", "/repos/acme/shop/labels/bug"): httpx.Response(200, json={"name": "bug"})}
        )
        tracker = make_tracker(recorder)

        assert await tracker.resolve_label("acme/shop", "bug") == "bug"
        await tracker.close()

    @pytest.mark.asyncio
    async def test_missing_label_raises(self) -> None:
        tracker = make_tracker(RestRecorder({}))

        with pytest.raises(LabelNotFoundError):
            await tracker.resolve_label("acme/shop", "missing")
        await tracker.close()

    @pytest.mark.parametrize(
        "label,raw_path",
        [
            ("area/errors", b"/repos/acme/shop/labels/area%2Ferrors"),
            ("bug?", b"/repos/acme/shop/labels/bug%3F"),
            ("needs triage", b"/repos/acme/shop/labels/needs%20triage"),
        ],
    )
    @pytest.mark.asyncio
    async def test_label_name_is_quoted_in_path(self, label: str, raw_path: bytes) -> None:
        seen: list[bytes] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.raw_path)
            return httpx.Response(200, json={"name": label})

        tracker = GitHubIssueTracker(
            github_token="ghp_test", transport=httpx.MockTransport(handler)
        )

        assert await tracker.resolve_label("acme/shop", label) == label
        await tracker.close()

        assert seen == [raw_path]
