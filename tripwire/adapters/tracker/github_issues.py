"""GitHub Issues tracker adapter.

Implements IssueTrackerPort on top of the GitHub REST API. The "team"
is a repository given as ``owner/repo``; issue ids handed back to the
core take the form ``owner/repo#number``.
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from tripwire.core.models import IssueHandle, Team
from tripwire.core.ports import (
    IssueTrackerError,
    IssueTrackerPort,
    LabelNotFoundError,
    TeamNotFoundError,
)

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"


class GitHubIssueTracker(IssueTrackerPort):
    """Files error issues in a GitHub repository."""

    def __init__(
        self,
        github_token: str,
        api_base_url: str = GITHUB_API_URL,
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize GitHub Issues adapter.

        Args:
            github_token: GitHub personal access token for authentication.
            api_base_url: Base URL for GitHub API (default: https://api.github.com).
            timeout_seconds: Per-request timeout.
            transport: Optional httpx transport (used by tests).
        """
        if not github_token or not github_token.strip():
            raise ValueError("GitHub token must be provided")
        self.github_token = github_token
        self.api_base_url = api_base_url
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client.

        Returns:
            httpx.AsyncClient configured with GitHub authentication.
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.api_base_url,
                headers={
                    "Authorization": f"token {self.github_token}",
                    "Accept": "application/vnd.github.v3+json",
                },
                timeout=self.timeout_seconds,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self, method: str, path: str, json: dict[str, Any] | None = None
    ) -> httpx.Response:
        client = await self._get_client()
        try:
            return await client.request(method, path, json=json)
        except httpx.HTTPError as e:
            raise IssueTrackerError(f"GitHub API request failed: {e}") from e

    @staticmethod
    def _split_repo(identifier: str) -> tuple[str, str]:
        owner, _, name = identifier.strip().partition("/")
        if not owner or not name or "/" in name:
            raise TeamNotFoundError(
                f"GitHub repository must be given as owner/repo, got '{identifier}'"
            )
        return owner, name

    async def resolve_team(self, identifier: str) -> Team:
        """Verify the repository exists and return its canonical full name."""
        owner, name = self._split_repo(identifier)
        response = await self._request("GET", f"/repos/{owner}/{name}")
        if response.status_code == 404:
            raise TeamNotFoundError(f"Repository not found: {identifier}")
        if response.status_code != 200:
            raise IssueTrackerError(
                f"Failed to look up repository {identifier}: {response.status_code}"
            )
        full_name = response.json()["full_name"]
        return Team(id=full_name, name=full_name)

    async def resolve_label(self, team_id: str, name: str) -> str:
        """GitHub takes label names directly; check the label exists."""
        owner, repo = self._split_repo(team_id)
        response = await self._request(
            "GET", f"/repos/{owner}/{repo}/labels/{quote(name, safe='')}"
        )
        if response.status_code == 404:
            raise LabelNotFoundError(f"Label not found: {name}")
        if response.status_code != 200:
            raise IssueTrackerError(
                f"Failed to look up label {name}: {response.status_code}"
            )
        return response.json()["name"]

    async def create_issue(
        self,
        title: str,
        description: str,
        team_id: str,
        label_ids: list[str] | None = None,
    ) -> IssueHandle:
        """Create the issue in the configured repository."""
        owner, repo = self._split_repo(team_id)
        payload: dict[str, Any] = {"title": title, "body": description}
        if label_ids:
            payload["labels"] = label_ids

        response = await self._request(
            "POST", f"/repos/{owner}/{repo}/issues", json=payload
        )
        if response.status_code != 201:
            logger.error(
                f"Failed to create GitHub issue: {response.status_code}",
                extra={"response": response.text},
            )
            raise IssueTrackerError(
                f"Failed to create GitHub issue: {response.status_code}"
            )

        issue_data = response.json()
        number = str(issue_data["number"])
        logger.info(
            f"Created GitHub issue #{number}",
            extra={"issue_number": number, "issue_url": issue_data["html_url"]},
        )
        return IssueHandle(
            id=f"{owner}/{repo}#{number}",
            identifier=f"#{number}",
            url=issue_data["html_url"],
        )

    async def add_comment(self, issue_id: str, body: str) -> str:
        """Comment on an issue given as owner/repo#number."""
        repository, _, number = issue_id.rpartition("#")
        if not repository or not number.isdigit():
            raise IssueTrackerError(f"Malformed GitHub issue id: {issue_id}")
        owner, repo = self._split_repo(repository)

        response = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/issues/{number}/comments",
            json={"body": body},
        )
        if response.status_code != 201:
            raise IssueTrackerError(
                f"Failed to comment on GitHub issue {issue_id}: {response.status_code}"
            )
        return str(response.json()["id"])
