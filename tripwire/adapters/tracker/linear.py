"""Linear issue tracker adapter.

Implements IssueTrackerPort over Linear's GraphQL API. Issues are
created per error signature and repeat occurrences are appended as
comments.
"""

import logging
import re
from typing import Any

import httpx

from tripwire.core.models import IssueHandle, Team
from tripwire.core.ports import (
    IssueTrackerError,
    IssueTrackerPort,
    LabelNotFoundError,
    TeamNotFoundError,
)

logger = logging.getLogger(__name__)

LINEAR_API_URL = "https://api.linear.app/graphql"

_UUID_IDENTIFIER = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

_TEAM_BY_ID = """
query GetTeam($id: String!) {
  team(id: $id) { id name }
}
"""

_TEAM_BY_KEY = """
query GetTeamByKey($key: String!) {
  team(key: $key) { id name }
}
"""

_LIST_TEAMS = """
query ListTeams {
  teams { nodes { id name key } }
}
"""

_TEAM_LABELS = """
query TeamLabels($id: String!) {
  team(id: $id) { labels { nodes { id name } } }
}
"""

_CREATE_ISSUE = """
mutation CreateIssue($input: IssueCreateInput!) {
  issueCreate(input: $input) {
    issue { id identifier title url }
    success
  }
}
"""

_CREATE_COMMENT = """
mutation CreateComment($input: CommentCreateInput!) {
  commentCreate(input: $input) {
    comment { id }
    success
  }
}
"""


class LinearIssueTracker(IssueTrackerPort):
    """Linear-backed issue tracker via GraphQL."""

    def __init__(
        self,
        api_key: str,
        api_url: str = LINEAR_API_URL,
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Linear adapter.

        Args:
            api_key: Linear personal API key (sent as the Authorization header).
            api_url: GraphQL endpoint URL.
            timeout_seconds: Per-request timeout.
            transport: Optional httpx transport (used by tests).
        """
        if not api_key or not api_key.strip():
            raise ValueError("Linear API key must be provided")
        self.api_key = api_key
        self.api_url = api_url
        self.timeout_seconds = timeout_seconds
        self.client = httpx.AsyncClient(
            headers={
                "Content-Type": "application/json",
                "Authorization": api_key,
            },
            timeout=timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the httpx client."""
        await self.client.aclose()

    async def _execute(
        self, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Run a GraphQL query/mutation and return its data payload.

        Raises:
            IssueTrackerError: On transport failure, non-2xx status,
                GraphQL errors or a missing data payload.
        """
        try:
            response = await self.client.post(
                self.api_url, json={"query": query, "variables": variables or {}}
            )
        except httpx.HTTPError as e:
            raise IssueTrackerError(f"Linear API request failed: {e}") from e

        if not response.is_success:
            raise IssueTrackerError(
                f"Linear API request failed: {response.status_code} {response.reason_phrase}"
            )

        try:
            result = response.json()
        except ValueError as e:
            raise IssueTrackerError("Linear API returned invalid JSON") from e

        errors = result.get("errors") or []
        if errors:
            messages = ", ".join(str(error.get("message", error)) for error in errors)
            raise IssueTrackerError(f"Linear API errors: {messages}")

        data = result.get("data")
        if not data:
            raise IssueTrackerError("Linear API returned no data")
        return data

    async def resolve_team(self, identifier: str) -> Team:
        """Resolve a team by id, then key, then name."""
        if _UUID_IDENTIFIER.match(identifier):
            data = await self._execute(_TEAM_BY_ID, {"id": identifier})
            team = data.get("team")
            if team:
                return Team(id=team["id"], name=team["name"])

        try:
            data = await self._execute(_TEAM_BY_KEY, {"key": identifier.upper()})
            team = data.get("team")
            if team:
                return Team(id=team["id"], name=team["name"])
        except IssueTrackerError as e:
            logger.debug(f"Team key lookup for '{identifier}' failed: {e}")

        try:
            data = await self._execute(_LIST_TEAMS)
        except IssueTrackerError as e:
            logger.debug(f"Team list lookup for '{identifier}' failed: {e}")
        else:
            wanted = identifier.lower()
            for node in data.get("teams", {}).get("nodes", []):
                if node["name"].lower() == wanted or node["key"].lower() == wanted:
                    return Team(id=node["id"], name=node["name"])

        raise TeamNotFoundError(f"Team not found: {identifier}")

    async def resolve_label(self, team_id: str, name: str) -> str:
        """Find a team label by case-insensitive name."""
        data = await self._execute(_TEAM_LABELS, {"id": team_id})
        team = data.get("team") or {}
        wanted = name.lower()
        for node in team.get("labels", {}).get("nodes", []):
            if node["name"].lower() == wanted:
                return node["id"]
        raise LabelNotFoundError(f"Label not found: {name}")

    async def create_issue(
        self,
        title: str,
        description: str,
        team_id: str,
        label_ids: list[str] | None = None,
    ) -> IssueHandle:
        """Create a Linear issue in the given team."""
        issue_input: dict[str, Any] = {
            "title": title,
            "description": description,
            "teamId": team_id,
        }
        if label_ids:
            issue_input["labelIds"] = label_ids

        data = await self._execute(_CREATE_ISSUE, {"input": issue_input})
        payload = data.get("issueCreate") or {}
        issue = payload.get("issue")
        if not payload.get("success") or not issue:
            raise IssueTrackerError("Failed to create Linear issue")

        logger.info(
            f"Created Linear issue {issue['identifier']}",
            extra={"issue_id": issue["id"], "issue_url": issue["url"]},
        )
        return IssueHandle(id=issue["id"], identifier=issue["identifier"], url=issue["url"])

    async def add_comment(self, issue_id: str, body: str) -> str:
        """Comment on a Linear issue."""
        data = await self._execute(
            _CREATE_COMMENT, {"input": {"issueId": issue_id, "body": body}}
        )
        payload = data.get("commentCreate") or {}
        comment = payload.get("comment")
        if not payload.get("success") or not comment:
            raise IssueTrackerError("Failed to create comment on Linear issue")
        return comment["id"]
