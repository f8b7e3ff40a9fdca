"""Port interfaces for the Tripwire error-reporting pipeline.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - IssueTrackerPort: Create issues and comments in an external tracker

2. **Driving Ports** (host application calls into core)
   - ErrorReporterPort: Report one error occurrence, best-effort
"""

import asyncio
from abc import ABC, abstractmethod

from .models import ErrorContext, IssueHandle, Team


class IssueTrackerError(RuntimeError):
    """The issue tracker rejected a call or returned an unusable response."""


class TeamNotFoundError(LookupError):
    """No team/project matched the configured identifier."""


class LabelNotFoundError(LookupError):
    """No label matched the configured label name."""


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class IssueTrackerPort(ABC):
    """Port for creating and updating issues in an external tracker.

    Adapters implementing this port talk to a concrete tracker (Linear,
    GitHub Issues, ...) and translate its responses into core models.

    Implementations must handle:
    - Authentication with the configured credential
    - Bounded request timeouts
    - Mapping non-success responses to IssueTrackerError
    """

    @abstractmethod
    async def resolve_team(self, identifier: str) -> Team:
        """Resolve a team name, key or raw id to a canonical team.

        Args:
            identifier: Human-given team/project name, key, or id.

        Returns:
            Team with the canonical id.

        Raises:
            TeamNotFoundError: If nothing matches.
            IssueTrackerError: If the tracker is unreachable or rejects the call.
        """

    @abstractmethod
    async def resolve_label(self, team_id: str, name: str) -> str:
        """Resolve a label name to the id the tracker expects on issue creation.

        Raises:
            LabelNotFoundError: If no label has that name.
            IssueTrackerError: If the tracker is unreachable or rejects the call.
        """

    @abstractmethod
    async def create_issue(
        self,
        title: str,
        description: str,
        team_id: str,
        label_ids: list[str] | None = None,
    ) -> IssueHandle:
        """Create a new issue.

        Raises:
            IssueTrackerError: On any non-success response.
        """

    @abstractmethod
    async def add_comment(self, issue_id: str, body: str) -> str:
        """Append a comment to an existing issue.

        Returns:
            The comment id.

        Raises:
            IssueTrackerError: If the issue no longer exists or the call is rejected.
        """

    async def close(self) -> None:
        """Release network resources. Default is a no-op."""


# ============================================================================
# DRIVING PORTS (Host application calls into core)
# ============================================================================


class ErrorReporterPort(ABC):
    """Port the host application uses to report caught errors.

    Error boundaries, global handlers and request middleware receive an
    implementation of this port by injection.
    """

    @abstractmethod
    async def report_error(self, context: ErrorContext) -> str | None:
        """Report one error occurrence.

        Always safe to call: never raises.

        Returns:
            The tracker issue id the occurrence was filed under, or None
            when reporting is disabled or failed.
        """

    @abstractmethod
    def dispatch(self, context: ErrorContext) -> "asyncio.Task[str | None] | None":
        """Schedule report_error in the background and return immediately.

        Callers on a request or render path use this instead of awaiting
        report_error. Failures of the background report are logged.

        Returns:
            The scheduled task, or None if nothing was scheduled.
        """
