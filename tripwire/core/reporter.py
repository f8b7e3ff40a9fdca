"""Deduplicating error reporter.

This module decides, per error occurrence, whether to open a new issue
in the external tracker or to comment on the issue already open for the
same signature. Reporting is best-effort: failures are logged and turn
into a None result, never into an exception for the caller.
"""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from .cache import ErrorCache
from .formatting import format_error_report, format_issue_title, format_occurrence_comment
from .models import ErrorContext
from .ports import ErrorReporterPort, IssueTrackerPort
from .signature import SignatureGenerator

logger = logging.getLogger(__name__)

T = TypeVar("T")

PRODUCTION_ENVIRONMENT = "production"
DEFAULT_CALL_TIMEOUT_SECONDS = 5.0

_UUID_IDENTIFIER = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ReporterConfig:
    """Everything needed to decide whether and where to report."""

    api_key: str = ""
    team: str = ""
    label: str = ""
    environment: str = "development"

    @property
    def enabled(self) -> bool:
        """Reporting runs only in production with a credential and a team."""
        return (
            self.environment == PRODUCTION_ENVIRONMENT
            and bool(self.api_key.strip())
            and bool(self.team.strip())
        )


class DeduplicatingReporter(ErrorReporterPort):
    """Reports errors to an issue tracker, one issue per signature.

    The first occurrence of a signature creates an issue; later
    occurrences comment on it until the cache entry expires.

    Known race: two concurrent first occurrences of the same signature
    can both miss the cache and both create an issue. The later
    remember() wins the cache slot.
    """

    def __init__(
        self,
        tracker: IssueTrackerPort | None,
        cache: ErrorCache,
        team_id: str | None = None,
        label_ids: tuple[str, ...] | list[str] = (),
        enabled: bool = True,
        call_timeout_seconds: float = DEFAULT_CALL_TIMEOUT_SECONDS,
        label_name: str | None = None,
        signature_generator: SignatureGenerator | None = None,
    ):
        if call_timeout_seconds <= 0:
            raise ValueError("call_timeout_seconds must be positive")
        self.tracker = tracker
        self.cache = cache
        self.team_id = team_id
        self.label_ids = list(label_ids)
        self.label_name = label_name
        self.enabled = enabled
        self.call_timeout_seconds = call_timeout_seconds
        self.signature_generator = signature_generator or SignatureGenerator()
        self._pending: set[asyncio.Task[str | None]] = set()

    @classmethod
    def from_config(
        cls,
        config: ReporterConfig,
        tracker_factory: Callable[[ReporterConfig], IssueTrackerPort],
        cache: ErrorCache,
        call_timeout_seconds: float = DEFAULT_CALL_TIMEOUT_SECONDS,
    ) -> "DeduplicatingReporter":
        """Build a reporter; the tracker is only constructed when enabled."""
        if not config.enabled:
            logger.info(
                "Error reporting disabled",
                extra={"environment": config.environment},
            )
            return cls(
                tracker=None,
                cache=cache,
                enabled=False,
                call_timeout_seconds=call_timeout_seconds,
            )

        return cls(
            tracker=tracker_factory(config),
            cache=cache,
            team_id=config.team.strip(),
            enabled=True,
            call_timeout_seconds=call_timeout_seconds,
            label_name=config.label or None,
        )

    @property
    def active(self) -> bool:
        """True when report_error would talk to the tracker."""
        return self.enabled and self.tracker is not None and bool(self.team_id)

    async def _call(self, awaitable: Awaitable[T]) -> T:
        return await asyncio.wait_for(awaitable, timeout=self.call_timeout_seconds)

    async def initialize(self) -> None:
        """Resolve the configured team and label to tracker ids.

        A team that cannot be resolved disables reporting. A label that
        cannot be resolved is dropped. Never raises.
        """
        if not self.active:
            return
        tracker = self.tracker
        assert tracker is not None and self.team_id is not None

        if not _UUID_IDENTIFIER.match(self.team_id):
            try:
                team = await self._call(tracker.resolve_team(self.team_id))
            except Exception as e:
                logger.error(
                    f"Failed to resolve issue tracker team '{self.team_id}': {e}",
                    exc_info=True,
                )
                self.enabled = False
                return
            logger.info(f"Resolved issue tracker team '{self.team_id}' to {team.id} ({team.name})")
            self.team_id = team.id

        if self.label_name and not self.label_ids:
            try:
                label_id = await self._call(
                    tracker.resolve_label(self.team_id, self.label_name)
                )
            except Exception as e:
                logger.warning(
                    f"Failed to resolve label '{self.label_name}', issues will be unlabeled: {e}"
                )
            else:
                self.label_ids = [label_id]

    async def report_error(self, context: ErrorContext) -> str | None:
        """Report one error occurrence; returns the issue id or None."""
        if not self.active:
            return None
        tracker = self.tracker
        team_id = self.team_id
        assert tracker is not None and team_id is not None

        try:
            signature = self.signature_generator.signature(
                context.message, context.stack, context.url
            )

            cached = self.cache.get(signature)
            if cached is not None:
                body = format_occurrence_comment(context, cached.occurrence_count + 1)
                try:
                    await self._call(tracker.add_comment(cached.issue_id, body))
                except Exception as e:
                    # Fall through to creating a fresh issue
                    logger.warning(
                        f"Failed to comment on issue {cached.issue_identifier}, "
                        f"creating a new issue instead: {e}",
                        extra={"signature": signature},
                    )
                else:
                    # The entry may have been swept while the comment was in flight
                    if signature in self.cache:
                        entry = self.cache.record_occurrence(signature)
                        logger.debug(
                            f"Recorded occurrence #{entry.occurrence_count} on issue "
                            f"{entry.issue_identifier}",
                            extra={"signature": signature},
                        )
                    return cached.issue_id

            issue = await self._call(
                tracker.create_issue(
                    format_issue_title(context),
                    format_error_report(context),
                    team_id,
                    self.label_ids or None,
                )
            )
            self.cache.remember(signature, issue)
            logger.info(
                f"Created issue {issue.identifier} for new error signature",
                extra={"signature": signature, "issue_url": issue.url},
            )
            return issue.id

        except Exception as e:
            logger.error(f"Failed to report error: {e}", exc_info=True)
            return None

    def dispatch(self, context: ErrorContext) -> asyncio.Task[str | None] | None:
        """Report in the background without blocking the caller.

        Returns:
            The scheduled task, or None when no event loop is running.
        """
        if not self.active:
            return None
        try:
            task = asyncio.get_running_loop().create_task(self.report_error(context))
        except RuntimeError:
            logger.warning("No running event loop, dropping error report")
            return None

        self._pending.add(task)
        task.add_done_callback(self._on_dispatch_done)
        return task

    def _on_dispatch_done(self, task: "asyncio.Task[str | None]") -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background error report failed: {exc}", exc_info=exc)

    async def aclose(self, timeout: float = 10.0) -> None:
        """Wait for in-flight background reports, then close the tracker."""
        if self._pending:
            _, pending = await asyncio.wait(list(self._pending), timeout=timeout)
            for task in pending:
                task.cancel()
            if pending:
                logger.warning(f"Cancelled {len(pending)} unfinished error reports")
        if self.tracker is not None:
            await self.tracker.close()
