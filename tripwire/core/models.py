"""Domain models for the Tripwire error-reporting pipeline.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class ErrorContext:
    """An immutable snapshot of one error occurrence.

    Request facts (url, user agent, method) are supplied by the caller
    and never inferred by the collector.
    """

    message: str
    timestamp: str  # ISO-8601, set at collection time
    environment: str
    stack: str | None = None
    url: str | None = None
    user_agent: str | None = None
    request_method: str | None = None
    user_id: str | None = None
    session_id: str | None = None
    additional_data: dict[str, Any] | MappingProxyType[str, Any] | None = None

    def __post_init__(self) -> None:
        """Validate message and freeze additional data."""
        if not self.message:
            raise ValueError("message must be a non-empty string")
        if isinstance(self.additional_data, dict):
            object.__setattr__(
                self, "additional_data", MappingProxyType(self.additional_data)
            )


@dataclass(frozen=True)
class Team:
    """A team/project in the external issue tracker."""

    id: str
    name: str


@dataclass(frozen=True)
class IssueHandle:
    """Reference to an issue created in the external issue tracker."""

    id: str  # opaque handle used for follow-up calls
    identifier: str  # human-readable, e.g. "ENG-123" or "#42"
    url: str


@dataclass
class CacheEntry:
    """Dedup cache record for one error signature.

    Mutable: the reporter updates
    last_occurrence and occurrence_count in place on every repeat.
    """

    issue_id: str
    issue_identifier: str
    last_occurrence: datetime
    occurrence_count: int = 1

    def __post_init__(self) -> None:
        if self.occurrence_count < 1:
            raise ValueError(
                f"occurrence_count must be >= 1, got {self.occurrence_count}"
            )

    def record_occurrence(self, timestamp: datetime) -> None:
        """Record a repeat occurrence at the given time."""
        self.occurrence_count += 1
        self.last_occurrence = timestamp


@dataclass(frozen=True)
class CacheStats:
    """Statistics about the dedup cache."""

    total_entries: int
    total_occurrences: int
    oldest_occurrence_age_hours: float | None  # None if cache is empty
