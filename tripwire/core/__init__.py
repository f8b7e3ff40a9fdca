"""Core domain logic for the Tripwire error-reporting pipeline.

This package contains zero external dependencies and represents
the pure business logic of the application. All adapters and
external integrations are handled by the adapters package.
"""

from .models import (
    CacheEntry,
    CacheStats,
    ErrorContext,
    IssueHandle,
    Team,
)

__all__ = [
    "CacheEntry",
    "CacheStats",
    "ErrorContext",
    "IssueHandle",
    "Team",
]
