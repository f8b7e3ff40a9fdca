"""In-memory dedup cache mapping error signatures to tracker issues.

The cache is process-local and not persisted: a restart forgets all
dedup history. Entries expire once their last occurrence is older than
the TTL and a sweep runs.
"""

import logging
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone

from .models import CacheEntry, CacheStats, IssueHandle

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=24)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ErrorCache:
    """Explicit signature → CacheEntry store with a recency TTL.

    Not synchronized. Concurrent reporters may interleave between a miss
    and the following remember(); the later write wins.
    """

    def __init__(
        self,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utc_now,
    ):
        if ttl <= timedelta(0):
            raise ValueError(f"ttl must be positive, got {ttl}")
        self.ttl = ttl
        self.clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, signature: object) -> bool:
        return signature in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def get(self, signature: str) -> CacheEntry | None:
        """Return the entry for a signature, or None if absent."""
        return self._entries.get(signature)

    def remember(self, signature: str, issue: IssueHandle) -> CacheEntry:
        """Store a fresh entry (count 1) for a newly created issue.

        Overwrites any existing entry for the signature.
        """
        entry = CacheEntry(
            issue_id=issue.id,
            issue_identifier=issue.identifier,
            last_occurrence=self.clock(),
            occurrence_count=1,
        )
        self._entries[signature] = entry
        return entry

    def record_occurrence(self, signature: str) -> CacheEntry:
        """Bump the occurrence count and recency of an existing entry.

        Raises:
            KeyError: If the signature is not cached.
        """
        entry = self._entries[signature]
        entry.record_occurrence(self.clock())
        return entry

    def sweep(self, now: datetime | None = None) -> int:
        """Delete entries whose last occurrence is older than the TTL.

        Args:
            now: Reference time (defaults to the cache clock).

        Returns:
            Number of entries removed.
        """
        now = now or self.clock()
        expired = [
            signature
            for signature, entry in self._entries.items()
            if now - entry.last_occurrence > self.ttl
        ]
        for signature in expired:
            del self._entries[signature]

        if expired:
            logger.debug(
                f"Swept {len(expired)} expired cache entries, {len(self._entries)} remain"
            )
        return len(expired)

    def stats(self) -> CacheStats:
        """Summarize cache contents."""
        if not self._entries:
            return CacheStats(
                total_entries=0,
                total_occurrences=0,
                oldest_occurrence_age_hours=None,
            )

        now = self.clock()
        oldest = min(entry.last_occurrence for entry in self._entries.values())
        return CacheStats(
            total_entries=len(self._entries),
            total_occurrences=sum(
                entry.occurrence_count for entry in self._entries.values()
            ),
            oldest_occurrence_age_hours=(now - oldest).total_seconds() / 3600,
        )

    def clear(self) -> None:
        """Forget all entries."""
        self._entries.clear()
