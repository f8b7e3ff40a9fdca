"""Unit tests for the dedup ErrorCache."""

from datetime import UTC, datetime, timedelta

import pytest

from tripwire.core.cache import ErrorCache
from tripwire.core.models import IssueHandle


class FakeClock:
    """Controllable clock for TTL tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC))


@pytest.fixture
def cache(clock: FakeClock) -> ErrorCache:
    return ErrorCache(ttl=timedelta(hours=24), clock=clock)


@pytest.fixture
def issue() -> IssueHandle:
    return IssueHandle(id="issue-1", identifier="ERR-1", url="https://tracker/ERR-1")


class TestErrorCache:
    """Tests for basic cache operations."""

    def test_remember_creates_fresh_entry(
        self, cache: ErrorCache, issue: IssueHandle, clock: FakeClock
    ) -> None:
        entry = cache.remember("sig", issue)

        assert entry.issue_id == "issue-1"
        assert entry.issue_identifier == "ERR-1"
        assert entry.occurrence_count == 1
        assert entry.last_occurrence == clock.now
        assert "sig" in cache
        assert len(cache) == 1

    def test_get_missing_returns_none(self, cache: ErrorCache) -> None:
        assert cache.get("missing") is None

    def test_record_occurrence_updates_in_place(
        self, cache: ErrorCache, issue: IssueHandle, clock: FakeClock
    ) -> None:
        cache.remember("sig", issue)
        clock.advance(timedelta(minutes=5))

        entry = cache.record_occurrence("sig")

        assert entry.occurrence_count == 2
        assert entry.last_occurrence == clock.now
        assert cache.get("sig") is entry

    def test_record_occurrence_of_unknown_signature_raises(self, cache: ErrorCache) -> None:
        with pytest.raises(KeyError):
            cache.record_occurrence("missing")

    def test_remember_overwrites(self, cache: ErrorCache, issue: IssueHandle) -> None:
        cache.remember("sig", issue)
        cache.record_occurrence("sig")

        other = IssueHandle(id="issue-2", identifier="ERR-2", url="https://tracker/ERR-2")
        entry = cache.remember("sig", other)

        assert entry.issue_id == "issue-2"
        assert entry.occurrence_count == 1
        assert len(cache) == 1

    def test_rejects_non_positive_ttl(self) -> None:
        with pytest.raises(ValueError, match="ttl"):
            ErrorCache(ttl=timedelta(0))

    def test_clear(self, cache: ErrorCache, issue: IssueHandle) -> None:
        cache.remember("a", issue)
        cache.remember("b", issue)

        cache.clear()

        assert len(cache) == 0


class TestSweep:
    """Tests for TTL eviction."""

    def test_sweep_removes_entries_older_than_ttl(
        self, cache: ErrorCache, issue: IssueHandle, clock: FakeClock
    ) -> None:
        cache.remember("old", issue)
        clock.advance(timedelta(hours=23))
        cache.remember("recent", issue)
        clock.advance(timedelta(hours=2))

        removed = cache.sweep()

        assert removed == 1
        assert "old" not in cache
        assert "recent" in cache

    def test_entry_exactly_at_ttl_is_kept(
        self, cache: ErrorCache, issue: IssueHandle, clock: FakeClock
    ) -> None:
        cache.remember("sig", issue)
        clock.advance(timedelta(hours=24))

        assert cache.sweep() == 0
        assert "sig" in cache

    def test_recent_occurrence_extends_lifetime(
        self, cache: ErrorCache, issue: IssueHandle, clock: FakeClock
    ) -> None:
        cache.remember("sig", issue)
        clock.advance(timedelta(hours=20))
        cache.record_occurrence("sig")
        clock.advance(timedelta(hours=20))

        assert cache.sweep() == 0

    def test_sweep_with_explicit_now(
        self, cache: ErrorCache, issue: IssueHandle, clock: FakeClock
    ) -> None:
        cache.remember("sig", issue)

        assert cache.sweep(now=clock.now + timedelta(days=2)) == 1

    def test_sweep_empty_cache(self, cache: ErrorCache) -> None:
        assert cache.sweep() == 0


class TestStats:
    """Tests for cache statistics."""

    def test_empty_stats(self, cache: ErrorCache) -> None:
        stats = cache.stats()

        assert stats.total_entries == 0
        assert stats.total_occurrences == 0
        assert stats.oldest_occurrence_age_hours is None

    def test_stats(self, cache: ErrorCache, issue: IssueHandle, clock: FakeClock) -> None:
        cache.remember("a", issue)
        cache.record_occurrence("a")
        clock.advance(timedelta(hours=3))
        cache.remember("b", issue)

        stats = cache.stats()

        assert stats.total_entries == 2
        assert stats.total_occurrences == 3
        assert stats.oldest_occurrence_age_hours == pytest.approx(3.0)
