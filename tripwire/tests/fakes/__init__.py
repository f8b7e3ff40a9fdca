"""Fake implementations of core ports for testing.

These in-memory implementations allow core domain logic to be tested
without external dependencies:

- FakeIssueTracker: Captured issues and comments, configurable failures
- FakeErrorReporter: Captured reports for host integration tests
"""

from .reporter import FakeErrorReporter
from .tracker import FakeIssueTracker

__all__ = [
    "FakeErrorReporter",
    "FakeIssueTracker",
]
