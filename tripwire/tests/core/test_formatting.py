"""Unit tests for markdown formatting of error contexts."""

import json

import pytest

from tripwire.core.formatting import (
    format_error_report,
    format_issue_title,
    format_occurrence_comment,
)
from tripwire.core.models import ErrorContext


@pytest.fixture
def minimal_context() -> ErrorContext:
    """Context with only the mandatory fields."""
    return ErrorContext(
        message="Test error",
        timestamp="2024-01-01T00:00:00+00:00",
        environment="test",
    )


@pytest.fixture
def full_context() -> ErrorContext:
    """Context with every optional field populated."""
    return ErrorContext(
        message="Test error message",
        stack="Error: Test error message\n    at test.js:1:1",
        timestamp="2024-01-01T00:00:00+00:00",
        environment="test",
        url="https://example.com/test",
        user_agent="Mozilla/5.0",
        request_method="POST",
        user_id="user-123",
        session_id="session-456",
        additional_data={"key1": "value1", "key2": 123},
    )


class TestFormatErrorReport:
    """Tests for format_error_report."""

    def test_full_context_contains_every_fact(self, full_context: ErrorContext) -> None:
        formatted = format_error_report(full_context)

        assert "## Error Details" in formatted
        assert "**Message:** Test error message" in formatted
        assert "**Timestamp:** 2024-01-01T00:00:00+00:00" in formatted
        assert "**Environment:** test" in formatted
        assert "**URL:** https://example.com/test" in formatted
        assert "**Method:** POST" in formatted
        assert "**User Agent:** Mozilla/5.0" in formatted
        assert "**User ID:** user-123" in formatted
        assert "**Session ID:** session-456" in formatted

    def test_stack_is_fenced_verbatim(self, full_context: ErrorContext) -> None:
        formatted = format_error_report(full_context)

        assert "## Stack Trace\n```\nError: Test error message\n    at test.js:1:1\n```" in formatted

    def test_additional_data_is_pretty_json(self, full_context: ErrorContext) -> None:
        formatted = format_error_report(full_context)

        assert "## Additional Context\n```json\n" in formatted
        block = formatted.split("```json\n", 1)[1].split("\n```", 1)[0]
        assert json.loads(block) == {"key1": "value1", "key2": 123}
        assert '  "key1": "value1"' in block

    def test_section_order(self, full_context: ErrorContext) -> None:
        formatted = format_error_report(full_context)

        details = formatted.index("## Error Details")
        stack = formatted.index("## Stack Trace")
        user = formatted.index("**User ID:**")
        extra = formatted.index("## Additional Context")
        assert details < stack < user < extra

    def test_minimal_context_omits_optional_sections(
        self, minimal_context: ErrorContext
    ) -> None:
        formatted = format_error_report(minimal_context)

        assert "## Error Details" in formatted
        assert "Test error" in formatted
        assert "## Stack Trace" not in formatted
        assert "## Additional Context" not in formatted
        assert "**URL:**" not in formatted
        assert "**Method:**" not in formatted
        assert "**User Agent:**" not in formatted
        assert "**User ID:**" not in formatted
        assert "**Session ID:**" not in formatted

    def test_empty_additional_data_is_omitted(self) -> None:
        context = ErrorContext(
            message="x",
            timestamp="2024-01-01T00:00:00+00:00",
            environment="test",
            additional_data={},
        )

        assert "## Additional Context" not in format_error_report(context)

    def test_session_without_user(self) -> None:
        context = ErrorContext(
            message="x",
            timestamp="2024-01-01T00:00:00+00:00",
            environment="test",
            session_id="session-456",
        )

        formatted = format_error_report(context)
        assert "**Session ID:** session-456" in formatted
        assert "**User ID:**" not in formatted

    def test_non_json_values_are_stringified(self) -> None:
        context = ErrorContext(
            message="x",
            timestamp="2024-01-01T00:00:00+00:00",
            environment="test",
            additional_data={"when": object},
        )

        assert "## Additional Context" in format_error_report(context)


class TestTitleAndComment:
    """Tests for issue title and occurrence comment."""

    def test_title_prefix(self, minimal_context: ErrorContext) -> None:
        assert format_issue_title(minimal_context) == "[Error] Test error"

    def test_title_truncates_message_to_100_chars(self) -> None:
        context = ErrorContext(
            message="a" * 250,
            timestamp="2024-01-01T00:00:00+00:00",
            environment="test",
        )

        assert format_issue_title(context) == "[Error] " + "a" * 100

    def test_occurrence_comment_header(self, minimal_context: ErrorContext) -> None:
        comment = format_occurrence_comment(minimal_context, 3)

        assert comment.startswith("**Error Occurrence #3**\n\n## Error Details")


class TestErrorContextValidation:
    """Tests for ErrorContext validation."""

    def test_empty_message_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="message"):
            ErrorContext(message="", timestamp="t", environment="test")
