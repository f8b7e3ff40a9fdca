"""Markdown rendering of error contexts for issue bodies and comments."""

import json

from .models import ErrorContext

TITLE_PREFIX = "[Error] "
TITLE_MESSAGE_LIMIT = 100


def format_issue_title(context: ErrorContext) -> str:
    """Issue title: prefix plus the first 100 characters of the message."""
    return f"{TITLE_PREFIX}{context.message[:TITLE_MESSAGE_LIMIT]}"


def format_error_report(context: ErrorContext) -> str:
    """Format an error context as a markdown document.

    Sections without data are omitted entirely.

    Args:
        context: The error context to format.

    Returns:
        Markdown text suitable for an issue description or comment.
    """
    lines = []

    lines.append("## Error Details")
    lines.append(f"**Message:** {context.message}")
    lines.append(f"**Timestamp:** {context.timestamp}")
    lines.append(f"**Environment:** {context.environment}")

    if context.url:
        lines.append(f"**URL:** {context.url}")
    if context.request_method:
        lines.append(f"**Method:** {context.request_method}")
    if context.user_agent:
        lines.append(f"**User Agent:** {context.user_agent}")

    if context.stack:
        lines.append("")
        lines.append("## Stack Trace")
        lines.append("```")
        lines.append(context.stack)
        lines.append("```")

    if context.user_id:
        lines.append("")
        lines.append(f"**User ID:** {context.user_id}")
    if context.session_id:
        if not context.user_id:
            lines.append("")
        lines.append(f"**Session ID:** {context.session_id}")

    if context.additional_data:
        lines.append("")
        lines.append("## Additional Context")
        lines.append("```json")
        lines.append(
            json.dumps(dict(context.additional_data), indent=2, default=str)
        )
        lines.append("```")

    return "\n".join(lines)


def format_occurrence_comment(context: ErrorContext, occurrence: int) -> str:
    """Comment body for a repeat occurrence of an already-reported error."""
    return f"**Error Occurrence #{occurrence}**\n\n{format_error_report(context)}"
