"""Signature logic for grouping repeated errors.

This module converts an error's message, first meaningful stack frame
and path-normalized URL into a stable SHA-256 signature used as the
dedup cache key.
"""

import hashlib
import re

_DIGIT_SEGMENT = re.compile(r"/\d+(?=/|$)")
_UUID = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)
_PARENTHESIZED = re.compile(r"\(.*\)")
_LEADING_AT = re.compile(r"^at\s+")
_PYTHON_LINENO = re.compile(r",\s*line \d+")

PYTHON_TRACEBACK_HEADER = "Traceback (most recent call last):"


class SignatureGenerator:
    """Produces stable signatures from error facts.

    No external dependencies; pure functions over strings.
    All methods are static as the class carries no state.
    """

    @staticmethod
    def signature(
        message: str, stack: str | None = None, url: str | None = None
    ) -> str:
        """Create a stable hash that identifies this class of error.

        Same bug, different occurrence → same signature.

        Combines:
        - Message
        - Normalized URL
        - First meaningful stack frame
        """
        normalized_url = SignatureGenerator.normalize_url(url)
        stack_frame = SignatureGenerator.first_stack_frame(stack)

        signature_input = f"{message}|{normalized_url}|{stack_frame}"
        return hashlib.sha256(signature_input.encode()).hexdigest()

    @staticmethod
    def normalize_url(url: str | None) -> str:
        """Strip the query string and replace dynamic path segments.

        Examples:
        'https://x.com/users/123?tab=2' → 'https://x.com/users/:id'
        'https://x.com/o/abcdef12-3456-7890-abcd-ef1234567890' → 'https://x.com/o/:uuid'
        """
        if not url:
            return ""
        # Query is stripped before segment replacement
        path = url.split("?", 1)[0]
        path = _DIGIT_SEGMENT.sub("/:id", path)
        return _UUID.sub(":uuid", path)

    @staticmethod
    def first_stack_frame(stack: str | None) -> str:
        """Return the frame that raised the error, without location.

        For JS-style stacks this is the line below the message line. Python
        tracebacks list the innermost frame last, so the last ``File`` line
        is used instead.

        Line and column numbers change frequently and shouldn't affect
        the signature.
        """
        if not stack:
            return ""
        lines = stack.split("\n")
        if len(lines) < 2:
            return ""

        if lines[0].strip() == PYTHON_TRACEBACK_HEADER:
            frames = [line.strip() for line in lines if line.strip().startswith("File ")]
            frame = frames[-1] if frames else lines[1].strip()
        else:
            frame = lines[1].strip()
        frame = _PARENTHESIZED.sub("", frame)
        frame = _LEADING_AT.sub("", frame)
        frame = _PYTHON_LINENO.sub("", frame)
        return frame.split(":", 1)[0]
