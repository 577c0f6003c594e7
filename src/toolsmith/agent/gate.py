"""
Request gate applied before any other processing.

Rejects requests that are empty, longer than the configured ceiling, or
that look like attempts to rewrite the collaborator's instructions. A
rejection never consumes a generation attempt.
"""

import re

from toolsmith.exceptions import RequestRejectedError
from toolsmith.scripts.patterns import INJECTION_PATTERNS

EMPTY_REQUEST_MESSAGE = "Please describe the tool you need."
INJECTION_MESSAGE = (
    "Invalid input detected. Please describe your tool request clearly "
    "without attempting to modify system behavior."
)

_INJECTION_RES = tuple(re.compile(pattern) for pattern in INJECTION_PATTERNS)


def looks_like_injection(text: str) -> bool:
    """Return True if text matches any instruction-injection phrase."""
    return any(pattern.search(text) for pattern in _INJECTION_RES)


def gate_request(text: str, max_chars: int = 1000) -> str:
    """
    Check an inbound request.

    Args:
        text: Raw request text
        max_chars: Length ceiling, counted before trimming

    Returns:
        The request with surrounding whitespace removed

    Raises:
        RequestRejectedError: If the request is empty, too long, or
            matches an injection phrase
    """
    if len(text) > max_chars:
        raise RequestRejectedError(
            f"Input too long. Maximum {max_chars} characters."
        )

    stripped = text.strip()
    if not stripped:
        raise RequestRejectedError(EMPTY_REQUEST_MESSAGE)

    if looks_like_injection(stripped):
        raise RequestRejectedError(INJECTION_MESSAGE)

    return stripped
