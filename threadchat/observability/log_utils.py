"""
Logging utilities.

Dependencies: re (stdlib)
System role: Log-safe previews of user supplied text
"""

import re

_WHITESPACE = re.compile(r"\s+")


def preview_text(value: str | None, max_length: int = 120) -> str:
    """
    One-line preview of free text for log messages.

    Collapses whitespace and newlines; long text is cut with its full length noted.

    Args:
        value: Text to preview
        max_length: Maximum preview length before truncating

    Returns:
        str: Preview, "None" for a missing value
    """
    if value is None:
        return "None"
    text = _WHITESPACE.sub(" ", value).strip()
    if len(text) > max_length:
        return f"{text[:max_length]}... ({len(text)} chars)"
    return text
