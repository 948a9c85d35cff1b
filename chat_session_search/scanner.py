"""Lightweight field extraction from raw session documents.

Session files can be large, and the search only needs a display title and a
rough message count. Instead of parsing the whole JSON document, this module
scans the text for literal keys:

- first_quoted_value: "first quoted value after the first occurrence of
  literal key K" (the scanner contract used by everything below)
- extract_title_from_content: two-tier title heuristic
- count_messages: marker-occurrence message count (approximate)
"""

from __future__ import annotations

CUSTOM_TITLE_KEY = "customTitle"
MESSAGE_TEXT_KEY = "text"
MESSAGE_MARKER = '"message":'

# Fallback titles taken from message text must stay short, otherwise the
# scan has probably landed on unrelated content.
MAX_FALLBACK_TITLE_LENGTH = 100


def first_quoted_value(content: str, key: str) -> str | None:
    """Return the first quoted string after the first occurrence of ``"key"``.

    The value is the text between the first pair of double quotes that
    follows the colon after the key. Escape sequences are not interpreted,
    so a value containing an escaped quote is cut at that quote.

    Args:
        content: Raw document text.
        key: Key name, without quotes.

    Returns:
        The raw value, or None if the key is absent, the value after the
        colon is not a string, or the string is unterminated.
    """
    start = content.find(f'"{key}"')
    if start == -1:
        return None

    colon = content.find(":", start)
    if colon == -1:
        return None

    rest = content[colon + 1 :].lstrip()
    if not rest.startswith('"'):
        return None

    end = rest.find('"', 1)
    if end == -1:
        return None

    return rest[1:end]


def extract_title_from_content(content: str) -> str | None:
    """Derive a display title without parsing the document.

    Tier 1 is the user-assigned ``customTitle`` (ignored when empty or the
    literal ``null``). Tier 2 is the first message ``text`` value, accepted
    only when non-empty and shorter than MAX_FALLBACK_TITLE_LENGTH.

    Returns:
        The title, or None if neither tier produced one.
    """
    custom = first_quoted_value(content, CUSTOM_TITLE_KEY)
    if custom and custom != "null":
        return custom

    text = first_quoted_value(content, MESSAGE_TEXT_KEY)
    if text and len(text) < MAX_FALLBACK_TITLE_LENGTH:
        return text

    return None


def count_messages(content: str) -> int:
    """Approximate the number of requests in a session document.

    Counts occurrences of the ``"message":`` key in the raw text. This
    overcounts when the marker appears inside a quoted message body.
    """
    return content.count(MESSAGE_MARKER)


def truncate_string(s: str, max_len: int) -> str:
    """Truncate a string to max_len characters, ending with '...' if cut."""
    if len(s) <= max_len:
        return s
    return s[: max(max_len - 3, 0)] + "..."
