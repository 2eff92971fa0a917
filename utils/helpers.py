"""
Helper Utility Module

This module provides various helper functions used throughout the Post Feed application.
"""

from typing import Optional
from urllib.parse import urlparse

LIKE_ESCAPE_CHAR = "\\"


def is_valid_url(url: str) -> bool:
    """
    Check if a URL is valid.

    Args:
        url: The URL to validate

    Returns:
        bool: True if the URL is valid, False otherwise
    """
    try:
        result = urlparse(url)
        return all([result.scheme, result.netloc])
    except Exception:
        return False


def contains_ignore_case(text: Optional[str], query: str) -> bool:
    """
    Case-insensitive substring test.

    Args:
        text: The text to search in (None never matches)
        query: The substring to look for

    Returns:
        bool: True if query occurs in text ignoring case
    """
    if text is None:
        return False
    return query.casefold() in text.casefold()


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input is matched literally."""
    return (
        value.replace(LIKE_ESCAPE_CHAR, LIKE_ESCAPE_CHAR * 2)
        .replace("%", LIKE_ESCAPE_CHAR + "%")
        .replace("_", LIKE_ESCAPE_CHAR + "_")
    )


def truncate_text(text: str, max_length: int = 100, add_ellipsis: bool = True) -> str:
    """
    Truncate text to a maximum length.

    Args:
        text: The text to truncate
        max_length: Maximum length
        add_ellipsis: Whether to add an ellipsis if text is truncated

    Returns:
        str: Truncated text
    """
    if not text or len(text) <= max_length:
        return text

    truncated = text[:max_length].rstrip()
    if add_ellipsis:
        truncated += "..."

    return truncated


def join_url(base_url: str, *parts) -> str:
    """
    Join a base URL and path segments with exactly one slash between them.

    Args:
        base_url: Scheme and host, optionally with a path prefix
        *parts: Path segments to append

    Returns:
        str: The joined URL
    """
    url = base_url.rstrip("/")
    for part in parts:
        segment = str(part).strip("/")
        if segment:
            url = f"{url}/{segment}"
    return url
