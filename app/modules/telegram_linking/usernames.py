"""Chat platform username rules.

Usernames are compared case-sensitively. A leading "@" is presentation
only and is stripped before validation and storage.
"""

import re
from typing import Optional

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]{5,32}$")


def sanitize_username(username: Optional[str]) -> Optional[str]:
    """Trim whitespace and drop one leading "@". Case is preserved.

    Returns None for missing or blank input.
    """
    if not isinstance(username, str):
        return None
    trimmed = username.strip()
    if trimmed.startswith("@"):
        trimmed = trimmed[1:]
    return trimmed or None


def is_valid_username(username: Optional[str]) -> bool:
    sanitized = sanitize_username(username)
    if not sanitized:
        return False
    return bool(USERNAME_PATTERN.match(sanitized))


def format_username(username: Optional[str]) -> str:
    """Display form with a leading "@", empty when there is no username."""
    sanitized = sanitize_username(username)
    return f"@{sanitized}" if sanitized else ""
