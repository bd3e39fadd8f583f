"""Replies sent back to the chat during the linking handshake."""

TOKEN_NOT_FOUND = (
    "This link is invalid or has expired. Please ask an administrator for a new link."
)
TOKEN_ALREADY_USED = (
    "This link has already been used. If you need to link again, "
    "please ask an administrator for a new link."
)
TOKEN_EXPIRED = "This link has expired. Please ask an administrator for a new link."
LINK_FAILED = (
    "Something went wrong while linking your account. Please try again later."
)
USERNAME_MISSING = (
    "We could not find a Telegram username on your account. Please set one in "
    "Telegram under Settings > Username and try again."
)
USERNAME_INVALID = (
    "Your Telegram username is not valid. Usernames may only contain letters, "
    "digits and underscores and must be at least 5 characters long."
)
LOOKUP_FAILED = (
    "We could not link your account because of a system error. Please try again later."
)
NO_ACCOUNT = (
    "No portal account uses this Telegram username. Please check the username in "
    "your profile or ask an administrator for a link."
)

FALLBACK_NAME = "there"


def linked(display_name: str) -> str:
    name = display_name.strip() if display_name else ""
    return f"Hello {name or FALLBACK_NAME}, Telegram notifications are now enabled."
