"""structlog processors that keep credentials and oversized values out of logs."""

import re
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional

EventDict = Dict[str, Any]
Processor = Callable[[Any, str, EventDict], EventDict]

# Key fragments whose values must never reach the log stream
SENSITIVE_PATTERNS = frozenset(
    {
        "password",
        "secret",
        "token",
        "api_key",
        "authorization",
        "credential",
        "smtp_pass",
        "cookie",
    }
)

# Bot API URLs embed the bot token: https://api.telegram.org/bot<id>:<secret>/getMe
BOT_TOKEN_IN_URL = re.compile(r"/bot\d+:[A-Za-z0-9_-]+")


def _is_sensitive(key: Any, patterns: FrozenSet[str]) -> bool:
    lowered = str(key).lower()
    return any(pattern in lowered for pattern in patterns)


def _scrub(value: Any, patterns: FrozenSet[str], mask_value: str) -> Any:
    if isinstance(value, str):
        return BOT_TOKEN_IN_URL.sub(f"/bot{mask_value}", value)
    if isinstance(value, dict):
        return {
            key: mask_value
            if inner is not None and _is_sensitive(key, patterns)
            else _scrub(inner, patterns, mask_value)
            for key, inner in value.items()
        }
    return value


def mask_sensitive_data(
    mask_value: str = "***REDACTED***",
    additional_patterns: Optional[Iterable[str]] = None,
) -> Processor:
    """Build a processor that redacts credentials.

    A value is replaced when its key contains one of the sensitive
    fragments (case-insensitive), at any depth of nested dicts. Bot tokens
    embedded in Bot API URLs are redacted inside any string value, since
    ``requests`` puts the full URL in its exception messages.

    Args:
        mask_value: Replacement text
        additional_patterns: Extra key fragments to treat as sensitive

    Returns:
        A structlog processor
    """
    patterns = SENSITIVE_PATTERNS | frozenset(additional_patterns or ())

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        return _scrub(event_dict, patterns, mask_value)

    return processor


def truncate_large_values(max_length: int = 500) -> Processor:
    """Build a processor that shortens top-level strings over ``max_length``."""

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        for key, value in event_dict.items():
            if isinstance(value, str) and len(value) > max_length:
                event_dict[key] = f"{value[:max_length]}...[truncated, {len(value)} chars total]"
        return event_dict

    return processor
