"""Shared-secret checks for machine-to-machine endpoints."""

import hmac
from typing import Optional


def secret_matches(expected: Optional[str], *provided: Optional[str]) -> bool:
    """True when no secret is configured or any provided value equals it.

    Comparison is constant-time.
    """
    if not expected:
        return True
    expected_bytes = expected.encode("utf-8")
    return any(
        value is not None and hmac.compare_digest(expected_bytes, value.encode("utf-8"))
        for value in provided
    )
