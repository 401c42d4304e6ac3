"""Timestamp and id helpers shared by the stores."""

from __future__ import annotations

import secrets
import time
from datetime import datetime, timezone
from typing import Any

from dateutil import parser as dateutil_parser


def utc_now() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


def normalize_timestamp(value: Any) -> str:
    """
    Parse a caller-supplied timestamp flexibly into ISO-8601 UTC.

    Naive values are taken as UTC. Empty or unparsable input falls back to now.
    """
    if not value:
        return utc_now()
    try:
        parsed = dateutil_parser.parse(str(value))
    except (ValueError, TypeError, OverflowError):
        return utc_now()
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).isoformat()


def generate_id() -> str:
    """Staging ids look like ``test_<epoch-millis>_<9 hex chars>``."""
    return f"test_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"
