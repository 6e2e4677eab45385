"""General utility helpers shared across modules."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional

from .models import normalize_timestamp

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def format_date(value: Optional[datetime]) -> str:
    """Format a timestamp as ``Thu Jan 01 00:00:00 UTC 1970`` (epoch when None)."""

    moment = normalize_timestamp(value) if value is not None else EPOCH
    return moment.strftime("%a %b %d %H:%M:%S UTC %Y")


def isoformat_utc(value: datetime) -> str:
    """Format a timestamp as ISO-8601 UTC with milliseconds and a ``Z`` suffix."""

    moment = normalize_timestamp(value)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def escape_xml(text: str) -> str:
    """Escape special XML characters."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def json_dumps(value: Any) -> str:
    """Return compact JSON for ``value``."""

    return json.dumps(value, separators=(",", ":"))
