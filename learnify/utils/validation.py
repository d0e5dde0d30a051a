"""
Small validators shared by schemas and routes.
"""

import re
from datetime import date
from typing import Optional
from urllib.parse import urlparse

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_http_url(value: str) -> bool:
    """True for absolute http(s) URLs with a host."""
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def parse_iso_date(value: str) -> Optional[date]:
    """Parse YYYY-MM-DD; None when the value is not a real calendar date."""
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def clamp_limit(value: Optional[int], default: int, maximum: int) -> int:
    """Missing or non-positive limits fall back to the default; large ones are capped."""
    if not value or value < 1:
        value = default
    return min(value, maximum)


def clamp_offset(value: Optional[int]) -> int:
    return max(value or 0, 0)
