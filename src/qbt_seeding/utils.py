#!/usr/bin/env python3
"""Utility functions for qBittorrent seeding management."""

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from .constants import SECONDS_PER_DAY, SECONDS_PER_HOUR, SECONDS_PER_MINUTE

logger = logging.getLogger(__name__)


_BOOL_TRUE = frozenset(('true', '1', 'yes', 'on'))
_BOOL_FALSE = frozenset(('false', '0', 'no', 'off'))


def parse_bool(env_var: str, default: bool = False) -> bool:
    """
    Parse boolean environment variable.

    Args:
        env_var: Environment variable name
        default: Default value if not set

    Returns:
        Parsed boolean value
    """
    raw = os.environ.get(env_var)
    if raw is None:
        return default
    lower = raw.strip().lower()
    if lower not in _BOOL_TRUE and lower not in _BOOL_FALSE:
        logger.warning(f"{env_var}='{raw}' is not a recognized boolean, treating as False")
    return lower in _BOOL_TRUE


def parse_float(env_var: str, default: float, min_val: Optional[float] = None) -> float:
    """
    Parse float environment variable with optional minimum value.

    Args:
        env_var: Environment variable name
        default: Default value if not set
        min_val: Minimum allowed value

    Returns:
        Parsed float value
    """
    try:
        value = float(os.environ.get(env_var, str(default)))
        if min_val is not None and value < min_val:
            logger.warning(f"{env_var}={value} is below minimum {min_val}, using minimum")
            return min_val
        return value
    except (ValueError, TypeError):
        logger.warning(f"Invalid float value for {env_var}, using default {default}")
        return default


def parse_int(env_var: str, default: int, min_val: Optional[int] = None) -> int:
    """
    Parse integer environment variable with optional minimum value.

    Args:
        env_var: Environment variable name
        default: Default value if not set
        min_val: Minimum allowed value

    Returns:
        Parsed integer value
    """
    try:
        value = int(os.environ.get(env_var, str(default)))
        if min_val is not None and value < min_val:
            logger.warning(f"{env_var}={value} is below minimum {min_val}, using minimum")
            return min_val
        return value
    except (ValueError, TypeError):
        logger.warning(f"Invalid integer value for {env_var}, using default {default}")
        return default


def parse_list(env_var: str) -> List[str]:
    """Parse a comma-separated environment variable, dropping blanks."""
    return [item.strip() for item in os.environ.get(env_var, "").split(",") if item.strip()]


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime to ISO-8601, passing None through."""
    return value.isoformat() if value is not None else None


def from_iso(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp.

    Naive timestamps are assumed to be UTC. Empty values map to None.
    """
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_duration(duration: Optional[timedelta]) -> str:
    """
    Format a duration for display, e.g. ``1d 2h 3m``.

    Args:
        duration: Duration to format (None renders as a dash)

    Returns:
        Human readable duration string
    """
    if duration is None:
        return "-"
    total = int(duration.total_seconds())
    sign = "-" if total < 0 else ""
    total = abs(total)

    days, rest = divmod(total, SECONDS_PER_DAY)
    hours, rest = divmod(rest, SECONDS_PER_HOUR)
    minutes, seconds = divmod(rest, SECONDS_PER_MINUTE)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if not parts:
        parts.append(f"{seconds}s")
    return sign + " ".join(parts)


def truncate_name(name: str, max_length: int = 60) -> str:
    """
    Truncate a torrent name for display.

    Args:
        name: Torrent name to truncate
        max_length: Maximum length

    Returns:
        Truncated name with ellipsis if needed
    """
    if len(name) <= max_length:
        return name
    return name[:max_length - 3] + "..."
