#!/usr/bin/env python3
"""Seeding time policy: how long a completed torrent keeps seeding."""

from datetime import datetime, timedelta


def seeding_budget(download_duration: timedelta, multiplier: float) -> timedelta:
    """
    Compute how long a torrent should seed after completing.

    Args:
        download_duration: Time the download took
        multiplier: Configured seeding time multiplier (validated positive)

    Returns:
        Seeding budget
    """
    return download_duration * multiplier


def compute_stop_time(completion_time: datetime, download_duration: timedelta,
                      multiplier: float) -> datetime:
    """Absolute time after which seeding should stop."""
    return completion_time + seeding_budget(download_duration, multiplier)


def is_overdue(now: datetime, stop_time: datetime) -> bool:
    """Check if the seeding budget has elapsed (strictly after the stop time)."""
    return now > stop_time
