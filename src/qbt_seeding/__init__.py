#!/usr/bin/env python3
"""qBittorrent Seeding Manager - seed for a multiple of the download time, then stop."""

__version__ = "1.0.0"
__license__ = "MIT"

from .config import Config
from .service import SeedingService

__all__ = ["SeedingService", "Config", "__version__"]
