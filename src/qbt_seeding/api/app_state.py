#!/usr/bin/env python3
"""Thread-safe application state shared between the daemon and the API."""

import threading
from datetime import datetime
from typing import Optional

from ..config import Config
from ..models import TickResult
from ..service import SeedingService
from ..utils import utcnow


class AppState:
    """Bridge between the seeding service and the web API.

    Holds the configuration, the running SeedingService and metadata
    about the last manually triggered check so that API endpoints can
    report it without race conditions.
    """

    def __init__(self, config: Config, service: SeedingService) -> None:
        self.config = config
        self.service = service
        self.last_check_time: Optional[datetime] = None
        self.last_check_stats: Optional[dict] = None
        self._lock = threading.Lock()

    def update_after_check(self, result: TickResult) -> None:
        """Record the result of a check triggered through the API.

        Args:
            result: Outcome of the tick
        """
        with self._lock:
            self.last_check_time = utcnow()
            self.last_check_stats = {
                "fetched": result.fetched,
                "checked": result.checked,
                "completed": len(result.completed),
                "stopped": len(result.stopped),
                "failed": len(result.failed),
                "removed": len(result.removed),
            }

    def get_check_status(self) -> dict:
        """Return a snapshot of the last manual check.

        Returns:
            Dictionary with last_check_time and last_check_stats.
        """
        with self._lock:
            return {
                "last_check_time": self.last_check_time.isoformat() if self.last_check_time else None,
                "last_check_stats": self.last_check_stats,
            }
