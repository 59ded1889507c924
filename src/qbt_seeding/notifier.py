#!/usr/bin/env python3
"""Notification support via Apprise for seeding lifecycle events."""

import logging
from typing import List, Optional

import apprise

from .config import NotifyConfig
from .models import SeedingRecord
from .utils import format_duration, truncate_name

logger = logging.getLogger(__name__)


class Notifier:
    """Apprise-based notification sender for seeding events.

    Wraps the Apprise library to send notifications to any of its
    supported services (Discord, Slack, Telegram, Pushover, email,
    webhooks, etc.) using simple URL-based configuration.

    If notifications are disabled or no URLs are configured, all
    notification calls become no-ops.
    """

    def __init__(self, enabled: bool, urls: List[str],
                 on_complete: bool = False, on_auto_stop: bool = True) -> None:
        """Initialize the notifier.

        Args:
            enabled: Whether notifications are enabled
            urls: List of Apprise notification URLs
            on_complete: Notify when a download completes and its budget is set
            on_auto_stop: Notify when seeding is stopped automatically
        """
        self._enabled = enabled
        self._on_complete = on_complete
        self._on_auto_stop = on_auto_stop
        self._apprise: Optional[apprise.Apprise] = None

        if not enabled or not urls:
            if enabled and not urls:
                logger.warning("[Notifications] Enabled but no NOTIFY_URLS configured")
            return

        self._apprise = apprise.Apprise()
        for url in urls:
            self._apprise.add(url)
        logger.info(f"[Notifications] Initialized with {len(self._apprise)} service(s)")

    @classmethod
    def from_config(cls, config: NotifyConfig) -> "Notifier":
        return cls(config.enabled, config.urls, config.on_complete, config.on_auto_stop)

    @property
    def is_active(self) -> bool:
        """Check if notifications are active and configured."""
        return self._enabled and self._apprise is not None

    def notify_completed(self, record: SeedingRecord) -> int:
        """Send notification for a finished download.

        Args:
            record: Record with completion fields set

        Returns:
            Number of services successfully notified
        """
        if not self.is_active or not self._on_complete:
            return 0

        budget = None
        if record.seeding_stop_time and record.download_complete_time:
            budget = record.seeding_stop_time - record.download_complete_time

        body = (
            f"{truncate_name(record.name)}\n"
            f"Downloaded in {format_duration(record.download_duration)}, "
            f"seeding for {format_duration(budget)}"
        )
        return self._send(title="qbt-seeding: Download Complete", body=body, notify_type="info")

    def notify_auto_stopped(self, records: List[SeedingRecord]) -> int:
        """Send notification for torrents whose seeding budget elapsed.

        Args:
            records: Records stopped during one tick

        Returns:
            Number of services successfully notified
        """
        if not self.is_active or not self._on_auto_stop or not records:
            return 0

        lines = [f"Stopped seeding {len(records)} torrent(s)"]
        for record in records[:10]:
            lines.append(f"  - {truncate_name(record.name, 50)}")
        if len(records) > 10:
            lines.append(f"  ... and {len(records) - 10} more")

        return self._send(title="qbt-seeding: Seeding Stopped", body="\n".join(lines), notify_type="success")

    def _send(self, title: str, body: str, notify_type: str = "info") -> int:
        """Send a notification via Apprise.

        Args:
            title: Notification title
            body: Notification body text
            notify_type: Apprise notify type (info, success, warning, failure)

        Returns:
            Number of services successfully notified
        """
        if not self._apprise:
            return 0

        type_map = {
            "info": apprise.NotifyType.INFO,
            "success": apprise.NotifyType.SUCCESS,
            "warning": apprise.NotifyType.WARNING,
            "failure": apprise.NotifyType.FAILURE,
        }
        apprise_type = type_map.get(notify_type, apprise.NotifyType.INFO)

        # Notification failures must never interrupt seeding management
        try:
            result = self._apprise.notify(title=title, body=body, notify_type=apprise_type)
        except Exception as e:
            logger.error(f"[Notifications] Error sending notification: {e}")
            return 0

        count = len(self._apprise)
        if result:
            logger.debug(f"[Notifications] Sent to {count} service(s): {title}")
        else:
            logger.warning(f"[Notifications] Failed to send: {title}")
        return count if result else 0
