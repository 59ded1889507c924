"""Tests for notifier.py."""

from datetime import timedelta
from unittest.mock import patch

import pytest

from qbt_seeding.config import NotifyConfig
from qbt_seeding.models import SeedingRecord
from qbt_seeding.notifier import Notifier

from conftest import T0


@pytest.fixture
def mock_apprise():
    with patch("qbt_seeding.notifier.apprise.Apprise") as apprise_cls:
        instance = apprise_cls.return_value
        instance.__len__.return_value = 1
        instance.notify.return_value = True
        yield instance


def make_record(torrent_hash="abc123", name="Foo"):
    return SeedingRecord(
        hash=torrent_hash, name=name, download_start_time=T0, created_at=T0, updated_at=T0,
        download_complete_time=T0 + timedelta(minutes=10),
        download_duration=timedelta(minutes=10),
        seeding_stop_time=T0 + timedelta(minutes=110),
    )


class TestNotifier:
    def test_disabled_is_inactive(self, mock_apprise):
        notifier = Notifier(enabled=False, urls=["json://localhost"])
        assert not notifier.is_active
        assert notifier.notify_auto_stopped([make_record()]) == 0
        mock_apprise.notify.assert_not_called()

    def test_enabled_without_urls_is_inactive(self, mock_apprise):
        assert not Notifier(enabled=True, urls=[]).is_active

    def test_auto_stop_notification(self, mock_apprise):
        notifier = Notifier(enabled=True, urls=["json://localhost"])

        assert notifier.notify_auto_stopped([make_record("a", "Alpha"), make_record("b", "Beta")]) == 1

        kwargs = mock_apprise.notify.call_args.kwargs
        assert "Stopped seeding 2 torrent(s)" in kwargs["body"]
        assert "Alpha" in kwargs["body"]
        mock_apprise.add.assert_called_once_with("json://localhost")

    def test_auto_stop_list_is_capped(self, mock_apprise):
        notifier = Notifier(enabled=True, urls=["json://localhost"])
        records = [make_record(str(i), f"Torrent {i}") for i in range(12)]

        notifier.notify_auto_stopped(records)

        assert "... and 2 more" in mock_apprise.notify.call_args.kwargs["body"]

    def test_completion_notification_off_by_default(self, mock_apprise):
        notifier = Notifier(enabled=True, urls=["json://localhost"])
        assert notifier.notify_completed(make_record()) == 0
        mock_apprise.notify.assert_not_called()

    def test_completion_notification(self, mock_apprise):
        notifier = Notifier(enabled=True, urls=["json://localhost"], on_complete=True)

        notifier.notify_completed(make_record())

        body = mock_apprise.notify.call_args.kwargs["body"]
        assert "Downloaded in 10m, seeding for 1h 40m" in body

    def test_send_errors_are_contained(self, mock_apprise):
        mock_apprise.notify.side_effect = RuntimeError("smtp down")
        notifier = Notifier(enabled=True, urls=["json://localhost"])
        assert notifier.notify_auto_stopped([make_record()]) == 0

    def test_failed_delivery(self, mock_apprise):
        mock_apprise.notify.return_value = False
        notifier = Notifier(enabled=True, urls=["json://localhost"])
        assert notifier.notify_auto_stopped([make_record()]) == 0
        mock_apprise.notify.assert_called_once()

    def test_from_config(self, mock_apprise):
        config = NotifyConfig(enabled=True, urls=["json://localhost"], on_complete=True, on_auto_stop=False)
        notifier = Notifier.from_config(config)
        assert notifier.is_active
        assert notifier.notify_auto_stopped([make_record()]) == 0

    def test_exposes_only_event_notifications(self, mock_apprise):
        assert not hasattr(Notifier, "test")
