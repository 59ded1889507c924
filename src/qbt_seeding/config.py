#!/usr/bin/env python3
"""Configuration management for qBittorrent seeding management."""

import os
from dataclasses import dataclass, field

from .constants import (
    DEFAULT_CHECK_INTERVAL, DEFAULT_TIME_MULTIPLIER, DEFAULT_TIMEOUT,
    DEFAULT_WEB_PORT, TRACKING_FILE,
)
from .errors import InvalidConfigurationError
from .utils import parse_bool, parse_float, parse_int, parse_list


@dataclass
class ConnectionConfig:
    """qBittorrent connection configuration."""
    host: str = field(default_factory=lambda: os.environ.get("QB_HOST", "localhost"))
    port: int = field(default_factory=lambda: parse_int("QB_PORT", 8080))
    username: str = field(default_factory=lambda: os.environ.get("QB_USERNAME", "admin"))
    password: str = field(default_factory=lambda: os.environ.get("QB_PASSWORD", "adminadmin"))
    verify_ssl: bool = field(default_factory=lambda: parse_bool("QB_VERIFY_SSL", False))
    request_timeout: float = field(default_factory=lambda: parse_float("QB_REQUEST_TIMEOUT", DEFAULT_TIMEOUT, 1))


@dataclass
class SeedingConfig:
    """Automatic seeding management configuration."""
    # Seed for multiplier x download time (10 means seed ten times as long)
    time_multiplier: float = field(
        default_factory=lambda: parse_float("SEEDING_TIME_MULTIPLIER", DEFAULT_TIME_MULTIPLIER)
    )
    check_interval: float = field(
        default_factory=lambda: parse_float("SEEDING_CHECK_INTERVAL", DEFAULT_CHECK_INTERVAL)
    )
    tracking_file: str = field(default_factory=lambda: os.environ.get("SEEDING_TRACKING_FILE", TRACKING_FILE))
    # Consecutive ticks a torrent may be absent before its record is dropped (0 = never)
    missing_ticks: int = field(default_factory=lambda: parse_int("SEEDING_MISSING_TICKS", 0, 0))

    def validate(self) -> None:
        """
        Reject values the engine cannot run with.

        Raises:
            InvalidConfigurationError: If the multiplier or interval is not positive
        """
        if not self.time_multiplier > 0:
            raise InvalidConfigurationError(
                f"seeding time multiplier must be greater than 0, got: {self.time_multiplier}"
            )
        if not self.check_interval > 0:
            raise InvalidConfigurationError(
                f"seeding check interval must be greater than 0, got: {self.check_interval}"
            )
        if self.missing_ticks < 0:
            raise InvalidConfigurationError(
                f"missing tick threshold cannot be negative, got: {self.missing_ticks}"
            )


@dataclass
class WebConfig:
    """Web API configuration."""
    enabled: bool = field(default_factory=lambda: parse_bool("WEB_ENABLED", True))
    host: str = field(default_factory=lambda: os.environ.get("WEB_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: parse_int("WEB_PORT", DEFAULT_WEB_PORT, 1))


@dataclass
class NotifyConfig:
    """Apprise notification configuration."""
    enabled: bool = field(default_factory=lambda: parse_bool("NOTIFY_ENABLED", False))
    urls: list[str] = field(default_factory=lambda: parse_list("NOTIFY_URLS"))
    on_complete: bool = field(default_factory=lambda: parse_bool("NOTIFY_ON_COMPLETE", False))
    on_auto_stop: bool = field(default_factory=lambda: parse_bool("NOTIFY_ON_AUTO_STOP", True))


@dataclass
class Config:
    """Main configuration container."""
    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    seeding: SeedingConfig = field(default_factory=SeedingConfig)
    web: WebConfig = field(default_factory=WebConfig)
    notify: NotifyConfig = field(default_factory=NotifyConfig)
    # DEBUG=true overrides LOG_LEVEL
    log_level: str = field(
        default_factory=lambda: "DEBUG" if parse_bool("DEBUG") else os.environ.get("LOG_LEVEL", "INFO").upper()
    )

    @classmethod
    def from_environment(cls) -> "Config":
        """Create configuration from environment variables."""
        return cls()

    def validate(self) -> None:
        """Validate all sections, raising InvalidConfigurationError on the first problem."""
        self.seeding.validate()
