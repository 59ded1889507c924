#!/usr/bin/env python3
"""qBittorrent backend: live torrent listing and pause control."""

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import List, Optional

import qbittorrentapi
import urllib3

from .config import ConnectionConfig
from .constants import MAX_RETRY_ATTEMPTS, RETRY_DELAY
from .errors import BackendUnavailableError
from .models import LiveTorrent

# Suppress SSL warnings when SSL verification is disabled
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

logger = logging.getLogger(__name__)


class TorrentProvider(ABC):
    """Source of live torrent state."""

    @abstractmethod
    def list_torrents(self, timeout: Optional[float] = None) -> List[LiveTorrent]:
        """
        Fetch every torrent known to the backend.

        Raises:
            BackendUnavailableError: If the backend cannot be queried
        """


class TorrentController(ABC):
    """Issues control commands to the backend."""

    @abstractmethod
    def pause(self, torrent_hashes: List[str], timeout: Optional[float] = None) -> None:
        """
        Pause (stop) the given torrents.

        Raises:
            BackendUnavailableError: If the command was not accepted
        """


class QBittorrentClient(TorrentProvider, TorrentController):
    """qBittorrent Web API client used as provider and controller."""

    def __init__(self, config: ConnectionConfig):
        """
        Initialize client wrapper.

        Args:
            config: Connection configuration
        """
        self.config = config
        self._client: Optional[qbittorrentapi.Client] = None
        self._quiet: bool = False
        self._lock = threading.Lock()

    @property
    def client(self) -> qbittorrentapi.Client:
        """Get the underlying client, connecting if needed."""
        if self._client is None:
            raise RuntimeError("Client not connected")
        return self._client

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def connect(self, *, quiet: bool = False, attempts: int = MAX_RETRY_ATTEMPTS) -> bool:
        """
        Connect to qBittorrent.

        Args:
            quiet: If True, log connect/disconnect at debug level.
            attempts: Number of login attempts before giving up.

        Returns:
            True if connection successful
        """
        for attempt in range(attempts):
            try:
                client = qbittorrentapi.Client(
                    host=self.config.host,
                    port=self.config.port,
                    username=self.config.username,
                    password=self.config.password,
                    VERIFY_WEBUI_CERTIFICATE=self.config.verify_ssl,
                    REQUESTS_ARGS={'timeout': self.config.request_timeout}
                )

                # Suppress SSL logging for connection
                original_level = logging.getLogger("urllib3.connectionpool").level
                logging.getLogger("urllib3.connectionpool").setLevel(logging.ERROR)

                try:
                    client.auth_log_in()
                finally:
                    logging.getLogger("urllib3.connectionpool").setLevel(original_level)

                version = client.app.version
                api_version = client.app.web_api_version
                ssl_status = "enabled" if self.config.verify_ssl else "disabled"

                self._client = client
                self._quiet = quiet
                log_fn = logger.debug if quiet else logger.info
                log_fn(
                    f"Connected to qBittorrent {version} "
                    f"(API: {api_version}, SSL: {ssl_status})"
                )
                return True

            except (qbittorrentapi.LoginFailed, qbittorrentapi.APIConnectionError) as e:
                if attempt == attempts - 1:
                    logger.error(f"Connection failed after {attempts} attempts: {e}")
                    return False
                # Only log if not SSL-related on first attempt
                if attempt > 0 or "SSL" not in str(e):
                    logger.warning(f"Connection attempt {attempt + 1} failed, retrying: {e}")
                time.sleep(RETRY_DELAY)
            except qbittorrentapi.APIError as e:
                logger.error(f"Unexpected error during connection: {e}")
                return False

        return False

    def disconnect(self) -> None:
        """Disconnect from qBittorrent."""
        with self._lock:
            if self._client is None:
                return
            try:
                self._client.auth_log_out()
                log_fn = logger.debug if self._quiet else logger.info
                log_fn("Disconnected from qBittorrent")
            except qbittorrentapi.APIError as e:
                logger.debug(f"Logout error (ignored): {e}")
            finally:
                self._client = None
                self._quiet = False

    def _ensure_connected(self) -> qbittorrentapi.Client:
        with self._lock:
            if self._client is None and not self.connect(quiet=True, attempts=1):
                raise BackendUnavailableError(
                    f"cannot connect to qBittorrent at {self.config.host}:{self.config.port}"
                )
            return self.client

    def _requests_args(self, timeout: Optional[float]) -> dict:
        return {'timeout': timeout if timeout is not None else self.config.request_timeout}

    def list_torrents(self, timeout: Optional[float] = None) -> List[LiveTorrent]:
        client = self._ensure_connected()
        try:
            torrents = client.torrents_info(requests_args=self._requests_args(timeout))
        except qbittorrentapi.Forbidden403Error as e:
            raise BackendUnavailableError(f"authentication error fetching torrents: {e}") from e
        except qbittorrentapi.APIError as e:
            raise BackendUnavailableError(f"failed to fetch torrents: {e}") from e

        return [self.process_torrent(t) for t in torrents]

    def pause(self, torrent_hashes: List[str], timeout: Optional[float] = None) -> None:
        if not torrent_hashes:
            return
        client = self._ensure_connected()
        try:
            client.torrents_stop(
                torrent_hashes=torrent_hashes,
                requests_args=self._requests_args(timeout),
            )
        except qbittorrentapi.Forbidden403Error as e:
            raise BackendUnavailableError(f"permission denied pausing torrents: {e}") from e
        except qbittorrentapi.APIError as e:
            raise BackendUnavailableError(f"failed to pause torrents: {e}") from e

    @staticmethod
    def process_torrent(torrent) -> LiveTorrent:
        """
        Process raw torrent into LiveTorrent.

        Args:
            torrent: Raw qbittorrentapi torrent object

        Returns:
            Processed LiveTorrent
        """
        return LiveTorrent(
            hash=torrent.hash,
            name=torrent.name,
            progress=float(torrent.progress),
            state=torrent.state,
        )
