#!/usr/bin/env python3
"""Persistence backends for seeding tracking data."""

import json
import logging
import os
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List

from .constants import SQLITE_SUFFIXES
from .errors import PersistenceError
from .models import SeedingRecord

logger = logging.getLogger(__name__)


class PersistenceBackend(ABC):
    """Whole-table storage for seeding records.

    ``save`` overwrites everything previously stored, ``load`` returns the
    complete stored set. Implementations raise PersistenceError on failure.
    """

    @abstractmethod
    def save(self, records: List[SeedingRecord]) -> None:
        """Overwrite the stored table with ``records``."""

    @abstractmethod
    def load(self) -> List[SeedingRecord]:
        """Return every stored record (empty if nothing was saved yet)."""

    @property
    @abstractmethod
    def location(self) -> str:
        """Human readable location for log messages."""


class JsonFileBackend(PersistenceBackend):
    """Stores records as one indented JSON object keyed by torrent hash."""

    def __init__(self, path: str):
        self.path = Path(path)

    @property
    def location(self) -> str:
        return str(self.path)

    def save(self, records: List[SeedingRecord]) -> None:
        """
        Write records atomically.

        Writes to a temporary file first, then renames to avoid
        partial writes on crash.
        """
        data = {record.hash: record.to_dict() for record in records}
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            tmp_path.replace(self.path)
        except OSError as e:
            raise PersistenceError(f"failed to write tracking data file {self.path}: {e}") from e

    def load(self) -> List[SeedingRecord]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.debug(f"Tracking data file {self.path} does not exist, starting with empty data")
            return []
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise PersistenceError(f"failed to read tracking data file {self.path}: {e}") from e

        try:
            return [SeedingRecord.from_dict(entry) for entry in data.values()]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"invalid tracking data in {self.path}: {e}") from e


class SqliteBackend(PersistenceBackend):
    """Stores records in a SQLite table, one row per torrent.

    The database is prepared on the first save or load, so an unusable
    path surfaces as PersistenceError from those calls.
    """

    def __init__(self, path: str):
        self.path = path
        self._initialized = False
        self._init_lock = threading.RLock()

    @property
    def location(self) -> str:
        return self.path

    def _ensure_initialized(self) -> None:
        """Create the directory and schema, then import any legacy JSON file."""
        with self._init_lock:
            if self._initialized:
                return
            self._ensure_state_dir()
            self._init_database()
            self._initialized = True
            self._migrate_from_json()

    def _ensure_state_dir(self) -> None:
        """Ensure database directory exists."""
        try:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"could not create state directory for {self.path}: {e}") from e

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection for one operation; commits on success, rolls back on error."""
        conn = sqlite3.connect(self.path, timeout=10.0)
        conn.row_factory = sqlite3.Row
        try:
            # Enable WAL mode for better concurrency
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self) -> None:
        """Initialize database schema."""
        try:
            with self._connect() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS seeding_records (
                        hash TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        download_start_time TEXT NOT NULL,
                        download_complete_time TEXT,
                        download_duration REAL,
                        seeding_stop_time TEXT,
                        auto_stopped INTEGER NOT NULL DEFAULT 0,
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                """)
            logger.debug("SQLite database initialized")
        except sqlite3.Error as e:
            raise PersistenceError(f"failed to initialize database {self.path}: {e}") from e

    def _migrate_from_json(self) -> None:
        """Import an adjacent JSON tracking file left by the JSON backend."""
        json_file = os.path.splitext(self.path)[0] + ".json"
        if not os.path.exists(json_file):
            return

        try:
            records = JsonFileBackend(json_file).load()
            if records and not self.load():
                self.save(records)
                logger.info(f"Migrated {len(records)} tracked torrents to SQLite")
            os.rename(json_file, json_file + ".migrated")
        except (PersistenceError, OSError) as e:
            logger.warning(f"Could not migrate from JSON: {e}")

    def save(self, records: List[SeedingRecord]) -> None:
        self._ensure_initialized()
        rows = [
            (
                data["hash"], data["name"], data["download_start_time"],
                data["download_complete_time"], data["download_duration"],
                data["seeding_stop_time"], int(data["auto_stopped"]),
                data["created_at"], data["updated_at"],
            )
            for data in (record.to_dict() for record in records)
        ]
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM seeding_records")
                conn.executemany("""
                    INSERT INTO seeding_records
                    (hash, name, download_start_time, download_complete_time, download_duration,
                     seeding_stop_time, auto_stopped, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, rows)
        except sqlite3.Error as e:
            raise PersistenceError(f"failed to save tracking data to {self.path}: {e}") from e

    def load(self) -> List[SeedingRecord]:
        self._ensure_initialized()
        try:
            with self._connect() as conn:
                rows = conn.execute("SELECT * FROM seeding_records").fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"failed to load tracking data from {self.path}: {e}") from e

        records = []
        for row in rows:
            data = dict(row)
            data["auto_stopped"] = bool(data["auto_stopped"])
            try:
                records.append(SeedingRecord.from_dict(data))
            except (KeyError, ValueError) as e:
                raise PersistenceError(f"invalid row for {data.get('hash')} in {self.path}: {e}") from e
        return records


def create_backend(path: str) -> PersistenceBackend:
    """
    Choose a backend from the tracking file name.

    Args:
        path: Tracking file path; SQLite suffixes select the SQLite backend

    Returns:
        Persistence backend instance
    """
    if path.lower().endswith(SQLITE_SUFFIXES):
        return SqliteBackend(path)
    return JsonFileBackend(path)
