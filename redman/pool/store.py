"""
SQLite release pool: the chosen torrent per album plus an audit of fetched listings.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List

from redman import logger
from redman.catalog.types import Release, SourceType
from redman.errors import PersistenceError

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS fetches (
        source_id INTEGER NOT NULL,
        source_type TEXT NOT NULL,
        name TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (source_id, source_type)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS torrents (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        id INTEGER NOT NULL UNIQUE,
        album_name TEXT NOT NULL,
        artist_names TEXT NOT NULL,
        year INTEGER NOT NULL,
        release_type INTEGER NOT NULL,
        media TEXT NOT NULL,
        format TEXT NOT NULL,
        encoding TEXT NOT NULL,
        file_count INTEGER NOT NULL,
        size_bytes INTEGER NOT NULL,
        weight INTEGER NOT NULL,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
)

_RELEASE_COLUMNS = (
    "id, album_name, artist_names, year, release_type, media, format, encoding, file_count, size_bytes, weight"
)


@dataclass
class PoolStats:
    total_releases: int
    unique_artists: int
    unique_albums: int
    format_histogram: List[tuple[str, int]] = field(default_factory=list)


class Store:
    """
    Release pool backed by one SQLite file.

    Writes autocommit row by row, so rows written before a failure stay put.
    `seq` records insertion order; a replaced torrent is re-inserted and takes
    a new `seq`.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        is_new = not self.db_path.exists()
        try:
            if is_new:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path, isolation_level=None)
            for statement in _SCHEMA:
                self._conn.execute(statement)
        except (OSError, sqlite3.Error) as e:
            raise PersistenceError(f"Failed to open release pool at '{self.db_path}': {e}") from e
        if is_new:
            logger.info(f"Created new release pool at {self.db_path}")

    def record_fetch(self, source_id: int, source_type: SourceType, name: str) -> bool:
        """Insert-if-absent into the fetch audit; True when this listing is new."""
        try:
            cursor = self._conn.execute(
                "INSERT OR IGNORE INTO fetches (source_id, source_type, name) VALUES (?, ?, ?)",
                (source_id, SourceType(source_type).value, name),
            )
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to record fetch of {source_type} {source_id}: {e}") from e
        return cursor.rowcount > 0

    def upsert_releases(self, releases: Iterable[Release]) -> int:
        """
        INSERT OR REPLACE each release keyed by id.

        Returns the number of rows the engine reported as written; replacing a
        row with identical content still counts.
        """
        stored = 0
        for release in releases:
            try:
                cursor = self._conn.execute(
                    f"INSERT OR REPLACE INTO torrents ({_RELEASE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        release.id,
                        release.album_name,
                        release.artist_names,
                        release.year,
                        release.release_type,
                        release.media,
                        release.format,
                        release.encoding,
                        release.file_count,
                        release.size,
                        release.weight,
                    ),
                )
            except (sqlite3.Error, OverflowError) as e:
                raise PersistenceError(f"Failed to store torrent {release.id}: {e}") from e
            if cursor.rowcount > 0:
                stored += 1
        return stored

    def stats(self) -> PoolStats:
        try:
            cur = self._conn.cursor()
            total = cur.execute("SELECT COUNT(*) FROM torrents").fetchone()[0]
            artists = cur.execute("SELECT COUNT(DISTINCT artist_names) FROM torrents").fetchone()[0]
            albums = cur.execute("SELECT COUNT(DISTINCT album_name) FROM torrents").fetchone()[0]
            histogram = cur.execute(
                """
                SELECT format, COUNT(*) AS count
                FROM torrents
                GROUP BY format
                ORDER BY count DESC, MIN(seq) ASC
                """
            ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read pool stats: {e}") from e
        return PoolStats(
            total_releases=total,
            unique_artists=artists,
            unique_albums=albums,
            format_histogram=[(fmt, count) for fmt, count in histogram],
        )

    def all_releases(self) -> List[Release]:
        try:
            rows = self._conn.execute(f"SELECT {_RELEASE_COLUMNS} FROM torrents ORDER BY seq").fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read release pool: {e}") from e
        return [
            Release(
                id=row[0],
                album_name=row[1],
                artist_names=row[2],
                year=row[3],
                release_type=row[4],
                media=row[5],
                format=row[6],
                encoding=row[7],
                file_count=row[8],
                size=row[9],
                weight=row[10],
            )
            for row in rows
        ]

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *args) -> None:
        self.close()
