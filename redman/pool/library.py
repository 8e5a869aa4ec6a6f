"""Read-only view of the albums already present in the media library (Plex database)."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import List

from redman.errors import PersistenceError

PLEX_ALBUM_TYPE = 9
PLEX_ARTIST_TYPE = 8

# track -> album -> artist through metadata_items.parent_id
_LIBRARY_ALBUMS_QUERY = """
    SELECT DISTINCT b.title AS album, c.title AS artist
    FROM metadata_items a
    JOIN metadata_items b ON a.parent_id = b.id
    JOIN metadata_items c ON b.parent_id = c.id
    WHERE b.metadata_type = ? AND c.metadata_type = ?
"""


@dataclass(frozen=True)
class LibraryAlbum:
    name: str
    artists: str


def _connect_read_only(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(f"file:{db_path}?mode=ro", uri=True, timeout=30)
    # Library titles are not guaranteed to be valid UTF-8.
    conn.text_factory = lambda b: b.decode("utf-8", "surrogateescape")
    return conn


def read_library_albums(db_path: Path) -> List[LibraryAlbum]:
    """Distinct (album, artist) pairs; rows with a missing title are skipped."""
    try:
        conn = _connect_read_only(Path(db_path))
        try:
            rows = conn.execute(_LIBRARY_ALBUMS_QUERY, (PLEX_ALBUM_TYPE, PLEX_ARTIST_TYPE)).fetchall()
        finally:
            conn.close()
    except sqlite3.Error as e:
        raise PersistenceError(f"Failed to read library database '{db_path}': {e}") from e
    return [
        LibraryAlbum(name=album, artists=artist)
        for album, artist in rows
        if album is not None and artist is not None
    ]
