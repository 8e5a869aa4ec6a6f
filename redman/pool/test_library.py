import sqlite3
from pathlib import Path

import pytest

from redman.errors import PersistenceError
from redman.pool.library import LibraryAlbum, read_library_albums


def _make_plex_db(path: Path) -> None:
    conn = sqlite3.connect(path)
    conn.execute(
        "CREATE TABLE metadata_items (id INTEGER PRIMARY KEY, parent_id INTEGER, metadata_type INTEGER, title TEXT)"
    )
    conn.executemany(
        "INSERT INTO metadata_items (id, parent_id, metadata_type, title) VALUES (?, ?, ?, ?)",
        [
            (1, None, 8, "The Beatles"),
            (2, 1, 9, "Abbey Road"),
            (3, 2, 10, "Come Together"),
            (4, 2, 10, "Something"),
            (5, None, 8, "Nobody"),
            (6, 5, 9, None),
            (7, 6, 10, "Untitled track"),
            (8, None, 1, "A Movie"),
            (9, 8, 1, "Not music"),
            (10, 9, 1, "Still not music"),
        ],
    )
    conn.commit()
    conn.close()


def test_reads_distinct_album_artist_pairs(tmp_path: Path) -> None:
    db = tmp_path / "plex.db"
    _make_plex_db(db)

    assert read_library_albums(db) == [LibraryAlbum(name="Abbey Road", artists="The Beatles")]


def test_library_database_is_not_modified(tmp_path: Path) -> None:
    db = tmp_path / "plex.db"
    _make_plex_db(db)
    before = db.read_bytes()

    read_library_albums(db)

    assert db.read_bytes() == before


def test_missing_library_database_raises(tmp_path: Path) -> None:
    with pytest.raises(PersistenceError):
        read_library_albums(tmp_path / "missing.db")
