import sqlite3
from dataclasses import replace
from pathlib import Path

import pytest

from redman.catalog.types import Release, SourceType
from redman.errors import PersistenceError
from redman.pool.store import Store


def _release(torrent_id: int, fmt: str = "MP3", artist: str = "Artist", album: str = "Album", weight: int = 10) -> Release:
    return Release(
        id=torrent_id,
        album_name=album,
        artist_names=artist,
        year=1999,
        release_type=1,
        media="CD",
        format=fmt,
        encoding="V0 (VBR)",
        file_count=11,
        size=2**40,
        weight=weight,
    )


def test_schema_creation_is_idempotent(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "pool.db"
    with Store(path) as store:
        store.upsert_releases([_release(1)])
    with Store(path) as store:
        assert [release.id for release in store.all_releases()] == [1]

    tables = {row[0] for row in sqlite3.connect(path).execute("SELECT name FROM sqlite_master WHERE type='table'")}
    assert {"fetches", "torrents"} <= tables


def test_record_fetch_is_insert_if_absent(tmp_path: Path) -> None:
    with Store(tmp_path / "pool.db") as store:
        assert store.record_fetch(10, SourceType.COLLAGE, "Best of") is True
        assert store.record_fetch(10, SourceType.COLLAGE, "Best of (renamed)") is False
        assert store.record_fetch(10, SourceType.ARTIST, "Someone") is True


def test_upsert_twice_leaves_one_identical_row_and_counts_both_writes(tmp_path: Path) -> None:
    release = _release(5)
    with Store(tmp_path / "pool.db") as store:
        assert store.upsert_releases([release]) == 1
        assert store.upsert_releases([release]) == 1
        assert store.all_releases() == [release]


def test_upsert_replaces_row_with_same_id(tmp_path: Path) -> None:
    with Store(tmp_path / "pool.db") as store:
        store.upsert_releases([_release(5, weight=10)])
        store.upsert_releases([replace(_release(5), weight=30, album_name="Album (Remaster)")])
        releases = store.all_releases()

    assert len(releases) == 1
    assert releases[0].weight == 30
    assert releases[0].album_name == "Album (Remaster)"


def test_upsert_failure_raises_persistence_error_and_keeps_earlier_rows(tmp_path: Path) -> None:
    oversized = replace(_release(2), size=2**64)
    with Store(tmp_path / "pool.db") as store:
        with pytest.raises(PersistenceError, match="torrent 2"):
            store.upsert_releases([_release(1), oversized, _release(3)])
        assert [release.id for release in store.all_releases()] == [1]


def test_stats_histogram_sorted_by_count_then_first_seen(tmp_path: Path) -> None:
    with Store(tmp_path / "pool.db") as store:
        store.upsert_releases(
            [
                _release(1, fmt="MP3", artist="A", album="X"),
                _release(2, fmt="FLAC", artist="A", album="Y"),
                _release(3, fmt="AAC", artist="B", album="Y"),
                _release(4, fmt="FLAC", artist="C", album="Z"),
                _release(5, fmt="MP3", artist="C", album="W"),
                _release(6, fmt="MP3", artist="C", album="W"),
            ]
        )
        stats = store.stats()

    assert stats.total_releases == 6
    assert stats.unique_artists == 3
    assert stats.unique_albums == 4
    assert stats.format_histogram == [("MP3", 3), ("FLAC", 2), ("AAC", 1)]


def test_stats_tie_keeps_first_encountered_format(tmp_path: Path) -> None:
    with Store(tmp_path / "pool.db") as store:
        store.upsert_releases([_release(1, fmt="MP3"), _release(2, fmt="AAC"), _release(3, fmt="AAC"), _release(4, fmt="MP3")])
        assert store.stats().format_histogram == [("MP3", 2), ("AAC", 2)]


def test_stats_tie_follows_insertion_order_not_torrent_id(tmp_path: Path) -> None:
    with Store(tmp_path / "pool.db") as store:
        store.upsert_releases([_release(9, fmt="MP3"), _release(1, fmt="AAC"), _release(2, fmt="AAC"), _release(10, fmt="MP3")])
        assert store.stats().format_histogram == [("MP3", 2), ("AAC", 2)]


def test_all_releases_keeps_insertion_order(tmp_path: Path) -> None:
    with Store(tmp_path / "pool.db") as store:
        store.upsert_releases([_release(30), _release(5), _release(17)])
        assert [release.id for release in store.all_releases()] == [30, 5, 17]

        store.upsert_releases([replace(_release(5), weight=50)])
        assert [release.id for release in store.all_releases()] == [30, 17, 5]


def test_empty_pool_stats(tmp_path: Path) -> None:
    with Store(tmp_path / "pool.db") as store:
        stats = store.stats()

    assert stats.total_releases == 0
    assert stats.format_histogram == []
