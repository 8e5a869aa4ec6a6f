"""Drop pool entries already in the library or already downloaded."""

from __future__ import annotations

import string
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from redman import logger
from redman.catalog.types import Release
from redman.pool.library import LibraryAlbum

ReleasePredicate = Callable[[Release], bool]


def normalize_key(text: str) -> str:
    """Lowercase and keep only alphanumeric characters."""
    return "".join(ch for ch in text.lower() if ch.isalnum())


def trailing_id(path: Path) -> Optional[int]:
    """Torrent id encoded as the run of digits ending the filename stem, if any."""
    stem = path.stem
    end = len(stem)
    start = end
    while start > 0 and stem[start - 1] in string.digits:
        start -= 1
    if start == end:
        return None
    return int(stem[start:end])


class LibraryOverlapStage:
    """Keeps a release unless one library album matches both its album and artist."""

    name = "library"

    def __init__(self, albums: Iterable[LibraryAlbum]):
        self._keys = {(normalize_key(album.name), normalize_key(album.artists)) for album in albums}

    def __call__(self, release: Release) -> bool:
        key = (normalize_key(release.album_name), normalize_key(release.artist_names))
        return key not in self._keys


class OnDiskStage:
    """Keeps a release unless a file in `directory` ends with its torrent id."""

    name = "on-disk"

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self._ids = self._scan()

    def _scan(self) -> set[int]:
        if not self.directory.is_dir():
            logger.warning(f"Torrent directory {self.directory} does not exist; nothing counted as downloaded")
            return set()
        ids: set[int] = set()
        for entry in self.directory.iterdir():
            if not entry.is_file():
                continue
            torrent_id = trailing_id(entry)
            if torrent_id is not None:
                ids.add(torrent_id)
        return ids

    def __call__(self, release: Release) -> bool:
        return release.id not in self._ids


class DedupFilter:
    """All stages must keep a release for it to survive."""

    def __init__(self, stages: Sequence[ReleasePredicate]):
        self.stages = list(stages)

    def apply(self, releases: Iterable[Release]) -> List[Release]:
        pool = list(releases)
        survivors = [release for release in pool if all(stage(release) for stage in self.stages)]
        stage_names = ", ".join(getattr(stage, "name", type(stage).__name__) for stage in self.stages) or "none"
        logger.debug(f"Dedup ({stage_names}): {len(pool)} -> {len(survivors)} torrent(s)")
        return survivors


def build_dedup_filter(
    library_albums: Optional[Iterable[LibraryAlbum]] = None,
    torrent_dir: Optional[Path] = None,
) -> DedupFilter:
    """Enable the library stage and/or the on-disk stage depending on what is supplied."""
    stages: list[ReleasePredicate] = []
    if library_albums is not None:
        stages.append(LibraryOverlapStage(library_albums))
    if torrent_dir is not None:
        stages.append(OnDiskStage(torrent_dir))
    return DedupFilter(stages)
