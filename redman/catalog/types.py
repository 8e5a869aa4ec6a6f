"""Shared data structures for catalog fetching and the release pool."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Union

DEFAULT_WEIGHT = 10
ORIGINAL_RELEASE_TYPE = 1


class SourceType(str, Enum):
    """Which tracker listing a fetch was made from."""

    COLLAGE = "collage"
    ARTIST = "artist"


@dataclass(frozen=True)
class Release:
    """One concrete torrent (media/format/encoding variant) of an album."""

    id: int
    album_name: str
    artist_names: str
    year: int
    release_type: int
    media: str
    format: str
    encoding: str
    file_count: int
    size: int
    weight: int = DEFAULT_WEIGHT


@dataclass
class Work:
    """Album-level grouping with every candidate torrent, in tracker order."""

    name: str
    year: int
    release_type: int
    artist_names: str
    releases: List[Release] = field(default_factory=list)


@dataclass
class TorrentEntry:
    torrent_id: int
    media: str
    format: str
    encoding: str
    file_count: int
    size: int


@dataclass
class GroupEntry:
    """A torrent group exactly as listed, numeric fields already coerced."""

    name: str
    year: int
    release_type: int
    artist_names: List[str]
    torrents: List[TorrentEntry] = field(default_factory=list)


@dataclass
class CollagePayload:
    id: int
    name: str
    category: str
    groups: List[GroupEntry] = field(default_factory=list)


@dataclass
class ArtistPayload:
    id: int
    name: str
    groups: List[GroupEntry] = field(default_factory=list)


CatalogPayload = Union[CollagePayload, ArtistPayload]
