"""Release pool persistence, dedup against what is already owned, and download selection."""

from .dedup import DedupFilter, LibraryOverlapStage, OnDiskStage, build_dedup_filter
from .library import LibraryAlbum, read_library_albums
from .priority import PrioritySelector, rank_by_weight
from .store import PoolStats, Store

__all__ = [
    "DedupFilter",
    "LibraryAlbum",
    "LibraryOverlapStage",
    "OnDiskStage",
    "PoolStats",
    "PrioritySelector",
    "Store",
    "build_dedup_filter",
    "rank_by_weight",
    "read_library_albums",
]
