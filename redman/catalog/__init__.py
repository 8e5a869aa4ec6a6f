"""Tracker catalog fetching: payload parsing, variant selection, pool upserts."""

from .normalizer import normalize_payload, parse_payload
from .selector import qualifies, select_releases, select_variant, variant_rank
from .types import (
    ArtistPayload,
    CatalogPayload,
    CollagePayload,
    Release,
    SourceType,
    Work,
)

__all__ = [
    "ArtistPayload",
    "CatalogPayload",
    "CollagePayload",
    "Release",
    "SourceType",
    "Work",
    "normalize_payload",
    "parse_payload",
    "qualifies",
    "select_releases",
    "select_variant",
    "variant_rank",
]
