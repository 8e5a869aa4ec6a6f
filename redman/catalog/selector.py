"""Pick the one torrent per album that goes into the pool."""

from __future__ import annotations

from typing import Iterable, List, Optional

from redman.catalog.types import ORIGINAL_RELEASE_TYPE, Release, Work

ALLOWED_FORMAT = "MP3"
ALLOWED_MEDIA = frozenset({"CD", "WEB"})
ALLOWED_ENCODINGS = frozenset({"V0 (VBR)", "320"})

# Lower is better: VBR V0 before 320 CBR, CD before WEB within an encoding.
VARIANT_RANKS: dict[tuple[str, str], int] = {
    ("CD", "V0 (VBR)"): 0,
    ("WEB", "V0 (VBR)"): 1,
    ("CD", "320"): 2,
    ("WEB", "320"): 3,
}
_UNRANKED = 99


def qualifies(release: Release) -> bool:
    return (
        release.release_type == ORIGINAL_RELEASE_TYPE
        and release.format == ALLOWED_FORMAT
        and release.media in ALLOWED_MEDIA
        and release.encoding in ALLOWED_ENCODINGS
    )


def variant_rank(release: Release) -> int:
    return VARIANT_RANKS.get((release.media, release.encoding), _UNRANKED)


def select_variant(work: Work) -> Optional[Release]:
    """Best-ranked qualifying torrent of the work; ties keep listing order."""
    survivors = [release for release in work.releases if qualifies(release)]
    if not survivors:
        return None
    # sorted() is stable, so the first-listed torrent wins a tie.
    return sorted(survivors, key=variant_rank)[0]


def select_releases(works: Iterable[Work]) -> List[Release]:
    selected: list[Release] = []
    for work in works:
        release = select_variant(work)
        if release is not None:
            selected.append(release)
    return selected
