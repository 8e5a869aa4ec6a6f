import pytest

from redman.catalog.selector import qualifies, select_releases, select_variant, variant_rank
from redman.catalog.types import Release, Work


def _release(
    torrent_id: int,
    media: str = "CD",
    encoding: str = "V0 (VBR)",
    fmt: str = "MP3",
    release_type: int = 1,
) -> Release:
    return Release(
        id=torrent_id,
        album_name="Album",
        artist_names="Artist",
        year=2000,
        release_type=release_type,
        media=media,
        format=fmt,
        encoding=encoding,
        file_count=10,
        size=1000,
    )


def _work(*releases: Release) -> Work:
    return Work(name="Album", year=2000, release_type=1, artist_names="Artist", releases=list(releases))


def test_selects_cd_v0_over_web_v0_and_web_320() -> None:
    work = _work(_release(1, "WEB", "320"), _release(2, "CD", "V0 (VBR)"), _release(3, "WEB", "V0 (VBR)"))

    assert select_variant(work).id == 2


@pytest.mark.parametrize(
    ("media", "encoding", "rank"),
    [("CD", "V0 (VBR)", 0), ("WEB", "V0 (VBR)", 1), ("CD", "320", 2), ("WEB", "320", 3)],
)
def test_variant_rank_order(media: str, encoding: str, rank: int) -> None:
    assert variant_rank(_release(1, media, encoding)) == rank


def test_web_v0_beats_cd_320() -> None:
    work = _work(_release(1, "CD", "320"), _release(2, "WEB", "V0 (VBR)"))

    assert select_variant(work).id == 2


def test_tie_keeps_first_listed() -> None:
    work = _work(_release(7, "WEB", "320"), _release(5, "CD", "320"), _release(6, "CD", "320"))

    assert select_variant(work).id == 5


@pytest.mark.parametrize(
    "release",
    [
        _release(1, fmt="FLAC", encoding="Lossless"),
        _release(2, media="Vinyl"),
        _release(3, encoding="V2 (VBR)"),
        _release(4, encoding="256"),
        _release(5, release_type=3),
    ],
)
def test_non_qualifying_releases_are_dropped(release: Release) -> None:
    assert not qualifies(release)
    assert select_variant(_work(release)) is None


def test_select_releases_skips_works_without_survivors() -> None:
    works = [
        _work(_release(1, fmt="FLAC", encoding="Lossless")),
        _work(_release(2, "WEB", "320"), _release(3, "CD", "320")),
        _work(),
    ]

    assert [release.id for release in select_releases(works)] == [3]
