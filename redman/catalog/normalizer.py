"""Turn collage and artist payloads into Works with candidate Releases."""

from __future__ import annotations

from typing import List

from redman.catalog.payload_guards import (
    decoded_text,
    expect_dict,
    first_field,
    require_field,
    require_int,
    require_list_of_dicts,
    require_str,
    response_payload,
)
from redman.catalog.types import (
    DEFAULT_WEIGHT,
    ArtistPayload,
    CatalogPayload,
    CollagePayload,
    GroupEntry,
    Release,
    SourceType,
    TorrentEntry,
    Work,
)


def parse_payload(raw: object, source_type: SourceType, source_id: int) -> CatalogPayload:
    """Validate the API envelope and parse the listing it carries."""
    context = f"{source_type.value} {source_id}"
    response = response_payload(raw, context)
    if source_type is SourceType.ARTIST:
        return _parse_artist(response, source_id, context)
    return _parse_collage(response, source_id, context)


def _parse_collage(response: dict, source_id: int, context: str) -> CollagePayload:
    groups = [
        _parse_collage_group(group, f"{context}.torrentgroups[{idx}]")
        for idx, group in enumerate(require_list_of_dicts(response, "torrentgroups", context))
    ]
    return CollagePayload(
        id=require_int(response.get("id", source_id), f"{context}.id"),
        name=decoded_text(require_field(response, "name", context), f"{context}.name"),
        category=str(response.get("collageCategoryName") or ""),
        groups=groups,
    )


def _parse_collage_group(group: dict, context: str) -> GroupEntry:
    music_info = expect_dict(group.get("musicInfo") or {}, f"{context}.musicInfo")
    artists = music_info.get("artists") or []
    if not isinstance(artists, list):
        artists = []
    artist_names = [
        decoded_text(require_field(expect_dict(artist, f"{context}.artists"), "name", context), f"{context}.artist")
        for artist in artists
    ]
    return GroupEntry(
        name=decoded_text(require_field(group, "name", context), f"{context}.name"),
        year=require_int(require_field(group, "year", context), f"{context}.year"),
        release_type=require_int(require_field(group, "releaseType", context), f"{context}.releaseType"),
        artist_names=artist_names,
        torrents=_parse_torrents(require_list_of_dicts(group, "torrents", context), f"{context}.torrents"),
    )


def _parse_artist(response: dict, source_id: int, context: str) -> ArtistPayload:
    artist_name = decoded_text(require_field(response, "name", context), f"{context}.name")
    groups: list[GroupEntry] = []
    for idx, group in enumerate(require_list_of_dicts(response, "torrentgroup", context)):
        group_context = f"{context}.torrentgroup[{idx}]"
        groups.append(
            GroupEntry(
                name=decoded_text(require_field(group, "groupName", group_context), f"{group_context}.groupName"),
                year=require_int(require_field(group, "groupYear", group_context), f"{group_context}.groupYear"),
                release_type=require_int(
                    require_field(group, "releaseType", group_context), f"{group_context}.releaseType"
                ),
                artist_names=[artist_name],
                torrents=_parse_torrents(
                    require_list_of_dicts(group, "torrent", group_context), f"{group_context}.torrent"
                ),
            )
        )
    return ArtistPayload(
        id=require_int(response.get("id", source_id), f"{context}.id"),
        name=artist_name,
        groups=groups,
    )


def _parse_torrents(torrents: list[dict], context: str) -> list[TorrentEntry]:
    entries: list[TorrentEntry] = []
    for idx, torrent in enumerate(torrents):
        item = f"{context}[{idx}]"
        entries.append(
            TorrentEntry(
                torrent_id=require_int(first_field(torrent, ("torrentid", "id"), item), f"{item}.torrentid"),
                media=require_str(require_field(torrent, "media", item), f"{item}.media"),
                format=require_str(require_field(torrent, "format", item), f"{item}.format"),
                encoding=require_str(require_field(torrent, "encoding", item), f"{item}.encoding"),
                file_count=require_int(require_field(torrent, "fileCount", item), f"{item}.fileCount"),
                size=require_int(require_field(torrent, "size", item), f"{item}.size"),
            )
        )
    return entries


def normalize_payload(payload: CatalogPayload, weight: int = DEFAULT_WEIGHT) -> List[Work]:
    """One Work per group, in listing order, with every torrent as a candidate."""
    works: list[Work] = []
    for group in payload.groups:
        if isinstance(payload, ArtistPayload):
            artist_names = payload.name
        else:
            artist_names = ", ".join(group.artist_names)
        work = Work(
            name=group.name,
            year=group.year,
            release_type=group.release_type,
            artist_names=artist_names,
        )
        work.releases = [
            Release(
                id=torrent.torrent_id,
                album_name=group.name,
                artist_names=artist_names,
                year=group.year,
                release_type=group.release_type,
                media=torrent.media,
                format=torrent.format,
                encoding=torrent.encoding,
                file_count=torrent.file_count,
                size=torrent.size,
                weight=weight,
            )
            for torrent in group.torrents
        ]
        works.append(work)
    return works
