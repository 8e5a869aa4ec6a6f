"""Watch pipeline: pool -> dedup -> prioritized selection -> download and submit."""

from __future__ import annotations

import random
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from redman import logger
from redman.catalog.gazelle_client import GazelleClient
from redman.catalog.types import Release
from redman.download.downloader import Downloader, Submitter, download_and_submit
from redman.pool.dedup import build_dedup_filter
from redman.pool.library import read_library_albums
from redman.pool.priority import PrioritySelector
from redman.pool.store import Store


@dataclass
class WatchOptions:
    number: int
    torrent_dir: Path
    plex_db: Optional[Path] = None
    freeload_only: bool = False
    use_tokens: bool = False


async def run_watch(
    client: GazelleClient,
    store: Store,
    submitter: Submitter,
    options: WatchOptions,
    rng: Optional[random.Random] = None,
) -> List[Release]:
    """
    Pick up to `options.number` pool torrents not yet owned and hand them to the client.

    Items are processed one at a time; the first failure stops the run.
    """
    pool = store.all_releases()
    library_albums = read_library_albums(options.plex_db) if options.plex_db is not None else None
    if library_albums is not None:
        logger.info(f"Library snapshot: {len(library_albums)} album(s)")
    candidates = build_dedup_filter(library_albums, options.torrent_dir).apply(pool)
    logger.info(f"{len(candidates)} of {len(pool)} pool torrent(s) not yet in library or on disk")

    selector = PrioritySelector(rng)
    if options.freeload_only:
        chosen = await selector.select_freeload(candidates, options.number, client.is_freeload)
    else:
        chosen = selector.select(candidates, options.number)

    downloader = Downloader(client, options.torrent_dir)
    submitted: list[Release] = []
    for index, release in enumerate(chosen, start=1):
        logger.info(f"[{index}/{len(chosen)}] {release.artist_names} - {release.album_name} (#{release.id})")
        outcome = await download_and_submit(downloader, submitter, release, use_freeload=options.use_tokens)
        if options.use_tokens and not outcome.freeload:
            logger.warning(f"Torrent {release.id} was downloaded without a freeload token")
        submitted.append(release)
    return submitted
