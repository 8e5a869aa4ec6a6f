"""Order the deduplicated pool by weight and choose what to download."""

from __future__ import annotations

import random
from itertools import groupby
from typing import Awaitable, Callable, Iterable, List, Optional

from redman import logger
from redman.catalog.types import Release

FreeloadProbe = Callable[[int], Awaitable[bool]]


def rank_by_weight(releases: Iterable[Release], rng: random.Random) -> List[Release]:
    """Highest weight first; order inside a weight band is a uniform shuffle."""
    by_weight = sorted(releases, key=lambda release: release.weight, reverse=True)
    ranked: list[Release] = []
    for _weight, band in groupby(by_weight, key=lambda release: release.weight):
        members = list(band)
        rng.shuffle(members)
        ranked.extend(members)
    return ranked


class PrioritySelector:
    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def select(self, releases: Iterable[Release], count: int) -> List[Release]:
        """Direct mode: the first `count` ranked releases."""
        if count <= 0:
            return []
        return rank_by_weight(releases, self.rng)[:count]

    async def select_freeload(
        self,
        releases: Iterable[Release],
        count: int,
        probe: FreeloadProbe,
    ) -> List[Release]:
        """
        Freeload-only mode: probe ranked releases one at a time and keep the
        freeload ones until `count` are found. Rejected releases are not retried.
        """
        accepted: list[Release] = []
        if count <= 0:
            return accepted
        ranked = rank_by_weight(releases, self.rng)
        probed = 0
        for probed, release in enumerate(ranked, start=1):
            if await probe(release.id):
                accepted.append(release)
                logger.debug(f"Torrent {release.id} is freeload ({len(accepted)}/{count})")
                if len(accepted) >= count:
                    break
            else:
                logger.debug(f"Torrent {release.id} is not freeload; skipped")
        logger.info(f"Freeload probe: {len(accepted)} accepted out of {probed} checked")
        return accepted
