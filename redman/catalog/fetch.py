"""Fetch pipeline: tracker listing -> normalized works -> chosen torrents -> pool."""

from __future__ import annotations

from dataclasses import dataclass

from redman import logger
from redman.catalog.gazelle_client import GazelleClient
from redman.catalog.normalizer import normalize_payload, parse_payload
from redman.catalog.selector import select_releases
from redman.catalog.types import DEFAULT_WEIGHT, CollagePayload, SourceType
from redman.pool.store import Store


@dataclass
class FetchResult:
    source_type: SourceType
    source_id: int
    name: str
    category: str | None
    group_count: int
    selected_count: int
    stored_count: int
    new_fetch: bool


async def run_fetch(
    client: GazelleClient,
    store: Store,
    source_type: SourceType,
    source_id: int,
    weight: int = DEFAULT_WEIGHT,
    verbose: bool = False,
) -> FetchResult:
    """
    Fetch one collage or artist and upsert its chosen torrents.

    The fetch record is informational; a repeated fetch is processed in full.
    """
    raw = await client.fetch_catalog(source_type, source_id)
    payload = parse_payload(raw, source_type, source_id)
    category = payload.category if isinstance(payload, CollagePayload) else None

    if verbose:
        label = "Collage name" if source_type is SourceType.COLLAGE else "Artist name"
        logger.info(f"{label}: {payload.name}")
        if category is not None:
            logger.info(f"Category: {category}")
        logger.info(f"Total groups: {len(payload.groups)}")

    new_fetch = store.record_fetch(source_id, source_type, payload.name)
    if not new_fetch:
        logger.debug(f"{source_type.value} {source_id} was fetched before; refreshing pool entries")

    works = normalize_payload(payload, weight=weight)
    releases = select_releases(works)
    stored = store.upsert_releases(releases)
    return FetchResult(
        source_type=source_type,
        source_id=source_id,
        name=payload.name,
        category=category,
        group_count=len(payload.groups),
        selected_count=len(releases),
        stored_count=stored,
        new_fetch=new_fetch,
    )
