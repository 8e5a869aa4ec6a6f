"""Shared tracker request pacing.

Every tracker call runs inside `tracker_request_slot`, which holds a
per-server lock for the duration of the call and keeps at least
`TRACKER_MIN_DELAY_SECONDS` between the end of one call and the start of the
next, whether the earlier call succeeded or not.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator

from redman.tracker_profile import resolve_tracker_profile

TRACKER_MIN_DELAY_SECONDS = 0.15
TRACKER_RATE_LIMIT_WINDOW_SECONDS = 10.0
TRACKER_WAIT_LOG_THRESHOLD_SECONDS = 1.0


@dataclass
class _TrackerBucket:
    lock: asyncio.Lock
    last_request_finished: float | None = None
    request_starts: deque[float] = field(default_factory=deque)


_tracker_buckets: dict[str, _TrackerBucket] = {}


def _normalize_server_key(base_url: str) -> str:
    return base_url.rstrip("/").lower()


def _resolve_request_limit(tracker_name: str | None) -> int | None:
    if not tracker_name:
        return None
    try:
        return resolve_tracker_profile(tracker_name).request_limit
    except ValueError:
        return None


def _prune_window(bucket: _TrackerBucket, now: float, window_seconds: float) -> None:
    if window_seconds <= 0:
        bucket.request_starts.clear()
        return
    cutoff = now - window_seconds
    while bucket.request_starts and bucket.request_starts[0] <= cutoff:
        bucket.request_starts.popleft()


def _get_or_create_bucket(base_url: str) -> _TrackerBucket:
    key = _normalize_server_key(base_url)
    bucket = _tracker_buckets.get(key)
    if bucket is None:
        bucket = _TrackerBucket(lock=asyncio.Lock())
        _tracker_buckets[key] = bucket
    return bucket


async def _wait_for_turn(
    bucket: _TrackerBucket,
    min_delay_seconds: float,
    request_limit: int | None,
) -> float:
    window_seconds = TRACKER_RATE_LIMIT_WINDOW_SECONDS if request_limit else 0.0
    now = time.monotonic()
    min_wait = 0.0
    if bucket.last_request_finished is not None:
        min_wait = max(0.0, float(min_delay_seconds)) - (now - bucket.last_request_finished)
    _prune_window(bucket, now, window_seconds)
    window_wait = 0.0
    if request_limit and len(bucket.request_starts) >= request_limit:
        window_wait = bucket.request_starts[0] + window_seconds - now
    wait = max(min_wait, window_wait, 0.0)
    if wait > 0:
        await asyncio.sleep(wait)
        now = time.monotonic()
        _prune_window(bucket, now, window_seconds)
    if request_limit:
        bucket.request_starts.append(now)
    return wait


@asynccontextmanager
async def tracker_request_slot(
    base_url: str,
    min_delay_seconds: float = TRACKER_MIN_DELAY_SECONDS,
    tracker_name: str | None = None,
) -> AsyncIterator[float]:
    """
    Run one tracker call in its paced slot.

    Yields the wait applied before the call (seconds).
    """
    bucket = _get_or_create_bucket(base_url)
    request_limit = _resolve_request_limit(tracker_name)
    async with bucket.lock:
        wait = await _wait_for_turn(bucket, min_delay_seconds, request_limit)
        try:
            yield wait
        finally:
            bucket.last_request_finished = time.monotonic()


def _reset_rate_limits_for_tests() -> None:
    """Test helper to clear shared limiter state."""
    _tracker_buckets.clear()
