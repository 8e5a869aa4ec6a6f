"""Gazelle ajax.php client for the endpoints Redman consumes."""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict

import aiohttp

from redman import logger
from redman.__version__ import __version__
from redman.catalog.payload_guards import expect_dict, response_payload
from redman.catalog.types import SourceType
from redman.config import TrackerConfig
from redman.errors import ApiError
from redman.rate_limits import (
    TRACKER_MIN_DELAY_SECONDS,
    TRACKER_WAIT_LOG_THRESHOLD_SECONDS,
    tracker_request_slot,
)
from redman.tracker_profile import build_auth_header

DEFAULT_USER_AGENT = f"Redman/{__version__}"


@dataclass(frozen=True)
class TorrentFile:
    """Body and Content-Disposition header of a download response."""

    content: bytes
    content_disposition: str | None


class GazelleClient:
    """
    Sequential Gazelle API client.

    One call at a time, each paced by `tracker_request_slot`. There are no
    retries here: any HTTP or transport failure surfaces as ApiError.
    """

    def __init__(
        self,
        tracker: TrackerConfig,
        timeout: int = 30,
        min_delay_seconds: float = TRACKER_MIN_DELAY_SECONDS,
    ):
        if not tracker.api_key:
            raise ValueError("Tracker API key is required.")

        self.tracker = tracker
        self.timeout = timeout
        self.base_url = tracker.url.rstrip("/")
        self._min_delay_seconds = max(0.0, float(min_delay_seconds))
        self._session: aiohttp.ClientSession | None = None

    async def get_artist(self, artist_id: int) -> Dict[str, Any]:
        """Artist page including every release group (artistreleases=1)."""
        return await self._request({"action": "artist", "id": artist_id, "artistreleases": 1})

    async def get_collage(self, collage_id: int) -> Dict[str, Any]:
        return await self._request({"action": "collage", "id": collage_id})

    async def get_torrent(self, torrent_id: int) -> Dict[str, Any]:
        return await self._request({"action": "torrent", "id": torrent_id})

    async def fetch_catalog(self, source_type: SourceType, source_id: int) -> Dict[str, Any]:
        if source_type is SourceType.ARTIST:
            return await self.get_artist(source_id)
        return await self.get_collage(source_id)

    async def is_freeload(self, torrent_id: int) -> bool:
        """Ask the tracker whether downloading this torrent is quota-free."""
        data = await self.get_torrent(torrent_id)
        response = response_payload(data, f"torrent {torrent_id}")
        torrent = expect_dict(response.get("torrent"), f"torrent {torrent_id}.torrent")
        return bool(torrent.get("isFreeload"))

    async def download_torrent(self, torrent_id: int, use_token: bool = False) -> TorrentFile:
        """Fetch the .torrent file, optionally spending a freeload token."""
        params: Dict[str, Any] = {"action": "download", "id": torrent_id}
        if use_token:
            params["usetoken"] = 1
        url = f"{self.base_url}/ajax.php"
        logger.get_logger().api_request("GET", url, params)
        request_start = time.time()

        async with self._slot():
            session = await self._ensure_session()
            try:
                async with session.get(url, params=params) as response:
                    await self._raise_for_status(response)
                    if (response.content_type or "").endswith("json"):
                        # Refusals (e.g. no tokens left) come back as JSON, not as a file.
                        data = await response.json(content_type=None)
                        response_payload(data, f"download {torrent_id}")
                        raise ApiError("failure", f"download {torrent_id} returned JSON instead of a torrent file")
                    content = await response.read()
                    disposition = response.headers.get("Content-Disposition")
                    status = response.status
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
                raise ApiError("transport", f"download {torrent_id} failed: {exc}") from exc

        elapsed_ms = (time.time() - request_start) * 1000
        logger.get_logger().api_response(status, {}, elapsed_ms)
        return TorrentFile(content=content, content_disposition=disposition)

    async def _request(self, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}/ajax.php"
        logger.get_logger().api_request("GET", url, params)
        request_start = time.time()

        async with self._slot():
            session = await self._ensure_session()
            try:
                async with session.get(url, params=params) as response:
                    await self._raise_for_status(response)
                    data = await response.json(content_type=None)
                    status = response.status
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
                raise ApiError("transport", f"{params.get('action')} request failed: {exc}") from exc

        elapsed_ms = (time.time() - request_start) * 1000
        logger.get_logger().api_response(status, data, elapsed_ms)
        return data

    @staticmethod
    async def _raise_for_status(response: aiohttp.ClientResponse) -> None:
        if response.status >= 400:
            text = await response.text()
            raise ApiError(f"HTTP {response.status}", f"HTTP {response.status}: {text[:200]}")

    @asynccontextmanager
    async def _slot(self) -> AsyncIterator[None]:
        async with tracker_request_slot(
            self.base_url,
            min_delay_seconds=self._min_delay_seconds,
            tracker_name=self.tracker.name,
        ) as wait:
            log = logger.get_logger()
            log.api_wait_debug(self.tracker.name.upper(), wait)
            if wait > TRACKER_WAIT_LOG_THRESHOLD_SECONDS:
                log.api_wait(self.tracker.name.upper(), wait)
            yield

    async def _ensure_session(self) -> aiohttp.ClientSession:
        session = self._session
        if session is None or session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(headers=self._get_headers(), timeout=timeout)
        return self._session

    def _get_headers(self) -> Dict[str, str]:
        auth = build_auth_header(self.tracker.name, self.tracker.api_key)
        return {"Authorization": auth, "User-Agent": DEFAULT_USER_AGENT}

    async def close(self) -> None:
        """Close any open connections."""
        session = self._session
        self._session = None
        if session is not None and not session.closed:
            await session.close()

    async def __aenter__(self) -> "GazelleClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

