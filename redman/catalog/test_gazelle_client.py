from __future__ import annotations

import asyncio

import aiohttp
import pytest

from redman import rate_limits
from redman.catalog import gazelle_client
from redman.catalog.types import SourceType
from redman.config import TrackerConfig
from redman.errors import ApiError


class _FakeResponseCtx:
    def __init__(
        self,
        *,
        status: int = 200,
        payload: dict | None = None,
        body: bytes = b"",
        headers: dict[str, str] | None = None,
        content_type: str = "application/json",
    ) -> None:
        self.status = status
        self._payload = payload or {}
        self._body = body
        self.headers = headers or {}
        self.content_type = content_type

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self, content_type=None) -> dict:
        return self._payload

    async def text(self) -> str:
        return str(self._payload)

    async def read(self) -> bytes:
        return self._body


class _SequencedSession:
    def __init__(self, responses: list) -> None:
        self.closed = False
        self._responses = responses
        self.calls: list[dict] = []

    def get(self, url, params=None):
        self.calls.append({"url": url, "params": dict(params or {})})
        response = self._responses[min(len(self.calls), len(self._responses)) - 1]
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True


def _client(monkeypatch: pytest.MonkeyPatch, responses: list) -> tuple[gazelle_client.GazelleClient, _SequencedSession]:
    rate_limits._reset_rate_limits_for_tests()
    client = gazelle_client.GazelleClient(
        TrackerConfig(name="RED", url="https://red.example/", api_key="red-key"),
        min_delay_seconds=0.0,
    )
    session = _SequencedSession(responses)

    async def _fake_ensure_session():
        return session

    monkeypatch.setattr(client, "_ensure_session", _fake_ensure_session)
    return client, session


def test_client_requires_api_key() -> None:
    with pytest.raises(ValueError, match="API key"):
        gazelle_client.GazelleClient(TrackerConfig(name="RED", url="https://red.example", api_key=""))


def test_headers_carry_raw_red_key_and_user_agent() -> None:
    client = gazelle_client.GazelleClient(TrackerConfig(name="RED", url="https://red.example", api_key="red-key"))

    headers = client._get_headers()

    assert headers["Authorization"] == "red-key"
    assert headers["User-Agent"].startswith("Redman/")


def test_fetch_catalog_uses_artist_and_collage_actions(monkeypatch: pytest.MonkeyPatch) -> None:
    client, session = _client(
        monkeypatch,
        [_FakeResponseCtx(payload={"status": "success", "response": {}})],
    )

    asyncio.run(client.fetch_catalog(SourceType.ARTIST, 7))
    asyncio.run(client.fetch_catalog(SourceType.COLLAGE, 9))

    assert session.calls[0]["url"] == "https://red.example/ajax.php"
    assert [call["params"] for call in session.calls] == [
        {"action": "artist", "id": 7, "artistreleases": 1},
        {"action": "collage", "id": 9},
    ]


def test_http_error_raises_api_error_without_retry(monkeypatch: pytest.MonkeyPatch) -> None:
    client, session = _client(monkeypatch, [_FakeResponseCtx(status=502, payload={"error": "bad gateway"})])

    with pytest.raises(ApiError) as exc_info:
        asyncio.run(client.get_collage(1))

    assert exc_info.value.status == "HTTP 502"
    assert len(session.calls) == 1


def test_transport_error_raises_api_error(monkeypatch: pytest.MonkeyPatch) -> None:
    client, _session = _client(monkeypatch, [aiohttp.ClientConnectionError("reset")])

    with pytest.raises(ApiError) as exc_info:
        asyncio.run(client.get_artist(1))

    assert exc_info.value.status == "transport"


@pytest.mark.parametrize(
    ("torrent", "expected"),
    [({"isFreeload": True}, True), ({"isFreeload": False}, False), ({"freeTorrent": True}, False), ({}, False)],
)
def test_is_freeload_reads_torrent_flag(monkeypatch: pytest.MonkeyPatch, torrent: dict, expected: bool) -> None:
    client, session = _client(
        monkeypatch,
        [_FakeResponseCtx(payload={"status": "success", "response": {"torrent": torrent}})],
    )

    assert asyncio.run(client.is_freeload(42)) is expected
    assert session.calls[0]["params"] == {"action": "torrent", "id": 42}


def test_download_returns_body_and_disposition(monkeypatch: pytest.MonkeyPatch) -> None:
    client, session = _client(
        monkeypatch,
        [
            _FakeResponseCtx(
                body=b"d8:announce",
                headers={"Content-Disposition": 'attachment; filename="Artist - Album-123.torrent"'},
                content_type="application/x-bittorrent",
            )
        ],
    )

    torrent = asyncio.run(client.download_torrent(123, use_token=True))

    assert torrent.content == b"d8:announce"
    assert torrent.content_disposition == 'attachment; filename="Artist - Album-123.torrent"'
    assert session.calls[0]["params"] == {"action": "download", "id": 123, "usetoken": 1}


def test_download_json_refusal_raises_api_error(monkeypatch: pytest.MonkeyPatch) -> None:
    client, session = _client(
        monkeypatch,
        [_FakeResponseCtx(payload={"status": "failure", "error": "You do not have any freeleech tokens left."})],
    )

    with pytest.raises(ApiError, match="freeleech tokens"):
        asyncio.run(client.download_torrent(123, use_token=True))
    assert session.calls[0]["params"] == {"action": "download", "id": 123, "usetoken": 1}


def test_plain_download_omits_usetoken(monkeypatch: pytest.MonkeyPatch) -> None:
    client, session = _client(
        monkeypatch,
        [_FakeResponseCtx(body=b"x", headers={}, content_type="application/x-bittorrent")],
    )

    torrent = asyncio.run(client.download_torrent(5))

    assert torrent.content_disposition is None
    assert session.calls[0]["params"] == {"action": "download", "id": 5}


@pytest.mark.asyncio
async def test_consecutive_calls_wait_out_the_floor(monkeypatch: pytest.MonkeyPatch) -> None:
    rate_limits._reset_rate_limits_for_tests()
    clock = {"now": 500.0}
    waits: list[float] = []

    monkeypatch.setattr(rate_limits.time, "monotonic", lambda: clock["now"])

    async def _fake_sleep(delay: float) -> None:
        waits.append(delay)
        clock["now"] += delay

    monkeypatch.setattr(rate_limits.asyncio, "sleep", _fake_sleep)

    client = gazelle_client.GazelleClient(TrackerConfig(name="RED", url="https://paced.example/", api_key="red-key"))
    session = _SequencedSession(
        [
            _FakeResponseCtx(payload={"status": "success", "response": {"torrent": {"isFreeload": True}}}),
            _FakeResponseCtx(
                body=b"d8:announce",
                headers={"Content-Disposition": 'attachment; filename="a-9.torrent"'},
                content_type="application/x-bittorrent",
            ),
        ]
    )

    async def _fake_ensure_session():
        return session

    monkeypatch.setattr(client, "_ensure_session", _fake_ensure_session)

    assert await client.is_freeload(9) is True
    await client.download_torrent(9, use_token=True)

    assert waits == [pytest.approx(rate_limits.TRACKER_MIN_DELAY_SECONDS)]
    assert [call["params"]["action"] for call in session.calls] == ["torrent", "download"]
    rate_limits._reset_rate_limits_for_tests()
