"""
Per-torrent retrieval: freeload request with plain fallback, atomic write, handoff.
"""

from __future__ import annotations

import os
import re
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Protocol

from redman import logger
from redman.catalog.gazelle_client import TorrentFile
from redman.catalog.types import Release
from redman.errors import ApiError, ProtocolError

_FILENAME_PATTERN = re.compile(r'filename="([^"]+)"')


class DownloadState(str, Enum):
    REQUEST_FREELOAD = "request_freeload"
    REQUEST_PLAIN = "request_plain"
    WRITE = "write"
    DONE = "done"
    FAILED = "failed"


class TorrentSource(Protocol):
    async def download_torrent(self, torrent_id: int, use_token: bool = False) -> TorrentFile:
        ...


class Submitter(Protocol):
    async def submit(self, torrent_path: Path) -> None:
        ...


@dataclass
class DownloadOutcome:
    torrent_id: int
    state: DownloadState
    path: Optional[Path] = None
    freeload: bool = False
    error: Optional[ApiError] = None
    transitions: List[DownloadState] = field(default_factory=list)


def extract_filename(content_disposition: Optional[str]) -> str:
    """Quoted filename from a Content-Disposition header; no default is guessed."""
    if not content_disposition:
        raise ProtocolError("Download response has no Content-Disposition header")
    match = _FILENAME_PATTERN.search(content_disposition)
    if match is None:
        raise ProtocolError(f"No filename in Content-Disposition header: {content_disposition!r}")
    name = Path(match.group(1)).name
    if name in {"", ".", ".."}:
        raise ProtocolError(f"Unusable filename in Content-Disposition header: {content_disposition!r}")
    return name


def write_atomic(directory: Path, filename: str, payload: bytes) -> Path:
    """Write to a temp file beside the target, then rename it into place."""
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / filename
    with tempfile.NamedTemporaryFile("wb", delete=False, dir=str(directory), prefix=".", suffix=".part") as tmp:
        temp_name = tmp.name
        try:
            tmp.write(payload)
            tmp.flush()
            os.fsync(tmp.fileno())
        except BaseException:
            tmp.close()
            os.unlink(temp_name)
            raise
    try:
        os.replace(temp_name, target)
    except BaseException:
        os.unlink(temp_name)
        raise
    return target


class Downloader:
    """
    Runs the retrieval state machine for one torrent at a time.

    REQUEST_FREELOAD -ok-> WRITE -> DONE
    REQUEST_FREELOAD -fail-> REQUEST_PLAIN -ok-> WRITE -> DONE
    REQUEST_PLAIN -fail-> FAILED

    Request failures end in a FAILED outcome; a response without a usable
    filename raises ProtocolError.
    """

    def __init__(self, client: TorrentSource, target_dir: Path):
        self.client = client
        self.target_dir = Path(target_dir)

    async def download(self, torrent_id: int, use_freeload: bool = False) -> DownloadOutcome:
        state = DownloadState.REQUEST_FREELOAD if use_freeload else DownloadState.REQUEST_PLAIN
        outcome = DownloadOutcome(torrent_id=torrent_id, state=state, transitions=[state])

        torrent = await self._request(outcome)
        if torrent is None:
            return outcome

        _advance(outcome, DownloadState.WRITE)
        filename = extract_filename(torrent.content_disposition)
        outcome.path = write_atomic(self.target_dir, filename, torrent.content)
        _advance(outcome, DownloadState.DONE)
        return outcome

    async def _request(self, outcome: DownloadOutcome) -> Optional[TorrentFile]:
        """The downloaded file, or None once the outcome has moved to FAILED."""
        if outcome.state is DownloadState.REQUEST_FREELOAD:
            try:
                torrent = await self.client.download_torrent(outcome.torrent_id, use_token=True)
            except ApiError as exc:
                logger.warning(f"Freeload download of {outcome.torrent_id} failed ({exc}); retrying without token")
                _advance(outcome, DownloadState.REQUEST_PLAIN)
            else:
                outcome.freeload = True
                return torrent

        try:
            return await self.client.download_torrent(outcome.torrent_id, use_token=False)
        except ApiError as exc:
            outcome.error = exc
            _advance(outcome, DownloadState.FAILED)
            return None


def _advance(outcome: DownloadOutcome, state: DownloadState) -> None:
    outcome.state = state
    outcome.transitions.append(state)


async def download_and_submit(
    downloader: Downloader,
    submitter: Submitter,
    release: Release,
    use_freeload: bool = False,
) -> DownloadOutcome:
    """
    Download one release and hand the file to the download client.

    A FAILED download raises its ApiError. If the handoff fails the file is
    removed before the error propagates.
    """
    outcome = await downloader.download(release.id, use_freeload=use_freeload)
    path = outcome.path
    if path is None:
        raise outcome.error or ApiError("failure", f"Download of torrent {release.id} produced no file")
    try:
        await submitter.submit(path)
    except Exception:
        path.unlink(missing_ok=True)
        raise
    return outcome
