"""Torrent retrieval and download-client handoff."""

from .downloader import (
    DownloadOutcome,
    DownloadState,
    Downloader,
    download_and_submit,
    extract_filename,
    write_atomic,
)
from .transmission import TransmissionSubmitter

__all__ = [
    "DownloadOutcome",
    "DownloadState",
    "Downloader",
    "TransmissionSubmitter",
    "download_and_submit",
    "extract_filename",
    "write_atomic",
]
