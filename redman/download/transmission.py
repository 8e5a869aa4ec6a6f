"""Hand downloaded .torrent files to Transmission through transmission-remote."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional

from redman import logger
from redman.config import TransmissionConfig
from redman.errors import SubmissionError


class TransmissionSubmitter:
    """Adds a torrent file to a Transmission daemon."""

    def __init__(self, config: TransmissionConfig, download_dir: Optional[Path] = None):
        self.config = config
        self.download_dir = download_dir or config.download_dir

    def build_command(self, torrent_path: Path) -> List[str]:
        cmd = [self.config.executable, self.config.host]
        if self.config.username or self.config.password:
            cmd.extend(["--auth", f"{self.config.username}:{self.config.password}"])
        cmd.extend(["--add", str(torrent_path)])
        if self.download_dir is not None:
            cmd.extend(["--download-dir", str(self.download_dir)])
        return cmd

    async def submit(self, torrent_path: Path) -> None:
        cmd = self.build_command(torrent_path)
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise SubmissionError(f"Could not run {self.config.executable}: {e}") from e
        stdout, _ = await process.communicate()
        output = stdout.decode("utf-8", errors="ignore").strip()

        # transmission-remote exits 0 on some rejections; the reply text says "success" only on acceptance.
        if process.returncode != 0 or "success" not in output.lower():
            raise SubmissionError(
                f"Transmission rejected {torrent_path.name} (exit {process.returncode}): {output}",
                output=output,
            )
        logger.debug(f"Transmission accepted {torrent_path.name}: {output}")
