"""
config.py - Configuration model for Redman
"""

import os
import sys
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError
from rich.console import Console

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib

console = Console()

API_KEY_ENV = "API_KEY"
DEFAULT_BASE_URL = "https://redacted.sh/"


class TrackerConfig(BaseModel):
    name: str = "RED"
    url: str = DEFAULT_BASE_URL
    api_key: str = ""


class PoolConfig(BaseModel):
    """Where the release pool and its dedup inputs live."""

    path: Optional[Path] = None
    plex_db: Optional[Path] = Field(
        default=None,
        description="Read-only media-library database used to skip albums already owned",
    )
    torrent_dir: Optional[Path] = Field(
        default=None,
        description="Directory holding downloaded .torrent files, matched by trailing torrent id",
    )


class TransmissionConfig(BaseModel):
    executable: str = "transmission-remote"
    host: str = "localhost:9091"
    username: str = ""
    password: str = ""
    download_dir: Optional[Path] = None


class WatchConfig(BaseModel):
    number: int = Field(default=10, ge=1, description="How many torrents to hand to the client per run")
    freeload_only: bool = False
    use_tokens: bool = False


class RedmanConfig(BaseModel):
    tracker: TrackerConfig = Field(default_factory=TrackerConfig)
    pool: PoolConfig = Field(default_factory=PoolConfig)
    transmission: TransmissionConfig = Field(default_factory=TransmissionConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    config_path: Optional[Path] = None


def apply_environment(config: RedmanConfig, environ: Optional[dict] = None) -> RedmanConfig:
    """Let API_KEY from the environment override the configured tracker key."""
    environ = os.environ if environ is None else environ
    api_key = (environ.get(API_KEY_ENV) or "").strip()
    if api_key:
        config.tracker.api_key = api_key
    return config


def load_config(config_path: Optional[Path] = None) -> RedmanConfig:
    """Load configuration from TOML file; without a path, defaults are used."""

    if config_path is None:
        return RedmanConfig()

    if not config_path.exists():
        console.print(f"[red][ERROR][/red] Configuration file not found: {config_path}")
        sys.exit(1)

    try:
        with open(config_path, "rb") as f:
            config_data = tomllib.load(f)

        return RedmanConfig(
            tracker=TrackerConfig(**config_data.get("tracker", {})),
            pool=PoolConfig(**config_data.get("pool", {})),
            transmission=TransmissionConfig(**config_data.get("transmission", {})),
            watch=WatchConfig(**config_data.get("watch", {})),
            config_path=config_path,
        )

    except (OSError, tomllib.TOMLDecodeError, ValidationError) as e:
        console.print(f"[red][ERROR][/red] Error loading configuration: {e}")
        sys.exit(1)
