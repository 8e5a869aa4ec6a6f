#!/usr/bin/env python3
"""
cli.py - Entry point for REDMAN
Fetch collages and artists into a release pool, then feed new torrents to Transmission.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from rich.console import Console
from rich.table import Table

import redman as pkg
from . import logger
from .catalog.fetch import run_fetch
from .catalog.gazelle_client import GazelleClient
from .catalog.types import DEFAULT_WEIGHT, SourceType
from .config import RedmanConfig, apply_environment, load_config
from .download.transmission import TransmissionSubmitter
from .errors import RedmanError
from .pool.store import PoolStats, Store
from .pool.watch import WatchOptions, run_watch

console = Console()


def _ui_error(message: str) -> None:
    console.print(f"[red][ERROR][/red] {message}")


def _is_valid_base_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="redman",
        description=f"REDMAN v{getattr(pkg, '__version__', '0.0.0')} - Fetch and manage torrent collections",
    )
    parser.add_argument("-b", "--base-url", help="Base URL for the tracker API (default: https://redacted.sh/)")
    parser.add_argument("-p", "--pool", metavar="PATH", help="Database file path for storing torrent pool data")
    parser.add_argument("-c", "--config", metavar="PATH", help="Path to config.toml (file or directory)")
    parser.add_argument("-d", "--debug", action="store_true", help="Debug mode with API calls and JSON responses")
    parser.add_argument("--log-file", metavar="PATH", help="Also write output to this file")

    commands = parser.add_subparsers(dest="command", required=True)

    fetch = commands.add_parser("fetch", help="Fetch collage or artist data from the API and store it in the pool")
    fetch.add_argument("ftype", choices=[t.value for t in SourceType], help="The type of the group to be fetched")
    fetch.add_argument("id", type=int, help="Collage or artist ID to fetch")
    fetch.add_argument("-w", "--weight", type=int, default=DEFAULT_WEIGHT, help="Priority weight for these torrents")
    fetch.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")

    watch = commands.add_parser("watch", help="Download new pool torrents and add them to Transmission")
    watch.add_argument("-n", "--number", type=int, help="The number of torrents to add (default: 10)")
    watch.add_argument("--plex", metavar="PATH", help="Path to the Plex database file")
    watch.add_argument("--torrent-dir", metavar="DIR", help="Directory where downloaded torrents are stored")
    watch.add_argument("--download-dir", metavar="DIR", help="Directory where downloaded files are stored")
    watch.add_argument("--transmission-remote", metavar="EXE", help="transmission-remote executable")
    watch.add_argument("--freeload-only", action="store_true", help="Only pick torrents the tracker marks freeload")
    watch.add_argument("--use-tokens", action="store_true", help="Spend a freeload token on each download")

    commands.add_parser("stats", help="Show statistics about stored data")
    return parser


def resolve_config_path(args_config: Optional[str]) -> Optional[Path]:
    if args_config:
        p = Path(args_config).expanduser()
        if p.is_dir():
            p = p / "config.toml"
        return p
    cwd_candidate = Path.cwd() / "config.toml"
    return cwd_candidate if cwd_candidate.exists() else None


def merge_cli_overrides(config: RedmanConfig, args: argparse.Namespace) -> RedmanConfig:
    """Command-line values win over the config file."""
    if args.base_url:
        config.tracker.url = args.base_url
    if args.pool:
        config.pool.path = Path(args.pool).expanduser()
    if args.command == "watch":
        if args.number is not None:
            config.watch.number = args.number
        if args.plex:
            config.pool.plex_db = Path(args.plex).expanduser()
        if args.torrent_dir:
            config.pool.torrent_dir = Path(args.torrent_dir).expanduser()
        if args.download_dir:
            config.transmission.download_dir = Path(args.download_dir).expanduser()
        if args.transmission_remote:
            config.transmission.executable = args.transmission_remote
        config.watch.freeload_only = config.watch.freeload_only or args.freeload_only
        config.watch.use_tokens = config.watch.use_tokens or args.use_tokens
    return config


def _require_api_key(config: RedmanConfig) -> None:
    if not config.tracker.api_key:
        raise RedmanError("API key not set: export API_KEY or set [tracker].api_key in config.toml")


async def _fetch_command(config: RedmanConfig, store: Store, args: argparse.Namespace) -> None:
    _require_api_key(config)
    source_type = SourceType(args.ftype)
    logger.info(f"Fetching {source_type.value} {args.id}...")
    async with GazelleClient(config.tracker) as client:
        result = await run_fetch(client, store, source_type, args.id, weight=args.weight, verbose=args.verbose)
    logger.info(f"✓ {result.stored_count} torrents stored successfully!")


async def _watch_command(config: RedmanConfig, store: Store) -> None:
    _require_api_key(config)
    if config.pool.torrent_dir is None:
        raise RedmanError("watch needs --torrent-dir (or [pool].torrent_dir in config.toml)")
    if config.transmission.download_dir is None:
        raise RedmanError("watch needs --download-dir (or [transmission].download_dir in config.toml)")
    options = WatchOptions(
        number=config.watch.number,
        torrent_dir=config.pool.torrent_dir,
        plex_db=config.pool.plex_db,
        freeload_only=config.watch.freeload_only,
        use_tokens=config.watch.use_tokens,
    )
    submitter = TransmissionSubmitter(config.transmission)
    async with GazelleClient(config.tracker) as client:
        submitted = await run_watch(client, store, submitter, options)

    logger.info(f"\n✓ {len(submitted)} torrent files downloaded")
    table = Table()
    table.add_column("ID", style="bright_white")
    table.add_column("Artist", style="bright_cyan")
    table.add_column("Album", style="bright_yellow")
    for release in submitted:
        table.add_row(str(release.id), release.artist_names, release.album_name)
    if submitted:
        console.print(table)


def display_stats(stats: PoolStats) -> None:
    table = Table(title="Database Statistics")
    table.add_column("Metric", style="bold")
    table.add_column("Value", style="bright_white")
    table.add_row("Total Torrents", str(stats.total_releases))
    table.add_row("Unique Artists", str(stats.unique_artists))
    table.add_row("Unique Albums", str(stats.unique_albums))
    console.print(table)

    formats = Table(title="Format Distribution")
    formats.add_column("Format", style="bright_white")
    formats.add_column("Count", style="cyan")
    formats.add_column("Share")
    for fmt, count in stats.format_histogram:
        share = (count / stats.total_releases * 100.0) if stats.total_releases else 0.0
        formats.add_row(fmt, str(count), f"{share:.1f}%")
    console.print(formats)


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(resolve_config_path(args.config))
    config = merge_cli_overrides(apply_environment(config), args)

    if not _is_valid_base_url(config.tracker.url):
        _ui_error("Invalid base URL provided")
        sys.exit(1)
    if config.pool.path is None:
        _ui_error("No pool database given: pass --pool or set [pool].path in config.toml")
        sys.exit(1)

    log = logger.RedmanLogger(
        log_file=Path(args.log_file).expanduser() if args.log_file else None,
        debug=args.debug,
    )
    logger.set_logger(log)
    try:
        with Store(config.pool.path) as store:
            if args.command == "fetch":
                asyncio.run(_fetch_command(config, store, args))
            elif args.command == "watch":
                asyncio.run(_watch_command(config, store))
            else:
                display_stats(store.stats())
    except KeyboardInterrupt:
        log.info("Interrupted.")
        sys.exit(130)
    except RedmanError as e:
        log.error(f"✗ {args.command} failed: {e}")
        sys.exit(1)
    finally:
        log.close()
    sys.exit(0)


if __name__ == "__main__":
    main()
