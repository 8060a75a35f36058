from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from tracklink.app import add_track, build_resolution_service, run_resolution, watch_resolution
from tracklink.config import ConfigurationError, configure_logging
from tracklink.domain.model import REFERENCE_PLATFORM, Platform

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from tracklink.domain.resolution import ResolutionService

log = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected an integer, got {value!r}") from exc
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"Expected a positive integer, got {parsed}")
    return parsed


def _non_negative_float(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected a number, got {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError(f"Expected a non-negative number, got {parsed}")
    return parsed


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Resolve track identities across platforms")
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve = subparsers.add_parser("resolve", help="Run one resolution task in the foreground")
    resolve.add_argument(
        "--watch",
        action="store_true",
        help="Keep running, starting a new task every --interval seconds",
    )
    resolve.add_argument(
        "--interval",
        type=_non_negative_float,
        help="Seconds between watch cycles (default: RESOLUTION_WATCH_INTERVAL_SECONDS or 30)",
    )
    resolve.add_argument(
        "--max-cycles",
        type=_positive_int,
        help="Stop watching after this many cycles",
    )

    resolve_track = subparsers.add_parser(
        "resolve-track",
        help="Resolve a single track immediately",
    )
    resolve_track.add_argument(
        "--track-id",
        type=_positive_int,
        required=True,
        help="Id of a track that already has a Spotify identity",
    )

    subparsers.add_parser("stats", help="Show platform coverage figures")

    track = subparsers.add_parser("track", help="Track management commands")
    track_sub = track.add_subparsers(dest="track_command", required=True)
    track_add = track_sub.add_parser("add", help="Register a track by its Spotify id")
    track_add.add_argument(
        "--track-id",
        type=_positive_int,
        required=True,
        help="Track id as assigned by the playlist backend",
    )
    track_add.add_argument(
        "--spotify-id",
        type=str,
        required=True,
        help="Spotify track id (the part after /track/ in a share link)",
    )
    track_add.add_argument(
        "--title",
        type=str,
        help="Optional title used in progress messages",
    )

    return parser.parse_args(list(argv))


async def _resolve(service: ResolutionService) -> None:
    try:
        task = await run_resolution(service)
    finally:
        await service.aclose()
    log.info(
        "Task %s %s: %s (processed=%s, failed=%s, total=%s)",
        task.id,
        task.status,
        task.message,
        task.processed_tracks,
        task.failed_tracks,
        task.total_tracks,
    )


async def _watch(
    service: ResolutionService, interval: float | None, max_cycles: int | None
) -> None:
    try:
        status = await watch_resolution(
            service, interval_seconds=interval, max_cycles=max_cycles, handle_signals=True
        )
    finally:
        await service.aclose()
    log.info("Watcher ran %d cycle(s)", status.cycles)


async def _resolve_track(service: ResolutionService, track_id: int) -> None:
    try:
        result = await service.resolve_track(track_id)
    finally:
        await service.aclose()
    for platform, link in sorted(result.platforms.items()):
        log.info("%s: %s %s", platform, link.platform_id, link.platform_url or "")
    log.info(
        "Track %s resolved on %d platforms (%d new identities)",
        result.track_id,
        len(result.platforms),
        result.inserted,
    )


def _log_stats(service: ResolutionService) -> None:
    stats = service.get_coverage_stats()
    log.info("Tracks: %d", stats.total_tracks)
    for platform in Platform:
        log.info(
            "%-13s %6d (%.1f%%)",
            platform,
            stats.per_platform_counts.get(platform, 0),
            stats.coverage(platform) * 100,
        )
    log.info("Needing resolution: %d", stats.tracks_needing_resolution)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    try:
        configure_logging()
    except ConfigurationError:
        log.exception("Invalid logging configuration")
        sys.exit(2)
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.command == "track" and not parsed_args.spotify_id.strip():
            raise ValueError("--spotify-id must not be empty")  # noqa: TRY301
        if parsed_args.command == "resolve" and not parsed_args.watch and (
            parsed_args.interval is not None or parsed_args.max_cycles is not None
        ):
            raise ValueError("--interval and --max-cycles require --watch")  # noqa: TRY301
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "resolve" and parsed_args.watch:
            asyncio.run(
                _watch(build_resolution_service(), parsed_args.interval, parsed_args.max_cycles)
            )
        elif parsed_args.command == "resolve":
            asyncio.run(_resolve(build_resolution_service()))
        elif parsed_args.command == "resolve-track":
            asyncio.run(_resolve_track(build_resolution_service(), parsed_args.track_id))
        elif parsed_args.command == "stats":
            _log_stats(build_resolution_service())
        elif parsed_args.command == "track" and parsed_args.track_command == "add":
            created = add_track(
                track_id=parsed_args.track_id,
                spotify_id=parsed_args.spotify_id.strip(),
                title=parsed_args.title,
            )
            if not created:
                log.info(
                    "Track %s already has a %s identity", parsed_args.track_id, REFERENCE_PLATFORM
                )
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during resolution")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
