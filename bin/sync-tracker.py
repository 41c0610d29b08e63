"""Sync games from the score tracker and print player statistics.

Usage:
    uv run python bin/sync-tracker.py sync-new
    uv run python bin/sync-tracker.py sync-all
    uv run python bin/sync-tracker.py sync-from 2025-01-01
    uv run python bin/sync-tracker.py backfill-rounds --delay-ms 250
    uv run python bin/sync-tracker.py stats alice --from 2025-01-01 --with bob
    uv run python bin/sync-tracker.py overall alice bob carol

Sync commands require TRACKER_API_URL. The bearer token comes from --token or TRACKER_API_TOKEN.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from shared.db import Database, SqliteGameStore
from shared.exceptions import AuthError, TrackerError
from shared.logging import setup_logging
from stats.filter import filter_games
from stats.service import StatsService
from tracker.client import TrackerClient
from tracker.settings import TrackerSettings
from tracker.sync import SyncConfig, Synchronizer


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Mahjong tracker sync and statistics")
    parser.add_argument("--token", default="", help="Bearer token (defaults to TRACKER_API_TOKEN)")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("sync-all", help="Replace all local games with the remote list")
    commands.add_parser("sync-new", help="Store remote games not yet known locally")
    sync_from = commands.add_parser("sync-from", help="Re-sync games created after a date")
    sync_from.add_argument("cutoff", type=date.fromisoformat, help="YYYY-MM-DD")

    backfill = commands.add_parser("backfill-rounds", help="Fetch rounds for games that have none")
    backfill.add_argument("--delay-ms", type=int, default=None, help="Pause between requests")

    stats = commands.add_parser("stats", help="Print one player's statistics")
    stats.add_argument("player")
    stats.add_argument("--from", dest="min_date", type=date.fromisoformat, default=None)
    stats.add_argument("--to", dest="max_date", type=date.fromisoformat, default=None)
    stats.add_argument(
        "--with",
        dest="others",
        action="append",
        default=[],
        help="Only games also including this player",
    )

    overall = commands.add_parser("overall", help="Print the ranking table")
    overall.add_argument("players", nargs="*", help="Defaults to TRACKER_ROSTER")
    overall.add_argument("--from", dest="min_date", type=date.fromisoformat, default=None)
    overall.add_argument("--to", dest="max_date", type=date.fromisoformat, default=None)
    return parser.parse_args(argv)


def _print_progress(completed: int, total: int) -> None:
    print(f"\r  rounds {completed}/{total}", end="" if completed < total else "\n", flush=True)


async def _run(args: argparse.Namespace, settings: TrackerSettings, store: SqliteGameStore) -> None:
    token = args.token or settings.api_token

    if args.command in ("stats", "overall"):
        service = StatsService(store)
        games = await store.get_all_games()
        if args.command == "stats":
            selected = filter_games(games, args.min_date, args.max_date, [args.player, *args.others])
            print((await service.player_stats(selected, args.player)).model_dump_json(indent=2))
        else:
            selected = filter_games(games, args.min_date, args.max_date)
            results = await service.overall(selected, args.players or settings.roster)
            for summary in results.player_rankings:
                print(
                    f"{summary.player_name:<20} {summary.total_points:>8} "
                    f"{summary.first_places}/{summary.second_places}/{summary.third_places}/{summary.fourth_places} "
                    f"avg {summary.average_rank:.2f} ({summary.games_played} games)",
                )
        return

    config = SyncConfig(delay_seconds=settings.throttle_delay_seconds)
    async with TrackerClient(settings.api_url, timeout=settings.request_timeout_seconds) as client:
        sync = Synchronizer(store, client, config)
        if args.command == "sync-all":
            games = await sync.sync_all(token)
            print(f"Stored {len(games)} games")
        elif args.command == "sync-new":
            games = await sync.fetch_and_sync_new(token)
            print(f"Stored {len(games)} new games")
        elif args.command == "sync-from":
            games = await sync.sync_from_date(args.cutoff, token)
            print(f"Re-synced {len(games)} games created after {args.cutoff}")
        elif args.command == "backfill-rounds":
            delay = args.delay_ms / 1000 if args.delay_ms is not None else None
            result = await sync.sync_missing_rounds(token, delay_seconds=delay, progress=_print_progress)
            print(f"Stored {result.total_rounds} rounds for {len(result.game_ids)} games")


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    if args.command in ("stats", "overall"):
        # Local-only commands; supply a placeholder so TRACKER_API_URL is not required.
        settings = TrackerSettings(api_url="unused")
    else:
        settings = TrackerSettings()  # type: ignore[call-arg]
    setup_logging(log_dir=settings.log_dir)

    db = Database(settings.database_path)
    db.connect()
    try:
        asyncio.run(_run(args, settings, SqliteGameStore(db)))
    except AuthError as e:
        print(f"Error: {e}")
        return 2
    except TrackerError as e:
        print(f"Error: {e}")
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
