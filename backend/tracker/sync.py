"""Reconcile the local game store against the remote tracker.

Each operation compares local identifiers with a fresh remote listing; no
session state is carried between calls. Round backfill issues requests one
at a time with a fixed pause between them to stay under the tracker's rate
limits.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time
from typing import TYPE_CHECKING, Protocol

import structlog

from shared.dal.models import validate_game
from shared.exceptions import AuthError, NetworkError, RecordValidationError, TransientError
from shared.logging import log_operation

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from shared.dal.game_store import GameStore
    from shared.dal.models import Game, Round

logger = structlog.get_logger()

DEFAULT_DELAY_SECONDS = 0.1


class RemoteSource(Protocol):
    """Read side of the tracker API, as used by the synchronizer."""

    async def list_games(self, credential: str) -> list[Game]: ...

    async def list_rounds(self, game_id: str, credential: str) -> list[Round]: ...


class ProgressObserver(Protocol):
    def __call__(self, completed: int, total: int) -> None: ...


@dataclass(frozen=True)
class SyncConfig:
    delay_seconds: float = DEFAULT_DELAY_SECONDS


@dataclass(frozen=True)
class RoundSyncResult:
    game_ids: list[str] = field(default_factory=list)
    total_rounds: int = 0


def to_epoch_seconds(cutoff: date | datetime | int) -> int:
    """Convert a cutoff to epoch seconds. Dates mean midnight; naive datetimes are taken as UTC."""
    if isinstance(cutoff, date) and not isinstance(cutoff, datetime):
        cutoff = datetime.combine(cutoff, time.min)
    if isinstance(cutoff, datetime):
        if cutoff.tzinfo is None:
            cutoff = cutoff.replace(tzinfo=UTC)
        return int(cutoff.timestamp())
    return int(cutoff)


def _require_credential(credential: str) -> None:
    if not credential:
        logger.error("bearer token is null or empty")
        raise AuthError("Bearer token is required")


class Synchronizer:
    """Keep a GameStore in step with a RemoteSource.

    ``sleep`` is the suspension used between throttled requests; tests pass
    a recorder instead of ``asyncio.sleep``.
    """

    def __init__(
        self,
        store: GameStore,
        source: RemoteSource,
        config: SyncConfig | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._source = source
        self._config = config or SyncConfig()
        self._sleep = sleep

    async def sync_all(self, credential: str) -> list[Game]:
        """Full refresh: replace every stored game (and drop all rounds) with the remote list."""
        _require_credential(credential)
        with log_operation("sync_all"):
            games = await self._fetch_valid_games(credential)
            if games:
                await self._store.replace_all(games)
            logger.info("full refresh complete", games=len(games))
            return games

    async def fetch_and_sync_new(self, credential: str) -> list[Game]:
        """Store remote games whose ids are not yet known locally. Returns the new games."""
        _require_credential(credential)
        with log_operation("fetch_and_sync_new"):
            remote = await self._fetch_valid_games(credential)
            known = set(await self._store.get_all_game_ids())
            new_games = [g for g in remote if g.id not in known]
            if new_games:
                await self._store.upsert_games(new_games)
            logger.info("new game discovery complete", remote=len(remote), new=len(new_games))
            return new_games

    async def sync_from_date(self, cutoff: date | datetime | int, credential: str) -> list[Game]:
        """Rebuild the window of games created strictly after ``cutoff``.

        Local games in the window are deleted with their rounds, then the
        remote games in the same window are stored. Both steps use the same
        strict comparison, so a game created exactly at the cutoff is neither
        deleted nor re-synced.
        """
        _require_credential(credential)
        threshold = to_epoch_seconds(cutoff)
        with log_operation("sync_from_date", cutoff=threshold):
            await self._store.delete_games_created_after(threshold)
            remote = await self._fetch_valid_games(credential)
            in_window = [g for g in remote if g.created_at > threshold]
            if in_window:
                await self._store.upsert_games(in_window)
            logger.info("date-scoped resync complete", remote=len(remote), synced=len(in_window))
            return in_window

    async def games_needing_rounds(self) -> list[str]:
        """Ids of stored games that have no stored rounds."""
        having_rounds = set(await self._store.get_game_ids_having_rounds())
        return [gid for gid in await self._store.get_all_game_ids() if gid not in having_rounds]

    async def sync_missing_rounds(
        self,
        credential: str,
        *,
        delay_seconds: float | None = None,
        progress: ProgressObserver | None = None,
        cancel: asyncio.Event | None = None,
    ) -> RoundSyncResult:
        """Fetch and store rounds for every stored game that has none, newest game first.

        A 5xx on one game counts as zero rounds for it; any other network
        failure skips the game. Auth and storage failures abort the run.
        """
        _require_credential(credential)
        with log_operation("sync_missing_rounds"):
            needing = set(await self.games_needing_rounds())
            if not needing:
                logger.info("no games need rounds")
                return RoundSyncResult()

            games = [g for g in await self._store.get_all_games() if g.id in needing]
            games.sort(key=lambda g: g.created_at, reverse=True)

            synced: list[str] = []
            total_rounds = 0

            async def store_rounds(game_id: str, rounds: list[Round]) -> None:
                nonlocal total_rounds
                await self._store.upsert_rounds(game_id, rounds)
                synced.append(game_id)
                total_rounds += len(rounds)

            await self._throttled_rounds(
                [g.id for g in games if g.id],
                credential,
                on_rounds=store_rounds,
                delay_seconds=delay_seconds,
                progress=progress,
                cancel=cancel,
            )
            logger.info("round backfill complete", games=len(synced), rounds=total_rounds, attempted=len(games))
            return RoundSyncResult(game_ids=synced, total_rounds=total_rounds)

    async def fetch_rounds_for_games(
        self,
        games: Sequence[Game],
        credential: str,
        *,
        delay_seconds: float | None = None,
        progress: ProgressObserver | None = None,
        cancel: asyncio.Event | None = None,
    ) -> dict[str, list[Round]]:
        """Fetch rounds for the given games with the backfill throttle, without storing them."""
        _require_credential(credential)
        rounds_by_game: dict[str, list[Round]] = {}

        async def collect(game_id: str, rounds: list[Round]) -> None:
            rounds_by_game[game_id] = rounds

        with log_operation("fetch_rounds_for_games"):
            await self._throttled_rounds(
                [g.id for g in games if g.id],
                credential,
                on_rounds=collect,
                delay_seconds=delay_seconds,
                progress=progress,
                cancel=cancel,
            )
        return rounds_by_game

    async def _throttled_rounds(
        self,
        game_ids: list[str],
        credential: str,
        *,
        on_rounds: Callable[[str, list[Round]], Awaitable[None]],
        delay_seconds: float | None,
        progress: ProgressObserver | None,
        cancel: asyncio.Event | None,
    ) -> None:
        """Fetch rounds for each id in order, one request at a time.

        Sleeps ``delay_seconds`` between consecutive requests (not after the
        last), reports ``(completed, total)`` after every item, and returns
        without pausing or requesting again once ``cancel`` is set.
        """
        delay = self._config.delay_seconds if delay_seconds is None else delay_seconds
        total = len(game_ids)
        logger.info("fetching rounds", games=total, delay_seconds=delay)

        for index, game_id in enumerate(game_ids):
            if cancel is not None and cancel.is_set():
                logger.info("round fetch cancelled", completed=index, total=total)
                return

            try:
                rounds = await self._source.list_rounds(game_id, credential)
            except TransientError as exc:
                logger.warning(
                    "tracker server error, treating game as having no rounds",
                    game_id=game_id,
                    status=exc.status_code,
                )
                rounds = []
            except NetworkError as exc:
                logger.error("failed to fetch rounds, skipping game", game_id=game_id, error=str(exc))
                rounds = None

            if rounds is not None:
                await on_rounds(game_id, rounds)

            if progress is not None:
                progress(index + 1, total)

            if index < total - 1:
                if cancel is not None and cancel.is_set():
                    logger.info("round fetch cancelled", completed=index + 1, total=total)
                    return
                await self._sleep(delay)

    async def _fetch_valid_games(self, credential: str) -> list[Game]:
        """Fetch the remote game list, dropping records that fail structural validation."""
        games = await self._source.list_games(credential)
        valid: list[Game] = []
        for game in games:
            try:
                valid.append(validate_game(game))
            except RecordValidationError as exc:
                logger.warning("skipping invalid game", game_id=exc.record_id, reason=exc.reason)
        return valid
