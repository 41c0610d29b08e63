"""HTTP client for the remote score-tracking API."""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING, Any, TypeVar
from urllib.parse import quote

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from shared.dal.models import Game, Round
from shared.exceptions import AuthError, NetworkError, RecordValidationError, TransientError

if TYPE_CHECKING:
    from types import TracebackType

logger = structlog.get_logger()

DEFAULT_TIMEOUT_SECONDS = 10.0

_AUTH_FAILURE_STATUSES = {HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN}

M = TypeVar("M", bound=BaseModel)


class TrackerClient:
    """Read-only client for the tracker's game list and per-game rounds.

    Owns an ``httpx.AsyncClient`` unless one is passed in. Use as an async
    context manager, or call ``aclose()`` when done.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> TrackerClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def list_games(self, credential: str) -> list[Game]:
        """Fetch every game visible to the credential."""
        payload = await self._get_json("/games", credential, params={"show_all": "1"})
        games = _parse_records(Game, payload, what="game")
        logger.info("fetched games", count=len(games))
        return games

    async def list_rounds(self, game_id: str, credential: str) -> list[Round]:
        """Fetch the rounds of one game, stamped with ``game_id``.

        Raises TransientError on a 5xx so callers can treat the game as
        having no rounds and move on.
        """
        payload = await self._get_json(f"/games/{quote(game_id, safe='')}/rounds", credential)
        rounds = [r.model_copy(update={"game_id": game_id}) for r in _parse_records(Round, payload, what="round")]
        logger.debug("fetched rounds", game_id=game_id, count=len(rounds))
        return rounds

    async def _get_json(
        self,
        path: str,
        credential: str,
        *,
        params: dict[str, str] | None = None,
    ) -> Any:  # noqa: ANN401
        if not credential:
            logger.error("bearer token is null or empty")
            raise AuthError("Bearer token is required")

        url = f"{self._base_url}{path}"
        try:
            response = await self._http.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {credential}"},
            )
        except httpx.RequestError as exc:
            logger.error("tracker request failed", url=url, error=str(exc))
            raise NetworkError(f"Request to {url} failed: {exc}") from exc

        status = response.status_code
        if status in _AUTH_FAILURE_STATUSES:
            raise AuthError(f"Tracker rejected the credential ({status})")
        if status >= HTTPStatus.INTERNAL_SERVER_ERROR:
            logger.warning("tracker returned server error", url=url, status=status)
            raise TransientError(f"Tracker returned {status} for {path}", status_code=status)
        if not response.is_success:
            raise NetworkError(f"Tracker returned {status} for {path}")

        try:
            return response.json()
        except ValueError as exc:
            # ValueError covers JSON decode errors from non-JSON bodies
            raise NetworkError(f"Tracker returned a non-JSON body for {path}") from exc


def _parse_records(model: type[M], payload: Any, *, what: str) -> list[M]:  # noqa: ANN401
    """Validate a JSON array into models. Malformed entries are skipped with a warning."""
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise NetworkError(f"Expected a JSON array of {what}s, got {type(payload).__name__}")

    records: list[M] = []
    for index, item in enumerate(payload):
        try:
            records.append(model.model_validate(item))
        except ValidationError as exc:
            record_id = item.get("id") if isinstance(item, dict) else None
            reason = f"{what} #{index}: {exc.error_count()} field errors"
            err = RecordValidationError(record_id=record_id, reason=reason)
            logger.warning("skipping malformed record", error=str(err))
    return records
