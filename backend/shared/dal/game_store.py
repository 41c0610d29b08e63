"""Abstract interface for game and round persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from shared.dal.models import Game, Round


class GameStore(ABC):
    """Durable keyed storage for games and their rounds.

    Every mutating call is all-or-nothing. Implementations raise
    StorageError on failure and must not leave partial writes behind.
    """

    @abstractmethod
    async def exists(self, game_id: str) -> bool: ...

    @abstractmethod
    async def replace_all(self, games: Sequence[Game]) -> None:
        """Drop every stored game and round, then insert ``games``."""

    @abstractmethod
    async def upsert_games(self, games: Sequence[Game]) -> None:
        """Insert games, replacing (with their rounds) any that already exist."""

    @abstractmethod
    async def upsert_rounds(self, game_id: str, rounds: Sequence[Round]) -> None: ...

    @abstractmethod
    async def upsert_rounds_bulk(self, rounds_by_game_id: Mapping[str, Sequence[Round]]) -> None:
        """Replace the stored rounds of every game id present in the mapping."""

    @abstractmethod
    async def get_game(self, game_id: str) -> Game | None: ...

    @abstractmethod
    async def get_rounds(self, game_id: str) -> list[Round]: ...

    @abstractmethod
    async def get_all_rounds(self) -> dict[str, list[Round]]: ...

    @abstractmethod
    async def get_all_games(self) -> list[Game]: ...

    @abstractmethod
    async def get_all_game_ids(self) -> list[str]: ...

    @abstractmethod
    async def get_game_ids_having_rounds(self) -> list[str]: ...

    @abstractmethod
    async def delete_game(self, game_id: str) -> None: ...

    @abstractmethod
    async def delete_games_created_after(self, timestamp: int) -> int:
        """Delete games with ``created_at > timestamp`` and their rounds. Returns the game count."""
