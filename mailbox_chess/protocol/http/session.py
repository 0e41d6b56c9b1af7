from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

from ...engine.game import Game
from ...search.service import SearchService
from ...search.transposition import TranspositionTable


@dataclass
class GameSession:
    """A game plus the search service that owns its transposition table.

    ``search_lock`` serializes searches so the table is never shared by two
    concurrent searches.
    """

    game: Game
    search: SearchService
    search_lock: threading.Lock = field(default_factory=threading.Lock)


class InMemorySessionStore:
    """Thread-safe in-memory game session store.

    Responsibilities:
    - Create new sessions with unique `game_id`s
    - Retrieve existing sessions by `game_id`
    - Replace the game held by a session (new position)
    - Delete sessions
    """

    def __init__(self, hash_mb: int = 16, quiescence_depth: int = 6) -> None:
        self._lock = threading.RLock()
        self._sessions: Dict[str, GameSession] = {}
        self.hash_mb = hash_mb
        self.quiescence_depth = quiescence_depth

    def create(self, game: Optional[Game] = None) -> str:
        """Create a new game session and return its `game_id`."""
        gid = str(uuid.uuid4())
        if game is None:
            game = Game.new()
        service = SearchService(
            TranspositionTable(self.hash_mb), quiescence_depth=self.quiescence_depth
        )
        with self._lock:
            self._sessions[gid] = GameSession(game, service)
        return gid

    def get(self, game_id: str) -> Optional[GameSession]:
        with self._lock:
            return self._sessions.get(game_id)

    def replace_game(self, game_id: str, game: Game) -> None:
        """Install ``game`` in an existing session and reset its table."""
        with self._lock:
            session = self._sessions.get(game_id)
            if session is None:
                raise KeyError(game_id)
            session.game = game
        with session.search_lock:
            session.search.clear()

    def delete(self, game_id: str) -> None:
        with self._lock:
            self._sessions.pop(game_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
