"""Immutable game snapshot and the enums it is built from."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Tuple


class PlayerColor(enum.Enum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "PlayerColor":
        return PlayerColor.BLACK if self is PlayerColor.WHITE else PlayerColor.WHITE


class GameStatus(enum.Enum):
    CREATED = "created"
    STARTED = "started"
    FINISHED = "finished"


def parse_status(raw: str | None) -> Tuple[GameStatus, Optional[str]]:
    """Map a service status string onto (GameStatus, substatus).

    Only "created" and "started" describe a live game; any other name
    (mate, resign, outoftime, aborted, draw...) is terminal.
    """
    if raw is None or raw == "started":
        return GameStatus.STARTED, None
    if raw == "created":
        return GameStatus.CREATED, None
    return GameStatus.FINISHED, raw


@dataclass(frozen=True)
class GameSnapshot:
    """The single authoritative view of the current game.

    Snapshots are never mutated; the reducer builds a new one for every
    accepted event and observers may hold on to old ones safely.
    """

    game_id: Optional[str] = None
    my_color: Optional[PlayerColor] = None
    opponent_name: Optional[str] = None
    opponent_rating: Optional[int] = None
    is_my_turn: bool = False
    status: GameStatus = GameStatus.CREATED
    substatus: Optional[str] = None
    moves: Tuple[str, ...] = ()
    last_opponent_move: Optional[str] = None
    white_clock_ms: Optional[int] = None
    black_clock_ms: Optional[int] = None
    winner: Optional[str] = None
    invalid: bool = False

    @property
    def move_count(self) -> int:
        return len(self.moves)

    @property
    def is_terminal(self) -> bool:
        return self.status is GameStatus.FINISHED or self.invalid

    @property
    def is_active(self) -> bool:
        return self.game_id is not None and not self.is_terminal


def status_line(snapshot: GameSnapshot) -> str:
    """Human-readable one-liner for the current snapshot."""
    if snapshot.invalid:
        return "Game state invalid - session ended"
    if snapshot.status is GameStatus.FINISHED:
        text = f"Game finished: {snapshot.substatus}"
        if snapshot.winner:
            text += f" ({snapshot.winner} wins)"
        return text
    if snapshot.game_id is None:
        return "Waiting for a game to start..."
    if snapshot.my_color is None:
        return "Game started! Connecting..."
    return "Your turn to move!" if snapshot.is_my_turn else "Waiting for opponent..."
