"""Classify raw NDJSON stream lines into typed events.

Both Board API streams deliver one JSON object per line, interleaved with
empty keep-alive lines. ``classify`` turns a single line into one of the
frozen dataclasses below. It never raises: undecodable input becomes a
``ParseError`` value and unrecognised discriminators become ``Unknown``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union


class MalformedMessage(Exception):
    """Raised internally when a known message type lacks a required field."""


@dataclass(frozen=True)
class PlayerInfo:
    id: str
    name: str
    rating: Optional[int] = None


@dataclass(frozen=True)
class GameStart:
    game_id: str
    opponent_name: Optional[str] = None


@dataclass(frozen=True)
class GameFull:
    game_id: Optional[str]
    white: PlayerInfo
    black: PlayerInfo
    status: Optional[str]
    moves: str
    white_clock_ms: Optional[int] = None
    black_clock_ms: Optional[int] = None

    @property
    def white_id(self) -> str:
        return self.white.id

    @property
    def black_id(self) -> str:
        return self.black.id


@dataclass(frozen=True)
class GameState:
    moves: str
    is_my_turn_hint: Optional[bool] = None
    status: Optional[str] = None
    white_clock_ms: Optional[int] = None
    black_clock_ms: Optional[int] = None
    winner: Optional[str] = None


@dataclass(frozen=True)
class GameFinish:
    status: str
    game_id: Optional[str] = None
    winner: Optional[str] = None


@dataclass(frozen=True)
class ChatLine:
    username: str
    text: str
    room: Optional[str] = None


@dataclass(frozen=True)
class Unknown:
    type: Optional[str]
    raw: str


@dataclass(frozen=True)
class Skip:
    pass


@dataclass(frozen=True)
class ParseError:
    raw: str
    reason: str


ClassifiedEvent = Union[GameStart, GameFull, GameState, GameFinish, ChatLine, Unknown]
Classified = Union[ClassifiedEvent, Skip, ParseError]

SKIP = Skip()


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _require(obj: Dict[str, Any], key: str) -> Any:
    value = obj.get(key)
    if value is None:
        raise MalformedMessage(f"missing field {key!r}")
    return value


def _status_name(value: Any) -> Optional[str]:
    # gameFinish carries {"id": 31, "name": "resign"}; game streams carry plain strings
    if isinstance(value, dict):
        value = value.get("name")
    return str(value) if value is not None else None


def _player(obj: Any) -> PlayerInfo:
    if not isinstance(obj, dict):
        raise MalformedMessage("player entry is not an object")
    pid = obj.get("id")
    if pid is None:
        # AI opponents have no id, only an aiLevel
        if obj.get("aiLevel") is not None:
            return PlayerInfo(id=f"stockfish-{obj['aiLevel']}", name=f"Stockfish level {obj['aiLevel']}")
        raise MalformedMessage("player entry without id")
    rating = obj.get("rating")
    return PlayerInfo(id=str(pid), name=str(obj.get("name") or obj.get("username") or pid), rating=rating)


# ---------------------------------------------------------------------------
# Per-type decoders
# ---------------------------------------------------------------------------


def _game_start(obj: Dict[str, Any]) -> GameStart:
    game = _require(obj, "game")
    if not isinstance(game, dict):
        raise MalformedMessage("game is not an object")
    game_id = game.get("gameId") or game.get("id")
    if not game_id:
        raise MalformedMessage("gameStart without game id")
    opponent = game.get("opponent")
    name = opponent.get("username") if isinstance(opponent, dict) else None
    return GameStart(game_id=str(game_id), opponent_name=name)


def _game_full(obj: Dict[str, Any]) -> GameFull:
    state = obj.get("state")
    if not isinstance(state, dict):
        state = {}
    moves = state.get("moves", obj.get("moves", ""))
    return GameFull(
        game_id=obj.get("id"),
        white=_player(_require(obj, "white")),
        black=_player(_require(obj, "black")),
        status=_status_name(obj.get("status") or state.get("status")),
        moves=moves or "",
        white_clock_ms=state.get("wtime"),
        black_clock_ms=state.get("btime"),
    )


def _game_state(obj: Dict[str, Any]) -> GameState:
    if "moves" not in obj:
        raise MalformedMessage("gameState without moves")
    hint = obj.get("isMyTurn")
    return GameState(
        moves=obj.get("moves") or "",
        is_my_turn_hint=bool(hint) if hint is not None else None,
        status=_status_name(obj.get("status")),
        white_clock_ms=obj.get("wtime"),
        black_clock_ms=obj.get("btime"),
        winner=obj.get("winner"),
    )


def _game_finish(obj: Dict[str, Any]) -> GameFinish:
    game = obj.get("game") if isinstance(obj.get("game"), dict) else {}
    status = _status_name(obj.get("status") or game.get("status"))
    if status is None:
        raise MalformedMessage("gameFinish without status")
    return GameFinish(
        status=status,
        game_id=game.get("gameId") or game.get("id"),
        winner=obj.get("winner") or game.get("winner"),
    )


def _chat_line(obj: Dict[str, Any]) -> ChatLine:
    return ChatLine(
        username=str(_require(obj, "username")),
        text=str(obj.get("text", "")),
        room=obj.get("room"),
    )


_DECODERS: Dict[str, Callable[[Dict[str, Any]], ClassifiedEvent]] = {
    "gameStart": _game_start,
    "gameFull": _game_full,
    "gameState": _game_state,
    "gameFinish": _game_finish,
    "chatLine": _chat_line,
}


def classify(line: str) -> Classified:
    """Classify a single stream line.

    Returns ``SKIP`` for keep-alives, ``ParseError`` for anything that is not
    a well-formed JSON object of a known shape, and ``Unknown`` for objects
    whose ``type`` is not one of the decoded discriminators.
    """
    if line is None or not line.strip():
        return SKIP
    raw = line.strip()
    try:
        obj = json.loads(raw)
    except ValueError as exc:
        return ParseError(raw=raw, reason=f"invalid JSON: {exc}")
    if not isinstance(obj, dict):
        return ParseError(raw=raw, reason="not a JSON object")
    kind = obj.get("type")
    decoder = _DECODERS.get(kind) if isinstance(kind, str) else None
    if decoder is None:
        return Unknown(type=kind if isinstance(kind, str) else None, raw=raw)
    try:
        return decoder(obj)
    except MalformedMessage as exc:
        return ParseError(raw=raw, reason=f"{kind}: {exc}")
