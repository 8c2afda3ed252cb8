"""Fold classified stream events into the next ``GameSnapshot``.

Everything in this module is pure: no I/O, no logging, no clocks. Events
that must be dropped are signalled with exceptions so the caller decides
how loudly to report them.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from .messages import ChatLine, ClassifiedEvent, GameFinish, GameFull, GameStart, GameState, Unknown
from .notation import split_moves
from .snapshot import GameSnapshot, GameStatus, PlayerColor, parse_status


class IdentityMismatchError(Exception):
    """Neither (or both) sides of a gameFull match the local player."""


class OutOfOrderState(Exception):
    """A gameState would regress the snapshot and was rejected."""


# ---------------------------------------------------------------------------
# Move-parity helpers
# ---------------------------------------------------------------------------


def side_that_moved_last(move_count: int) -> Optional[PlayerColor]:
    """White plays the odd-numbered plies, Black the even ones; no moves -> None."""
    if move_count <= 0:
        return None
    return PlayerColor.WHITE if move_count % 2 == 1 else PlayerColor.BLACK


def side_to_move(move_count: int) -> PlayerColor:
    return PlayerColor.WHITE if move_count % 2 == 0 else PlayerColor.BLACK


def opponent_moved_last(color: PlayerColor, move_count: int) -> bool:
    last = side_that_moved_last(move_count)
    return last is not None and last is not color


# ---------------------------------------------------------------------------
# Per-event reductions
# ---------------------------------------------------------------------------


def _color_for(event: GameFull, self_identity: str) -> PlayerColor:
    me = self_identity.lower()
    is_white = event.white.id.lower() == me
    is_black = event.black.id.lower() == me
    if is_white == is_black:
        raise IdentityMismatchError(
            f"{self_identity!r} does not uniquely match white={event.white.id!r} black={event.black.id!r}"
        )
    return PlayerColor.WHITE if is_white else PlayerColor.BLACK


def _reduce_start(previous: GameSnapshot, event: GameStart) -> GameSnapshot:
    if previous.game_id is not None:
        return previous
    return replace(previous, game_id=event.game_id, opponent_name=event.opponent_name)


def _reduce_full(previous: GameSnapshot, event: GameFull, self_identity: str) -> GameSnapshot:
    color = _color_for(event, self_identity)
    if previous.my_color is not None and previous.my_color is not color:
        raise IdentityMismatchError(f"color changed from {previous.my_color.value} to {color.value}")
    opponent = event.black if color is PlayerColor.WHITE else event.white
    moves = split_moves(event.moves)
    if len(moves) < len(previous.moves):
        raise OutOfOrderState(f"gameFull move count regressed from {len(previous.moves)} to {len(moves)}")
    status, substatus = parse_status(event.status)
    finished = status is GameStatus.FINISHED
    return replace(
        previous,
        game_id=previous.game_id or event.game_id,
        my_color=color,
        opponent_name=opponent.name,
        opponent_rating=opponent.rating,
        is_my_turn=not finished and side_to_move(len(moves)) is color,
        status=status,
        substatus=substatus,
        moves=moves,
        last_opponent_move=moves[-1] if opponent_moved_last(color, len(moves)) else None,
        white_clock_ms=event.white_clock_ms,
        black_clock_ms=event.black_clock_ms,
    )


def _reduce_state(previous: GameSnapshot, event: GameState) -> GameSnapshot:
    color = previous.my_color
    if color is None:
        raise OutOfOrderState("gameState received before gameFull")
    moves = split_moves(event.moves)
    if len(moves) < len(previous.moves):
        raise OutOfOrderState(f"move count regressed from {len(previous.moves)} to {len(moves)}")
    status, substatus = parse_status(event.status)
    opponent_last = opponent_moved_last(color, len(moves))
    if status is GameStatus.FINISHED:
        my_turn = False
    elif event.is_my_turn_hint is not None:
        my_turn = event.is_my_turn_hint
    else:
        my_turn = side_to_move(len(moves)) is color
    return replace(
        previous,
        is_my_turn=my_turn,
        status=status,
        substatus=substatus,
        moves=moves,
        last_opponent_move=moves[-1] if opponent_last else None,
        white_clock_ms=event.white_clock_ms if event.white_clock_ms is not None else previous.white_clock_ms,
        black_clock_ms=event.black_clock_ms if event.black_clock_ms is not None else previous.black_clock_ms,
        winner=event.winner,
    )


def _reduce_finish(previous: GameSnapshot, event: GameFinish) -> GameSnapshot:
    return replace(
        previous,
        is_my_turn=False,
        status=GameStatus.FINISHED,
        substatus=event.status,
        winner=event.winner or previous.winner,
    )


def reduce(previous: GameSnapshot, event: ClassifiedEvent, self_identity: str) -> GameSnapshot:
    """Return the snapshot that results from applying *event* to *previous*.

    Raises ``IdentityMismatchError`` when a gameFull cannot be attributed to
    *self_identity* and ``OutOfOrderState`` when a gameState would move the
    game backwards. Terminal snapshots absorb every further event.
    """
    if previous.is_terminal:
        return previous
    if isinstance(event, GameStart):
        return _reduce_start(previous, event)
    if isinstance(event, GameFull):
        return _reduce_full(previous, event, self_identity)
    if isinstance(event, GameState):
        return _reduce_state(previous, event)
    if isinstance(event, GameFinish):
        return _reduce_finish(previous, event)
    if isinstance(event, (ChatLine, Unknown)):
        return previous
    raise TypeError(f"cannot reduce {event!r}")
