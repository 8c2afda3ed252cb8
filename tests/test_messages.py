"""Unit tests for stream line classification."""

from __future__ import annotations

import json

import pytest

from boardstream.messages import (
    SKIP,
    ChatLine,
    GameFinish,
    GameFull,
    GameStart,
    GameState,
    ParseError,
    Skip,
    Unknown,
    classify,
)
from conftest import chat_line, game_finish, game_full, game_start, game_state


@pytest.mark.parametrize("line", ["", " ", "\n", "\t  \r\n"])
def test_keepalive_lines_are_skipped(line: str) -> None:
    assert classify(line) is SKIP
    assert isinstance(classify(line), Skip)


@pytest.mark.parametrize("line", ["{not json", "[1, 2, 3]", '"gameStart"', "42"])
def test_garbage_becomes_parse_error(line: str) -> None:
    result = classify(line)
    assert isinstance(result, ParseError)
    assert result.raw == line.strip()


def test_game_start() -> None:
    ev = classify(game_start("xyz", opponent="alice"))
    assert ev == GameStart(game_id="xyz", opponent_name="alice")


def test_game_start_with_only_id() -> None:
    ev = classify(json.dumps({"type": "gameStart", "game": {"id": "q1"}}))
    assert ev == GameStart(game_id="q1", opponent_name=None)


def test_game_start_without_game_is_malformed() -> None:
    assert isinstance(classify('{"type": "gameStart"}'), ParseError)


def test_game_full_reads_nested_state() -> None:
    ev = classify(game_full(white="bob", black="self", moves="e2e4 e7e5", white_rating=1450))
    assert isinstance(ev, GameFull)
    assert ev.white_id == "bob"
    assert ev.black_id == "self"
    assert ev.white.rating == 1450
    assert ev.moves == "e2e4 e7e5"
    assert ev.status == "started"
    assert ev.white_clock_ms == 300000


def test_game_full_against_ai() -> None:
    line = json.dumps(
        {
            "type": "gameFull",
            "white": {"id": "self", "name": "Self"},
            "black": {"aiLevel": 3},
            "state": {"moves": ""},
        }
    )
    ev = classify(line)
    assert isinstance(ev, GameFull)
    assert ev.black.name == "Stockfish level 3"


def test_game_full_missing_player_is_malformed() -> None:
    line = json.dumps({"type": "gameFull", "white": {"id": "a"}, "state": {"moves": ""}})
    result = classify(line)
    assert isinstance(result, ParseError)
    assert "black" in result.reason


def test_game_state() -> None:
    ev = classify(game_state("e2e4", isMyTurn=True))
    assert ev == GameState(
        moves="e2e4",
        is_my_turn_hint=True,
        status="started",
        white_clock_ms=290000,
        black_clock_ms=295000,
    )


def test_game_state_without_hint() -> None:
    ev = classify(game_state("e2e4 e7e5"))
    assert isinstance(ev, GameState)
    assert ev.is_my_turn_hint is None


def test_game_state_without_moves_is_malformed() -> None:
    assert isinstance(classify('{"type": "gameState", "status": "started"}'), ParseError)


def test_game_finish_object_status() -> None:
    ev = classify(game_finish("mate", winner="black"))
    assert ev == GameFinish(status="mate", game_id="abcd1234", winner="black")


def test_game_finish_plain_status() -> None:
    ev = classify('{"type": "gameFinish", "status": "resign"}')
    assert ev == GameFinish(status="resign")


def test_chat_line() -> None:
    assert classify(chat_line("bob", "gl hf")) == ChatLine(username="bob", text="gl hf", room="player")


@pytest.mark.parametrize(
    "line,kind",
    [
        ('{"type": "challenge", "challenge": {}}', "challenge"),
        ('{"type": "opponentGone", "gone": true}', "opponentGone"),
        ('{"moves": "e2e4"}', None),
        ('{"type": 7}', None),
    ],
)
def test_unrecognised_types_are_unknown(line: str, kind) -> None:
    ev = classify(line)
    assert isinstance(ev, Unknown)
    assert ev.type == kind
    assert ev.raw == line
