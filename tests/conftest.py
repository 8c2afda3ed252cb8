import asyncio
import contextlib
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

# Ensure local `src` directory is importable before project is installed.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from boardstream.api import CommandResult
from boardstream.transport import TransportError

# Keep stream chatter out of the test output
logging.basicConfig(level=logging.WARNING)

EVENT_URL_MARK = "/api/stream/event"


class Attempt:
    """Scripted outcome of a single ``stream()`` call."""

    def __init__(
        self,
        lines: List[str] = (),
        *,
        connect_error: Optional[str] = None,
        error: Optional[str] = None,
        hold: bool = False,
    ) -> None:
        self.lines = list(lines)
        self.connect_error = connect_error
        self.error = error
        self.hold = hold

    async def iterate(self):
        for line in self.lines:
            await asyncio.sleep(0)
            yield line
        if self.error:
            raise TransportError(self.error)
        if self.hold:
            # keep the stream open until the consumer is cancelled
            await asyncio.Event().wait()


def connect_fail(reason: str = "connection refused") -> Attempt:
    return Attempt(connect_error=reason)


def hold(*lines: str) -> Attempt:
    return Attempt(list(lines), hold=True)


def close_after(*lines: str) -> Attempt:
    return Attempt(list(lines))


class ScriptedTransport:
    """In-memory LineTransport; scripts are keyed by 'event' and 'game' streams."""

    def __init__(self, event: List[Attempt] = (), game: List[Attempt] = ()) -> None:
        self.scripts: Dict[str, List[Attempt]] = {"event": list(event), "game": list(game)}
        self.opened: List[str] = []
        self.tokens: List[str] = []
        self.active = 0
        self.max_active = 0

    @staticmethod
    def kind(url: str) -> str:
        return "event" if EVENT_URL_MARK in url else "game"

    @contextlib.asynccontextmanager
    async def stream(self, url: str, token: str):
        self.opened.append(url)
        self.tokens.append(token)
        await asyncio.sleep(0)
        script = self.scripts[self.kind(url)]
        if not script:
            raise TransportError("no scripted attempt left")
        attempt = script.pop(0)
        if attempt.connect_error:
            raise TransportError(attempt.connect_error)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            yield attempt.iterate()
        finally:
            self.active -= 1


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays and returns at once."""

    def __init__(self, block: bool = False) -> None:
        self.delays: List[float] = []
        self.block = block

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self.block:
            await asyncio.Event().wait()
        await asyncio.sleep(0)


class RecordingApi:
    """BoardApi double that records every outbound command."""

    def __init__(self, status: int = 200, body: str = "") -> None:
        self.status = status
        self.body = body
        self.moves: List[tuple] = []
        self.seeks: List[dict] = []

    @property
    def calls(self) -> int:
        return len(self.moves) + len(self.seeks)

    async def submit_move(self, game_id: str, move: str) -> CommandResult:
        self.moves.append((game_id, move))
        return CommandResult(status_code=self.status, body=self.body)

    async def create_seek(self, **kwargs) -> CommandResult:
        self.seeks.append(kwargs)
        return CommandResult(status_code=self.status, body=self.body)


async def settle(predicate: Callable[[], bool] = lambda: False, rounds: int = 500) -> bool:
    """Yield to the loop until *predicate* holds (or *rounds* passes)."""
    for _ in range(rounds):
        if predicate():
            return True
        await asyncio.sleep(0)
    return predicate()


# ---------------------------------------------------------------------------
# NDJSON line builders
# ---------------------------------------------------------------------------


def game_start(game_id: str = "abcd1234", opponent: str = "bob") -> str:
    return json.dumps({"type": "gameStart", "game": {"gameId": game_id, "id": game_id, "opponent": {"username": opponent}}})


def game_full(
    white: str = "bob",
    black: str = "self",
    moves: str = "",
    status: str = "started",
    game_id: str = "abcd1234",
    white_rating: int = 1500,
    black_rating: int = 1600,
) -> str:
    return json.dumps(
        {
            "type": "gameFull",
            "id": game_id,
            "white": {"id": white, "name": white.capitalize(), "rating": white_rating},
            "black": {"id": black, "name": black.capitalize(), "rating": black_rating},
            "state": {"type": "gameState", "moves": moves, "wtime": 300000, "btime": 300000, "status": status},
        }
    )


def game_state(moves: str, status: str = "started", **extra) -> str:
    return json.dumps({"type": "gameState", "moves": moves, "wtime": 290000, "btime": 295000, "status": status, **extra})


def game_finish(status: str = "resign", game_id: str = "abcd1234", winner: str = "white") -> str:
    return json.dumps({"type": "gameFinish", "game": {"gameId": game_id, "status": {"id": 31, "name": status}, "winner": winner}})


def chat_line(username: str = "bob", text: str = "hi") -> str:
    return json.dumps({"type": "chatLine", "username": username, "text": text, "room": "player"})


@pytest.fixture
def transport_factory() -> Callable[..., ScriptedTransport]:
    """Factory that builds a ScriptedTransport from event/game attempt lists."""

    def _factory(event: List[Attempt] = (), game: List[Attempt] = ()) -> ScriptedTransport:
        return ScriptedTransport(event=event, game=game)

    return _factory
