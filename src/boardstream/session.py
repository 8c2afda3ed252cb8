"""Single-game Board API session for the boardstream client.

The class in this module drives *one* game for the authenticated player
over two chained NDJSON streams:

Event stream (``/api/stream/event``)
------------------------------------
gameStart      A game involving us has begun; switch to the game stream.
gameFinish     A game has ended (also reported on the game stream).
challenge ...  Anything else is surfaced to observers as UNKNOWN.

Game stream (``/api/board/game/stream/{id}``)
---------------------------------------------
gameFull       Players, clocks and the full move list; fixes our color.
gameState      Updated move list after every move.
chatLine       Chat from the players' room or spectators.

Outbound commands (seek, move) are plain HTTP calls through ``BoardApi``.
A submitted move never touches the snapshot directly: the snapshot changes
only when the resulting gameState arrives on the stream.

Everything runs on one asyncio event loop; stream handlers are ordinary
callbacks invoked by the owning ``StreamChannel`` task, so no two of them
ever run at the same time.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, replace
from typing import Optional

from . import config as _cfg
from .api import BoardApi, CommandResult
from .channel import ChannelState, Sleep, StreamChannel
from .events import Category, Event
from .messages import (
    ChatLine,
    GameFinish,
    GameStart,
    ParseError,
    Skip,
    Unknown,
    classify,
)
from .notation import is_uci
from .reconnect import Policy, next_action
from .reducer import IdentityMismatchError, OutOfOrderState, reduce
from .router import EventRouter, Observer
from .snapshot import GameSnapshot, status_line
from .transport import LineTransport

logger = logging.getLogger(__name__)


class CommandRejected(Exception):
    """A command was refused locally; nothing was sent to the server."""


class NoActiveGame(CommandRejected):
    pass


class NotYourTurn(CommandRejected):
    pass


class MalformedMove(CommandRejected):
    pass


class BoardSession:
    """Connect, follow and play exactly one game."""

    def __init__(
        self,
        token: str,
        username: str,
        *,
        transport: LineTransport,
        api: BoardApi,
        policy: Policy = next_action,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Create an idle session.

        Args:
            token: Bearer credential obtained by the login flow.
            username: Our own account id/username, used to tell which side we play.
            transport: Opens the NDJSON streams (``HttpLineTransport`` in production).
            api: Issues seek and move commands.
            policy/sleep: Reconnect policy and delay function shared by both channels.
        """
        self.token = token
        self.username = username
        self.api = api
        self._router = EventRouter()
        self._snapshot = GameSnapshot()
        self._closed = False
        self._closed_event = asyncio.Event()
        # Permanent, user-visible reason once the session has failed
        self.failure: Optional[str] = None

        self.event_channel = StreamChannel(
            "event",
            transport,
            self._on_event_line,
            policy=policy,
            sleep=sleep,
            on_state=self._on_channel_state,
            on_given_up=self._on_given_up,
        )
        self.game_channel = StreamChannel(
            "game",
            transport,
            self._on_game_line,
            policy=policy,
            sleep=sleep,
            on_state=self._on_channel_state,
            on_given_up=self._on_given_up,
        )

    # -------------------- observers --------------------
    def subscribe(self, observer: Observer, *categories: Category) -> None:
        """Receive session events; all categories when none are given."""
        self._router.subscribe(observer, *categories)

    def unsubscribe(self, observer: Observer) -> None:
        self._router.unsubscribe(observer)

    def _emit(self, category: Category, type_: str, **payload) -> None:
        self._router(Event(category, type_, payload))

    # -------------------- read-only state --------------------
    @property
    def snapshot(self) -> GameSnapshot:
        return self._snapshot

    @property
    def game_id(self) -> Optional[str]:
        return self._snapshot.game_id

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def active_channel(self) -> StreamChannel:
        return self.game_channel if self._snapshot.game_id is not None else self.event_channel

    # -------------------- lifecycle --------------------
    def start(self) -> None:
        """Open the event stream and wait for a game to start."""
        if self._closed:
            raise RuntimeError("session already closed")
        logger.info("Session starting for %s", self.username)
        self.event_channel.open(_cfg.event_stream_url(), self.token)

    def close(self, reason: str = "closed") -> None:
        """Close both channels and cancel pending reconnects; idempotent."""
        if self._closed:
            return
        self._closed = True
        self._closed_event.set()
        logger.info("Session closing: %s", reason)
        self.event_channel.close()
        self.game_channel.close()
        self._emit(Category.SYSTEM, "closed", reason=reason, failure=self.failure)
        self._router.clear()

    async def until_closed(self) -> None:
        """Return once close() has been called, without waiting for the channels to wind down."""
        await self._closed_event.wait()

    async def wait_closed(self) -> None:
        await self.event_channel.wait_closed()
        await self.game_channel.wait_closed()

    # -------------------- outbound commands --------------------
    async def create_seek(self, **seek_args) -> CommandResult:
        """Post a seek; the resulting game arrives as gameStart on the event stream."""
        return await self.api.create_seek(**seek_args)

    def check_move(self, move: str) -> None:
        """Raise ``CommandRejected`` if *move* may not be sent right now."""
        snap = self._snapshot
        if self._closed or not snap.is_active or self.game_channel.state is not ChannelState.STREAMING:
            raise NoActiveGame(f"no active game (status={status_line(snap)!r}, channel={self.game_channel.state.value})")
        if not snap.is_my_turn:
            raise NotYourTurn("waiting for opponent")
        if not is_uci(move):
            raise MalformedMove(f"not a coordinate-notation move: {move!r}")

    async def submit_move(self, move: str) -> CommandResult:
        """Send *move* (e.g. ``e2e4``) for the current game.

        Local rejections raise before any request is made. A non-2xx answer is
        returned as a failed ``CommandResult``; it is not retried.
        """
        move = move.strip().lower()
        try:
            self.check_move(move)
        except CommandRejected as exc:
            logger.warning("Move %s rejected locally: %s", move, exc)
            raise
        game_id = self._snapshot.game_id
        result = await self.api.submit_move(game_id, move)
        if not result.ok:
            self._emit(Category.SYSTEM, "command_failed", command="move", move=move, status=result.status_code, body=result.body)
        return result

    # -------------------- stream handlers --------------------
    def _classify(self, channel: str, line: str):
        event = classify(line)
        if isinstance(event, Skip):
            logger.debug("[%s] keep-alive", channel)
            return None
        if isinstance(event, ParseError):
            logger.warning("[%s] dropping malformed message (%s): %r", channel, event.reason, event.raw)
            return None
        logger.debug("[%s] received %s", channel, type(event).__name__)
        return event

    def _on_event_line(self, line: str) -> None:
        event = self._classify("event", line)
        if event is None:
            return
        if isinstance(event, GameStart):
            self._begin_game(event)
        elif isinstance(event, GameFinish):
            if self._snapshot.game_id is not None and event.game_id in (None, self._snapshot.game_id):
                self._apply(event)
        elif isinstance(event, Unknown):
            self._emit(Category.UNKNOWN, event.type or "untyped", raw=event.raw)
        else:
            logger.debug("[event] ignoring %s outside the game stream", type(event).__name__)

    def _on_game_line(self, line: str) -> None:
        event = self._classify("game", line)
        if event is None:
            return
        if isinstance(event, ChatLine):
            self._emit(Category.CHAT, "line", username=event.username, text=event.text, room=event.room)
        elif isinstance(event, Unknown):
            self._emit(Category.UNKNOWN, event.type or "untyped", raw=event.raw)
        else:
            self._apply(event)

    def _begin_game(self, event: GameStart) -> None:
        if self._snapshot.game_id is not None:
            logger.info("Ignoring gameStart %s – already playing %s", event.game_id, self._snapshot.game_id)
            return
        logger.info("Game started notification received, gameId: %s", event.game_id)
        self._apply(event)
        # The event stream has done its job; the game stream supersedes it.
        self.event_channel.close()
        self.game_channel.open(_cfg.game_stream_url(event.game_id), self.token)

    def _apply(self, event) -> None:
        previous = self._snapshot
        try:
            snap = reduce(previous, event, self.username)
        except OutOfOrderState as exc:
            logger.warning("Dropping out-of-order %s: %s", type(event).__name__, exc)
            return
        except IdentityMismatchError as exc:
            logger.error("Identity mismatch for %s: %s", self.username, exc)
            self.failure = f"identity mismatch: {exc}"
            self._publish(replace(previous, invalid=True, is_my_turn=False))
            self._emit(Category.SYSTEM, "identity_mismatch", detail=str(exc))
            self.close("identity mismatch")
            return
        if snap is previous:
            return
        self._publish(snap)
        if snap.is_terminal:
            logger.info("Game %s finished: %s", snap.game_id, snap.substatus)
            self.close(f"game finished: {snap.substatus}")

    def _publish(self, snap: GameSnapshot) -> None:
        self._snapshot = snap
        logger.debug("Snapshot %s", asdict(snap))
        self._emit(Category.SNAPSHOT, "updated", snapshot=snap, status=status_line(snap))

    # -------------------- channel callbacks --------------------
    def _on_channel_state(self, channel: StreamChannel, state: ChannelState) -> None:
        if self._closed:
            return
        self._emit(
            Category.SYSTEM,
            "channel_state",
            channel=channel.name,
            state=state,
            failures=channel.failures,
            error=channel.last_error,
        )

    def _on_given_up(self, channel: StreamChannel) -> None:
        self.failure = f"Connection failed after multiple attempts ({channel.name} stream: {channel.last_error})"
        logger.error("%s", self.failure)
        self._emit(Category.SYSTEM, "given_up", channel=channel.name, failures=channel.failures, error=channel.last_error)
        self.close("retry budget exhausted")
