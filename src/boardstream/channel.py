"""StreamChannel: one supervised streaming connection with bounded reconnect.

The same class backs both the user event stream and the per-game stream.
Each channel owns exactly one asyncio task at a time; that task performs
connect -> stream -> detect termination, and on failure consults the
reconnect policy, sleeps, and tries again.

State machine::

    IDLE -> CONNECTING -> STREAMING -> DISCONNECTED -> CONNECTING
                                                    \\-> GIVEN_UP

Every ``open()`` and ``close()`` bumps a generation counter. A task only acts
while its own generation is current, so results from superseded attempts
(a connect that completes after close, a line read just before a reopen)
are discarded.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Awaitable, Callable, Optional

from .reconnect import GiveUp, Policy, next_action
from .transport import LineTransport, TransportError

logger = logging.getLogger(__name__)


class ChannelState(enum.Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    DISCONNECTED = "disconnected"
    GIVEN_UP = "given_up"


LineHandler = Callable[[str], None]
Sleep = Callable[[float], Awaitable[None]]


class StreamChannel:
    """Supervise a single logical stream (event-level or game-level)."""

    def __init__(
        self,
        name: str,
        transport: LineTransport,
        on_line: LineHandler,
        *,
        policy: Policy = next_action,
        sleep: Sleep = asyncio.sleep,
        on_state: Optional[Callable[["StreamChannel", ChannelState], None]] = None,
        on_given_up: Optional[Callable[["StreamChannel"], None]] = None,
    ) -> None:
        self.name = name
        self._transport = transport
        self._on_line = on_line
        self._policy = policy
        self._sleep = sleep
        self._on_state = on_state
        self._on_given_up = on_given_up

        self._state = ChannelState.IDLE
        self._generation = 0
        self._failures = 0
        self._task: Optional[asyncio.Task[None]] = None
        self._last_task: Optional[asyncio.Task[None]] = None
        self._url: Optional[str] = None
        self._token: Optional[str] = None
        self.last_error: Optional[str] = None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def failures(self) -> int:
        """Consecutive failures since the last confirmed stream."""
        return self._failures

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def url(self) -> Optional[str]:
        return self._url

    def __repr__(self) -> str:
        return f"<StreamChannel {self.name} {self._state.value} gen={self._generation} failures={self._failures}>"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def open(self, url: str, token: str) -> None:
        """Start streaming *url*; any connection this channel already holds is torn down first."""
        if self._task is not None:
            self._teardown()
        self._generation += 1
        self._failures = 0
        self._url = url
        self._token = token
        self.last_error = None
        logger.info("[%s] opening %s (gen %d)", self.name, url, self._generation)
        self._set_state(ChannelState.CONNECTING)
        self._task = asyncio.get_running_loop().create_task(
            self._run(self._generation), name=f"boardstream-{self.name}-{self._generation}"
        )
        self._last_task = self._task

    def close(self) -> None:
        """Stop streaming and cancel any pending reconnect; GIVEN_UP is kept for visibility."""
        self._generation += 1
        self._teardown()
        if self._state is not ChannelState.GIVEN_UP:
            self._set_state(ChannelState.IDLE)

    async def wait_closed(self) -> None:
        """Wait for the most recently started task to finish, cancelled or not."""
        task = self._last_task
        if task is None or task.done() or task is asyncio.current_task():
            return
        await asyncio.wait({task})

    def _teardown(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        # A handler closing its own channel just lets the task run off the end.
        if task is not asyncio.current_task():
            task.cancel()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _current(self, generation: int) -> bool:
        return generation == self._generation

    def _set_state(self, state: ChannelState) -> None:
        if state is self._state:
            return
        logger.debug("[%s] %s -> %s", self.name, self._state.value, state.value)
        self._state = state
        if self._on_state is not None:
            self._on_state(self, state)

    async def _run(self, generation: int) -> None:
        while self._current(generation):
            reason = await self._stream_once(generation)
            if not self._current(generation):
                return
            self._failures += 1
            self.last_error = reason
            self._set_state(ChannelState.DISCONNECTED)
            action = self._policy(self._failures)
            if isinstance(action, GiveUp):
                logger.error(
                    "[%s] %s – giving up after %d consecutive failures", self.name, reason, self._failures
                )
                self._set_state(ChannelState.GIVEN_UP)
                if self._on_given_up is not None:
                    self._on_given_up(self)
                return
            logger.warning(
                "[%s] %s – reconnecting in %.1fs (attempt %d)",
                self.name,
                reason,
                action.after_delay,
                self._failures,
            )
            await self._sleep(action.after_delay)
            if not self._current(generation):
                return
            self._set_state(ChannelState.CONNECTING)

    async def _stream_once(self, generation: int) -> str:
        """Run one connection attempt; return why it ended."""
        try:
            async with self._transport.stream(self._url, self._token) as lines:
                if not self._current(generation):
                    return "superseded"
                self._failures = 0
                self._set_state(ChannelState.STREAMING)
                logger.info("[%s] streaming", self.name)
                async for line in lines:
                    if not self._current(generation):
                        return "superseded"
                    self._failures = 0
                    try:
                        self._on_line(line)
                    except Exception:  # noqa: BLE001
                        logger.exception("[%s] line handler failed for %r", self.name, line)
                    if not self._current(generation):
                        return "superseded"
            return "stream closed by server"
        except TransportError as exc:
            return f"transport error: {exc}"
        except OSError as exc:
            return f"connection error: {exc}"
        except Exception as exc:  # noqa: BLE001
            logger.exception("[%s] unexpected stream failure", self.name)
            return f"unexpected error: {type(exc).__name__}: {exc}"
