"""CLI client: follow and play one Lichess Board API game from a terminal."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import Callable, Dict

import httpx

from . import config as _cfg
from .api import AccountError, BoardApi
from .commands import CommandParseError, MoveCommand, QuitCommand, SeekCommand, StatusCommand, parse_command
from .events import Category, Event
from .session import BoardSession, CommandRejected
from .snapshot import GameSnapshot, status_line
from .transport import HttpLineTransport

logger = logging.getLogger(__name__)


# ---------------------------- printing -----------------------------


def _print_snapshot(snap: GameSnapshot) -> None:
    if snap.opponent_name:
        rating = f" ({snap.opponent_rating})" if snap.opponent_rating is not None else ""
        header = f"vs {snap.opponent_name}{rating}"
    else:
        header = "Lichess Game"
    print(f"\n[{header}] {status_line(snap)}")
    if snap.game_id:
        color = f"  You are: {snap.my_color.value.upper()}" if snap.my_color else ""
        print(f"  Game ID: {snap.game_id}{color}")
    if snap.last_opponent_move:
        print(f"  Last opponent move: {snap.last_opponent_move}")
    if snap.game_id:
        print(f"  Moves: {' '.join(snap.moves) if snap.moves else 'No moves yet'}")


def _make_printer(verbose: int) -> Callable[[Event], None]:
    def h_snapshot(ev: Event) -> None:
        _print_snapshot(ev.payload["snapshot"])

    def h_chat(ev: Event) -> None:
        print(f"[CHAT] {ev.payload['username']}: {ev.payload['text']}")

    def h_unknown(ev: Event) -> None:
        if verbose >= 1:
            print(f"[?] {ev.type}: {ev.payload['raw']}")

    def h_system(ev: Event) -> None:
        p = ev.payload
        if ev.type == "channel_state":
            if verbose >= 1 or p["error"]:
                detail = f" ({p['error']})" if p["error"] else ""
                print(f"[{p['channel']}] {p['state'].value}{detail}")
        elif ev.type == "given_up":
            print(f"[ERROR] Connection failed after multiple attempts ({p['channel']} stream)")
        elif ev.type == "command_failed":
            print(f"[ERROR] Move {p['move']} failed: {p['status']} {p['body']}")
        elif ev.type == "identity_mismatch":
            print(f"[ERROR] {p['detail']}")
        elif ev.type == "closed":
            print(f"[INFO] Session closed: {p['reason']}")

    handlers: Dict[Category, Callable[[Event], None]] = {
        Category.SNAPSHOT: h_snapshot,
        Category.CHAT: h_chat,
        Category.UNKNOWN: h_unknown,
        Category.SYSTEM: h_system,
    }

    def _printer(ev: Event) -> None:
        if ev.category.name.lower() in _cfg.QUIET_CATEGORIES:
            return
        handlers[ev.category](ev)

    return _printer


# ----------------------------- main -------------------------------


def main() -> None:  # pragma: no cover – CLI entry
    """Interactive CLI client."""

    parser = argparse.ArgumentParser(description="Lichess Board API streaming client")
    parser.add_argument("--token", default=_cfg.TOKEN, help="API token (default: $LICHESS_TOKEN)")
    parser.add_argument("--username", help="Your Lichess username (looked up from the token if omitted)")
    parser.add_argument("--seek", action="store_true", help="Create a seek right after connecting")
    parser.add_argument("--rated", action="store_true", default=_cfg.SEEK_RATED)
    parser.add_argument("--limit", type=int, default=_cfg.SEEK_CLOCK_LIMIT, help="Clock limit in seconds")
    parser.add_argument("--increment", type=int, default=_cfg.SEEK_CLOCK_INCREMENT, help="Clock increment in seconds")
    parser.add_argument("--color", choices=("random", "white", "black"), default=_cfg.SEEK_COLOR)
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (stackable)",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress most output",
    )
    args = parser.parse_args()

    if args.debug:
        os.environ["BOARDSTREAM_DEBUG"] = "1"
    logging.basicConfig(
        level=logging.DEBUG if (args.debug or _cfg.DEBUG) else logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    if not args.token:
        parser.error("no token given (use --token or set LICHESS_TOKEN)")

    try:
        asyncio.run(_client(args))
    except KeyboardInterrupt:
        logger.info("Client exiting")


def _report_seek(task: asyncio.Task) -> None:
    """Print why a background seek failed; successful seeks stay silent."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Seek failed", exc_info=exc)
        print(f"[ERROR] Failed to create seek: {type(exc).__name__}: {exc}")
        return
    result = task.result()
    if not result.ok:
        print(f"[ERROR] Failed to create seek: {result.status_code} {result.error or result.body}")


async def _read_line() -> str:
    return await asyncio.get_running_loop().run_in_executor(None, sys.stdin.readline)


def _seek_args(args: argparse.Namespace) -> dict:
    return {"rated": args.rated, "limit": args.limit, "increment": args.increment, "color": args.color}


async def _client(args: argparse.Namespace) -> None:
    async with httpx.AsyncClient(
        timeout=httpx.Timeout(_cfg.COMMAND_TIMEOUT, connect=_cfg.CONNECT_TIMEOUT, read=None)
    ) as http:
        api = BoardApi(args.token, http)
        username = args.username
        if not username:
            try:
                account = await api.fetch_account()
            except AccountError as exc:
                logger.error("%s", exc)
                return
            username = account["username"]
            logger.info("Logged in as %s (blitz %s)", username, account["blitz_rating"])

        session = BoardSession(args.token, username, transport=HttpLineTransport(http), api=api)
        session.subscribe(_make_printer(-1 if args.quiet else args.verbose))
        session.start()

        pending: set[asyncio.Task] = set()

        def _spawn_seek() -> None:
            task = asyncio.create_task(session.create_seek(**_seek_args(args)))
            pending.add(task)
            task.add_done_callback(_seek_done)

        def _seek_done(task: asyncio.Task) -> None:
            pending.discard(task)
            _report_seek(task)

        if args.seek:
            _spawn_seek()

        print("Commands: MOVE <uci> | <uci> | SEEK | STATUS | QUIT")
        try:
            while not session.closed:
                reader = asyncio.ensure_future(_read_line())
                closer = asyncio.ensure_future(session.until_closed())
                done, _ = await asyncio.wait({reader, closer}, return_when=asyncio.FIRST_COMPLETED)
                closer.cancel()
                if reader not in done:
                    # stdin reader thread stays blocked until the next newline
                    break
                line = reader.result()
                if not line:
                    break
                try:
                    cmd = parse_command(line)
                except CommandParseError as exc:
                    print(f"[ERR] {exc}")
                    continue
                if isinstance(cmd, QuitCommand):
                    break
                if isinstance(cmd, StatusCommand):
                    _print_snapshot(session.snapshot)
                elif isinstance(cmd, SeekCommand):
                    _spawn_seek()
                elif isinstance(cmd, MoveCommand):
                    try:
                        result = await session.submit_move(cmd.move)
                    except CommandRejected as exc:
                        print(f"[ERR] {exc}")
                        continue
                    if result.ok:
                        print(f"[INFO] Move {cmd.move} sent")
        finally:
            session.close("client exiting")
            for task in pending:
                task.cancel()
            await session.wait_closed()
            if session.failure:
                print(f"[ERROR] {session.failure}")


if __name__ == "__main__":
    main()
