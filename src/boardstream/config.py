"""Central configuration for runtime-tunable parameters.

All constants can be overridden via environment variables so that the
client talks to the public Lichess service by default, while the
automated test-suite (or a local lila instance) can point it elsewhere and
shrink the reconnect delays.
"""

from __future__ import annotations

import os


# ===========================================================================
# Remote Service
# ===========================================================================
# BOARDSTREAM_API: Base URL of the Board API host.
#   Defaults to "https://lichess.org".
#   Example: export BOARDSTREAM_API=http://localhost:9663
API_BASE: str = os.getenv("BOARDSTREAM_API", "https://lichess.org").rstrip("/")

# User-level event stream (gameStart / gameFinish / challenges).
EVENT_STREAM_PATH: str = "/api/stream/event"

# Per-game state stream; formatted with the game id.
GAME_STREAM_PATH: str = "/api/board/game/stream/{game_id}"

# One-shot command endpoints.
SEEK_PATH: str = "/api/board/seek"
MOVE_PATH: str = "/api/board/game/{game_id}/move/{move}"
ACCOUNT_PATH: str = "/api/account"


def event_stream_url() -> str:
    return f"{API_BASE}{EVENT_STREAM_PATH}"


def game_stream_url(game_id: str) -> str:
    return f"{API_BASE}{GAME_STREAM_PATH.format(game_id=game_id)}"


# ===========================================================================
# Credential
# ===========================================================================
# LICHESS_TOKEN: Personal API token with the board:play scope.
#   Read by the CLI only; the library always receives the token explicitly.
#   Example: export LICHESS_TOKEN=lip_xxxxxxxx
TOKEN: str | None = os.getenv("LICHESS_TOKEN")


# ===========================================================================
# Reconnect Policy
# ===========================================================================
# BOARDSTREAM_MAX_RETRIES: Reconnect attempts per channel before giving up.
#   Defaults to 3.
MAX_RETRIES: int = int(os.getenv("BOARDSTREAM_MAX_RETRIES", "3"))

# BOARDSTREAM_RETRY_STEP: Linear backoff step in seconds (attempt * step).
#   Defaults to 2.0, i.e. 2s, 4s, 6s.
RETRY_STEP: float = float(os.getenv("BOARDSTREAM_RETRY_STEP", "2.0"))


# ===========================================================================
# HTTP Timeouts
# ===========================================================================
# BOARDSTREAM_CONNECT_TIMEOUT: Seconds allowed to open a streaming connection.
#   The read timeout on streams is disabled; keep-alive lines arrive every few seconds.
CONNECT_TIMEOUT: float = float(os.getenv("BOARDSTREAM_CONNECT_TIMEOUT", "10"))

# BOARDSTREAM_COMMAND_TIMEOUT: Seconds allowed for a one-shot command (move, account).
COMMAND_TIMEOUT: float = float(os.getenv("BOARDSTREAM_COMMAND_TIMEOUT", "10"))


# ===========================================================================
# Seek Defaults
# ===========================================================================
# Casual 5+0 game with a random color.
SEEK_RATED: bool = os.getenv("BOARDSTREAM_SEEK_RATED", "0") == "1"
SEEK_CLOCK_LIMIT: int = int(os.getenv("BOARDSTREAM_SEEK_LIMIT", "300"))
SEEK_CLOCK_INCREMENT: int = int(os.getenv("BOARDSTREAM_SEEK_INCREMENT", "0"))
SEEK_COLOR: str = os.getenv("BOARDSTREAM_SEEK_COLOR", "random")


# ===========================================================================
# Debugging and Logging
# ===========================================================================
# BOARDSTREAM_DEBUG: If "1", enables detailed debug logging across modules.
#   Defaults to "0" (disabled).
DEBUG: bool = os.getenv("BOARDSTREAM_DEBUG", "0") == "1"

# BOARDSTREAM_QUIET: Comma-separated list of event categories the CLI should *not* print.
#   Example: export BOARDSTREAM_QUIET="chat,unknown"
QUIET_CATEGORIES: list[str] = os.getenv("BOARDSTREAM_QUIET", "").split(",") if os.getenv("BOARDSTREAM_QUIET") else []
