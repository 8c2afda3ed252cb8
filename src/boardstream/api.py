"""One-shot Board API commands (seek, move, account lookup).

These are plain request/response calls. Failures are reported to the caller
as ``CommandResult`` values and are never retried here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from . import config as _cfg
from .transport import auth_headers

logger = logging.getLogger(__name__)

SUCCESS_CODES = (200, 204)


@dataclass(frozen=True)
class CommandResult:
    status_code: Optional[int]
    body: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status_code in SUCCESS_CODES


class AccountError(Exception):
    """The account lookup did not return a usable profile."""


class BoardApi:
    """Thin wrapper over the command endpoints, sharing one ``httpx.AsyncClient``."""

    def __init__(self, token: str, client: httpx.AsyncClient | None = None, *, base_url: str | None = None) -> None:
        self._token = token
        self._base = (base_url or _cfg.API_BASE).rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=_cfg.COMMAND_TIMEOUT)

    async def _post(
        self, path: str, *, data: Dict[str, str] | None = None, timeout: httpx.Timeout | float = _cfg.COMMAND_TIMEOUT
    ) -> CommandResult:
        url = f"{self._base}{path}"
        try:
            response = await self._client.post(
                url,
                headers=auth_headers(self._token, ndjson=False),
                data=data,
                timeout=timeout,
            )
        except httpx.HTTPError as exc:
            logger.error("POST %s failed: %s", path, exc)
            return CommandResult(status_code=None, error=f"{type(exc).__name__}: {exc}")
        result = CommandResult(status_code=response.status_code, body=response.text)
        if result.ok:
            logger.debug("POST %s -> %d", path, response.status_code)
        else:
            logger.error("POST %s -> %d %s", path, response.status_code, response.text[:200])
        return result

    async def create_seek(
        self,
        *,
        rated: bool = _cfg.SEEK_RATED,
        limit: int = _cfg.SEEK_CLOCK_LIMIT,
        increment: int = _cfg.SEEK_CLOCK_INCREMENT,
        color: str = _cfg.SEEK_COLOR,
    ) -> CommandResult:
        """Post a real-time seek; the service answers once the seek is matched or dropped."""
        logger.info("Creating seek rated=%s clock=%d+%d color=%s", rated, limit, increment, color)
        form = {
            "rated": "true" if rated else "false",
            "time": f"{limit / 60:g}",
            "increment": str(increment),
            "color": color,
        }
        # A real-time seek stays open until paired, so no read timeout here.
        return await self._post(_cfg.SEEK_PATH, data=form, timeout=httpx.Timeout(_cfg.COMMAND_TIMEOUT, read=None))

    async def submit_move(self, game_id: str, move: str) -> CommandResult:
        logger.info("Submitting move %s in game %s", move, game_id)
        return await self._post(_cfg.MOVE_PATH.format(game_id=game_id, move=move))

    async def fetch_account(self) -> Dict[str, Any]:
        """Return the profile behind the token: id, username and blitz rating."""
        url = f"{self._base}{_cfg.ACCOUNT_PATH}"
        try:
            response = await self._client.get(url, headers=auth_headers(self._token, ndjson=False))
        except httpx.HTTPError as exc:
            raise AccountError(f"account lookup failed: {exc}") from exc
        if response.status_code != 200:
            raise AccountError(f"account lookup failed with status {response.status_code}: {response.text[:200]}")
        data = response.json()
        if not isinstance(data, dict) or "username" not in data:
            raise AccountError("account response has no username")
        blitz = data.get("perfs", {}).get("blitz", {}) if isinstance(data.get("perfs"), dict) else {}
        return {
            "id": data.get("id", str(data["username"]).lower()),
            "username": data["username"],
            "blitz_rating": blitz.get("rating") if isinstance(blitz, dict) else None,
        }

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
