"""CLI helpers that can be exercised without a terminal."""

from __future__ import annotations

import asyncio

from boardstream.api import CommandResult
from boardstream.client import _report_seek


def _finished_task(coro_factory) -> asyncio.Task:
    async def scenario():
        task = asyncio.create_task(coro_factory())
        await asyncio.wait({task})
        return task

    return asyncio.run(scenario())


def test_seek_exception_is_printed(capsys) -> None:
    async def explode():
        raise ValueError("form rejected by proxy")

    _report_seek(_finished_task(explode))
    out = capsys.readouterr().out
    assert "Failed to create seek: ValueError: form rejected by proxy" in out


def test_seek_http_failure_is_printed(capsys) -> None:
    async def refused():
        return CommandResult(status_code=429, body="Too many requests")

    _report_seek(_finished_task(refused))
    assert "Failed to create seek: 429 Too many requests" in capsys.readouterr().out


def test_successful_seek_is_silent(capsys) -> None:
    async def accepted():
        return CommandResult(status_code=200)

    _report_seek(_finished_task(accepted))
    assert capsys.readouterr().out == ""
