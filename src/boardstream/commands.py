from dataclasses import dataclass
from typing import Union

from .notation import is_uci


class CommandParseError(Exception):
    """Raised when a line cannot be parsed as a valid command."""


@dataclass(frozen=True)
class MoveCommand:
    move: str


@dataclass(frozen=True)
class SeekCommand:
    pass


@dataclass(frozen=True)
class StatusCommand:
    pass


@dataclass(frozen=True)
class QuitCommand:
    pass


Command = Union[MoveCommand, SeekCommand, StatusCommand, QuitCommand]


def parse_command(line: str) -> Command:
    if line is None:
        raise CommandParseError("No command to parse")
    raw = line.strip()
    if not raw:
        raise CommandParseError("Empty command")
    parts = raw.split(maxsplit=1)
    verb = parts[0].upper()
    if verb == "MOVE":
        if len(parts) < 2 or not parts[1].strip():
            raise CommandParseError("MOVE requires a move, e.g. MOVE e2e4")
        move = parts[1].strip().lower()
        if not is_uci(move):
            raise CommandParseError(f"Invalid move: {move}")
        return MoveCommand(move=move)
    elif verb == "SEEK" and len(parts) == 1:
        return SeekCommand()
    elif verb == "STATUS" and len(parts) == 1:
        return StatusCommand()
    elif verb == "QUIT" and len(parts) == 1:
        return QuitCommand()
    elif len(parts) == 1 and is_uci(raw.lower()):
        # bare "e2e4" is shorthand for MOVE e2e4
        return MoveCommand(move=raw.lower())
    else:
        raise CommandParseError(f"Unknown command: {raw}")
