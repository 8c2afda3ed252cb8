"""Lightweight event model used by BoardSession to notify observers.

Observers receive strongly-typed events instead of poking at session
internals: snapshot replacements, chat lines, unrecognised stream messages
and connection-level system notices.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict


class Category(Enum):
    """High-level event categories."""

    SNAPSHOT = auto()  # a new GameSnapshot was accepted
    CHAT = auto()  # chatLine from the game stream
    UNKNOWN = auto()  # stream message with an unrecognised type
    SYSTEM = auto()  # channel state, give-up, identity errors, session closed


@dataclass(frozen=True, slots=True)
class Event:
    """Immutable event emitted by BoardSession."""

    category: Category
    type: str  # finer-grained identifier, e.g. "updated", "line", "given_up"
    payload: Dict[str, Any]
