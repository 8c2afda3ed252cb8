import re
from typing import Tuple

# Regex for coordinate-notation moves e2e4 … a7a8q
UCI_RE = re.compile(r"^[a-h][1-8][a-h][1-8][qrbn]?$")


def is_uci(token: str) -> bool:
    """
    Return True if *token* is a move in coordinate notation (e.g. 'e2e4', 'e7e8q').
    Only the shape is checked; legality belongs to the server.
    """
    return bool(UCI_RE.match(token))


def split_moves(text: str | None) -> Tuple[str, ...]:
    """
    Split a space-separated move list into tokens; None or blank yields ().
    """
    if not text:
        return ()
    return tuple(text.split())
