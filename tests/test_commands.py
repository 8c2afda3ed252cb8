import pytest

from boardstream.commands import (
    parse_command,
    MoveCommand,
    SeekCommand,
    StatusCommand,
    QuitCommand,
    CommandParseError,
)


def test_move_basic():
    cmd = parse_command("MOVE e2e4")
    assert isinstance(cmd, MoveCommand)
    assert cmd.move == "e2e4"


def test_move_whitespace_and_case():
    cmd = parse_command("  move   E7E8Q  ")
    assert isinstance(cmd, MoveCommand)
    assert cmd.move == "e7e8q"


def test_bare_uci_is_a_move():
    cmd = parse_command("g1f3")
    assert cmd == MoveCommand(move="g1f3")


def test_move_invalid_square():
    with pytest.raises(CommandParseError):
        parse_command("MOVE e9e4")


def test_move_missing_arg():
    with pytest.raises(CommandParseError):
        parse_command("MOVE")


def test_seek_status_quit():
    assert isinstance(parse_command("SEEK"), SeekCommand)
    assert isinstance(parse_command("status"), StatusCommand)
    assert isinstance(parse_command("QUIT"), QuitCommand)


def test_quit_with_trailing_words_is_unknown():
    with pytest.raises(CommandParseError):
        parse_command("QUIT now")


def test_unknown_command():
    with pytest.raises(CommandParseError):
        parse_command("HELLO there")


def test_empty_line():
    with pytest.raises(CommandParseError):
        parse_command("    ")
