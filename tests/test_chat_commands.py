"""Tests for chat command parsing and canned texts."""

from matchmaker.chat_commands import (
    ChatCommand,
    help_text,
    invite_text,
    parse_command,
)


def test_parse_join_uppercases_code() -> None:
    parsed = parse_command("  join ab3cd9 ")

    assert parsed is not None
    assert parsed.command is ChatCommand.JOIN
    assert parsed.argument == "AB3CD9"


def test_parse_keywords() -> None:
    assert parse_command("HELP").command is ChatCommand.HELP
    assert parse_command("start").command is ChatCommand.RESTART
    assert parse_command("Restart").command is ChatCommand.RESTART


def test_ordinary_text_is_not_a_command() -> None:
    assert parse_command("join the fun!") is None
    assert parse_command("can you help me") is None
    assert parse_command("") is None
    assert parse_command(None) is None


def test_invite_text_shows_plain_number() -> None:
    text = invite_text("whatsapp:+14155238886", "ABC234")

    assert "*+14155238886*" in text
    assert "join ABC234" in text


def test_help_text_lists_every_command() -> None:
    text = help_text("ABC234", 3)

    assert "ABC234" in text
    assert "3 people" in text
    for entry in ChatCommand:
        assert entry.value.usage in text
