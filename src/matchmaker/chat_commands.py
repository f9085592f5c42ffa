"""Chat commands recognized before a message reaches the language model."""

import re
from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ChatCommandSpec:
    """Declarative chat command definition."""

    keyword: str
    usage: str
    description: str


class ChatCommand(Enum):
    """Enum of chat commands (single source of truth)."""

    JOIN = ChatCommandSpec("join", "join CODE", "Join a friend's profile session")
    HELP = ChatCommandSpec("help", "help", "Show the session code and how this works")
    RESTART = ChatCommandSpec("restart", "restart", "Start a brand new session")


_JOIN_PATTERN = re.compile(r"^join\s+([A-Z0-9]{3,6})$", re.IGNORECASE)
_RESTART_KEYWORDS = {"start", "restart"}


@dataclass(frozen=True)
class ParsedCommand:
    """A recognized command and its argument, if any."""

    command: ChatCommand
    argument: str | None = None


def parse_command(text: str | None) -> ParsedCommand | None:
    """Return the command a message invokes, if any."""
    if not text:
        return None
    cleaned = text.strip()
    join = _JOIN_PATTERN.match(cleaned)
    if join:
        return ParsedCommand(ChatCommand.JOIN, join.group(1).upper())
    lowered = cleaned.lower()
    if lowered == ChatCommand.HELP.value.keyword:
        return ParsedCommand(ChatCommand.HELP)
    if lowered in _RESTART_KEYWORDS:
        return ParsedCommand(ChatCommand.RESTART)
    return None


def display_number(whatsapp_number: str) -> str:
    return whatsapp_number.removeprefix("whatsapp:")


def welcome_text(display_name: str | None) -> str:
    return (
        f"Hey {display_name or 'there'}! 👋\n\n"
        "I'm your AI matchmaker and I've started a session for you. "
        "Once your friends join we'll build an amazing dating profile together.\n\n"
        "Who are we creating this profile for today?"
    )


def restart_text() -> str:
    return "Starting fresh! 🎉\n\nNew session created. Who are we creating this profile for today?"


def invite_text(whatsapp_number: str, session_id: str) -> str:
    return (
        "📱 *Share this with your friends:*\n\n"
        "🎯 Help me create my dating profile!\n\n"
        f"Text this to: *{display_number(whatsapp_number)}*\n"
        f"Message: *join {session_id}*\n\n"
        "(Just forward this whole message!)"
    )


def join_text(display_name: str | None, session_id: str, participant_count: int) -> str:
    return (
        f"Welcome to the group, {display_name or 'friend'}! 🎉\n\n"
        f"You've joined session {session_id}. There are now {participant_count} "
        "people helping create this profile!"
    )


def unknown_session_text(session_id: str) -> str:
    return (
        f'Hmm, I couldn\'t find session "{session_id}". '
        "Double check the code and try again!"
    )


def help_text(session_id: str, participant_count: int) -> str:
    commands = "\n".join(
        f"• *{entry.value.usage}*: {entry.value.description}" for entry in ChatCommand
    )
    return (
        "Here's how this works:\n\n"
        f"📱 Session code: {session_id}\n"
        f"👥 {participant_count} people in this session\n"
        f"💬 Chat with me and I'll help build an authentic profile\n"
        f"👥 Friends can join with: *join {session_id}*\n\n"
        f"Commands:\n{commands}"
    )
