"""Parser for `psychopass` chat commands.

Grammar:
    psychopass
    psychopass <@USER_ID> [text]
    psychopass <#CHANNEL_ID|name> [text]
    psychopass help [text]
    psychopass leaderboard users [text]
    psychopass leaderboard channels [text]

Any trailing text is returned so the caller can still count it as the
sender's activity.
"""

import re
from typing import Final

from sibyl.domain.models import CommandType, ParsedCommand

COMMAND_PREFIX: Final[str] = "psychopass"

MENTION_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^<(?P<sigil>[@#])(?P<id>[^>|\s]{2,})(?:\|[^>]*)?>(?:\s+|$)"
)
"""Slack-formatted user (<@U123>) or channel (<#C123|general>) reference."""

HELP_PATTERN: Final[re.Pattern[str]] = re.compile(r"^help(?:\s+|$)")

LEADERBOARD_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^leaderboard\s+(?P<board>users|channels)(?:\s+|$)"
)


def _trailing_text(fragment: str, match: re.Match[str]) -> str | None:
    text = fragment[match.end() :]
    return text or None


def parse_command(message: str) -> ParsedCommand | None:
    """Parse a chat message into a command.

    Args:
        message: Raw Slack message text

    Returns:
        Parsed command, or None if the message is not a command

    Example:
        >>> parse_command("psychopass <@U123> hello").target_id
        'U123'
        >>> parse_command("hello there") is None
        True
    """
    if message == COMMAND_PREFIX:
        return ParsedCommand(command=CommandType.SAME_CHANNEL)

    if not message.startswith(COMMAND_PREFIX + " "):
        return None
    fragment = message[len(COMMAND_PREFIX) + 1 :]

    match = MENTION_PATTERN.match(fragment)
    if match:
        command = CommandType.USER if match["sigil"] == "@" else CommandType.CHANNEL
        return ParsedCommand(
            command=command,
            target_id=match["id"],
            text=_trailing_text(fragment, match),
        )

    match = HELP_PATTERN.match(fragment)
    if match:
        return ParsedCommand(
            command=CommandType.HELP, text=_trailing_text(fragment, match)
        )

    match = LEADERBOARD_PATTERN.match(fragment)
    if match:
        command = (
            CommandType.USERS_LEADERBOARD
            if match["board"] == "users"
            else CommandType.CHANNELS_LEADERBOARD
        )
        return ParsedCommand(command=command, text=_trailing_text(fragment, match))

    return None
