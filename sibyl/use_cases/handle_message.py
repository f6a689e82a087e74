"""Handle message use case.

Processes one incoming chat message: credits its text to the sender and the
channel, then answers any `psychopass` command it contains.
"""

from typing import Any, Final

from sibyl.config.logging_config import bind_context, get_logger, unbind_context
from sibyl.domain.exceptions import RateLimitError, SlackAPIError
from sibyl.domain.models import CommandType, EntityKind, ParsedCommand, RankedEntity
from sibyl.domain.protocols import SlackClientProtocol
from sibyl.services.command_parser import parse_command
from sibyl.services.entity_registry import EntityRegistry
from sibyl.use_cases.bootstrap_history import (
    bootstrap_user_history_use_case,
    resolve_user_use_case,
)

logger = get_logger(__name__)

USER_NOT_FOUND_REPLY: Final[str] = (
    "The person whose Psycho-Pass was requested does not exist."
)
CHANNEL_NOT_SCORED_REPLY: Final[str] = (
    "No Psycho-Pass has been recorded for that channel yet."
)
SCORED_CHANNEL_TYPES: Final[frozenset[str]] = frozenset({"channel", "group"})
"""Conversation types that are ranked; DMs and group DMs only score the sender."""

SLACK_ERROR_REPLY: Final[str] = (
    "Sibyl has encountered an error communicating with Slack's servers.\n"
    "Please try again later."
)
HELP_REPLY: Final[str] = "\n".join(
    [
        "*Sibyl commands*",
        "`psychopass` - Psycho-Pass of this channel",
        "`psychopass @user` - Psycho-Pass of a user",
        "`psychopass #channel` - Psycho-Pass of a channel",
        "`psychopass leaderboard users` - highest and lowest users",
        "`psychopass leaderboard channels` - highest and lowest channels",
        "`psychopass help` - this message",
    ]
)


def format_leaderboard(
    registry: EntityRegistry, kind: EntityKind, size: int | None = None
) -> str:
    """Render highest and lowest entries of a leaderboard as Slack text.

    Example:
        >>> print(format_leaderboard(registry, EntityKind.USER, 2))
        *Highest Psycho-Pass (users)*
        1. Alice: 120
        2. Bob: 98
        *Lowest Psycho-Pass (users)*
        1. Carol: 41
        2. Bob: 98
    """
    label = f"{kind.value}s"
    highest = registry.query_top(size, kind)
    if not highest:
        return f"No {label} have a Psycho-Pass yet."

    lowest = registry.query_bottom(size, kind)
    lines = [f"*Highest Psycho-Pass ({label})*"]
    lines.extend(_format_rows(registry, kind, highest))
    lines.append(f"*Lowest Psycho-Pass ({label})*")
    lines.extend(_format_rows(registry, kind, lowest))
    return "\n".join(lines)


def _label(registry: EntityRegistry, kind: EntityKind, entity_id: str) -> str:
    # Slack renders <#C123> and <@U123> as the channel and user names
    if kind is EntityKind.CHANNEL:
        return f"<#{entity_id}>"
    profile = registry.get_profile(entity_id, kind)
    if profile is not None and (profile.name or profile.username):
        return profile.display_name
    return f"<@{entity_id}>"


def _format_rows(
    registry: EntityRegistry, kind: EntityKind, rows: list[RankedEntity]
) -> list[str]:
    lines: list[str] = []
    for position, row in enumerate(rows, start=1):
        name = _label(registry, kind, row.entity_id)
        lines.append(f"{position}. {name}: {row.value}")
    return lines


def user_psycho_pass_use_case(
    user_id: str,
    registry: EntityRegistry,
    slack_client: SlackClientProtocol,
    *,
    fetch_count: int,
) -> str:
    """Answer a request for a user's Psycho-Pass."""
    try:
        if not resolve_user_use_case(user_id, registry, slack_client):
            return USER_NOT_FOUND_REPLY
        score = bootstrap_user_history_use_case(
            user_id, registry, slack_client, fetch_count=fetch_count
        )
    except (SlackAPIError, RateLimitError) as error:
        logger.error("user_lookup_failed", user_id=user_id, error=str(error))
        return SLACK_ERROR_REPLY

    return f"The user's Psycho-Pass is {score}."


def channel_psycho_pass_use_case(channel_id: str, registry: EntityRegistry) -> str:
    """Answer a request for a channel's Psycho-Pass."""
    score = registry.query_score(channel_id, EntityKind.CHANNEL)
    if score is None:
        return CHANNEL_NOT_SCORED_REPLY
    return f"The channel's Psycho-Pass is {score}."


def _dispatch(
    command: ParsedCommand,
    channel_id: str,
    registry: EntityRegistry,
    slack_client: SlackClientProtocol,
    fetch_count: int,
) -> str:
    target_id = command.target_id
    if command.command is CommandType.USER and target_id:
        return user_psycho_pass_use_case(
            target_id, registry, slack_client, fetch_count=fetch_count
        )
    if command.command is CommandType.CHANNEL and target_id:
        return channel_psycho_pass_use_case(target_id, registry)
    if command.command is CommandType.SAME_CHANNEL:
        return channel_psycho_pass_use_case(channel_id, registry)
    if command.command is CommandType.USERS_LEADERBOARD:
        return format_leaderboard(registry, EntityKind.USER)
    if command.command is CommandType.CHANNELS_LEADERBOARD:
        return format_leaderboard(registry, EntityKind.CHANNEL)
    return HELP_REPLY


def handle_message_use_case(
    user_id: str,
    text: str,
    channel_id: str,
    registry: EntityRegistry,
    slack_client: SlackClientProtocol,
    *,
    fetch_count: int,
    channel_type: str | None = "channel",
) -> str | None:
    """Process one incoming chat message.

    Args:
        user_id: Sender's Slack user ID
        text: Message text
        channel_id: Channel, group or DM the message was posted to
        registry: Entity registry
        slack_client: Slack client used for user lookups
        fetch_count: Messages fetched when bootstrapping a user
        channel_type: Slack conversation type ("channel", "group", "im",
            "mpim"). Only channels and private groups get a Psycho-Pass.

    Returns:
        Reply text, or None if the message needs no reply
    """
    command = parse_command(text)
    activity = text if command is None else command.text

    if activity:
        channel_score: int | None = None
        if channel_type in SCORED_CHANNEL_TYPES:
            user_score, channel_score = registry.record_message(
                user_id, channel_id, activity
            )
        else:
            user_score = registry.record_event(user_id, activity, EntityKind.USER)
        logger.debug(
            "message_recorded",
            user_id=user_id,
            channel_id=channel_id,
            user_score=user_score,
            channel_score=channel_score,
        )

    if command is None:
        return None

    logger.info(
        "command_received",
        command=command.command.value,
        user_id=user_id,
        channel_id=channel_id,
        target_id=command.target_id,
    )
    return _dispatch(command, channel_id, registry, slack_client, fetch_count)


def handle_slack_event_use_case(
    event: dict[str, Any],
    registry: EntityRegistry,
    slack_client: SlackClientProtocol,
    *,
    fetch_count: int,
) -> str | None:
    """Handle a raw Events API payload, replying in its channel if needed.

    Bot messages and message subtypes (edits, deletes, joins) are ignored.

    Returns:
        The reply text (posted to the channel), or None
    """
    if event.get("type") != "message" or event.get("subtype") or event.get("bot_id"):
        return None

    user_id = event.get("user")
    text = event.get("text")
    channel_id = event.get("channel")
    if not user_id or not text or not channel_id:
        return None

    bind_context(channel_id=channel_id, user_id=user_id)
    try:
        reply = handle_message_use_case(
            user_id,
            text,
            channel_id,
            registry,
            slack_client,
            fetch_count=fetch_count,
            channel_type=event.get("channel_type"),
        )
        if reply:
            try:
                slack_client.post_message(channel_id, reply)
            except (SlackAPIError, RateLimitError) as error:
                logger.error("reply_post_failed", error=str(error))
        return reply
    finally:
        unbind_context("channel_id", "user_id")
