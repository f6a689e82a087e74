"""Domain models for Sibyl.

All models use Pydantic v2 for validation and serialization.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sibyl.domain.scoring_constants import (
    CHANNEL_WINDOW_CAPACITY,
    USER_WINDOW_CAPACITY,
)


class EntityKind(str, Enum):
    """Class of scored entity."""

    USER = "user"
    CHANNEL = "channel"

    @property
    def window_capacity(self) -> int:
        """Rating window capacity for this entity class."""
        if self is EntityKind.CHANNEL:
            return CHANNEL_WINDOW_CAPACITY
        return USER_WINDOW_CAPACITY


class CommandType(str, Enum):
    """Commands understood by the `psychopass` chat grammar."""

    SAME_CHANNEL = "same_channel"
    USER = "user"
    CHANNEL = "channel"
    HELP = "help"
    USERS_LEADERBOARD = "users_leaderboard"
    CHANNELS_LEADERBOARD = "channels_leaderboard"


TARGETED_COMMANDS: frozenset[CommandType] = frozenset(
    {CommandType.USER, CommandType.CHANNEL}
)
"""Commands that must carry a target_id."""


class EntityProfile(BaseModel):
    """Metadata about a scored entity (no score data)."""

    entity_id: str = Field(..., description="Slack user or channel ID")
    kind: EntityKind = Field(..., description="Entity class")
    username: str | None = Field(default=None, description="Slack handle")
    name: str | None = Field(
        default=None, description="Real name for users, channel name for channels"
    )

    @property
    def display_name(self) -> str:
        """Best human-readable label: name, then username, then the raw id."""
        return self.name or self.username or self.entity_id


class RankedEntity(BaseModel):
    """Read-only leaderboard row returned by top/bottom queries."""

    model_config = ConfigDict(frozen=True)

    entity_id: str = Field(..., description="Entity ID")
    value: int = Field(..., description="Current Psycho-Pass")


class ParsedCommand(BaseModel):
    """Result of parsing a `psychopass` chat command."""

    command: CommandType = Field(..., description="Recognized command")
    target_id: str | None = Field(
        default=None, description="User or channel ID the command refers to"
    )
    text: str | None = Field(
        default=None, description="Free text following the command, if any"
    )

    @model_validator(mode="after")
    def _require_target(self) -> "ParsedCommand":
        if self.command in TARGETED_COMMANDS and not self.target_id:
            raise ValueError(f"{self.command.value} command requires a target_id")
        return self
