"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from sibyl.domain.exceptions import SlackAPIError
from sibyl.services.entity_registry import EntityRegistry


class StubSlackClient:
    """In-memory stand-in for SlackClient."""

    def __init__(
        self,
        users: dict[str, dict[str, Any]] | None = None,
        history: dict[str, list[str]] | None = None,
    ) -> None:
        self.users = users or {}
        self.history = history or {}
        self.user_lookups: list[str] = []
        self.searches: list[tuple[str, int]] = []
        self.posted: list[tuple[str, str]] = []
        self.fail_lookups = False
        self.fail_search = False
        self.fail_post = False

    def get_user_info(self, user_id: str) -> dict[str, Any] | None:
        self.user_lookups.append(user_id)
        if self.fail_lookups:
            raise SlackAPIError("Slack API error in users_info: fatal_error")
        return self.users.get(user_id)

    def search_user_messages(self, username: str, count: int) -> list[dict[str, Any]]:
        self.searches.append((username, count))
        if self.fail_search:
            raise SlackAPIError("Slack API error in search_messages: fatal_error")
        return [{"text": text} for text in self.history.get(username, [])[:count]]

    def post_message(self, channel_id: str, text: str) -> None:
        if self.fail_post:
            raise SlackAPIError("Slack API error in chat_postMessage: fatal_error")
        self.posted.append((channel_id, text))


@pytest.fixture
def registry() -> EntityRegistry:
    """Registry whose rating function parses the message text as a number."""
    return EntityRegistry(float)


@pytest.fixture
def slack_client() -> StubSlackClient:
    """Stub Slack client with one known user and some history."""
    return StubSlackClient(
        users={
            "U100": {"id": "U100", "name": "akane", "real_name": "Akane Tsunemori"},
            "U200": {"id": "U200", "name": "shinya", "real_name": ""},
        },
        history={"akane": ["1"] * 10},
    )
