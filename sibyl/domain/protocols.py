"""Protocol definitions for dependency inversion.

These abstract interfaces define contracts that adapters must implement.
"""

from typing import Any, Protocol


class RatingFunction(Protocol):
    """Converts a raw event payload (message text) into a numeric rating."""

    def __call__(self, payload: str) -> float: ...


class SlackClientProtocol(Protocol):
    """Slack operations used by the use cases."""

    def get_user_info(self, user_id: str) -> dict[str, Any] | None:
        """Get user profile by ID.

        Args:
            user_id: Slack user ID

        Returns:
            User dictionary, or None if the user does not exist or is hidden

        Raises:
            SlackAPIError: On API communication errors
        """
        ...

    def search_user_messages(
        self, username: str, count: int
    ) -> list[dict[str, Any]]:
        """Fetch the most recent messages sent by a user, newest first.

        Args:
            username: Slack handle (not the user ID)
            count: Maximum number of messages

        Returns:
            List of raw Slack search matches

        Raises:
            SlackAPIError: On API communication errors
        """
        ...

    def post_message(self, channel_id: str, text: str) -> None:
        """Post a reply to a channel.

        Raises:
            SlackAPIError: On API communication errors
        """
        ...
