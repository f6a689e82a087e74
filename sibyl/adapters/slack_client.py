"""Slack API client adapter."""

import time
from typing import Any, Final, cast

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from sibyl.config.logging_config import get_logger
from sibyl.domain.exceptions import RateLimitError, SlackAPIError

logger = get_logger(__name__)


DEFAULT_SLACK_MAX_RETRIES: Final[int] = 3
DEFAULT_RETRY_AFTER_SECONDS: Final[int] = 10

USER_LOOKUP_MISSES: Final[frozenset[str]] = frozenset(
    {"user_not_found", "user_not_visible", "invalid_arg_name", "invalid_array_arg"}
)
"""users.info errors that mean "no such user" rather than a failure."""

NON_RETRYABLE_ERRORS: Final[frozenset[str]] = USER_LOOKUP_MISSES | frozenset(
    {
        "not_authed",
        "invalid_auth",
        "account_inactive",
        "missing_scope",
        "not_allowed_token_type",
        "channel_not_found",
        "not_in_channel",
    }
)


class SlackClient:
    """Slack Web API client with retries and in-memory user caching."""

    def __init__(
        self,
        bot_token: str,
        *,
        max_retries: int = DEFAULT_SLACK_MAX_RETRIES,
        client: Any = None,
    ) -> None:
        """Initialize Slack client.

        Args:
            bot_token: Slack token. search.messages needs a user token scope.
            max_retries: Maximum attempts for transient errors
            client: Optional pre-built WebClient (for tests)
        """
        self.client = client if client is not None else WebClient(token=bot_token)
        self._user_cache: dict[str, dict[str, Any]] = {}
        self._max_retries = max(max_retries, 1)

    def get_user_info(self, user_id: str) -> dict[str, Any] | None:
        """Get user information by ID (with in-memory caching).

        Args:
            user_id: Slack user ID

        Returns:
            User dictionary, or None if Slack reports the user as missing

        Raises:
            SlackAPIError: On API communication errors
        """
        if not user_id:
            return None

        if user_id in self._user_cache:
            return self._user_cache[user_id]

        try:
            response = self._call("users_info", user=user_id)
        except SlackAPIError as error:
            if error.error_code in USER_LOOKUP_MISSES:
                logger.info(
                    "slack_user_not_found", user_id=user_id, error=error.error_code
                )
                return None
            raise

        user = cast(dict[str, Any], response.get("user") or {})
        self._user_cache[user_id] = user
        return user

    def search_user_messages(
        self, username: str, count: int
    ) -> list[dict[str, Any]]:
        """Fetch a user's most recent messages via search.messages.

        Args:
            username: Slack handle
            count: Maximum number of matches

        Returns:
            Raw search matches, newest first

        Raises:
            SlackAPIError: On API communication errors
            RateLimitError: On rate limit exceeded
        """
        response = self._call(
            "search_messages",
            query=f"from:{username}",
            sort="timestamp",
            sort_dir="desc",
            count=count,
        )
        messages = cast(dict[str, Any], response.get("messages") or {})
        matches = cast(list[dict[str, Any]], messages.get("matches") or [])
        return matches[:count]

    def post_message(self, channel_id: str, text: str) -> None:
        """Post a message to a channel.

        Raises:
            SlackAPIError: On API communication errors
            RateLimitError: On rate limit exceeded
        """
        self._call("chat_postMessage", channel=channel_id, text=text)

    def _call(self, method: str, **params: Any) -> dict[str, Any]:
        """Invoke a WebClient method with retry handling."""

        api = getattr(self.client, method)
        attempt = 0
        while True:
            try:
                response = cast(dict[str, Any], api(**params))
            except SlackApiError as error:
                error_code = error.response.get("error")
                if error_code == "ratelimited":
                    retry_after = int(
                        error.response.headers.get(
                            "Retry-After", DEFAULT_RETRY_AFTER_SECONDS
                        )
                    )
                    attempt += 1
                    logger.warning(
                        "slack_rate_limited",
                        method=method,
                        retry_after_seconds=retry_after,
                        attempt=attempt,
                        max_retries=self._max_retries,
                    )
                    if attempt >= self._max_retries:
                        raise RateLimitError(retry_after=retry_after) from error
                    time.sleep(retry_after)
                    continue

                if error_code in NON_RETRYABLE_ERRORS:
                    raise SlackAPIError(
                        f"Slack API error in {method}: {error_code}",
                        error_code=error_code,
                    ) from error

                attempt += 1
                if attempt >= self._max_retries:
                    raise SlackAPIError(
                        f"Failed after {self._max_retries} retries: {error}",
                        error_code=error_code,
                    ) from error

                backoff_seconds = 2**attempt
                logger.warning(
                    "slack_api_retry",
                    method=method,
                    error=str(error),
                    attempt=attempt,
                    max_retries=self._max_retries,
                    backoff_seconds=backoff_seconds,
                )
                time.sleep(backoff_seconds)
                continue

            if not response.get("ok", True):
                error_code = response.get("error")
                raise SlackAPIError(
                    f"Slack API error in {method}: {error_code}", error_code=error_code
                )
            return response
