"""Custom exception hierarchy for Sibyl.

Following error taxonomy: retryable, non-retryable, validation, rate-limit.
"""


class SibylError(Exception):
    """Base exception for all application errors."""

    pass


class RetryableError(SibylError):
    """Errors that can be retried (network issues, temporary failures)."""

    pass


class NonRetryableError(SibylError):
    """Errors that should not be retried (validation, auth, logic errors)."""

    pass


class ValidationError(NonRetryableError):
    """Data validation errors."""

    pass


class LeaderboardIntegrityError(NonRetryableError):
    """Leaderboard was asked to move an entry it does not hold.

    Raised when the caller passes an id/value pair that matches no entry.
    The sorted order can no longer be trusted once this happens.
    """

    def __init__(self, entry_id: str, value: int) -> None:
        """Initialize with the offending id and value."""
        self.entry_id = entry_id
        self.value = value
        super().__init__(f"No leaderboard entry for id={entry_id!r} with value={value}")


class RateLimitError(RetryableError):
    """API rate limit exceeded."""

    def __init__(self, retry_after: int | None = None) -> None:
        """Initialize with optional retry_after seconds."""
        self.retry_after = retry_after
        super().__init__(f"Rate limit exceeded. Retry after: {retry_after}s")


class SlackAPIError(RetryableError):
    """Slack API communication errors."""

    def __init__(self, message: str, error_code: str | None = None) -> None:
        """Initialize with the Slack error code (e.g. "user_not_found") if known."""
        self.error_code = error_code
        super().__init__(message)
