"""Scoring constants for Psycho-Pass computation.

Window capacities and weight vectors are fixed per entity class. Only the
base value and the optional ceiling are configurable (see Settings).
"""

from typing import Final

BASE_SCORE: Final[float] = 70.0
"""Neutral Psycho-Pass of an entity with no recorded activity."""

MIN_SCORE: Final[int] = 0
"""Scores are clamped at this floor. There is no ceiling by default."""

USER_WINDOW_CAPACITY: Final[int] = 10
"""Number of most recent messages that contribute to a user's score."""

CHANNEL_WINDOW_CAPACITY: Final[int] = 20
"""Number of most recent messages that contribute to a channel's score."""

USER_WEIGHTS: Final[tuple[float, ...]] = (5, 5, 5, 4, 4, 3, 3, 2, 2, 2)
"""Weights for the user window, newest message first.

Five tiers of two positions each. Recent messages dominate, but a burst of
new messages does not wipe out older behaviour in one step.
"""

CHANNEL_WEIGHTS: Final[tuple[float, ...]] = (
    (2.5,) * 5 + (2.0,) * 5 + (1.5,) * 5 + (1.0,) * 5
)
"""Weights for the channel window, newest message first.

Four tiers of five positions each.
"""

WEIGHT_VECTORS: Final[dict[int, tuple[float, ...]]] = {
    USER_WINDOW_CAPACITY: USER_WEIGHTS,
    CHANNEL_WINDOW_CAPACITY: CHANNEL_WEIGHTS,
}
"""Weight vector lookup by window capacity."""

NEUTRAL_RATING: Final[float] = 0.0
"""Rating substituted for non-finite analyzer output."""

DEFAULT_LEADERBOARD_SIZE: Final[int] = 10
"""Default number of entries returned by top/bottom queries."""
