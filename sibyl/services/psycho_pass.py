"""Psycho-Pass computation over a sliding window of message ratings.

Each entity keeps its most recent ratings, newest first. The score is a
weighted sum of those ratings on top of a neutral base value:

    score = max(0, floor(base + sum(weight[i] * rating[i])))

Weights depend only on the window capacity, so users (10 messages) and
channels (20 messages) share the same algorithm.
"""

import math
from collections import deque
from collections.abc import Iterable, Sequence

from sibyl.config.logging_config import get_logger
from sibyl.domain.exceptions import ValidationError
from sibyl.domain.scoring_constants import (
    BASE_SCORE,
    MIN_SCORE,
    NEUTRAL_RATING,
    WEIGHT_VECTORS,
)

logger = get_logger(__name__)


def get_weights(capacity: int) -> tuple[float, ...]:
    """Return the weight vector for a window capacity.

    Raises:
        ValidationError: If no weight vector exists for the capacity
    """
    try:
        return WEIGHT_VECTORS[capacity]
    except KeyError:
        raise ValidationError(
            f"No weight vector for window capacity {capacity}; "
            f"known capacities: {sorted(WEIGHT_VECTORS)}"
        ) from None


def coerce_rating(rating: float, capacity: int) -> float:
    """Return the rating as a float, replacing NaN/inf with the neutral rating."""
    value = float(rating)
    if not math.isfinite(value):
        logger.warning("rating_not_finite", rating=str(value), capacity=capacity)
        return NEUTRAL_RATING
    return value


def compute_score(
    ratings: Sequence[float],
    capacity: int,
    *,
    base: float = BASE_SCORE,
    max_score: int | None = None,
) -> int:
    """Compute a Psycho-Pass from ratings ordered newest first.

    Only the first `capacity` ratings contribute. A short history is not
    renormalized, so entities with little activity stay close to `base`.

    Args:
        ratings: Message ratings, newest first
        capacity: Window capacity, selects the weight vector
        base: Neutral score
        max_score: Optional ceiling (None = unclamped)

    Returns:
        Integer score, never below MIN_SCORE

    Example:
        >>> compute_score([1.0] * 10, 10)
        105
        >>> compute_score([], 10)
        70
    """
    weights = get_weights(capacity)
    weighted_sum = sum(
        weight * coerce_rating(rating, capacity)
        for weight, rating in zip(weights, ratings)
    )
    score = max(MIN_SCORE, math.floor(base + weighted_sum))
    if max_score is not None:
        score = min(score, max_score)
    return score


class RatingWindow:
    """Bounded, newest-first history of ratings for one entity."""

    def __init__(self, capacity: int, ratings: Iterable[float] = ()) -> None:
        """Create a window, optionally pre-seeded with history.

        Args:
            capacity: Maximum number of ratings retained
            ratings: Historical ratings, newest first. Anything beyond
                `capacity` is dropped.

        Raises:
            ValidationError: If capacity has no weight vector
        """
        get_weights(capacity)
        self.capacity = capacity
        self._ratings: deque[float] = deque(maxlen=capacity)
        for rating in ratings:
            if len(self._ratings) == capacity:
                break
            self._ratings.append(coerce_rating(rating, capacity))

    @property
    def ratings(self) -> tuple[float, ...]:
        """Current ratings, newest first."""
        return tuple(self._ratings)

    @property
    def is_full(self) -> bool:
        return len(self._ratings) == self.capacity

    def __len__(self) -> int:
        return len(self._ratings)

    def __repr__(self) -> str:
        return f"RatingWindow(capacity={self.capacity}, ratings={list(self._ratings)!r})"

    def push(self, rating: float) -> None:
        """Prepend a rating, evicting the oldest one when at capacity."""
        self._ratings.appendleft(coerce_rating(rating, self.capacity))

    def score(self, *, base: float = BASE_SCORE, max_score: int | None = None) -> int:
        """Psycho-Pass of the current window contents."""
        return compute_score(
            self._ratings, self.capacity, base=base, max_score=max_score
        )


def ingest(
    window: RatingWindow,
    rating: float,
    *,
    base: float = BASE_SCORE,
    max_score: int | None = None,
) -> tuple[RatingWindow, int]:
    """Add a rating to a window and recompute its score.

    Args:
        window: Window to update in place
        rating: New rating (becomes position 0)
        base: Neutral score
        max_score: Optional ceiling

    Returns:
        Tuple of (window, new score)
    """
    window.push(rating)
    return window, window.score(base=base, max_score=max_score)
