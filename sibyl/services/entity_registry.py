"""Entity registry: per-entity rating windows plus one leaderboard per class.

The registry is the only writer of windows and leaderboards. Every mutation
runs under a single re-entrant lock, so each event is rated, windowed and
repositioned as one step even when Slack events arrive on several threads.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, field

from sibyl.config.logging_config import get_logger
from sibyl.config.settings import Settings
from sibyl.domain.models import EntityKind, EntityProfile, RankedEntity
from sibyl.domain.protocols import RatingFunction
from sibyl.domain.scoring_constants import BASE_SCORE, DEFAULT_LEADERBOARD_SIZE
from sibyl.services.leaderboard import Leaderboard
from sibyl.services.psycho_pass import RatingWindow, ingest

logger = get_logger(__name__)


@dataclass
class EntityRecord:
    """Internal state of one tracked entity."""

    profile: EntityProfile
    window: RatingWindow
    score: int | None = field(default=None)


class EntityRegistry:
    """Scores and ranks users and channels from their recent messages."""

    def __init__(
        self,
        rating_function: RatingFunction,
        *,
        base: float = BASE_SCORE,
        max_score: int | None = None,
        leaderboard_size: int = DEFAULT_LEADERBOARD_SIZE,
    ) -> None:
        """Initialize an empty registry.

        Args:
            rating_function: Converts message text into a rating
            base: Neutral Psycho-Pass
            max_score: Optional ceiling (None = unclamped)
            leaderboard_size: Default count for top/bottom queries
        """
        self._rate = rating_function
        self._base = base
        self._max_score = max_score
        self.leaderboard_size = leaderboard_size
        self._records: dict[EntityKind, dict[str, EntityRecord]] = {
            kind: {} for kind in EntityKind
        }
        self._leaderboards: dict[EntityKind, Leaderboard] = {
            kind: Leaderboard() for kind in EntityKind
        }
        self._lock = threading.RLock()

    @classmethod
    def from_settings(
        cls, settings: Settings, rating_function: RatingFunction
    ) -> EntityRegistry:
        return cls(
            rating_function,
            base=settings.scoring_base,
            max_score=settings.scoring_max_score,
            leaderboard_size=settings.leaderboard_size,
        )

    # Scoring ----------------------------------------------------------

    def record_event(
        self, entity_id: str, raw_payload: str, kind: EntityKind = EntityKind.USER
    ) -> int:
        """Rate a message and fold it into the entity's score.

        Args:
            entity_id: User or channel ID
            raw_payload: Message text
            kind: Entity class

        Returns:
            Updated Psycho-Pass
        """
        with self._lock:
            return self.record_rating(entity_id, self._rate(raw_payload), kind)

    def record_message(
        self, user_id: str, channel_id: str, text: str
    ) -> tuple[int, int]:
        """Rate one message and credit it to both its sender and its channel.

        Returns:
            Tuple of (user score, channel score)
        """
        with self._lock:
            rating = self._rate(text)
            return (
                self.record_rating(user_id, rating, EntityKind.USER),
                self.record_rating(channel_id, rating, EntityKind.CHANNEL),
            )

    def rate(self, text: str) -> float:
        """Apply the injected rating function."""
        return self._rate(text)

    def record_rating(
        self, entity_id: str, rating: float, kind: EntityKind = EntityKind.USER
    ) -> int:
        """Fold an already computed rating into the entity's score."""
        with self._lock:
            record = self._get_or_create(entity_id, kind)
            _, score = ingest(
                record.window, rating, base=self._base, max_score=self._max_score
            )
            self._apply_score(record, score)
            return score

    def seed(
        self,
        entity_id: str,
        historical_ratings: Iterable[float],
        kind: EntityKind = EntityKind.USER,
    ) -> int:
        """Replace an entity's window with historical ratings.

        Used once per entity at startup or when history is bootstrapped.

        Args:
            entity_id: User or channel ID
            historical_ratings: Ratings, newest first; truncated to capacity
            kind: Entity class

        Returns:
            Psycho-Pass computed from the seeded window
        """
        with self._lock:
            record = self._get_or_create(entity_id, kind)
            record.window = RatingWindow(kind.window_capacity, historical_ratings)
            score = record.window.score(base=self._base, max_score=self._max_score)
            self._apply_score(record, score)
            logger.info(
                "entity_seeded",
                entity_id=entity_id,
                kind=kind.value,
                history_size=len(record.window),
                score=score,
            )
            return score

    def _apply_score(self, record: EntityRecord, score: int) -> None:
        profile = record.profile
        self._leaderboards[profile.kind].update(profile.entity_id, score, record.score)
        logger.debug(
            "score_updated",
            entity_id=profile.entity_id,
            kind=profile.kind.value,
            old_score=record.score,
            score=score,
        )
        record.score = score

    # Queries ----------------------------------------------------------

    def query_score(
        self, entity_id: str, kind: EntityKind = EntityKind.USER
    ) -> int | None:
        """Current Psycho-Pass, or None if the entity has never been scored."""
        with self._lock:
            record = self._records[kind].get(entity_id)
            return record.score if record else None

    def query_top(
        self, k: int | None = None, kind: EntityKind = EntityKind.USER
    ) -> list[RankedEntity]:
        """Highest `k` scores, highest first."""
        with self._lock:
            return self._leaderboards[kind].get_highest(
                self.leaderboard_size if k is None else k
            )

    def query_bottom(
        self, k: int | None = None, kind: EntityKind = EntityKind.USER
    ) -> list[RankedEntity]:
        """Lowest `k` scores, lowest first."""
        with self._lock:
            return self._leaderboards[kind].get_lowest(
                self.leaderboard_size if k is None else k
            )

    def history_size(self, entity_id: str, kind: EntityKind = EntityKind.USER) -> int:
        """Number of ratings currently in the entity's window (0 if unknown)."""
        with self._lock:
            record = self._records[kind].get(entity_id)
            return len(record.window) if record else 0

    # Metadata ---------------------------------------------------------

    def register_profile(
        self,
        entity_id: str,
        kind: EntityKind = EntityKind.USER,
        *,
        username: str | None = None,
        name: str | None = None,
    ) -> EntityProfile:
        """Store or update entity metadata without touching its score."""
        with self._lock:
            profile = self._get_or_create(entity_id, kind).profile
            if username is not None:
                profile.username = username
            if name is not None:
                profile.name = name
            return profile.model_copy()

    def get_profile(
        self, entity_id: str, kind: EntityKind = EntityKind.USER
    ) -> EntityProfile | None:
        with self._lock:
            record = self._records[kind].get(entity_id)
            return record.profile.model_copy() if record else None

    def is_known(self, entity_id: str, kind: EntityKind = EntityKind.USER) -> bool:
        with self._lock:
            return entity_id in self._records[kind]

    def display_name(self, entity_id: str, kind: EntityKind = EntityKind.USER) -> str:
        """Human-readable label, falling back to the raw id."""
        profile = self.get_profile(entity_id, kind)
        return profile.display_name if profile else entity_id

    def _get_or_create(self, entity_id: str, kind: EntityKind) -> EntityRecord:
        records = self._records[kind]
        record = records.get(entity_id)
        if record is None:
            record = EntityRecord(
                profile=EntityProfile(entity_id=entity_id, kind=kind),
                window=RatingWindow(kind.window_capacity),
            )
            records[entity_id] = record
        return record
