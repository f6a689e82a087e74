"""Tests for the entity registry."""

import threading
from pathlib import Path

from sibyl.config.settings import Settings
from sibyl.domain.models import EntityKind, RankedEntity
from sibyl.services.entity_registry import EntityRegistry


def test_record_event_rates_and_ranks(registry: EntityRegistry) -> None:
    """A first event inserts the entity with its fresh score."""
    score = registry.record_event("U1", "1")

    assert score == 75
    assert registry.query_score("U1") == 75
    assert registry.query_top(5) == [RankedEntity(entity_id="U1", value=75)]


def test_unknown_entity_is_not_found(registry: EntityRegistry) -> None:
    """Unknown ids are a normal None result."""
    assert registry.query_score("U404") is None
    assert registry.query_score("C404", EntityKind.CHANNEL) is None
    assert registry.history_size("U404") == 0


def test_users_and_channels_rank_separately(registry: EntityRegistry) -> None:
    """Each entity class has its own window capacity and leaderboard."""
    registry.record_event("U1", "1")
    channel_score = registry.record_event("C1", "1", EntityKind.CHANNEL)

    assert channel_score == 72
    assert [row.entity_id for row in registry.query_top(5)] == ["U1"]
    assert [row.entity_id for row in registry.query_top(5, EntityKind.CHANNEL)] == [
        "C1"
    ]


def test_record_message_credits_user_and_channel(registry: EntityRegistry) -> None:
    """One message updates the sender and the channel."""
    user_score, channel_score = registry.record_message("U1", "C1", "2")

    assert user_score == 80
    assert channel_score == 75
    assert registry.query_score("C1", EntityKind.CHANNEL) == 75


def test_repeated_events_keep_single_entry(registry: EntityRegistry) -> None:
    """Updates reposition the entity rather than adding new entries."""
    for text in ["1", "2", "-3", "0.5"]:
        registry.record_event("U1", text)
    registry.record_event("U2", "0")

    rows = registry.query_top(10)
    assert [row.entity_id for row in rows].count("U1") == 1
    assert len(rows) == 2


def test_seed_inserts_and_later_events_update(registry: EntityRegistry) -> None:
    """Seeding bypasses the rating function and later events build on it."""
    assert registry.seed("U1", [1.0] * 10) == 105
    assert registry.history_size("U1") == 10

    assert registry.record_event("U1", "0") == 100
    assert registry.query_top(5) == [RankedEntity(entity_id="U1", value=100)]


def test_seed_replaces_existing_window(registry: EntityRegistry) -> None:
    """Re-seeding an entity repositions its single entry."""
    registry.record_event("U1", "5")
    registry.record_event("U2", "0")

    assert registry.seed("U1", [-2.0]) == 60

    assert registry.query_bottom(5) == [
        RankedEntity(entity_id="U1", value=60),
        RankedEntity(entity_id="U2", value=70),
    ]


def test_seed_truncates_history(registry: EntityRegistry) -> None:
    """Seed history is capped at the window capacity."""
    registry.seed("U1", [1.0] * 25)
    registry.seed("C1", [1.0] * 25, EntityKind.CHANNEL)

    assert registry.history_size("U1") == 10
    assert registry.history_size("C1", EntityKind.CHANNEL) == 20


def test_window_eviction_reflected_in_score(registry: EntityRegistry) -> None:
    """An eleventh event drops the oldest from the user's score."""
    assert registry.seed("U1", [0.0] * 9 + [10.0]) == 90

    assert registry.record_event("U1", "0") == 70
    assert registry.query_score("U1") == 70


def test_max_score_ceiling() -> None:
    """A configured ceiling applies to every update path."""
    capped = EntityRegistry(float, max_score=100)

    assert capped.seed("U1", [1.0] * 10) == 100
    assert capped.record_event("U1", "5") == 100


def test_profiles_do_not_create_scores(registry: EntityRegistry) -> None:
    """Registering metadata alone leaves the leaderboard untouched."""
    registry.register_profile("U1", username="akane")

    assert registry.is_known("U1")
    assert registry.query_score("U1") is None
    assert registry.query_top(5) == []


def test_display_name_fallbacks(registry: EntityRegistry) -> None:
    """Real name beats username, which beats the raw id."""
    registry.register_profile("U1", username="akane")
    assert registry.display_name("U1") == "akane"

    registry.register_profile("U1", name="Akane Tsunemori")
    assert registry.display_name("U1") == "Akane Tsunemori"
    assert registry.get_profile("U1").username == "akane"  # type: ignore[union-attr]

    assert registry.display_name("U9") == "U9"


def test_default_query_size_comes_from_settings(tmp_path: Path) -> None:
    """from_settings wires base score and leaderboard size."""
    settings = Settings(config_dir=tmp_path, scoring_base=50, leaderboard_size=2)
    registry = EntityRegistry.from_settings(settings, float)

    for user_id in ["U1", "U2", "U3"]:
        registry.record_event(user_id, "0")

    assert registry.query_score("U1") == 50
    assert len(registry.query_top()) == 2
    assert len(registry.query_bottom()) == 2


def test_concurrent_events_keep_leaderboard_consistent(
    registry: EntityRegistry,
) -> None:
    """Events from many threads are serialized by the registry."""

    def _worker(offset: int) -> None:
        for index in range(50):
            registry.record_event(f"U{(offset + index) % 5}", str((index % 7) - 3))

    threads = [threading.Thread(target=_worker, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    rows = registry.query_bottom(10)
    assert len(rows) == 5
    assert [row.value for row in rows] == sorted(row.value for row in rows)
    for row in rows:
        assert registry.query_score(row.entity_id) == row.value
        assert registry.history_size(row.entity_id) == 10
