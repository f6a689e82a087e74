"""Tests for the sorted leaderboard."""

import random

import pytest

from sibyl.domain.exceptions import LeaderboardIntegrityError
from sibyl.domain.models import RankedEntity
from sibyl.services.leaderboard import Leaderboard, LeaderboardEntry


def _assert_sorted(board: Leaderboard) -> None:
    values = [entry.value for entry in board.entries()]
    assert values == sorted(values)


@pytest.fixture
def board() -> Leaderboard:
    """Leaderboard holding A=50, B=70, C=70, D=90."""
    leaderboard = Leaderboard()
    for entry_id, value in [("A", 50), ("B", 70), ("C", 70), ("D", 90)]:
        leaderboard.update(entry_id, value)
    return leaderboard


def test_top_and_bottom(board: Leaderboard) -> None:
    """Highest comes back descending, lowest ascending."""
    highest = board.get_highest(2)
    lowest = board.get_lowest(1)

    assert highest[0] == RankedEntity(entity_id="D", value=90)
    assert highest[1].value == 70
    assert highest[1].entity_id in {"B", "C"}
    assert lowest == [RankedEntity(entity_id="A", value=50)]


def test_queries_larger_than_board_return_everything(board: Leaderboard) -> None:
    """Asking for more than exists returns all entries without error."""
    assert [row.value for row in board.get_highest(10)] == [90, 70, 70, 50]
    assert [row.value for row in board.get_lowest(10)] == [50, 70, 70, 90]


def test_non_positive_query_size_returns_nothing(board: Leaderboard) -> None:
    """k <= 0 never returns the whole board."""
    assert board.get_highest(0) == []
    assert board.get_lowest(-3) == []


def test_update_repositions_entry(board: Leaderboard) -> None:
    """Moving A from 50 to 60 keeps exactly one A and the order."""
    board.update("A", 60, 50)

    ids = [entry.entity_id for entry in board.entries()]
    assert ids.count("A") == 1
    assert RankedEntity(entity_id="A", value=60) in board.entries()
    assert len(board) == 4
    _assert_sorted(board)


def test_update_to_top(board: Leaderboard) -> None:
    """An entry can overtake every other entry."""
    board.update("A", 120, 50)

    assert board.get_highest(1) == [RankedEntity(entity_id="A", value=120)]
    assert board.get_lowest(1)[0].value == 70


def test_update_with_same_value_is_noop(board: Leaderboard) -> None:
    """Unchanged scores do not touch the board."""
    before = board.entries()

    board.update("B", 70, 70)

    assert board.entries() == before


def test_unrelated_updates_do_not_reorder_ties() -> None:
    """Entries sharing a value keep their relative order."""
    board = Leaderboard()
    board.update("A", 50)
    for entry_id in ["B", "C", "E"]:
        board.update(entry_id, 70)

    board.update("A", 60, 50)
    board.update("A", 95, 60)
    board.update("F", 70)

    tied = [entry.entity_id for entry in board.entries() if entry.value == 70]
    assert tied == ["B", "C", "E", "F"]


def test_find_index() -> None:
    """Binary search returns the first match or the insertion point."""
    board = Leaderboard()
    assert board.find_index(10) == 0

    for entry_id, value in [("a", 10), ("b", 20), ("c", 20), ("d", 30)]:
        board.insert(LeaderboardEntry(entry_id=entry_id, value=value))

    assert board.find_index(20) == 1
    assert board.find_index(25) == 3
    assert board.find_index(5) == 0
    assert board.find_index(40) == 4


def test_remove_returns_entry(board: Leaderboard) -> None:
    """remove scans the run of equal values for the id."""
    removed = board.remove("C", 70)

    assert removed == LeaderboardEntry(entry_id="C", value=70)
    assert [entry.entity_id for entry in board.entries()] == ["A", "B", "D"]


def test_remove_unknown_id_raises(board: Leaderboard) -> None:
    """Removing an id that is not there is a hard failure."""
    with pytest.raises(LeaderboardIntegrityError) as exc_info:
        board.remove("Z", 70)

    assert exc_info.value.entry_id == "Z"
    assert len(board) == 4


def test_update_with_wrong_old_value_raises(board: Leaderboard) -> None:
    """A stale old value is a caller bug, not something to paper over."""
    with pytest.raises(LeaderboardIntegrityError):
        board.update("A", 60, 55)

    _assert_sorted(board)
    assert len(board) == 4


def test_random_updates_keep_invariants() -> None:
    """Sorted order and one entry per id hold across many updates."""
    rng = random.Random(7)
    board = Leaderboard()
    current: dict[str, int] = {}

    for _ in range(500):
        entry_id = f"U{rng.randrange(30)}"
        new_value = rng.randrange(0, 40)
        board.update(entry_id, new_value, current.get(entry_id))
        current[entry_id] = new_value

        _assert_sorted(board)
        snapshot = board.entries()
        assert len(snapshot) == len(current)
        assert {(row.entity_id, row.value) for row in snapshot} == set(current.items())

    top = board.get_highest(5)
    assert [row.value for row in top] == sorted(current.values(), reverse=True)[:5]
    bottom = board.get_lowest(5)
    assert [row.value for row in bottom] == sorted(current.values())[:5]
