"""Sorted leaderboard of entity scores.

Entries are kept in non-decreasing value order in a plain list, with a
parallel list of values for binary search. Locating a value is O(log n);
splicing an entry in or out is O(n), which is fine at workspace scale
(hundreds to low thousands of entities).
"""

from bisect import bisect_left, bisect_right
from dataclasses import dataclass

from sibyl.config.logging_config import get_logger
from sibyl.domain.exceptions import LeaderboardIntegrityError
from sibyl.domain.models import RankedEntity
from sibyl.domain.scoring_constants import DEFAULT_LEADERBOARD_SIZE

logger = get_logger(__name__)


@dataclass
class LeaderboardEntry:
    """Mutable leaderboard slot owned by a Leaderboard."""

    entry_id: str
    value: int

    def to_ranked(self) -> RankedEntity:
        return RankedEntity(entity_id=self.entry_id, value=self.value)


class Leaderboard:
    """Always-sorted collection with one entry per id."""

    def __init__(self) -> None:
        self._entries: list[LeaderboardEntry] = []
        self._values: list[int] = []

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> list[RankedEntity]:
        """Snapshot of all entries, lowest value first."""
        return [entry.to_ranked() for entry in self._entries]

    def update(self, entry_id: str, new_value: int, old_value: int | None = None) -> None:
        """Insert or reposition an entry.

        Args:
            entry_id: Entity ID
            new_value: Current score
            old_value: Score recorded for this id by the previous call, or
                None if the id has never been added

        Raises:
            LeaderboardIntegrityError: If old_value is given but no entry
                with that id and value exists
        """
        if new_value == old_value:
            return

        if old_value is None:
            entry = LeaderboardEntry(entry_id=entry_id, value=new_value)
        else:
            entry = self.remove(entry_id, old_value)
            entry.value = new_value

        self.insert(entry)

    def get_highest(self, num: int = DEFAULT_LEADERBOARD_SIZE) -> list[RankedEntity]:
        """Return up to `num` entries, highest value first."""
        if num <= 0:
            return []
        return [entry.to_ranked() for entry in reversed(self._entries[-num:])]

    def get_lowest(self, num: int = DEFAULT_LEADERBOARD_SIZE) -> list[RankedEntity]:
        """Return up to `num` entries, lowest value first."""
        if num <= 0:
            return []
        return [entry.to_ranked() for entry in self._entries[:num]]

    def find_index(self, target: int) -> int:
        """Index of the first entry holding `target`, or its insertion point."""
        return bisect_left(self._values, target)

    def insert(self, entry: LeaderboardEntry) -> None:
        """Splice an entry in, after any entries that share its value."""
        index = bisect_right(self._values, entry.value)
        self._entries.insert(index, entry)
        self._values.insert(index, entry.value)

    def remove(self, entry_id: str, value: int) -> LeaderboardEntry:
        """Remove and return the entry for `entry_id`, located by its value.

        Binary search finds the start of the run of entries holding `value`;
        the run is then scanned for the id.

        Raises:
            LeaderboardIntegrityError: If no entry with this id holds `value`
        """
        index = self.find_index(value)
        while index < len(self._entries) and self._values[index] == value:
            if self._entries[index].entry_id == entry_id:
                del self._values[index]
                return self._entries.pop(index)
            index += 1

        logger.error(
            "leaderboard_entry_missing",
            entry_id=entry_id,
            value=value,
            size=len(self._entries),
        )
        raise LeaderboardIntegrityError(entry_id, value)
