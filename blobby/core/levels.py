from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable, Iterator, List

from blobby.core.tiles import Grid, Position


@dataclass(frozen=True)
class Level:
    id: int
    name: str
    grid: Grid
    start_pos: Position
    goal_pos: Position
    move_budget: int
    stars: int = 0
    unlocked: bool = False
    completed: bool = False

    @property
    def size(self) -> int:
        return len(self.grid)

    def record_completion(self, stars: int) -> "Level":
        """Mark completed, keeping the best star rating seen so far."""
        return replace(self, completed=True, stars=max(self.stars, stars))

    def unlock(self) -> "Level":
        return self if self.unlocked else replace(self, unlocked=True)


class LevelRepository:
    """Ordered, immutable collection of generated levels keyed by id."""

    def __init__(self, levels: Iterable[Level]) -> None:
        self._levels: Dict[int, Level] = {}
        for level in sorted(levels, key=lambda lv: lv.id):
            if level.id in self._levels:
                raise ValueError(f"Duplicate level id: {level.id}")
            self._levels[level.id] = level

    def all(self) -> List[Level]:
        return list(self._levels.values())

    def get(self, level_id: int) -> Level:
        return self._levels[level_id]

    def __contains__(self, level_id: object) -> bool:
        return level_id in self._levels

    def __iter__(self) -> Iterator[Level]:
        return iter(self._levels.values())

    def __len__(self) -> int:
        return len(self._levels)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LevelRepository):
            return NotImplemented
        return self._levels == other._levels

    def __hash__(self) -> int:
        return hash(tuple(self._levels.values()))

    def replace(self, *levels: Level) -> "LevelRepository":
        """Return a new repository with the given levels swapped in by id."""
        updated = dict(self._levels)
        for level in levels:
            if level.id not in updated:
                raise KeyError(level.id)
            updated[level.id] = level
        return LevelRepository(updated.values())

    def total_stars(self) -> int:
        return sum(level.stars for level in self._levels.values())

    def completed_count(self) -> int:
        return sum(1 for level in self._levels.values() if level.completed)

    def has_three_star_level(self) -> bool:
        return any(level.stars == 3 for level in self._levels.values())

    @property
    def last_id(self) -> int:
        return next(reversed(self._levels))
