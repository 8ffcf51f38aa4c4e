from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Tuple


class TileType(str, Enum):
    PATH = "path"
    OBSTACLE = "obstacle"
    START = "start"
    GOAL = "goal"
    HURDLE = "hurdle"
    COIN = "coin"
    HINT = "hint"
    LIFE = "life"
    POWERUP_TELEPORT = "powerup_teleport"
    POWERUP_WALLBREAK = "powerup_wallbreak"
    POWERUP_EXTRAMOVES = "powerup_extramoves"


COLLECTIBLE_TYPES = frozenset(
    {
        TileType.COIN,
        TileType.HINT,
        TileType.LIFE,
        TileType.POWERUP_TELEPORT,
        TileType.POWERUP_WALLBREAK,
        TileType.POWERUP_EXTRAMOVES,
    }
)

PATH_COLORS = ("#8B5CF6", "#EC4899", "#3B82F6", "#10B981", "#F59E0B")

TILE_COLORS = {
    TileType.OBSTACLE: "#1F2937",
    TileType.START: "#22C55E",
    TileType.GOAL: "#FBBF24",
    TileType.HURDLE: "#FF6B35",
    TileType.POWERUP_TELEPORT: "#06B6D4",
    TileType.POWERUP_WALLBREAK: "#EF4444",
    TileType.POWERUP_EXTRAMOVES: "#22C55E",
}


@dataclass(frozen=True)
class Position:
    row: int
    col: int

    def step(self, direction: "Direction") -> "Position":
        dr, dc = direction.delta
        return Position(self.row + dr, self.col + dc)

    def manhattan(self, other: "Position") -> int:
        return abs(self.row - other.row) + abs(self.col - other.col)


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def delta(self) -> Tuple[int, int]:
        return _DELTAS[self]


_DELTAS = {
    Direction.UP: (-1, 0),
    Direction.DOWN: (1, 0),
    Direction.LEFT: (0, -1),
    Direction.RIGHT: (0, 1),
}


@dataclass(frozen=True)
class Tile:
    type: TileType
    color: str
    collected: bool = False

    @property
    def is_obstacle(self) -> bool:
        return self.type is TileType.OBSTACLE

    @property
    def is_collectible(self) -> bool:
        return self.type in COLLECTIBLE_TYPES and not self.collected

    def mark_collected(self) -> "Tile":
        return self if self.collected else replace(self, collected=True)


# Generation works on a mutable list-of-lists; a finished Level stores tuples.
Grid = Tuple[Tuple[Tile, ...], ...]
MutableGrid = List[List[Tile]]


def in_bounds(grid, pos: Position) -> bool:
    return 0 <= pos.row < len(grid) and 0 <= pos.col < len(grid[0])


def neighbours(grid, pos: Position) -> List[Position]:
    """In-bounds 4-neighbours in up, down, left, right order."""
    result = []
    for direction in Direction:
        nxt = pos.step(direction)
        if in_bounds(grid, nxt):
            result.append(nxt)
    return result


def freeze_grid(grid: MutableGrid) -> Grid:
    return tuple(tuple(row) for row in grid)


def thaw_grid(grid: Grid) -> MutableGrid:
    return [list(row) for row in grid]


def tile_at(grid, pos: Position) -> Tile:
    return grid[pos.row][pos.col]


def with_tile(grid: Grid, pos: Position, tile: Tile) -> Grid:
    """Return a copy of ``grid`` with one cell replaced."""
    row = grid[pos.row]
    new_row = row[: pos.col] + (tile,) + row[pos.col + 1 :]
    return grid[: pos.row] + (new_row,) + grid[pos.row + 1 :]


def reset_collected(grid: Grid) -> Grid:
    return tuple(
        tuple(replace(tile, collected=False) if tile.collected else tile for tile in row)
        for row in grid
    )


def path_tile(color: str = PATH_COLORS[0]) -> Tile:
    return Tile(type=TileType.PATH, color=color)
