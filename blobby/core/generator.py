"""Procedural level generation.

Each level is an N x N grid with the start in the top-left corner and the
goal in the bottom-right. Cells are filled from the tier's spawn table, the
corners are kept open, and the result is repaired until the goal is
reachable. The move budget is the shortest path length plus the tier's slack.
"""

from __future__ import annotations

import logging
import random
from typing import List, Optional

from blobby.core.levels import Level, LevelRepository
from blobby.core.pathing import CarveTier, ensure_solvable, find_shortest_path
from blobby.core.tiers import TierTable, default_tier_table
from blobby.core.tiles import (
    PATH_COLORS,
    TILE_COLORS,
    MutableGrid,
    Position,
    Tile,
    TileType,
    freeze_grid,
    path_tile,
)

logger = logging.getLogger(__name__)

LEVEL_COUNT = 200


def _reserved_cells(size: int) -> List[Position]:
    """Start, goal and the three cells next to each of them."""
    last = size - 1
    return [
        Position(0, 0),
        Position(0, 1),
        Position(1, 0),
        Position(1, 1),
        Position(last, last),
        Position(last, last - 1),
        Position(last - 1, last),
        Position(last - 1, last - 1),
    ]


def _make_tile(kind: TileType, rng: random.Random) -> Tile:
    return Tile(type=kind, color=TILE_COLORS.get(kind) or rng.choice(PATH_COLORS))


def build_grid(level_id: int, rng: random.Random, tiers: Optional[TierTable] = None):
    """Fill and repair a grid for ``level_id``.

    Returns ``(grid, start, goal, report)`` where ``grid`` is still mutable.
    """
    params = (tiers or default_tier_table()).params_for(level_id)
    size = params.grid_size
    reserved = set(_reserved_cells(size))

    grid: MutableGrid = []
    for row in range(size):
        tiles = []
        for col in range(size):
            if Position(row, col) in reserved:
                tiles.append(path_tile(rng.choice(PATH_COLORS)))
                continue
            tiles.append(_make_tile(params.pick(rng.random()), rng))
        grid.append(tiles)

    start = Position(0, 0)
    goal = Position(size - 1, size - 1)
    grid[start.row][start.col] = Tile(type=TileType.START, color=TILE_COLORS[TileType.START])
    grid[goal.row][goal.col] = Tile(type=TileType.GOAL, color=TILE_COLORS[TileType.GOAL])
    for pos in reserved:
        if grid[pos.row][pos.col].is_obstacle:
            grid[pos.row][pos.col] = path_tile()

    report = ensure_solvable(grid, start, goal, rng, label=f"Level {level_id}")
    if report.tier is not CarveTier.NONE:
        logger.debug("Level %d repaired (%s, %d cells cleared)", level_id, report.tier.name, report.cleared)
    return grid, start, goal, report


def generate_level(
    level_id: int,
    rng: Optional[random.Random] = None,
    tiers: Optional[TierTable] = None,
) -> Level:
    """Generate a solvable level for ``level_id`` using ``rng`` as the only randomness."""
    rng = rng or random.Random()
    tiers = tiers or default_tier_table()
    grid, start, goal, _ = build_grid(level_id, rng, tiers)

    shortest = find_shortest_path(grid, start, goal)
    if shortest is None:
        raise RuntimeError(f"Level {level_id}: generated grid has no path")
    budget = len(shortest) + tiers.params_for(level_id).extra_moves

    return Level(
        id=level_id,
        name=f"Level {level_id}",
        grid=freeze_grid(grid),
        start_pos=start,
        goal_pos=goal,
        move_budget=budget,
        unlocked=level_id == 1,
    )


def generate_levels(
    count: int = LEVEL_COUNT,
    rng: Optional[random.Random] = None,
    tiers: Optional[TierTable] = None,
) -> LevelRepository:
    rng = rng or random.Random()
    return LevelRepository(generate_level(i, rng, tiers) for i in range(1, count + 1))
