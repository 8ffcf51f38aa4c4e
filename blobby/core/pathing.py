"""Reachability, shortest paths and path carving on tile grids.

All functions here accept either a frozen grid (tuple of tuples) or the
mutable list-of-lists used during generation. Only the carving helpers
mutate, and only by turning ``obstacle`` tiles into ``path`` tiles.
"""

from __future__ import annotations

import logging
import random
from collections import deque
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional

from blobby.core.tiles import PATH_COLORS, MutableGrid, Position, neighbours, path_tile, tile_at

logger = logging.getLogger(__name__)

# Probability that the carving walk takes the neighbour closest to the goal.
GREEDY_BIAS = 0.7


def has_valid_path(grid, start: Position, goal: Position) -> bool:
    """Return True if ``goal`` is reachable from ``start`` without crossing obstacles."""
    visited = {start}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        if current == goal:
            return True
        for nxt in neighbours(grid, current):
            if nxt in visited or tile_at(grid, nxt).is_obstacle:
                continue
            visited.add(nxt)
            queue.append(nxt)
    return False


def find_shortest_path(grid, start: Position, goal: Position) -> Optional[List[Position]]:
    """Breadth-first shortest path from ``start`` to ``goal``, both included.

    Returns None when the goal is unreachable.
    """
    visited = {start}
    queue = deque([(start, [start])])
    while queue:
        current, path = queue.popleft()
        if current == goal:
            return path
        for nxt in neighbours(grid, current):
            if nxt in visited or tile_at(grid, nxt).is_obstacle:
                continue
            visited.add(nxt)
            queue.append((nxt, path + [nxt]))
    return None


class CarveTier(IntEnum):
    """How far down the repair ladder generation had to go."""

    NONE = 0
    CARVED = 1
    DIAGONAL = 2
    CLEARED = 3


@dataclass
class CarveReport:
    tier: CarveTier = CarveTier.NONE
    cleared: int = 0


def _clear(grid: MutableGrid, pos: Position, rng: random.Random) -> bool:
    if not tile_at(grid, pos).is_obstacle:
        return False
    grid[pos.row][pos.col] = path_tile(rng.choice(PATH_COLORS))
    return True


def carve_walk(grid: MutableGrid, start: Position, goal: Position, rng: random.Random) -> int:
    """Carve a goal-biased random walk from ``start`` to ``goal``.

    Backtracks with an explicit stack on dead ends. Returns the number of
    obstacles cleared.
    """
    cleared = 0
    visited = {start}
    stack = [start]
    while stack:
        current = stack[-1]
        if current == goal:
            break
        candidates = [pos for pos in neighbours(grid, current) if pos not in visited]
        if not candidates:
            stack.pop()
            continue
        candidates.sort(key=lambda pos: pos.manhattan(goal))
        if rng.random() < GREEDY_BIAS:
            nxt = candidates[0]
        else:
            nxt = rng.choice(candidates)
        if _clear(grid, nxt, rng):
            cleared += 1
        visited.add(nxt)
        stack.append(nxt)
    return cleared


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def carve_corridors(grid: MutableGrid, start: Position, goal: Position, rng: random.Random) -> int:
    """Carve the two L-shaped corridors between ``start`` and ``goal``.

    The first goes along the row then down the column, the second the
    other way round.
    """
    cleared = 0
    row_step = _sign(goal.row - start.row)
    col_step = _sign(goal.col - start.col)
    for columns_first in (True, False):
        row, col = start.row, start.col
        legs = ("col", "row") if columns_first else ("row", "col")
        for leg in legs:
            if leg == "col":
                while col != goal.col:
                    col += col_step
                    cleared += _clear(grid, Position(row, col), rng)
            else:
                while row != goal.row:
                    row += row_step
                    cleared += _clear(grid, Position(row, col), rng)
    return cleared


def carve_guaranteed_path(grid: MutableGrid, start: Position, goal: Position, rng: random.Random) -> int:
    return carve_walk(grid, start, goal, rng) + carve_corridors(grid, start, goal, rng)


def _clear_diagonal(grid: MutableGrid, rng: random.Random) -> int:
    cleared = 0
    size = min(len(grid), len(grid[0]))
    for i in range(size):
        cleared += _clear(grid, Position(i, i), rng)
        if i + 1 < size:
            cleared += _clear(grid, Position(i, i + 1), rng)
            cleared += _clear(grid, Position(i + 1, i), rng)
    return cleared


def _clear_all(grid: MutableGrid, rng: random.Random) -> int:
    cleared = 0
    for r, row in enumerate(grid):
        for c in range(len(row)):
            cleared += _clear(grid, Position(r, c), rng)
    return cleared


def ensure_solvable(
    grid: MutableGrid,
    start: Position,
    goal: Position,
    rng: random.Random,
    label: str = "grid",
) -> CarveReport:
    """Repair ``grid`` in place until ``goal`` is reachable from ``start``."""
    report = CarveReport()
    if has_valid_path(grid, start, goal):
        return report

    report.tier = CarveTier.CARVED
    report.cleared += carve_guaranteed_path(grid, start, goal, rng)
    if has_valid_path(grid, start, goal):
        return report

    logger.warning("%s: carving left no path, clearing diagonal band", label)
    report.tier = CarveTier.DIAGONAL
    report.cleared += _clear_diagonal(grid, rng)
    if has_valid_path(grid, start, goal):
        return report

    logger.error("%s: still unsolvable after diagonal fallback, clearing every obstacle", label)
    report.tier = CarveTier.CLEARED
    report.cleared += _clear_all(grid, rng)
    if not has_valid_path(grid, start, goal):
        raise RuntimeError(f"{label}: no path between {start} and {goal} after clearing all obstacles")
    return report
