"""Shared fixtures: small hand-drawn levels and states built on them."""

from __future__ import annotations

import random
from datetime import date
from typing import Callable, List, Sequence

import pytest

from blobby.core.daily import new_daily_state
from blobby.core.levels import Level, LevelRepository
from blobby.core.moves import start_level
from blobby.core.state import GameState
from blobby.core.tiles import Position, Tile, TileType

TODAY = date(2026, 10, 19)
NOW = 1_000_000.0

# One character per cell.
_SYMBOLS = {
    "S": TileType.START,
    "G": TileType.GOAL,
    "#": TileType.OBSTACLE,
    ".": TileType.PATH,
    "u": TileType.HURDLE,
    "c": TileType.COIN,
    "h": TileType.HINT,
    "l": TileType.LIFE,
    "t": TileType.POWERUP_TELEPORT,
    "w": TileType.POWERUP_WALLBREAK,
    "x": TileType.POWERUP_EXTRAMOVES,
}


def grid_from_rows(rows: Sequence[str]):
    """Return ``(grid, start, goal)`` for a list of equal-length strings."""
    grid = []
    start = goal = None
    for r, line in enumerate(rows):
        row = []
        for c, symbol in enumerate(line):
            kind = _SYMBOLS[symbol]
            if kind is TileType.START:
                start = Position(r, c)
            elif kind is TileType.GOAL:
                goal = Position(r, c)
            row.append(Tile(type=kind, color="#000000"))
        grid.append(tuple(row))
    return tuple(grid), start, goal


def level_from_rows(rows: Sequence[str], level_id: int = 1, budget: int = 10, unlocked: bool = True) -> Level:
    grid, start, goal = grid_from_rows(rows)
    return Level(
        id=level_id,
        name=f"Level {level_id}",
        grid=grid,
        start_pos=start,
        goal_pos=goal,
        move_budget=budget,
        unlocked=unlocked,
    )


@pytest.fixture()
def rows_to_grid() -> Callable:
    return grid_from_rows


@pytest.fixture()
def make_level() -> Callable[..., Level]:
    return level_from_rows


@pytest.fixture()
def make_state() -> Callable[..., GameState]:
    """Factory for a state playing level 1 drawn from ``rows``.

    Level 2 (same layout, locked) is added so completion can unlock it.
    Pass ``start=False`` to get the idle state instead.
    """

    def _make(rows: List[str], budget: int = 10, start: bool = True, now: float = NOW, **overrides) -> GameState:
        levels = LevelRepository(
            [
                level_from_rows(rows, 1, budget, unlocked=True),
                level_from_rows(rows, 2, budget, unlocked=False),
            ]
        )
        state = GameState(levels=levels, daily_challenges=new_daily_state(TODAY), **overrides)
        if start:
            state = start_level(1, state, now=now, rng=random.Random(0), today=TODAY)
        return state

    return _make
