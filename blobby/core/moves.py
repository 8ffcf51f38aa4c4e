"""Gameplay transitions.

Every function takes the current :class:`GameState` and returns the next
one. Rejected inputs (moving into a wall, using a power-up you do not have,
buying without enough coins) return the state unchanged instead of raising.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, Optional

from blobby.core.achievements import refresh_achievements
from blobby.core.daily import (
    FAST_COMPLETION_SECONDS,
    ChallengeType,
    ensure_current_day,
    record_daily_event,
    record_daily_events,
)
from blobby.core.generator import generate_level
from blobby.core.pathing import has_valid_path
from blobby.core.state import GameState, LevelStatus, PowerUpType
from blobby.core.tiles import (
    Direction,
    Position,
    TileType,
    in_bounds,
    path_tile,
    reset_collected,
    tile_at,
    with_tile,
)

logger = logging.getLogger(__name__)

COIN_PICKUP_VALUE = 3
LEVEL_COMPLETE_BASE = 10
LEVEL_COMPLETE_PER_STAR = 5
EXTRA_MOVES_AMOUNT = 3
SKIP_LEVEL_COST = 50

_POWERUP_TILES: Dict[TileType, PowerUpType] = {
    TileType.POWERUP_TELEPORT: PowerUpType.TELEPORT,
    TileType.POWERUP_WALLBREAK: PowerUpType.WALLBREAK,
    TileType.POWERUP_EXTRAMOVES: PowerUpType.EXTRAMOVES,
}


def star_rating(moves_used: int, move_budget: int) -> int:
    """Stars for finishing with ``move_budget - moves_used`` moves to spare."""
    moves_left = move_budget - moves_used
    if moves_left >= move_budget * 0.5:
        return 3
    if moves_left >= move_budget * 0.25:
        return 2
    return 1


def completion_bonus(stars: int) -> int:
    return LEVEL_COMPLETE_BASE + stars * LEVEL_COMPLETE_PER_STAR


def start_level(
    level_id: int,
    state: GameState,
    now: Optional[float] = None,
    rng: Optional[random.Random] = None,
    today: Optional[date] = None,
) -> GameState:
    """Begin (or restart) ``level_id``.

    Collectibles are restored. A stored grid that no longer connects start
    and goal is replaced by a freshly generated one.
    """
    if level_id not in state.levels:
        logger.debug("Ignoring start of unknown level %s", level_id)
        return state
    level = state.levels.get(level_id)
    if not level.unlocked:
        logger.debug("Ignoring start of locked level %d", level_id)
        return state

    if not has_valid_path(level.grid, level.start_pos, level.goal_pos):
        logger.warning("Level %d has no valid path, regenerating", level_id)
        fresh = generate_level(level_id, rng)
        level = replace(
            level,
            grid=fresh.grid,
            start_pos=fresh.start_pos,
            goal_pos=fresh.goal_pos,
            move_budget=fresh.move_budget,
        )
    level = replace(level, grid=reset_collected(level.grid))

    state = ensure_current_day(state, today)
    return replace(
        state,
        levels=state.levels.replace(level),
        current_level_id=level_id,
        player_pos=level.start_pos,
        moves_used=0,
        move_bonus=0,
        status=LevelStatus.PLAYING,
        show_hint=False,
        level_started_at=now if now is not None else time.time(),
    )


def apply_move(
    state: GameState,
    direction: Direction,
    now: Optional[float] = None,
    today: Optional[date] = None,
) -> GameState:
    """Move the player one cell and resolve pickups, goal and move budget."""
    if not state.is_playing or state.current_level is None:
        return state
    try:
        direction = Direction(direction)
    except ValueError:
        logger.debug("Ignoring unknown direction %r", direction)
        return state

    level = state.current_level
    target = state.player_pos.step(direction)
    if not in_bounds(level.grid, target) or tile_at(level.grid, target).is_obstacle:
        return state

    tile = tile_at(level.grid, target)
    coins, hints, lives = state.coins, state.hints, state.lives
    power_ups = state.power_ups
    coins_gained = 0
    grid = level.grid
    if tile.is_collectible:
        if tile.type is TileType.COIN:
            coins_gained = COIN_PICKUP_VALUE
        elif tile.type is TileType.HINT:
            hints += 1
        elif tile.type is TileType.LIFE:
            lives += 1
        else:
            power_ups = power_ups.add(_POWERUP_TILES[tile.type])
        grid = with_tile(grid, target, tile.mark_collected())

    level = replace(level, grid=grid)
    state = replace(
        state,
        levels=state.levels.replace(level),
        player_pos=target,
        moves_used=state.moves_used + 1,
        coins=coins + coins_gained,
        total_coins_earned=state.total_coins_earned + coins_gained,
        hints=hints,
        lives=lives,
        power_ups=power_ups,
    )

    if tile.type is TileType.GOAL:
        return _complete_level(state, coins_gained, now, today)

    if state.moves_used >= state.move_budget:
        logger.debug("Level %d failed: out of moves", level.id)
        state = replace(
            state,
            lives=max(0, state.lives - 1),
            status=LevelStatus.FAILED,
            level_started_at=None,
        )

    if coins_gained:
        state = record_daily_event(state, ChallengeType.COLLECT_COINS, coins_gained, today)
    return refresh_achievements(state, now=now)


def _complete_level(
    state: GameState,
    coins_gained: int,
    now: Optional[float],
    today: Optional[date],
) -> GameState:
    now = now if now is not None else time.time()
    level = state.current_level
    stars = star_rating(state.moves_used, state.move_budget)
    bonus = completion_bonus(stars)

    completion_time = None
    if state.level_started_at is not None:
        completion_time = max(0, int(now - state.level_started_at))
    fastest = state.fastest_level_time
    if completion_time is not None and (fastest is None or completion_time < fastest):
        fastest = completion_time

    updated = [level.record_completion(stars)]
    if level.id + 1 in state.levels:
        updated.append(state.levels.get(level.id + 1).unlock())
    logger.info("Level %d completed with %d star(s) in %d moves", level.id, stars, state.moves_used)

    state = replace(
        state,
        levels=state.levels.replace(*updated),
        coins=state.coins + bonus,
        total_coins_earned=state.total_coins_earned + bonus,
        status=LevelStatus.COMPLETED,
        level_started_at=None,
        fastest_level_time=fastest,
    )
    fast = completion_time is not None and completion_time < FAST_COMPLETION_SECONDS
    state = record_daily_events(
        state,
        {
            ChallengeType.COMPLETE_LEVELS: 1,
            ChallengeType.COLLECT_COINS: bonus + coins_gained,
            ChallengeType.GET_STARS: stars,
            ChallengeType.PERFECT_LEVEL: 1 if stars == 3 else 0,
            ChallengeType.FAST_COMPLETE: 1 if fast else 0,
        },
        today,
    )
    return refresh_achievements(state, completion_time=completion_time, now=now)


def exit_level(state: GameState) -> GameState:
    return replace(state, status=LevelStatus.IDLE, level_started_at=None, show_hint=False)


def use_hint(state: GameState, today: Optional[date] = None) -> GameState:
    if state.hints <= 0:
        return state
    state = replace(state, hints=state.hints - 1, show_hint=True)
    return record_daily_event(state, ChallengeType.USE_HINTS, 1, today)


def hide_hint(state: GameState) -> GameState:
    return replace(state, show_hint=False) if state.show_hint else state


def use_teleport(state: GameState, target: Position) -> GameState:
    """Jump to any non-obstacle cell. Does not count as a move or collect."""
    if state.power_ups.teleport <= 0 or not state.is_playing:
        return state
    grid = state.current_level.grid
    if not in_bounds(grid, target) or tile_at(grid, target).is_obstacle or target == state.player_pos:
        return state
    return replace(state, player_pos=target, power_ups=state.power_ups.add(PowerUpType.TELEPORT, -1))


def use_wallbreak(state: GameState, target: Position) -> GameState:
    """Turn one obstacle of the current level into a path tile."""
    if state.power_ups.wallbreak <= 0 or not state.is_playing:
        return state
    level = state.current_level
    if not in_bounds(level.grid, target) or not tile_at(level.grid, target).is_obstacle:
        return state
    level = replace(level, grid=with_tile(level.grid, target, path_tile()))
    return replace(
        state,
        levels=state.levels.replace(level),
        power_ups=state.power_ups.add(PowerUpType.WALLBREAK, -1),
    )


def use_extra_moves(state: GameState) -> GameState:
    if state.power_ups.extramoves <= 0 or not state.is_playing:
        return state
    return replace(
        state,
        move_bonus=state.move_bonus + EXTRA_MOVES_AMOUNT,
        power_ups=state.power_ups.add(PowerUpType.EXTRAMOVES, -1),
    )


def add_power_up(state: GameState, kind: PowerUpType, amount: int = 1) -> GameState:
    return replace(state, power_ups=state.power_ups.add(kind, amount))


def purchase_with_coins(state: GameState, item: str, amount: int, cost: int) -> GameState:
    """Spend ``cost`` coins on ``amount`` lives or hints."""
    if item not in ("lives", "hints"):
        logger.debug("Purchase refused: %r cannot be bought with coins", item)
        return state
    if state.coins < cost:
        logger.debug("Purchase of %d %s refused: %d coins < %d", amount, item, state.coins, cost)
        return state
    return replace(state, coins=state.coins - cost, **{item: getattr(state, item) + amount})


def add_coins(state: GameState, amount: int, now: Optional[float] = None) -> GameState:
    state = replace(state, coins=state.coins + amount, total_coins_earned=state.total_coins_earned + amount)
    return refresh_achievements(state, now=now)


def add_lives(state: GameState, amount: int) -> GameState:
    return replace(state, lives=state.lives + amount)


def add_hints(state: GameState, amount: int) -> GameState:
    return replace(state, hints=state.hints + amount)


@dataclass(frozen=True)
class SkipResult:
    state: GameState
    success: bool
    message: str


def skip_level(state: GameState, level_id: int, now: Optional[float] = None) -> SkipResult:
    """Pay to mark an unlocked level as completed with zero stars."""
    if state.coins < SKIP_LEVEL_COST:
        return SkipResult(state, False, f"Not enough coins! You need {SKIP_LEVEL_COST} coins to skip this level.")
    if level_id not in state.levels:
        return SkipResult(state, False, "Level not found!")
    level = state.levels.get(level_id)
    if level.completed:
        return SkipResult(state, False, "This level is already completed!")
    if not level.unlocked:
        return SkipResult(state, False, "This level is not unlocked yet!")
    if level_id >= state.levels.last_id:
        return SkipResult(state, False, "Cannot skip the final level!")

    updated = [replace(level, completed=True), state.levels.get(level_id + 1).unlock()]
    state = replace(
        state,
        levels=state.levels.replace(*updated),
        coins=state.coins - SKIP_LEVEL_COST,
        status=LevelStatus.IDLE,
        level_started_at=None,
        current_level_id=level_id + 1,
    )
    state = refresh_achievements(state, now=now)
    return SkipResult(state, True, f"Level {level_id} skipped! You can always come back to earn stars.")


def player_stats(state: GameState) -> Dict[str, Optional[int]]:
    return {
        "total_stars": state.levels.total_stars(),
        "levels_completed": state.levels.completed_count(),
        "fastest_time": state.fastest_level_time,
    }
