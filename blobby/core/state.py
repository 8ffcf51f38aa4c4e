from __future__ import annotations

import random
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Optional, Tuple

from blobby.core.achievements import AchievementProgress, initial_achievement_progress
from blobby.core.daily import DailyChallengesState, DailyStats, new_daily_state
from blobby.core.generator import generate_levels
from blobby.core.levels import Level, LevelRepository
from blobby.core.tiles import Position

STARTING_COINS = 50
STARTING_LIVES = 3
STARTING_HINTS = 1


class LevelStatus(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    COMPLETED = "completed"
    FAILED = "failed"


class PowerUpType(str, Enum):
    TELEPORT = "teleport"
    WALLBREAK = "wallbreak"
    EXTRAMOVES = "extramoves"


@dataclass(frozen=True)
class PowerUpInventory:
    teleport: int = 0
    wallbreak: int = 0
    extramoves: int = 0

    def count(self, kind: PowerUpType) -> int:
        return getattr(self, PowerUpType(kind).value)

    def add(self, kind: PowerUpType, amount: int = 1) -> "PowerUpInventory":
        name = PowerUpType(kind).value
        return replace(self, **{name: max(0, getattr(self, name) + amount)})


@dataclass(frozen=True)
class GameState:
    """The whole player-facing game state.

    Instances are never mutated; every operation in ``blobby.core.moves``
    returns a new one and the host keeps only the latest.
    """

    levels: LevelRepository
    daily_challenges: DailyChallengesState
    current_level_id: int = 1
    player_pos: Position = Position(0, 0)
    moves_used: int = 0
    move_bonus: int = 0
    coins: int = STARTING_COINS
    lives: int = STARTING_LIVES
    hints: int = STARTING_HINTS
    power_ups: PowerUpInventory = field(default_factory=PowerUpInventory)
    achievements: Tuple[AchievementProgress, ...] = field(default_factory=initial_achievement_progress)
    daily_stats: DailyStats = field(default_factory=DailyStats)
    status: LevelStatus = LevelStatus.IDLE
    total_coins_earned: int = STARTING_COINS
    level_started_at: Optional[float] = None
    fastest_level_time: Optional[int] = None
    show_hint: bool = False
    notifications: Tuple[str, ...] = ()

    @property
    def is_playing(self) -> bool:
        return self.status is LevelStatus.PLAYING

    @property
    def current_level(self) -> Optional[Level]:
        if self.current_level_id not in self.levels:
            return None
        return self.levels.get(self.current_level_id)

    @property
    def move_budget(self) -> int:
        """Budget of the current attempt, including extra-moves power-ups."""
        level = self.current_level
        return (level.move_budget if level else 0) + self.move_bonus

    @property
    def moves_left(self) -> int:
        return self.move_budget - self.moves_used


def new_game(
    rng: Optional[random.Random] = None,
    today: Optional[date] = None,
    levels: Optional[LevelRepository] = None,
) -> GameState:
    """Fresh state with all levels generated and level 1 unlocked."""
    return GameState(
        levels=levels if levels is not None else generate_levels(rng=rng),
        daily_challenges=new_daily_state(today or date.today()),
    )
