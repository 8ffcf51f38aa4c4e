from __future__ import annotations

import json
import logging
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from blobby.core.achievements import AchievementProgress, merge_progress
from blobby.core.daily import (
    ChallengeType,
    DailyChallenge,
    DailyChallengesState,
    DailyStats,
    Reward,
    roll_over,
)
from blobby.core.levels import Level, LevelRepository
from blobby.core.state import GameState, LevelStatus, PowerUpInventory
from blobby.core.tiles import Position, Tile, TileType

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


def _position(value: List[int]) -> Position:
    return Position(int(value[0]), int(value[1]))


def _level_to_dict(level: Level) -> Dict[str, Any]:
    return {
        "id": level.id,
        "name": level.name,
        "start": [level.start_pos.row, level.start_pos.col],
        "goal": [level.goal_pos.row, level.goal_pos.col],
        "move_budget": level.move_budget,
        "stars": level.stars,
        "unlocked": level.unlocked,
        "completed": level.completed,
        "grid": [[[t.type.value, t.color, t.collected] for t in row] for row in level.grid],
    }


def _level_from_dict(raw: Dict[str, Any]) -> Level:
    grid = tuple(
        tuple(Tile(type=TileType(kind), color=str(color), collected=bool(collected)) for kind, color, collected in row)
        for row in raw["grid"]
    )
    return Level(
        id=int(raw["id"]),
        name=str(raw.get("name", f"Level {raw['id']}")),
        grid=grid,
        start_pos=_position(raw["start"]),
        goal_pos=_position(raw["goal"]),
        move_budget=int(raw["move_budget"]),
        stars=int(raw.get("stars", 0)),
        unlocked=bool(raw.get("unlocked", False)),
        completed=bool(raw.get("completed", False)),
    )


def _challenge_to_dict(challenge: DailyChallenge) -> Dict[str, Any]:
    payload = asdict(challenge)
    payload["type"] = challenge.type.value
    return payload


def _challenge_from_dict(raw: Dict[str, Any]) -> DailyChallenge:
    return DailyChallenge(
        id=str(raw["id"]),
        type=ChallengeType(raw["type"]),
        title=str(raw.get("title", "")),
        description=str(raw.get("description", "")),
        requirement=int(raw["requirement"]),
        reward=Reward(**raw.get("reward", {})),
        progress=int(raw.get("progress", 0)),
        completed=bool(raw.get("completed", False)),
        claimed=bool(raw.get("claimed", False)),
    )


def state_to_dict(state: GameState) -> Dict[str, Any]:
    daily = state.daily_challenges
    return {
        "schema_version": SCHEMA_VERSION,
        "current_level_id": state.current_level_id,
        "coins": state.coins,
        "lives": state.lives,
        "hints": state.hints,
        "total_coins_earned": state.total_coins_earned,
        "fastest_level_time": state.fastest_level_time,
        "power_ups": asdict(state.power_ups),
        "achievements": [asdict(p) for p in state.achievements],
        "daily_stats": asdict(state.daily_stats),
        "daily_challenges": {
            "challenges": [_challenge_to_dict(c) for c in daily.challenges],
            "last_reset_date": daily.last_reset_date,
            "streak": daily.streak,
            "last_streak_date": daily.last_streak_date,
            "all_completed_today": daily.all_completed_today,
            "bonus_claimed": daily.bonus_claimed,
        },
        "levels": [_level_to_dict(level) for level in state.levels],
    }


def state_from_dict(payload: Dict[str, Any], today: Optional[date] = None) -> GameState:
    """Rebuild a state from a snapshot.

    The level attempt is not resumed, achievement entries are aligned with
    the current definitions, and daily challenges roll over if the snapshot
    is from an earlier day.
    """
    raw_daily = payload["daily_challenges"]
    daily = DailyChallengesState(
        challenges=tuple(_challenge_from_dict(c) for c in raw_daily["challenges"]),
        last_reset_date=str(raw_daily["last_reset_date"]),
        streak=int(raw_daily.get("streak", 0)),
        last_streak_date=raw_daily.get("last_streak_date"),
        all_completed_today=bool(raw_daily.get("all_completed_today", False)),
        bonus_claimed=bool(raw_daily.get("bonus_claimed", False)),
    )
    stats = DailyStats(**payload.get("daily_stats", {}))
    daily, stats = roll_over(daily, stats, today or date.today())

    return GameState(
        levels=LevelRepository(_level_from_dict(raw) for raw in payload["levels"]),
        daily_challenges=daily,
        daily_stats=stats,
        current_level_id=int(payload.get("current_level_id", 1)),
        coins=int(payload.get("coins", 0)),
        lives=int(payload.get("lives", 0)),
        hints=int(payload.get("hints", 0)),
        total_coins_earned=int(payload.get("total_coins_earned", 0)),
        fastest_level_time=payload.get("fastest_level_time"),
        power_ups=PowerUpInventory(**payload.get("power_ups", {})),
        achievements=merge_progress([AchievementProgress(**p) for p in payload.get("achievements", [])]),
        status=LevelStatus.IDLE,
    )


class SaveStore:
    """Persists the game state as JSON between sessions.

    File: ~/.blobby/save.json unless a path is given. Read and write
    failures are logged and never raised.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._file_path = path or Path.home() / ".blobby" / "save.json"

    @property
    def path(self) -> Path:
        return self._file_path

    def load(self, today: Optional[date] = None) -> Optional[GameState]:
        """Return the saved state, or None if there is no usable save."""
        if not self._file_path.exists():
            return None
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load save from %s: %s", self._file_path, e)
            return None
        if not isinstance(payload, dict):
            logger.warning("Ignoring save at %s: expected a JSON object", self._file_path)
            return None

        version = payload.get("schema_version")
        if version != SCHEMA_VERSION:
            logger.warning(
                "Ignoring save at %s: schema version %r, expected %d", self._file_path, version, SCHEMA_VERSION
            )
            return None
        try:
            return state_from_dict(payload, today)
        except (KeyError, TypeError, ValueError, IndexError) as e:
            logger.warning("Could not read save from %s: %s", self._file_path, e)
            return None

    def save(self, state: GameState) -> bool:
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._file_path.write_text(json.dumps(state_to_dict(state), indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save game to %s: %s", self._file_path, e)
            return False
        return True

    def reset(self) -> None:
        """Delete the save file. Only called when the player resets progress."""
        try:
            self._file_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not delete save at %s: %s", self._file_path, e)
