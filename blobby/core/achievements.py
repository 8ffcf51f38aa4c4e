from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from blobby.core.state import GameState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    requirement: int
    category: str
    rarity: str
    metric: str


@dataclass(frozen=True)
class AchievementProgress:
    id: str
    progress: int = 0
    unlocked: bool = False
    unlocked_at: Optional[str] = None


ACHIEVEMENTS: Tuple[Achievement, ...] = (
    Achievement("first_steps", "First Steps", "Complete Level 1", 1, "progress", "common", "first_level"),
    Achievement("star_collector", "Star Collector", "Earn 50 stars total", 50, "collection", "rare", "total_stars"),
    Achievement(
        "speed_runner", "Speed Runner", "Complete a level in under 10 seconds", 10, "skill", "epic", "fast_completion"
    ),
    Achievement("coin_master", "Coin Master", "Collect 1000 coins total", 1000, "collection", "rare", "coins_earned"),
    Achievement("perfect_game", "Perfect Game", "Get 3 stars on any level", 3, "skill", "common", "three_star"),
    Achievement("marathon", "Marathon", "Complete 25 levels", 25, "progress", "epic", "levels_completed"),
    Achievement("dedicated", "Dedicated Player", "Complete 10 levels", 10, "progress", "common", "levels_completed"),
    Achievement("star_hunter", "Star Hunter", "Earn 100 stars total", 100, "collection", "epic", "total_stars"),
    Achievement("wealthy", "Wealthy Blobby", "Accumulate 5000 coins", 5000, "collection", "legendary", "coins_earned"),
    Achievement(
        "completionist", "Completionist", "Complete all 200 levels", 200, "progress", "legendary", "levels_completed"
    ),
)

_BY_ID: Dict[str, Achievement] = {a.id: a for a in ACHIEVEMENTS}


def get_achievement(achievement_id: str) -> Achievement:
    return _BY_ID[achievement_id]


def initial_achievement_progress() -> Tuple[AchievementProgress, ...]:
    return tuple(AchievementProgress(id=a.id) for a in ACHIEVEMENTS)


def merge_progress(saved: Sequence[AchievementProgress]) -> Tuple[AchievementProgress, ...]:
    """Align saved progress with the current definitions.

    Unknown ids are dropped; definitions missing from ``saved`` start fresh.
    """
    by_id = {p.id: p for p in saved}
    return tuple(by_id.get(a.id, AchievementProgress(id=a.id)) for a in ACHIEVEMENTS)


def _metrics(state: "GameState") -> Dict[str, int]:
    levels = state.levels
    first_done = 1 in levels and levels.get(1).completed
    return {
        "first_level": 1 if first_done else 0,
        "total_stars": levels.total_stars(),
        "coins_earned": state.total_coins_earned,
        "three_star": 3 if levels.has_three_star_level() else 0,
        "levels_completed": levels.completed_count(),
    }


def evaluate_achievements(
    state: "GameState",
    completion_time: Optional[int] = None,
    now: Optional[float] = None,
) -> Tuple[AchievementProgress, ...]:
    """Recompute every locked achievement from ``state``.

    ``completion_time`` is the whole-second duration of a level that was
    just finished, if any. Unlocked entries are returned untouched.
    """
    metrics = _metrics(state)
    stamp = datetime.fromtimestamp(now if now is not None else time.time(), tz=timezone.utc).isoformat()
    result: List[AchievementProgress] = []
    for progress in merge_progress(state.achievements):
        if progress.unlocked:
            result.append(progress)
            continue
        achievement = _BY_ID[progress.id]
        if achievement.metric == "fast_completion":
            if completion_time is not None and completion_time < achievement.requirement:
                value, reached = achievement.requirement, True
            else:
                value, reached = progress.progress, False
        else:
            value = metrics[achievement.metric]
            reached = value >= achievement.requirement
        if reached:
            result.append(replace(progress, progress=value, unlocked=True, unlocked_at=stamp))
        else:
            result.append(replace(progress, progress=value))
    return tuple(result)


def newly_unlocked(
    before: Sequence[AchievementProgress],
    after: Sequence[AchievementProgress],
) -> List[Achievement]:
    was_unlocked = {p.id for p in before if p.unlocked}
    return [_BY_ID[p.id] for p in after if p.unlocked and p.id not in was_unlocked]


def refresh_achievements(
    state: "GameState",
    completion_time: Optional[int] = None,
    now: Optional[float] = None,
) -> "GameState":
    """Re-evaluate achievements and queue notifications for new unlocks."""
    updated = evaluate_achievements(state, completion_time=completion_time, now=now)
    fresh = newly_unlocked(state.achievements, updated)
    for achievement in fresh:
        logger.info("Achievement unlocked: %s", achievement.name)
    return replace(
        state,
        achievements=updated,
        notifications=state.notifications + tuple(a.id for a in fresh),
    )


def dismiss_notification(state: "GameState") -> "GameState":
    if not state.notifications:
        return state
    return replace(state, notifications=state.notifications[1:])


def achievement_stats(state: "GameState") -> Tuple[int, int]:
    """Return (unlocked, total)."""
    return sum(1 for p in state.achievements if p.unlocked), len(ACHIEVEMENTS)
