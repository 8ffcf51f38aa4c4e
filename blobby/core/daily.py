"""Daily challenges, per-day counters and the completion streak.

Three challenges are drawn each calendar day from a fixed template list,
deterministically from the date so every session on the same day sees the
same set. Counters and challenges reset when the stored day key no longer
matches today.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Tuple

from blobby.core.achievements import refresh_achievements

if TYPE_CHECKING:
    from blobby.core.state import GameState

logger = logging.getLogger(__name__)

CHALLENGES_PER_DAY = 3
FAST_COMPLETION_SECONDS = 15


class ChallengeType(str, Enum):
    COMPLETE_LEVELS = "complete_levels"
    COLLECT_COINS = "collect_coins"
    GET_STARS = "get_stars"
    PERFECT_LEVEL = "perfect_level"
    USE_HINTS = "use_hints"
    FAST_COMPLETE = "fast_complete"


@dataclass(frozen=True)
class Reward:
    coins: int = 0
    hints: int = 0
    lives: int = 0


@dataclass(frozen=True)
class ChallengeTemplate:
    type: ChallengeType
    title: str
    description: str
    requirement: int
    reward: Reward


@dataclass(frozen=True)
class DailyChallenge:
    id: str
    type: ChallengeType
    title: str
    description: str
    requirement: int
    reward: Reward
    progress: int = 0
    completed: bool = False
    claimed: bool = False


@dataclass(frozen=True)
class DailyChallengesState:
    challenges: Tuple[DailyChallenge, ...]
    last_reset_date: str
    streak: int = 0
    last_streak_date: Optional[str] = None
    all_completed_today: bool = False
    bonus_claimed: bool = False


@dataclass(frozen=True)
class DailyStats:
    levels_completed: int = 0
    coins_collected: int = 0
    stars_earned: int = 0
    perfect_levels: int = 0
    hints_used: int = 0
    fast_completions: int = 0

    def add(self, event: ChallengeType, amount: int) -> "DailyStats":
        name = _STAT_FIELDS[event]
        return replace(self, **{name: getattr(self, name) + amount})


_STAT_FIELDS: Dict[ChallengeType, str] = {
    ChallengeType.COMPLETE_LEVELS: "levels_completed",
    ChallengeType.COLLECT_COINS: "coins_collected",
    ChallengeType.GET_STARS: "stars_earned",
    ChallengeType.PERFECT_LEVEL: "perfect_levels",
    ChallengeType.USE_HINTS: "hints_used",
    ChallengeType.FAST_COMPLETE: "fast_completions",
}

CHALLENGE_TEMPLATES: Tuple[ChallengeTemplate, ...] = (
    ChallengeTemplate(ChallengeType.COMPLETE_LEVELS, "Level Crusher", "Complete 3 levels today", 3, Reward(coins=25)),
    ChallengeTemplate(
        ChallengeType.COMPLETE_LEVELS, "Marathon Runner", "Complete 5 levels today", 5, Reward(coins=50, lives=1)
    ),
    ChallengeTemplate(ChallengeType.COLLECT_COINS, "Coin Collector", "Collect 50 coins", 50, Reward(coins=15, hints=1)),
    ChallengeTemplate(ChallengeType.COLLECT_COINS, "Treasure Hunter", "Collect 100 coins", 100, Reward(coins=35)),
    ChallengeTemplate(ChallengeType.GET_STARS, "Star Seeker", "Earn 5 stars today", 5, Reward(coins=20)),
    ChallengeTemplate(
        ChallengeType.GET_STARS, "Stellar Performance", "Earn 10 stars today", 10, Reward(coins=40, hints=1)
    ),
    ChallengeTemplate(ChallengeType.PERFECT_LEVEL, "Perfectionist", "Get 3 stars on any level", 1, Reward(coins=30)),
    ChallengeTemplate(
        ChallengeType.PERFECT_LEVEL,
        "Triple Threat",
        "Get 3 stars on 2 different levels",
        2,
        Reward(coins=50, lives=1),
    ),
    ChallengeTemplate(ChallengeType.USE_HINTS, "Hint Master", "Use 2 hints today", 2, Reward(coins=15, hints=1)),
    ChallengeTemplate(
        ChallengeType.FAST_COMPLETE, "Speed Demon", "Complete a level in under 15 seconds", 1, Reward(coins=35)
    ),
    ChallengeTemplate(
        ChallengeType.FAST_COMPLETE,
        "Lightning Fast",
        "Complete 2 levels in under 20 seconds each",
        2,
        Reward(coins=60, hints=1),
    ),
)

DAILY_BONUS_REWARD = Reward(coins=75, lives=1, hints=1)


def generate_daily_challenges(day: date) -> Tuple[DailyChallenge, ...]:
    """Pick the day's challenges, preferring one per challenge type."""
    key = day.isoformat()
    seed = day.year + day.month + day.day
    shuffled = sorted(CHALLENGE_TEMPLATES, key=lambda t: (seed * t.requirement) % 100)

    selected: List[DailyChallenge] = []
    used_types = set()
    for template in shuffled:
        if len(selected) >= CHALLENGES_PER_DAY:
            break
        if template.type in used_types:
            continue
        used_types.add(template.type)
        selected.append(_from_template(template, f"{key}-{template.type.value}-{template.requirement}"))

    taken = {c.id for c in selected}
    for template in shuffled:
        if len(selected) >= CHALLENGES_PER_DAY:
            break
        challenge_id = f"{key}-{template.type.value}-{template.requirement}-{len(selected)}"
        if challenge_id not in taken:
            taken.add(challenge_id)
            selected.append(_from_template(template, challenge_id))
    return tuple(selected)


def _from_template(template: ChallengeTemplate, challenge_id: str) -> DailyChallenge:
    return DailyChallenge(
        id=challenge_id,
        type=template.type,
        title=template.title,
        description=template.description,
        requirement=template.requirement,
        reward=template.reward,
    )


def new_daily_state(today: date) -> DailyChallengesState:
    return DailyChallengesState(challenges=generate_daily_challenges(today), last_reset_date=today.isoformat())


def roll_over(
    daily: DailyChallengesState,
    stats: DailyStats,
    today: date,
) -> Tuple[DailyChallengesState, DailyStats]:
    """Start a new day if ``today`` differs from the stored day key.

    The streak grows when the previous set was finished on the day right
    before ``today``, restarts at 1 when it was finished on an earlier day,
    and drops to 0 otherwise.
    """
    key = today.isoformat()
    if daily.last_reset_date == key:
        return daily, stats

    try:
        consecutive = date.fromisoformat(daily.last_reset_date) == today - timedelta(days=1)
    except ValueError:
        logger.warning("Invalid daily reset date %r, treating as a broken streak", daily.last_reset_date)
        consecutive = False
    finished = daily.all_completed_today

    if consecutive and finished:
        streak, streak_date = daily.streak + 1, key
    elif finished:
        streak, streak_date = 1, daily.last_streak_date
    else:
        streak, streak_date = 0, daily.last_streak_date
    logger.debug("Daily challenges rolled over to %s (streak %d)", key, streak)

    rolled = DailyChallengesState(
        challenges=generate_daily_challenges(today),
        last_reset_date=key,
        streak=streak,
        last_streak_date=streak_date,
    )
    return rolled, DailyStats()


def _advance(daily: DailyChallengesState, event: ChallengeType, amount: int) -> DailyChallengesState:
    if amount <= 0:
        return daily
    challenges = []
    for challenge in daily.challenges:
        if challenge.type is event and not challenge.completed:
            progress = challenge.progress + amount
            challenge = replace(challenge, progress=progress, completed=progress >= challenge.requirement)
        challenges.append(challenge)
    return replace(
        daily,
        challenges=tuple(challenges),
        all_completed_today=all(c.completed for c in challenges),
    )


def ensure_current_day(state: "GameState", today: Optional[date] = None) -> "GameState":
    daily, stats = roll_over(state.daily_challenges, state.daily_stats, today or date.today())
    if daily is state.daily_challenges:
        return state
    return replace(state, daily_challenges=daily, daily_stats=stats)


def tick_daily_challenges(
    state: "GameState",
    event_type: ChallengeType,
    amount: int = 1,
    today: Optional[date] = None,
) -> DailyChallengesState:
    """Return the challenge set after ``amount`` units of ``event_type`` today."""
    daily, _ = roll_over(state.daily_challenges, state.daily_stats, today or date.today())
    return _advance(daily, ChallengeType(event_type), amount)


def record_daily_events(
    state: "GameState",
    events: Mapping[ChallengeType, int],
    today: Optional[date] = None,
) -> "GameState":
    """Apply several daily events at once, updating counters and challenges."""
    state = ensure_current_day(state, today)
    daily, stats = state.daily_challenges, state.daily_stats
    for event, amount in events.items():
        if amount <= 0:
            continue
        event = ChallengeType(event)
        stats = stats.add(event, amount)
        daily = _advance(daily, event, amount)
    return replace(state, daily_challenges=daily, daily_stats=stats)


def record_daily_event(
    state: "GameState",
    event_type: ChallengeType,
    amount: int = 1,
    today: Optional[date] = None,
) -> "GameState":
    return record_daily_events(state, {ChallengeType(event_type): amount}, today)


def _pay(state: "GameState", reward: Reward) -> "GameState":
    return replace(
        state,
        coins=state.coins + reward.coins,
        hints=state.hints + reward.hints,
        lives=state.lives + reward.lives,
        total_coins_earned=state.total_coins_earned + reward.coins,
    )


def claim_challenge_reward(state: "GameState", challenge_id: str, now: Optional[float] = None) -> "GameState":
    """Pay out a completed challenge once. Anything else leaves ``state`` unchanged."""
    daily = state.daily_challenges
    for index, challenge in enumerate(daily.challenges):
        if challenge.id == challenge_id:
            break
    else:
        logger.debug("No daily challenge %s", challenge_id)
        return state
    if not challenge.completed or challenge.claimed:
        return state

    challenges = list(daily.challenges)
    challenges[index] = replace(challenge, claimed=True)
    state = replace(_pay(state, challenge.reward), daily_challenges=replace(daily, challenges=tuple(challenges)))
    return refresh_achievements(state, now=now)


def claim_daily_bonus(state: "GameState", now: Optional[float] = None) -> "GameState":
    daily = state.daily_challenges
    if not daily.all_completed_today or daily.bonus_claimed:
        return state
    state = replace(_pay(state, DAILY_BONUS_REWARD), daily_challenges=replace(daily, bonus_claimed=True))
    return refresh_achievements(state, now=now)


def daily_challenge_stats(state: "GameState") -> Tuple[int, int, int]:
    """Return (completed, total, streak)."""
    daily = state.daily_challenges
    completed = sum(1 for c in daily.challenges if c.completed)
    return completed, len(daily.challenges), daily.streak
