from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from blobby.core.state import GameState

logger = logging.getLogger(__name__)

PushFn = Callable[[Dict[str, Any]], None]


def stats_payload(state: GameState) -> Dict[str, Any]:
    """Aggregate player stats as pushed to the leaderboard backend."""
    return {
        "total_stars": state.levels.total_stars(),
        "levels_completed": state.levels.completed_count(),
        "total_coins": state.coins,
        "fastest_level_time": state.fastest_level_time,
        "achievements": [p.id for p in state.achievements if p.unlocked],
        "daily_streak": state.daily_challenges.streak,
    }


class StatsSync:
    """Pushes the latest stats through ``push`` and keeps them pending on failure.

    Only the most recent payload is kept; a failed push is retried on the
    next :meth:`flush`. Failures never touch the game state.
    """

    def __init__(self, push: PushFn) -> None:
        self._push = push
        self._pending: Optional[Dict[str, Any]] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def mark_dirty(self, state: GameState) -> None:
        self._pending = stats_payload(state)

    def flush(self) -> bool:
        """Try to push pending stats. Returns True if nothing is left pending."""
        if self._pending is None:
            return True
        try:
            self._push(self._pending)
        except Exception as e:
            logger.warning("Could not sync stats, will retry: %s", e)
            return False
        self._pending = None
        return True
