"""
Score, streak and badge bookkeeping for completed levels.

The tracker only listens to completion events; it never calls back into
the circuit that produced them.

Scoring per completion:
    points = 100 + max(0, 60 - seconds) * 2 - max(0, (attempts - 1) * 10)
"""

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional

from circuit_engine.levels import DEFAULT_CATALOG

logger = logging.getLogger(__name__)

BASE_POINTS = 100
TIME_BONUS_WINDOW = 60      # seconds
TIME_BONUS_PER_SECOND = 2
ATTEMPT_PENALTY = 10

# Level milestones, in award order
LEVEL_BADGES = {
    1: 'First Step',
    5: 'Circuit Novice',
    10: 'Circuit Expert',
    15: 'Circuit Master',
}
SPEED_BADGE = 'Speed Demon'
SPEED_BADGE_SECONDS = 30
PERFECT_BADGE = 'Perfect Score'


def level_points(elapsed_seconds: int, attempts: int) -> int:
    time_bonus = max(0, TIME_BONUS_WINDOW - elapsed_seconds) * TIME_BONUS_PER_SECOND
    attempt_penalty = max(0, (attempts - 1) * ATTEMPT_PENALTY)
    return BASE_POINTS + time_bonus - attempt_penalty


@dataclass
class PlayerStats:
    total_score: int = 0
    levels_completed: int = 0
    total_levels: int = len(DEFAULT_CATALOG)
    badges: List[str] = field(default_factory=list)
    current_streak: int = 0
    best_time: int = 0  # 0 until the first completion

    @property
    def progress_percentage(self) -> float:
        if self.total_levels <= 0:
            return 0.0
        return self.levels_completed / self.total_levels * 100

    def to_dict(self) -> dict:
        return {
            'total_score': self.total_score,
            'levels_completed': self.levels_completed,
            'total_levels': self.total_levels,
            'badges': list(self.badges),
            'current_streak': self.current_streak,
            'best_time': self.best_time,
            'progress_percentage': self.progress_percentage,
        }


class ProgressTracker:
    def __init__(self, total_levels: int = len(DEFAULT_CATALOG)):
        self._stats = PlayerStats(total_levels=total_levels)

    def attach(self, circuit) -> None:
        """Subscribe to a CircuitState's completion events."""
        circuit.on_level_complete(self.record)

    def stats(self) -> PlayerStats:
        return replace(self._stats, badges=list(self._stats.badges))

    def record(self, level_id: Optional[int], elapsed_seconds: int, attempts: int) -> int:
        """Apply one completion and return the points it earned."""
        stats = self._stats
        points = level_points(elapsed_seconds, attempts)

        stats.total_score += points
        if level_id is not None:
            stats.levels_completed = max(stats.levels_completed, level_id)
        stats.current_streak += 1
        if stats.best_time == 0:
            stats.best_time = elapsed_seconds
        else:
            stats.best_time = min(stats.best_time, elapsed_seconds)

        for badge in self._earned_badges(level_id, elapsed_seconds, attempts):
            if badge not in stats.badges:
                stats.badges.append(badge)
                logger.info("Badge earned: %s", badge)

        return points

    @staticmethod
    def _earned_badges(level_id, elapsed_seconds, attempts):
        if level_id in LEVEL_BADGES:
            yield LEVEL_BADGES[level_id]
        if elapsed_seconds < SPEED_BADGE_SECONDS:
            yield SPEED_BADGE
        if attempts == 1:
            yield PERFECT_BADGE
