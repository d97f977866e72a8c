"""Folding finished sessions into cumulative user statistics."""
import logging
from dataclasses import replace
from types import MappingProxyType
from typing import Optional

from mnemodrill.config import settings
from mnemodrill.models.models import MnemonicSystem, PracticeMode, SessionScore, UserStats
from mnemodrill.services.scoring import clamp_percent, round_half_up

logger = logging.getLogger(__name__)


def initial_stats(accuracy: Optional[int] = None, speed: Optional[int] = None) -> UserStats:
    """Statistics a fresh process starts from."""
    return UserStats(
        daily_streak=0,
        accuracy=settings.practice.initial_accuracy if accuracy is None else accuracy,
        speed=settings.practice.initial_speed if speed is None else speed,
    )


class StatsAggregator:
    """Pure transitions from one UserStats snapshot to the next."""

    @staticmethod
    def blend(old: float, new: float) -> int:
        """Two-sample running average: the new session weighs as much as the whole history."""
        return round_half_up((old + new) / 2)

    def apply_session(
        self,
        stats: UserStats,
        system: MnemonicSystem,
        mode: PracticeMode,
        score: SessionScore,
    ) -> UserStats:
        """Return the stats after one completed session."""
        completed = dict(stats.completed_practices)
        completed[system] = stats.completed_modes(system) | {mode}

        # The streak counts sessions, there is no calendar-day check yet
        new_stats = replace(
            stats,
            accuracy=clamp_percent(self.blend(stats.accuracy, score.accuracy)),
            speed=max(0, self.blend(stats.speed, score.speed)),
            daily_streak=stats.daily_streak + 1,
            completed_practices=MappingProxyType(completed),
        )
        logger.debug(
            f"Stats after {mode.value} ({system.value}): accuracy {stats.accuracy} -> {new_stats.accuracy}, "
            f"speed {stats.speed} -> {new_stats.speed}, streak {new_stats.daily_streak}"
        )
        return new_stats

    def complete_tutorial(self, stats: UserStats, system: MnemonicSystem) -> UserStats:
        """Return the stats with a finished tutorial recorded."""
        if system in stats.completed_tutorials:
            return stats
        return replace(stats, completed_tutorials=stats.completed_tutorials | {system})
