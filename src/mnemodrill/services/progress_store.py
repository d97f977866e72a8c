"""Process-wide owner of user statistics and achievements."""
import logging
from typing import Callable, List, Optional, Tuple

from mnemodrill.models.models import (
    Achievement,
    AchievementProgress,
    MnemonicSystem,
    PracticeMode,
    SessionOutcome,
    SessionScore,
    UserStats,
)
from mnemodrill.monitoring import achievements_unlocked
from mnemodrill.services.achievement_service import AchievementEvaluator
from mnemodrill.services.stats_service import StatsAggregator, initial_stats

logger = logging.getLogger(__name__)

ProgressListener = Callable[[UserStats, Tuple[Achievement, ...]], None]


class ProgressStore:
    """Holds the current UserStats and achievements.

    The store is the only writer. Every command computes the next stats and
    achievements from the current ones and swaps both in a single assignment,
    so readers never see a half-applied session.
    """

    def __init__(
        self,
        stats: Optional[UserStats] = None,
        evaluator: Optional[AchievementEvaluator] = None,
        aggregator: Optional[StatsAggregator] = None,
    ):
        self.evaluator = evaluator or AchievementEvaluator()
        self.aggregator = aggregator or StatsAggregator()
        self._state: Tuple[UserStats, Tuple[Achievement, ...]] = (
            stats or initial_stats(),
            self.evaluator.create_achievements(),
        )
        self._listeners: List[ProgressListener] = []

    @property
    def stats(self) -> UserStats:
        return self._state[0]

    @property
    def achievements(self) -> Tuple[Achievement, ...]:
        return self._state[1]

    def snapshot(self) -> Tuple[UserStats, Tuple[Achievement, ...]]:
        """Consistent pair of stats and achievements."""
        return self._state

    def unlocked_ids(self) -> List[str]:
        return [achievement.id for achievement in self.achievements if achievement.unlocked]

    def progress_report(self) -> List[AchievementProgress]:
        """Achievements with their progress ratios for display."""
        stats, achievements = self._state
        return self.evaluator.progress_report(achievements, stats)

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Register a listener called after every change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def record_session(self, system: MnemonicSystem, mode: PracticeMode, score: SessionScore) -> SessionOutcome:
        """Apply a completed session: session rules, stats update, then cumulative rules."""
        stats, achievements = self._state
        achievements, session_unlocked = self.evaluator.evaluate_session(achievements, score)
        stats = self.aggregator.apply_session(stats, system, mode, score)
        achievements, cumulative_unlocked = self.evaluator.evaluate_cumulative(achievements, stats)
        unlocked = session_unlocked + cumulative_unlocked

        self._commit(stats, achievements, unlocked)
        logger.info(
            f"Session recorded: {system.value} / {mode.value}, accuracy {score.accuracy}, "
            f"speed {score.speed}, unlocked {unlocked or 'nothing'}"
        )
        return SessionOutcome(stats=stats, unlocked=unlocked, score=score)

    def complete_tutorial(self, system: MnemonicSystem) -> SessionOutcome:
        """Record a finished tutorial and re-check cumulative achievements."""
        stats, achievements = self._state
        stats = self.aggregator.complete_tutorial(stats, system)
        achievements, unlocked = self.evaluator.evaluate_cumulative(achievements, stats)
        self._commit(stats, achievements, unlocked)
        logger.info(f"Tutorial completed: {system.value}")
        return SessionOutcome(stats=stats, unlocked=unlocked)

    def _commit(self, stats: UserStats, achievements: Tuple[Achievement, ...], unlocked: List[str]) -> None:
        self._state = (stats, achievements)
        for achievement_id in unlocked:
            achievements_unlocked.labels(achievement_id=achievement_id).inc()
        for listener in list(self._listeners):
            try:
                listener(stats, achievements)
            except Exception:
                logger.exception("Progress listener failed")
