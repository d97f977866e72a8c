"""Achievement catalog and the generic evaluator that unlocks it."""
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from mnemodrill.models.models import (
    Achievement,
    AchievementProgress,
    MnemonicSystem,
    PracticeMode,
    SessionScore,
    UserStats,
)
from mnemodrill.services.scoring import clamp_percent, round_half_up

logger = logging.getLogger(__name__)


class AchievementScope(Enum):
    """What a rule is evaluated against."""
    SESSION = "session"  # The score of the session that just finished
    CUMULATIVE = "cumulative"  # The full UserStats after every update


@dataclass(frozen=True)
class AchievementRule:
    """One row of the achievement table."""
    id: str
    title: str
    description: str
    scope: AchievementScope
    predicate: Callable[[Any], bool]
    threshold: Optional[int] = None
    measure: Optional[Callable[[UserStats], float]] = None

    def progress(self, stats: UserStats) -> Optional[int]:
        """Percentage of the threshold reached, for cumulative rules with a threshold."""
        if self.scope is AchievementScope.SESSION or self.threshold is None or self.measure is None:
            return None
        return clamp_percent(round_half_up(100 * self.measure(stats) / self.threshold))


def session_rule(id: str, title: str, description: str, predicate: Callable[[SessionScore], bool]) -> AchievementRule:
    return AchievementRule(id, title, description, AchievementScope.SESSION, predicate)


def threshold_rule(
    id: str,
    title: str,
    description: str,
    measure: Callable[[UserStats], float],
    threshold: int,
) -> AchievementRule:
    """Cumulative rule unlocked once `measure(stats) >= threshold`."""
    return AchievementRule(
        id,
        title,
        description,
        AchievementScope.CUMULATIVE,
        predicate=lambda stats: measure(stats) >= threshold,
        threshold=threshold,
        measure=measure,
    )


def _modes_completed_for(system: MnemonicSystem) -> Callable[[UserStats], float]:
    return lambda stats: len(stats.completed_modes(system))


MASTER_TITLES = {
    MnemonicSystem.MAJOR: "Major System Master",
    MnemonicSystem.DOMINIC: "Dominic System Master",
    MnemonicSystem.NUMBER_RHYME: "Number Rhyme Master",
    MnemonicSystem.NUMBER_SHAPE: "Number Shape Master",
}


def _build_rules() -> Tuple[AchievementRule, ...]:
    rules = [
        # Session-based achievements
        session_rule("first-session", "Getting Started", "Complete your first practice session.",
                     lambda score: True),
        session_rule("accuracy-90", "Sharpshooter", "Reach 90% accuracy in a session.",
                     lambda score: score.accuracy >= 90),
        session_rule("accuracy-95", "Perfectionist", "Reach 95% accuracy in a session.",
                     lambda score: score.accuracy >= 95),
        session_rule("accuracy-100", "Flawless Victory", "Get a perfect 100% score.",
                     lambda score: score.accuracy == 100),

        # Streak achievements
        threshold_rule("streak-3", "On a Roll", "Practice for 3 days in a row.",
                       lambda stats: stats.daily_streak, 3),
        threshold_rule("streak-7", "Week-Long Warrior", "Maintain a 7-day practice streak.",
                       lambda stats: stats.daily_streak, 7),
        threshold_rule("streak-30", "Memory Master", "Achieve a 30-day practice streak.",
                       lambda stats: stats.daily_streak, 30),

        # Cumulative progress achievements
        threshold_rule("speed-40", "Quick Thinker", "Reach an average speed of 40 DPM.",
                       lambda stats: stats.speed, 40),
        threshold_rule("speed-60", "Lightning Fast", "Reach an average speed of 60 DPM.",
                       lambda stats: stats.speed, 60),
        threshold_rule("all-systems", "System Specialist", "Complete a practice for all mnemonic systems.",
                       lambda stats: stats.practiced_systems, len(MnemonicSystem)),
    ]

    # System mastery achievements
    for system in MnemonicSystem:
        rules.append(threshold_rule(
            f"{system.slug}-master",
            MASTER_TITLES.get(system, f"{system.value} Master"),
            f"Complete all practice modes for the {system.value}.",
            _modes_completed_for(system),
            len(PracticeMode),
        ))
    return tuple(rules)


ACHIEVEMENT_RULES = _build_rules()


class AchievementEvaluator:
    """Evaluates the rule table against session scores and cumulative stats."""

    def __init__(self, rules: Iterable[AchievementRule] = ACHIEVEMENT_RULES):
        self.rules = {}
        for rule in rules:
            if rule.id in self.rules:
                raise ValueError(f"Duplicate achievement id: {rule.id}")
            self.rules[rule.id] = rule

    def create_achievements(self) -> Tuple[Achievement, ...]:
        """All achievements, locked."""
        return tuple(Achievement(rule.id, rule.title, rule.description) for rule in self.rules.values())

    def evaluate(
        self,
        achievements: Sequence[Achievement],
        scope: AchievementScope,
        subject: Any,
    ) -> Tuple[Tuple[Achievement, ...], List[str]]:
        """Unlock every locked achievement of `scope` whose predicate holds.

        Returns the updated achievements and the ids unlocked by this pass.
        Already unlocked achievements are left untouched.
        """
        updated = []
        unlocked = []
        for achievement in achievements:
            rule = self.rules.get(achievement.id)
            if rule is not None and rule.scope is scope and not achievement.unlocked and rule.predicate(subject):
                achievement = replace(achievement, unlocked=True)
                unlocked.append(achievement.id)
                logger.info(f"Achievement unlocked: {achievement.id} ({achievement.title})")
            updated.append(achievement)
        return tuple(updated), unlocked

    def evaluate_session(self, achievements: Sequence[Achievement], score: SessionScore):
        return self.evaluate(achievements, AchievementScope.SESSION, score)

    def evaluate_cumulative(self, achievements: Sequence[Achievement], stats: UserStats):
        return self.evaluate(achievements, AchievementScope.CUMULATIVE, stats)

    def progress(self, achievement: Achievement, stats: UserStats) -> Optional[int]:
        """Progress ratio for display; None for session-scoped achievements."""
        rule = self.rules[achievement.id]
        if rule.scope is AchievementScope.SESSION:
            return None
        if achievement.unlocked:
            return 100
        return rule.progress(stats)

    def progress_report(self, achievements: Sequence[Achievement], stats: UserStats) -> List[AchievementProgress]:
        return [AchievementProgress(achievement, self.progress(achievement, stats)) for achievement in achievements]
