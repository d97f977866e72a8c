"""Tests for the progress store."""
from typing import List
from unittest.mock import MagicMock

import pytest

from mnemodrill.models.models import MnemonicSystem, PracticeMode, SessionScore
from mnemodrill.services.progress_store import ProgressStore


def test_record_session(store: ProgressStore) -> None:
    """A session updates stats and unlocks session and cumulative achievements together."""
    outcome = store.record_session(MnemonicSystem.MAJOR, PracticeMode.CONVERSION_DRILL, SessionScore(75, 6))

    assert outcome.score == SessionScore(75, 6)
    assert outcome.stats.accuracy == 80
    assert outcome.stats.speed == 16
    assert outcome.stats.daily_streak == 1
    assert outcome.unlocked == ["first-session"]
    assert store.stats is outcome.stats
    assert store.unlocked_ids() == ["first-session"]


def test_snapshot_is_consistent(store: ProgressStore) -> None:
    before = store.snapshot()
    store.record_session(MnemonicSystem.MAJOR, PracticeMode.CONVERSION_DRILL, SessionScore(100, 30))
    after = store.snapshot()

    assert before[0].daily_streak == 0
    assert not any(achievement.unlocked for achievement in before[1])
    assert after == (store.stats, store.achievements)


def test_streak_achievement_after_three_sessions(store: ProgressStore) -> None:
    unlocked: List[str] = []
    for _ in range(3):
        outcome = store.record_session(MnemonicSystem.DOMINIC, PracticeMode.CONVERSION_DRILL, SessionScore(50, 5))
        unlocked.extend(outcome.unlocked)

    assert unlocked == ["first-session", "streak-3"]
    assert store.stats.daily_streak == 3


def test_speed_achievement_uses_blended_speed(store: ProgressStore) -> None:
    """The cumulative rules see the stats after the session was folded in."""
    outcome = store.record_session(MnemonicSystem.MAJOR, PracticeMode.CONVERSION_DRILL, SessionScore(50, 60))

    assert outcome.stats.speed == 43
    assert "speed-40" in outcome.unlocked
    assert "speed-60" not in outcome.unlocked


def test_listeners_are_notified(store: ProgressStore) -> None:
    listener = MagicMock()
    unsubscribe = store.subscribe(listener)

    store.record_session(MnemonicSystem.MAJOR, PracticeMode.TIMED_CHALLENGE, SessionScore(40, 12))
    listener.assert_called_once_with(store.stats, store.achievements)

    unsubscribe()
    unsubscribe()
    store.record_session(MnemonicSystem.MAJOR, PracticeMode.TIMED_CHALLENGE, SessionScore(40, 12))
    assert listener.call_count == 1


def test_failing_listener_does_not_break_the_store(store: ProgressStore) -> None:
    broken = MagicMock(side_effect=RuntimeError("display gone"))
    healthy = MagicMock()
    store.subscribe(broken)
    store.subscribe(healthy)

    outcome = store.record_session(MnemonicSystem.MAJOR, PracticeMode.CONVERSION_DRILL, SessionScore(75, 6))

    assert store.stats is outcome.stats
    healthy.assert_called_once()


def test_complete_tutorial(store: ProgressStore) -> None:
    outcome = store.complete_tutorial(MnemonicSystem.NUMBER_RHYME)

    assert outcome.score is None
    assert outcome.unlocked == []
    assert store.stats.completed_tutorials == {MnemonicSystem.NUMBER_RHYME}
    assert store.stats.daily_streak == 0


def test_progress_report(store: ProgressStore) -> None:
    store.record_session(MnemonicSystem.MAJOR, PracticeMode.CONVERSION_DRILL, SessionScore(75, 6))
    report = {entry.achievement.id: entry.progress for entry in store.progress_report()}

    assert report["first-session"] is None
    assert report["streak-3"] == 33
    assert report["all-systems"] == 25
    assert report["major-master"] == 33
    assert report["dominic-master"] == 0


if __name__ == "__main__":
    pytest.main([__file__])
