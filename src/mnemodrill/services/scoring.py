"""Scoring rules turning raw session results into accuracy and speed."""
import math

from mnemodrill.models.models import AttemptResult, PracticeConfig, PracticeMode, RecallResult, SessionResult, SessionScore

SECONDS_PER_MINUTE = 60


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for non-negative values."""
    return int(math.floor(value + 0.5))


def clamp_percent(value: int) -> int:
    return max(0, min(100, value))


def longest_correct_prefix(original: str, recalled: str) -> int:
    """Count digits matching the original from the start, stopping at the first mismatch."""
    count = 0
    for expected, actual in zip(original, recalled):
        if expected != actual:
            break
        count += 1
    return count


def score_attempts(result: AttemptResult, config: PracticeConfig) -> SessionScore:
    """Score a drill counted in attempts; speed is normalized to a 60-second basis."""
    accuracy = round_half_up(100 * result.correct_count / max(result.total_attempts, 1))
    speed = round_half_up(result.correct_count * SECONDS_PER_MINUTE / config.time_limit_seconds)
    return SessionScore(accuracy=clamp_percent(accuracy), speed=speed)


def score_recall(result: RecallResult) -> SessionScore:
    """Score the recall challenge; speed is the absolute number of recalled digits."""
    accuracy = round_half_up(100 * result.recalled_prefix_length / max(result.sequence_length, 1))
    return SessionScore(accuracy=clamp_percent(accuracy), speed=result.recalled_prefix_length)


def score_session(result: SessionResult, config: PracticeConfig, mode: PracticeMode) -> SessionScore:
    """Map a raw session result to (accuracy, speed) for the given mode."""
    if mode == PracticeMode.TIMED_CHALLENGE:
        if not isinstance(result, RecallResult):
            raise TypeError(f"{mode.value} expects a RecallResult, got {type(result).__name__}")
        return score_recall(result)
    if not isinstance(result, AttemptResult):
        raise TypeError(f"{mode.value} expects an AttemptResult, got {type(result).__name__}")
    return score_attempts(result, config)
