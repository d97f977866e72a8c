"""Drill engines: challenge generation, attempt evaluation and termination."""
import asyncio
import logging
import random
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple, Type, final

from mnemodrill.config import settings
from mnemodrill.models.drill_models import TERMINAL_STATES, Attempt, Challenge, DrillState
from mnemodrill.models.models import (
    AttemptResult,
    MnemonicSystem,
    PracticeConfig,
    PracticeMode,
    RecallResult,
    SessionResult,
)
from mnemodrill.monitoring import attempts, content_fallbacks
from mnemodrill.services.content_generator import ContentService
from mnemodrill.services.scoring import longest_correct_prefix
from mnemodrill.services.session_clock import SessionClock

logger = logging.getLogger(__name__)

HINT_FALLBACK = "Sorry, couldn't get a hint right now."

FinishListener = Callable[[Optional[SessionResult]], None]


class DrillStateError(ValueError):
    """The drill is not in a state that accepts the requested action."""


def get_all_subclasses(cls):
    """Get all subclasses of a class."""
    all_subclasses = []
    for subclass in cls.__subclasses__():
        all_subclasses.append(subclass)
        all_subclasses.extend(get_all_subclasses(subclass))
    return all_subclasses


def random_digits(rng: random.Random, length: int) -> str:
    """Digits drawn independently and uniformly, leading zeros allowed."""
    return "".join(str(rng.randrange(10)) for _ in range(length))


class BaseDrill(ABC):
    """Base class for all drills.

    A drill owns its session clock and moves through its states exactly once:
    it starts in `initial_state` and ends in FINISHED (with a result) or
    CANCELLED (without one). Finish listeners are called once, with the result
    or with None on cancellation.
    """

    """Fields and methods that must be implemented by subclasses."""
    mode: Optional[PracticeMode] = None
    initial_state: DrillState = DrillState.ACTIVE

    @abstractmethod
    def _on_start(self) -> None:
        """Prepare the first challenge."""
        raise NotImplementedError("Subclasses must implement this method")

    @abstractmethod
    def _build_result(self) -> SessionResult:
        """Produce the raw result at termination."""
        raise NotImplementedError("Subclasses must implement this method")

    @abstractmethod
    async def submit(self, answer: str) -> Optional[Attempt]:
        """Submit an answer to the current challenge."""
        raise NotImplementedError("Subclasses must implement this method")

    def _on_clock_expired(self) -> None:
        if self.state == DrillState.ACTIVE:
            self._finish()

    def _cancel_pending(self) -> None:
        """Cancel in-flight external calls."""

    @property
    def accepting_answers(self) -> bool:
        return self.state == DrillState.ACTIVE

    """Fields and methods that must not be overridden by subclasses."""

    def __init__(
        self,
        system: MnemonicSystem,
        config: PracticeConfig,
        content_service: Optional[ContentService] = None,
        clock: Optional[SessionClock] = None,
        rng: Optional[random.Random] = None,
    ):
        self.system = system
        self.config = config
        self.content_service = content_service
        self.clock = clock or SessionClock(config.time_limit_seconds)
        self.clock.add_listener(on_expire=self._on_clock_expired)
        self.random = rng or random.Random()
        self.state: Optional[DrillState] = None
        self.challenge: Optional[Challenge] = None
        self.attempts: List[Attempt] = []
        self.result: Optional[SessionResult] = None
        self._finish_listeners: List[FinishListener] = []

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @final
    def add_finish_listener(self, listener: FinishListener) -> None:
        """Register a callback invoked once when the drill finishes or is cancelled."""
        self._finish_listeners.append(listener)

    @final
    def start(self, run_clock: bool = True) -> None:
        """Enter the initial state, show the first challenge and start the clock."""
        if self.state is not None:
            raise DrillStateError(f"{self.get_mode_name()} already started")
        self.state = self.initial_state
        self._on_start()
        logger.info(f"{self.get_mode_name()} started for {self.system.value} ({self.config})")
        if run_clock:
            self.clock.start()

    @final
    def cancel(self) -> None:
        """Abandon the drill; no result is produced."""
        if self.state is None or self.is_terminal:
            return
        self.state = DrillState.CANCELLED
        self.clock.cancel()
        self._cancel_pending()
        logger.info(f"{self.get_mode_name()} cancelled for {self.system.value}")
        self._notify(None)

    @final
    def _finish(self) -> None:
        self.state = DrillState.FINISHED
        self.clock.cancel()
        self._cancel_pending()
        self.result = self._build_result()
        logger.info(f"{self.get_mode_name()} finished for {self.system.value}: {self.result}")
        self._notify(self.result)

    @final
    def _notify(self, result: Optional[SessionResult]) -> None:
        listeners, self._finish_listeners = self._finish_listeners, []
        for listener in listeners:
            listener(result)

    @final
    def _ensure_accepting(self) -> None:
        if not self.accepting_answers:
            state = self.state.value if self.state else "not started"
            raise DrillStateError(f"{self.get_mode_name()} is not accepting answers ({state})")

    @final
    async def request_hint(self) -> str:
        """Ask the content service for a hint on the current challenge."""
        if self.challenge is None or self.content_service is None:
            return HINT_FALLBACK
        try:
            return await self.content_service.get_hint(self.system, self.challenge.number)
        except Exception as e:
            logger.warning(f"Error getting hint for {self.challenge.number}: {e}")
            content_fallbacks.labels(operation="hint").inc()
            return HINT_FALLBACK

    @final
    def get_mode_name(self) -> str:
        """Get the PracticeMode value for this drill."""
        return self.mode.value if self.mode else type(self).__name__


class AttemptDrill(BaseDrill):
    """Drill that counts correct answers against total attempts until the clock expires."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.correct_count = 0
        self.total_attempts = 0

    @abstractmethod
    def _generate_number(self) -> str:
        """Generate the number for the next challenge."""
        raise NotImplementedError("Subclasses must implement this method")

    def _on_start(self) -> None:
        self._next_challenge()

    def _next_challenge(self) -> None:
        self.challenge = Challenge(self._generate_number())

    def _build_result(self) -> AttemptResult:
        return AttemptResult(correct_count=self.correct_count, total_attempts=self.total_attempts)

    def _record(self, answer: str, is_correct: bool, used_fallback: bool = False) -> Attempt:
        attempt = Attempt(self.challenge, answer, is_correct, used_fallback)
        self.attempts.append(attempt)
        self.total_attempts += 1
        if is_correct:
            self.correct_count += 1
        attempts.labels(mode=self.mode.value, outcome="correct" if is_correct else "incorrect").inc()
        logger.debug(f"Attempt on {attempt.challenge.number}: {answer!r} -> {is_correct}")
        self._next_challenge()
        return attempt


class ConversionDrill(AttemptDrill):
    """Convert multi-digit numbers into mnemonic words, scored by a local heuristic."""
    mode = PracticeMode.CONVERSION_DRILL

    def _generate_number(self) -> str:
        return random_digits(self.random, self.config.digit_count)

    @staticmethod
    def evaluate(answer: str) -> bool:
        """Any answer longer than two characters counts as correct, padding included."""
        return len(answer) > 2

    @staticmethod
    def check_keystroke(text: str) -> bool:
        """Character-level feedback: whether the last typed character is a letter.

        Purely advisory, it never blocks submission.
        """
        if not text:
            return True
        return text[-1].isalpha()

    async def submit(self, answer: str) -> Attempt:
        self._ensure_accepting()
        return self._record(answer, self.evaluate(answer))


class NumberAssociationDrill(AttemptDrill):
    """Associate single digits with images, validated by the content service."""
    mode = PracticeMode.NUMBER_ASSOCIATION

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._pending: Optional[asyncio.Task] = None

    @property
    def is_pending(self) -> bool:
        """Whether a validation is in flight."""
        return self._pending is not None and not self._pending.done()

    def _generate_number(self) -> str:
        previous = self.challenge.number if self.challenge else None
        digit = str(self.random.randrange(10))
        while digit == previous:
            digit = str(self.random.randrange(10))
        return digit

    def _cancel_pending(self) -> None:
        if self.is_pending:
            self._pending.cancel()
            logger.debug("Pending validation discarded")

    async def _validate(self, number: str, answer: str) -> Tuple[bool, bool]:
        """Return (is_correct, used_fallback)."""
        if self.content_service is None:
            return bool(answer.strip()), True
        try:
            is_correct = await asyncio.wait_for(
                self.content_service.validate_answer(self.system, number, answer),
                timeout=settings.gemini.timeout,
            )
            return bool(is_correct), False
        except Exception as e:
            logger.warning(f"Validation failed for {number}, using local heuristic: {e}")
            content_fallbacks.labels(operation="validate").inc()
            return bool(answer.strip()), True

    async def submit(self, answer: str) -> Optional[Attempt]:
        """Validate an answer; returns None when blocked by a pending validation or discarded."""
        self._ensure_accepting()
        if self.is_pending:
            logger.debug("Submission ignored while validation is pending")
            return None

        task = asyncio.create_task(self._validate(self.challenge.number, answer))
        self._pending = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if self._pending is task:
                self._pending = None

        # The session may have ended while the call was in flight
        if task.cancelled() or self.state != DrillState.ACTIVE:
            return None
        is_correct, used_fallback = task.result()
        return self._record(answer, is_correct, used_fallback)


class TimedRecallChallenge(BaseDrill):
    """Memorize a long digit sequence against the clock, then reproduce it."""
    mode = PracticeMode.TIMED_CHALLENGE
    initial_state = DrillState.MEMORIZING

    def __init__(self, *args, sequence_length: Optional[int] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.sequence_length = sequence_length or settings.practice.recall_sequence_length
        self.sequence = ""

    @property
    def accepting_answers(self) -> bool:
        return self.state == DrillState.RECALLING

    def _on_start(self) -> None:
        self.sequence = random_digits(self.random, self.sequence_length)
        self.challenge = Challenge(self.sequence)

    def _on_clock_expired(self) -> None:
        if self.state == DrillState.MEMORIZING:
            self.begin_recall()

    def begin_recall(self) -> None:
        """Hide the sequence and wait for the reproduction; the recall phase is untimed."""
        if self.state != DrillState.MEMORIZING:
            raise DrillStateError(f"Cannot begin recall from {self.state}")
        self.state = DrillState.RECALLING
        self.clock.cancel()
        logger.debug(f"Recall phase started after {self.clock.time_limit_seconds - self.clock.remaining}s")

    def _build_result(self) -> RecallResult:
        recalled = self.attempts[-1].answer if self.attempts else ""
        return RecallResult(
            recalled_prefix_length=longest_correct_prefix(self.sequence, recalled),
            sequence_length=len(self.sequence),
        )

    async def submit(self, answer: str) -> Attempt:
        """Compare the reproduction digit by digit from the start; only the prefix before the first mismatch counts.

        Whitespace is removed before comparing, so "1 2" scores as "12".
        """
        self._ensure_accepting()
        recalled = "".join(answer.split())
        attempt = Attempt(self.challenge, recalled, recalled == self.sequence)
        self.attempts.append(attempt)
        attempts.labels(mode=self.mode.value, outcome="correct" if attempt.is_correct else "incorrect").inc()
        self._finish()
        return attempt


def get_drill_class(mode: PracticeMode) -> Type[BaseDrill]:
    """Find the drill implementing a practice mode."""
    for drill_class in get_all_subclasses(BaseDrill):
        if drill_class.mode == mode:
            return drill_class
    raise ValueError(f"No drill registered for {mode}")


def create_drill(
    mode: PracticeMode,
    system: MnemonicSystem,
    config: PracticeConfig,
    content_service: Optional[ContentService] = None,
    clock: Optional[SessionClock] = None,
    rng: Optional[random.Random] = None,
) -> BaseDrill:
    """Build the drill for a practice mode."""
    return get_drill_class(mode)(system, config, content_service=content_service, clock=clock, rng=rng)
