"""Service running practice sessions from selection to recorded outcome."""
import asyncio
import logging
import random
from typing import Optional

from mnemodrill.config import settings
from mnemodrill.models.drill_models import Attempt
from mnemodrill.models.models import (
    MnemonicSystem,
    PracticeConfig,
    PracticeMode,
    SessionOutcome,
    SessionResult,
    SessionScore,
)
from mnemodrill.monitoring import session_accuracy, sessions_cancelled, sessions_completed, sessions_started
from mnemodrill.services.content_generator import ContentService
from mnemodrill.services.drills import BaseDrill, create_drill
from mnemodrill.services.progress_store import ProgressStore
from mnemodrill.services.scoring import score_session
from mnemodrill.services.session_clock import SessionClock

logger = logging.getLogger(__name__)


def default_config() -> PracticeConfig:
    """Practice configuration from settings."""
    return PracticeConfig(
        time_limit_seconds=settings.practice.time_limit_seconds,
        digit_count=settings.practice.digit_count,
    )


class PracticeSession:
    """One run of a drill; scores and records the result when the drill finishes."""

    def __init__(self, drill: BaseDrill, store: ProgressStore):
        self.drill = drill
        self.store = store
        self.score: Optional[SessionScore] = None
        self.outcome: Optional[SessionOutcome] = None
        self._done = asyncio.Event()
        drill.add_finish_listener(self._on_drill_finished)

    @property
    def system(self) -> MnemonicSystem:
        return self.drill.system

    @property
    def mode(self) -> PracticeMode:
        return self.drill.mode

    @property
    def config(self) -> PracticeConfig:
        return self.drill.config

    @property
    def finished(self) -> bool:
        return self._done.is_set()

    def start(self, run_clock: bool = True) -> None:
        self.drill.start(run_clock=run_clock)
        sessions_started.labels(mode=self.mode.value).inc()

    async def submit(self, answer: str) -> Optional[Attempt]:
        return await self.drill.submit(answer)

    async def request_hint(self) -> str:
        return await self.drill.request_hint()

    def cancel(self) -> None:
        """Leave the session; nothing is recorded."""
        self.drill.cancel()

    async def wait(self) -> Optional[SessionOutcome]:
        """Wait for the session to end; None if it was cancelled."""
        await self._done.wait()
        return self.outcome

    def _on_drill_finished(self, result: Optional[SessionResult]) -> None:
        if result is None:
            sessions_cancelled.labels(mode=self.mode.value).inc()
        else:
            self.score = score_session(result, self.config, self.mode)
            self.outcome = self.store.record_session(self.system, self.mode, self.score)
            sessions_completed.labels(mode=self.mode.value).inc()
            session_accuracy.labels(mode=self.mode.value).observe(self.score.accuracy)
        self._done.set()


class PracticeService:
    """Starts sessions and keeps at most one of them active."""

    def __init__(self, store: ProgressStore, content_service: Optional[ContentService] = None):
        self.store = store
        self.content_service = content_service
        self.active_session: Optional[PracticeSession] = None

    def start_session(
        self,
        system: MnemonicSystem,
        mode: PracticeMode,
        config: Optional[PracticeConfig] = None,
        clock: Optional[SessionClock] = None,
        rng: Optional[random.Random] = None,
        run_clock: bool = True,
    ) -> PracticeSession:
        """Start a drill for the selection, abandoning any session still running."""
        self.cancel_active()
        config = config or default_config()
        drill = create_drill(mode, system, config, content_service=self.content_service, clock=clock, rng=rng)
        session = PracticeSession(drill, self.store)
        session.start(run_clock=run_clock)
        self.active_session = session
        logger.info(f"Practice session started: {system.value} / {mode.value}")
        return session

    def cancel_active(self) -> None:
        """Cancel the active session if it has not ended yet."""
        if self.active_session is not None and not self.active_session.finished:
            logger.info(f"Abandoning {self.active_session.mode.value} session")
            self.active_session.cancel()
        self.active_session = None
