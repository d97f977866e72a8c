"""Application container wiring the practice engine together."""
import logging
from typing import Optional

from mnemodrill.config import settings
from mnemodrill.models.models import MnemonicStory, MnemonicSystem, PracticeConfig, PracticeMode
from mnemodrill.monitoring import start_monitoring
from mnemodrill.services.content_generator import ContentService, GeminiContentService
from mnemodrill.services.practice_service import PracticeService, PracticeSession
from mnemodrill.services.progress_store import ProgressStore


class MnemonicTrainer:
    """Main application class.

    Presentation code keeps one instance for the lifetime of the process and
    talks to the engine only through it.
    """

    def __init__(
        self,
        content_service: Optional[ContentService] = None,
        store: Optional[ProgressStore] = None,
    ):
        """Initialize the application."""
        self.content_service = content_service or GeminiContentService()
        self.store = store or ProgressStore()
        self.practice = PracticeService(self.store, self.content_service)
        self.running = False
        self.monitoring_started = False
        self.logger = logging.getLogger(__name__)

    async def start(self) -> None:
        """Start the application."""
        if self.running:
            return

        if settings.monitoring.enabled and not self.monitoring_started:
            try:
                start_monitoring(settings.monitoring.port)
                self.monitoring_started = True
                self.logger.info(f"Metrics available on port {settings.monitoring.port}")
            except OSError as e:
                self.logger.error("Failed to start metrics server: %s", str(e))

        self.running = True
        self.logger.info("Application started")

    async def stop(self) -> None:
        """Stop the application, abandoning any running session."""
        if not self.running:
            return

        self.practice.cancel_active()
        self.running = False
        self.logger.info("Application stopped")

    def start_practice(
        self,
        system: MnemonicSystem,
        mode: PracticeMode,
        config: Optional[PracticeConfig] = None,
    ) -> PracticeSession:
        """Start a practice session for the selected system and mode."""
        return self.practice.start_session(system, mode, config)

    async def memorize(self, system: MnemonicSystem, number: str, exaggerated: bool = False) -> MnemonicStory:
        """Generate a mnemonic story for a number.

        Raises ContentServiceError (MalformedResponseError for unusable output)
        so the caller can show its own error state.
        """
        return await self.content_service.generate_story(system, number, exaggerated)
