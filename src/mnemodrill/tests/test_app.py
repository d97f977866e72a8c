"""Tests for the application container."""
from unittest.mock import AsyncMock, patch

import pytest

from mnemodrill.app import MnemonicTrainer
from mnemodrill.models.drill_models import DrillState
from mnemodrill.models.models import MnemonicStory, MnemonicSystem, PracticeConfig, PracticeMode
from mnemodrill.services.content_generator import GeminiContentService
from mnemodrill.services.progress_store import ProgressStore


@pytest.fixture
def trainer(content_service: AsyncMock, store: ProgressStore) -> MnemonicTrainer:
    return MnemonicTrainer(content_service=content_service, store=store)


def test_default_wiring() -> None:
    trainer = MnemonicTrainer()
    assert isinstance(trainer.content_service, GeminiContentService)
    assert trainer.practice.store is trainer.store
    assert trainer.practice.content_service is trainer.content_service


@pytest.mark.asyncio
async def test_start_and_stop(trainer: MnemonicTrainer) -> None:
    with patch("mnemodrill.app.start_monitoring") as start_monitoring:
        await trainer.start()
        await trainer.start()

    assert trainer.running
    start_monitoring.assert_not_called()

    await trainer.stop()
    assert not trainer.running


@pytest.mark.asyncio
async def test_start_with_monitoring(trainer: MnemonicTrainer) -> None:
    with patch("mnemodrill.app.settings") as settings, patch("mnemodrill.app.start_monitoring") as start_monitoring:
        settings.monitoring.enabled = True
        settings.monitoring.port = 9999
        await trainer.start()

    start_monitoring.assert_called_once_with(9999)
    assert trainer.monitoring_started


@pytest.mark.asyncio
async def test_monitoring_failure_does_not_stop_startup(trainer: MnemonicTrainer) -> None:
    with patch("mnemodrill.app.settings") as settings, \
            patch("mnemodrill.app.start_monitoring", side_effect=OSError("address in use")):
        settings.monitoring.enabled = True
        await trainer.start()

    assert trainer.running
    assert not trainer.monitoring_started


@pytest.mark.asyncio
async def test_stop_abandons_active_session(trainer: MnemonicTrainer) -> None:
    await trainer.start()
    session = trainer.start_practice(
        MnemonicSystem.MAJOR, PracticeMode.CONVERSION_DRILL, PracticeConfig(time_limit_seconds=60, digit_count=4)
    )
    assert len(session.drill.challenge.number) == 4
    assert session.drill.clock.running

    await trainer.stop()

    assert session.drill.state == DrillState.CANCELLED
    assert await session.wait() is None
    assert trainer.store.stats.daily_streak == 0


@pytest.mark.asyncio
async def test_memorize_delegates_to_content_service(trainer: MnemonicTrainer, content_service: AsyncMock) -> None:
    story = MnemonicStory(breakdown="3=m, 2=n", word="moon", story="A moon made of cheese.")
    content_service.generate_story.return_value = story

    assert await trainer.memorize(MnemonicSystem.MAJOR, "32", exaggerated=True) is story
    content_service.generate_story.assert_awaited_once_with(MnemonicSystem.MAJOR, "32", True)


if __name__ == "__main__":
    pytest.main([__file__])
