"""Test configuration."""
import os
import random
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from dotenv import load_dotenv

# Set test environment before any imports
os.environ["ENV"] = "test"

# Load test environment variables
test_env_path = Path(__file__).resolve().parents[3] / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from mnemodrill.models.models import PracticeConfig
from mnemodrill.services.content_generator import ContentService
from mnemodrill.services.progress_store import ProgressStore
from mnemodrill.services.stats_service import initial_stats


@pytest.fixture
def rng() -> random.Random:
    """Seeded random generator for reproducible challenges."""
    return random.Random(1234)


@pytest.fixture
def config() -> PracticeConfig:
    """Default one-minute, three-digit configuration."""
    return PracticeConfig(time_limit_seconds=60, digit_count=3)


@pytest.fixture
def store() -> ProgressStore:
    """Store starting from accuracy 85 and speed 25."""
    return ProgressStore(stats=initial_stats(accuracy=85, speed=25))


@pytest.fixture
def content_service() -> AsyncMock:
    """Content service double that accepts every answer."""
    service = AsyncMock(spec=ContentService)
    service.get_hint.return_value = "a tin can"
    service.validate_answer.return_value = True
    return service
