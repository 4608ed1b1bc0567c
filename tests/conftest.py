"""
Pytest configuration and fixtures for Inkeep Gateway tests.
"""

import pytest

from inkeep_gateway.api.middleware import limiter
from inkeep_gateway.core.config import InkeepConfig
from inkeep_gateway.telemetry.metrics import MetricsCollector
from tests.helpers import RecordingLogger, RecordingMetrics


@pytest.fixture(autouse=True)
def reset_metrics():
    MetricsCollector.reset()
    yield
    MetricsCollector.reset()


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


@pytest.fixture
def inkeep_config() -> InkeepConfig:
    return InkeepConfig(
        challenge_url="https://inkeep.test/v1/challenge",
        chat_url="https://inkeep.test/v1/chat/completions",
    )


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def recording_metrics() -> RecordingMetrics:
    return RecordingMetrics()
