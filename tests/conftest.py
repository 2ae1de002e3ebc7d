"""Shared test fixtures."""

from __future__ import annotations

import pytest

from smail.core.config import Config
from smail.transport import SSEChannel
from tests.test_doubles.voice_fake import VoiceFake


@pytest.fixture
def channel() -> SSEChannel:
    return SSEChannel()


@pytest.fixture
def voice() -> VoiceFake:
    return VoiceFake()


@pytest.fixture
def config() -> Config:
    """Config with no artificial delays."""
    return Config(api_key=None, tool_latency=0.0, spell_delay=0.0)
