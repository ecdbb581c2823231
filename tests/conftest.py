"""Pytest configuration and shared fixtures."""
import os
import sys

import pytest

# Ensure careercraft is on path when running tests from project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from careercraft.config import LoopLimits, Settings  # noqa: E402
from careercraft.conversations import ConversationRegistry  # noqa: E402
from careercraft.tools.store import ProfileStore  # noqa: E402


@pytest.fixture
def settings():
    """Default ceilings with short timeouts so a hung fake fails fast."""
    return Settings(llm_timeout=2.0, tool_timeout=2.0, loop_limits=LoopLimits())


@pytest.fixture
def store():
    return ProfileStore()


@pytest.fixture(autouse=True)
def _clear_conversations():
    ConversationRegistry.clear()
    yield
    ConversationRegistry.clear()


@pytest.fixture
def resume_text():
    """A resume block of roughly 300 words."""
    lines = [
        "Jane Doe",
        "Senior Software Engineer at Acme Corp (2019 - 2024)",
        "Software Engineer at Initech (2015 - 2019)",
        "Skills: Python, Go, PostgreSQL, Kubernetes",
    ]
    filler = (
        "Led the design and delivery of distributed services handling millions of requests "
        "per day while mentoring engineers and improving reliability across teams. "
    )
    lines.extend(filler for _ in range(12))
    return "\n".join(lines)
