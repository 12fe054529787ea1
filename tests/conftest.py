"""
Shared test fixtures for the reflectibot test suite.

Local fixtures in individual test files override these (pytest convention).
"""

import pytest
from datetime import datetime
from typing import List, Optional

from reflectibot.config import EngineConfig
from reflectibot.engine import CompanionEngine
from reflectibot.storage import InMemoryRepository, SQLiteRepository


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------

@pytest.fixture
def friday_morning():
    """2024-03-15 is a Friday."""
    return datetime(2024, 3, 15, 9, 30)


@pytest.fixture
def saturday_evening():
    return datetime(2024, 3, 16, 19, 45)


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------

@pytest.fixture
def repository():
    """Fresh dict-backed repository."""
    return InMemoryRepository()


@pytest.fixture
def sqlite_repository(tmp_path):
    """SQLite repository in a temp directory, closed after the test."""
    repo = SQLiteRepository(str(tmp_path / "reflectibot.db"))
    yield repo
    repo.close()


@pytest.fixture(params=["memory", "sqlite"])
def any_repository(request, tmp_path):
    """Run a test against both repository implementations."""
    if request.param == "memory":
        yield InMemoryRepository()
    else:
        repo = SQLiteRepository(str(tmp_path / "reflectibot.db"))
        yield repo
        repo.close()


# ---------------------------------------------------------------------------
# Text generation double
# ---------------------------------------------------------------------------

class FakeTextGenerator:
    """Records calls and returns a canned response."""

    def __init__(self, response: Optional[str] = None):
        self.response = response
        self.calls: List[dict] = []

    async def generate(self, system, prompt, json_mode=False, max_tokens=800, temperature=0.7):
        self.calls.append({
            "system": system,
            "prompt": prompt,
            "json_mode": json_mode,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        return self.response


@pytest.fixture
def fake_generator():
    return FakeTextGenerator()


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

@pytest.fixture
def engine(repository):
    """Engine over an in-memory repository, no text generator."""
    return CompanionEngine(repository, config=EngineConfig())
