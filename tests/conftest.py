"""
Shared pytest fixtures and configuration.
"""

from datetime import datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from countdownhour.api.app import create_app
from countdownhour.countdown import CountdownEngine
from countdownhour.sessions.pomodoro import PomodoroSession
from countdownhour.sessions.todos import TodoActivation

# 2026-03-02 14:30:00 local time
START_MS = int(datetime(2026, 3, 2, 14, 30).timestamp() * 1000)


class FakeClock:
    """A wall clock that only moves when told to."""

    def __init__(self, now_ms: int = START_MS):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


class RecordingChime:
    def __init__(self):
        self.calls = []

    def play_completion(self, is_break_ending: bool = False) -> bool:
        self.calls.append(is_break_ending)
        return True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    """Countdowns that only tick when a test calls tick()."""
    return CountdownEngine(clock=clock, threaded=False)


@pytest.fixture
def chime():
    return RecordingChime()


@pytest.fixture
def pomodoro(engine, clock, chime):
    counter = iter(range(1, 1000))
    todos = TodoActivation(clock=clock, id_factory=lambda: f"t{next(counter)}")
    return PomodoroSession(engine, todos=todos, chime=chime)


@pytest.fixture
def app(tmp_path):
    """Create a fresh app instance per test, with its own store file."""
    return create_app(store_path=tmp_path / "store.json", chime_enabled=False)


@pytest_asyncio.fixture
async def client(app):
    """Async HTTP client wired directly to the ASGI app (no server needed)."""
    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
