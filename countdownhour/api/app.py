"""
FastAPI application — local command surface for the timer UI.
Runs on http://127.0.0.1:8765 by default.

Sessions, store and platform collaborators live on app.state so that each
call to create_app() produces a fully independent instance with no shared
module-level globals. This makes test isolation straightforward.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..clock import Clock, system_clock
from ..config import config
from ..countdown import CountdownEngine
from ..platform.background import BackgroundTicker
from ..platform.chime import Chime
from ..sessions.pomodoro import PomodoroSession
from ..sessions.timer import CountdownTimerSession
from ..sessions.todos import TodoActivation
from ..store import KeyValueStore, PomodoroStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan: initialises and tears down all per-app state
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    clock: Clock = app.state.clock
    engine = CountdownEngine(clock=clock, interval_ms=config.tick_interval_ms)

    store = PomodoroStore(KeyValueStore(app.state.store_path))
    chime = Chime(enabled=app.state.chime_enabled, double_gap_ms=config.double_chime_gap_ms)
    background = BackgroundTicker(engine)
    todos = TodoActivation(
        clock=clock,
        pool_capacity=config.todo_pool_capacity,
        selection_capacity=config.todo_selection_capacity,
        text_max_length=config.todo_text_max_length,
    )

    timer = CountdownTimerSession(engine, chime=chime, background=background)
    pomodoro = PomodoroSession(
        engine,
        todos=todos,
        store=store,
        chime=chime,
        background=background,
        min_remaining_ms=config.min_remaining_ms,
    )

    # the keep-alive ticker hitting zero makes the owning session reconcile
    background.on_countdown_complete = timer.sync_from_background
    background.on_pomodoro_complete = pomodoro.sync_from_background

    app.state.services = {
        "timer": timer,
        "pomodoro": pomodoro,
        "background": background,
        "chime": chime,
        "store": store,
    }
    logger.info("timer service ready (store: %s)", app.state.store_path)

    yield

    timer.close()
    pomodoro.close()
    background.stop()


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(
    store_path: Optional[Path] = None,
    clock: Clock = system_clock,
    chime_enabled: Optional[bool] = None,
) -> FastAPI:
    app = FastAPI(
        title="Countdown Hour",
        description="Local countdown and Pomodoro timer engine",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.store_path = Path(store_path) if store_path else config.store_path
    app.state.clock = clock
    app.state.chime_enabled = config.chime_enabled if chime_enabled is None else chime_enabled
    app.state.tick_interval_ms = config.tick_interval_ms

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000", "null"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from .routers import pomodoro, settings, state, timer, todos

    app.include_router(state.router)
    app.include_router(timer.router)
    app.include_router(pomodoro.router)
    app.include_router(todos.router)
    app.include_router(settings.router)

    @app.get("/health")
    def health(request: Request):
        services = getattr(request.app.state, "services", None)
        return {"status": "ok", "version": "0.1.0", "ready": services is not None}

    return app


app = create_app()
