"""
Central configuration for the Countdown Hour timer service.
All values can be overridden via environment variables or a local config.json.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

_ROOT = Path(__file__).parent.parent
_CONFIG_FILE = _ROOT / "config.json"


@dataclass
class Config:
    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8765

    # Countdown
    tick_interval_ms: int = 1000             # upper bound between two ticks
    min_remaining_ms: int = 60_000           # add-time never drops a phase below this

    # Todos
    todo_pool_capacity: int = 50
    todo_selection_capacity: int = 5
    todo_text_max_length: int = 72

    # Storage
    data_dir: Path = field(default_factory=lambda: _ROOT / "data")
    store_file: str = "pomodoro_data.json"

    # Audio
    chime_enabled: bool = True
    double_chime_gap_ms: int = 350

    # Logging
    log_level: str = "INFO"

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def store_path(self) -> Path:
        return self.data_dir / self.store_file

    @classmethod
    def load(cls) -> "Config":
        cfg = cls()
        if _CONFIG_FILE.exists():
            overrides = json.loads(_CONFIG_FILE.read_text())
            for k, v in overrides.items():
                if hasattr(cfg, k):
                    setattr(cfg, k, v)
        # environment variable overrides (CDH_*)
        for k in cfg.__dataclass_fields__:  # type: ignore[attr-defined]
            env_key = f"CDH_{k.upper()}"
            if env_key in os.environ:
                setattr(cfg, k, _coerce(getattr(cfg, k), os.environ[env_key]))
        cfg.data_dir = Path(cfg.data_dir)
        return cfg


def _coerce(current, raw: str):
    if isinstance(current, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    return type(current)(raw)


# Module-level singleton
config = Config.load()
