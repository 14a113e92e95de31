"""
Viewer configuration.

Everything is read from the environment (a local .env is loaded by main.py
before this module is consulted). Defaults match a stock install:

  CLAUDE_VIEWER_PORT=3737
  CLAUDE_VIEWER_HOST=127.0.0.1
  CLAUDE_PROJECTS_DIR=~/.claude/projects
  CLAUDE_VIEWER_HEARTBEAT=30
  CLAUDE_VIEWER_LOG_LEVEL=INFO
"""

import math
import os
from dataclasses import dataclass

DEFAULT_PORT = 3737
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PROJECTS_DIR = os.path.join(os.path.expanduser("~"), ".claude", "projects")
DEFAULT_HEARTBEAT_SECONDS = 30.0


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    return value


def _positive_float_env(name: str, default: float) -> float:
    value = _float_env(name, default)
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be a positive number, got {value!r}")
    return value


@dataclass
class Settings:
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    projects_dir: str = DEFAULT_PROJECTS_DIR
    heartbeat_interval: float = DEFAULT_HEARTBEAT_SECONDS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        projects_dir = os.environ.get("CLAUDE_PROJECTS_DIR") or DEFAULT_PROJECTS_DIR
        return cls(
            port=_int_env("CLAUDE_VIEWER_PORT", DEFAULT_PORT),
            host=os.environ.get("CLAUDE_VIEWER_HOST", DEFAULT_HOST),
            projects_dir=os.path.expanduser(projects_dir),
            heartbeat_interval=_positive_float_env("CLAUDE_VIEWER_HEARTBEAT", DEFAULT_HEARTBEAT_SECONDS),
            log_level=os.environ.get("CLAUDE_VIEWER_LOG_LEVEL", "INFO").upper(),
        )
