"""
FastAPI dependencies.

The hub, watcher and settings are created per app in the lifespan and kept
on ``app.state``; handlers reach them through these functions so two apps
never share a registry.
"""

from fastapi import Request

from config import Settings
from live.hub import BroadcastHub
from live.watcher import TranscriptWatcher


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_hub(request: Request) -> BroadcastHub:
    return request.app.state.hub


def get_watcher(request: Request) -> TranscriptWatcher:
    return request.app.state.watcher
