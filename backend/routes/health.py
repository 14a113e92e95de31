from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from config import Settings
from live.hub import BroadcastHub
from live.watcher import TranscriptWatcher
from routes.deps import get_hub, get_settings, get_watcher

router = APIRouter(prefix="/api", tags=["health"])


class HealthResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: str
    service: str
    clients: int
    watching: bool      # False when live updates are disabled
    projects_dir: str


@router.get("/health", response_model=HealthResponse)
async def health(
    settings: Settings = Depends(get_settings),
    hub: BroadcastHub = Depends(get_hub),
    watcher: TranscriptWatcher = Depends(get_watcher),
):
    return HealthResponse(
        status="ok",
        service="transcript-viewer",
        clients=hub.connection_count,
        watching=watcher.active,
        projects_dir=settings.projects_dir,
    )
