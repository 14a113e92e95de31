from dotenv import load_dotenv
load_dotenv()

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings
from live.hub import BroadcastHub
from live.watcher import TranscriptWatcher
from routes import events, health, transcripts, viewer

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"

# Backstop only: ViewerServer ends SSE streams as soon as the signal arrives.
GRACEFUL_SHUTDOWN_SECONDS = 2

SESSIONS_PREFIX = "/api/sessions/"

BANNER = """
  Claude Code Transcript Viewer

  Server running at: http://{host}:{port}
  Watching:          {projects_dir}

  Press Ctrl+C to stop
"""


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build an app with its own hub and watcher."""
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        hub = BroadcastHub(heartbeat_interval=settings.heartbeat_interval)
        watcher = TranscriptWatcher(settings.projects_dir, hub)
        await watcher.start()

        app.state.settings = settings
        app.state.hub = hub
        app.state.watcher = watcher
        app.state.loop = asyncio.get_running_loop()

        yield

        logger.info("Shutting down...")
        await watcher.stop()
        hub.shutdown()

    app = FastAPI(title="Transcript Viewer", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def api_http_error(request: Request, exc: StarletteHTTPException):
        """
        Keep the ``{"error": ...}`` body on /api paths that never reach a
        route, e.g. an identifier holding an encoded ``/``.
        """
        path = request.url.path
        if not path.startswith("/api/"):
            return await http_exception_handler(request, exc)
        if exc.status_code == 404 and path.startswith(SESSIONS_PREFIX):
            return JSONResponse(status_code=404, content={"error": "Session not found"})
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    app.include_router(viewer.router)
    app.include_router(events.router)
    app.include_router(transcripts.router)
    app.include_router(health.router)

    return app


class ViewerServer(uvicorn.Server):
    """
    uvicorn server that ends every open event stream the moment a shutdown
    signal arrives, instead of after the graceful-shutdown timeout.
    """

    def __init__(self, config: uvicorn.Config, viewer_app: FastAPI):
        super().__init__(config)
        self.viewer_app = viewer_app

    def handle_exit(self, sig, frame) -> None:
        hub = getattr(self.viewer_app.state, "hub", None)
        loop = getattr(self.viewer_app.state, "loop", None)
        if hub is not None and loop is not None and not loop.is_closed():
            # Signal handlers may run outside the loop.
            loop.call_soon_threadsafe(hub.shutdown)
        super().handle_exit(sig, frame)


def run() -> None:
    """Console entry point: ``claude-viewer``."""
    try:
        settings = Settings.from_env()
        logging.basicConfig(level=settings.log_level, format=LOG_FORMAT, datefmt="%H:%M:%S")
        app = create_app(settings)
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        sys.exit(1)

    print(BANNER.format(
        host=settings.host,
        port=settings.port,
        projects_dir=settings.projects_dir,
    ))

    # uvicorn owns SIGINT/SIGTERM; a failed bind leaves the server unstarted.
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        timeout_graceful_shutdown=GRACEFUL_SHUTDOWN_SECONDS,
    )
    server = ViewerServer(config, app)
    server.run()
    if not server.started:
        sys.exit(1)


if __name__ == "__main__":
    run()
