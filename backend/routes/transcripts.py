import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config import Settings
from models.transcript import Project, Session
from routes.deps import get_settings
from transcripts import parser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["transcripts"])


# ---------- Response schemas ----------

class ProjectsResponse(BaseModel):
    projects: list[Project]


class SessionResponse(BaseModel):
    session: Session


class ErrorResponse(BaseModel):
    error: str


# ---------- Endpoints ----------

# Plain ``def`` so FastAPI runs the directory scans in its threadpool.

@router.get(
    "/projects",
    response_model=ProjectsResponse,
    responses={500: {"model": ErrorResponse}},
)
def get_projects(settings: Settings = Depends(get_settings)):
    """
    Every project under the transcript directory that has at least one
    session, each with its sessions newest first. Rescanned on every call.
    """
    try:
        projects = parser.list_projects(settings.projects_dir)
    except Exception as e:
        logger.exception("Error listing projects")
        return JSONResponse(status_code=500, content={"error": str(e)})

    return ProjectsResponse(projects=projects)


@router.get(
    "/sessions/{project_name}/{session_id}",
    response_model=SessionResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def get_session(project_name: str, session_id: str, settings: Settings = Depends(get_settings)):
    """One session with its messages and the project's sub-agent transcripts."""
    try:
        session = parser.get_session(settings.projects_dir, project_name, session_id)
    except Exception as e:
        logger.exception("Error loading session %s/%s", project_name, session_id)
        return JSONResponse(status_code=500, content={"error": str(e)})

    if session is None:
        return JSONResponse(status_code=404, content={"error": "Session not found"})

    return SessionResponse(session=session)
