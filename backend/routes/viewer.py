from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from viewer.page import VIEWER_HTML

router = APIRouter(tags=["viewer"])


@router.get("/", response_class=HTMLResponse)
async def viewer_page():
    return HTMLResponse(content=VIEWER_HTML)
