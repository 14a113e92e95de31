from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from live.hub import BroadcastHub, EventStream
from routes.deps import get_hub

router = APIRouter(prefix="/api", tags=["events"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "Access-Control-Allow-Origin": "*",
}


@router.get("/events")
async def stream_events(hub: BroadcastHub = Depends(get_hub)):
    """
    Server-Sent Events stream of connected / heartbeat / file_change events.
    Stays open until the client goes away or the server shuts down.
    """
    stream = EventStream()
    connection_id = hub.register(stream)

    async def frames():
        try:
            async for frame in stream:
                yield frame
        finally:
            # Client disconnect cancels the body iterator and lands here.
            hub.unregister(connection_id)

    return StreamingResponse(frames(), media_type="text/event-stream", headers=SSE_HEADERS)
