import json
import time
from typing import Any

from pydantic import BaseModel

CONNECTED = "connected"
HEARTBEAT = "heartbeat"
FILE_CHANGE = "file_change"


class Event(BaseModel):
    type: str           # "connected" | "heartbeat" | "file_change"
    data: Any = None

    def to_sse(self) -> str:
        """One SSE frame: ``data: <json>\\n\\n``."""
        return f"data: {json.dumps(self.model_dump(), separators=(',', ':'))}\n\n"


def now_ms() -> int:
    """Unix timestamp in milliseconds."""
    return int(time.time() * 1000)
