"""
Transcript store watcher.

One recursive watchfiles subscription on the projects directory for the
life of the process. Every changed ``.jsonl`` file becomes a ``file_change``
broadcast on the hub.

If the directory is missing, or the watch loop dies, the watcher logs it and
stays inactive: REST keeps working, the page just stops live-updating.
There is no retry.
"""

import asyncio
import logging
import os
from typing import Iterable, Optional

from watchfiles import Change, awatch

from live.hub import BroadcastHub
from models.event import FILE_CHANGE, now_ms
from transcripts.parser import TRANSCRIPT_EXT

logger = logging.getLogger(__name__)

# When one batch reports several changes for the same file, report the strongest.
_CHANGE_RANK = {Change.modified: 0, Change.added: 1, Change.deleted: 2}


class TranscriptWatcher:
    def __init__(self, root: str, hub: BroadcastHub, debounce_ms: int = 300):
        self.root = root
        self.hub = hub
        self.debounce_ms = debounce_ms
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self._task is not None:
            return
        if not os.path.isdir(self.root):
            logger.warning("Transcript directory %s not found; live updates disabled", self.root)
            return

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._watch_loop(), name="transcript-watcher")
        logger.info("Watching %s for changes", self.root)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop_event.set()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _watch_loop(self) -> None:
        try:
            async for changes in awatch(
                self.root,
                recursive=True,
                debounce=self.debounce_ms,
                stop_event=self._stop_event,
            ):
                self.handle_changes(changes)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("File watcher failed, live updates disabled: %s", e)

    def handle_changes(self, changes: Iterable[tuple[Change, str]]) -> int:
        """
        Broadcast one ``file_change`` per transcript file in a change batch.
        Returns the number of events broadcast.
        """
        latest: dict[str, Change] = {}
        for change, path in changes:
            if not path.endswith(TRANSCRIPT_EXT):
                continue
            seen = latest.get(path)
            if seen is None or _CHANGE_RANK.get(change, 0) > _CHANGE_RANK.get(seen, 0):
                latest[path] = change

        for path in sorted(latest):
            self.hub.broadcast(FILE_CHANGE, {
                "eventType": latest[path].name,
                "filename": os.path.relpath(path, self.root),
                "timestamp": now_ms(),
            })
        return len(latest)
