from live.hub import BroadcastHub, EventStream, StreamClosedError
from live.watcher import TranscriptWatcher

__all__ = ["BroadcastHub", "EventStream", "StreamClosedError", "TranscriptWatcher"]
