import json

from live.hub import StreamClosedError


class FakeStream:
    """Records written SSE frames; raises like a dead socket once closed."""

    def __init__(self, broken: bool = False):
        self.frames: list[str] = []
        self.closed = broken
        self.close_calls = 0

    def write(self, frame: str) -> None:
        if self.closed:
            raise StreamClosedError("client went away")
        self.frames.append(frame)

    def close(self) -> None:
        self.close_calls += 1
        self.closed = True

    def events(self) -> list[dict]:
        assert all(f.startswith("data: ") and f.endswith("\n\n") for f in self.frames)
        return [json.loads(f[len("data: "):]) for f in self.frames]

    def types(self) -> list[str]:
        return [e["type"] for e in self.events()]
