from collections import deque
from datetime import datetime, timezone

from .config import settings


class InMemoryState:
    def __init__(self, max_events: int | None = None):
        self.events = deque(maxlen=max_events or settings.event_log_size)

    def log_event(self, kind: str, detail: str):
        self.events.appendleft(
            {
                "ts": datetime.now(timezone.utc).isoformat(),
                "kind": kind,
                "detail": detail,
            }
        )

    def recent_events(self, limit: int = 50) -> list[dict]:
        return list(self.events)[:limit]

    def clear_events(self):
        self.events.clear()


state = InMemoryState()
