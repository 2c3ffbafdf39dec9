import uuid
from datetime import datetime, timezone

from ..schemas import Appointment, AppointmentDraft
from .base import AppointmentStore


class InMemoryAppointmentStore(AppointmentStore):
    name = "memory"

    def __init__(self, max_items: int = 1000):
        self.items: list[Appointment] = []
        self.max_items = max_items

    async def create(self, draft: AppointmentDraft) -> Appointment:
        if len(self.items) >= self.max_items:
            self.items.pop(0)
        record = Appointment(
            **draft.model_dump(),
            id=uuid.uuid4().hex,
            created_at=datetime.now(timezone.utc),
        )
        self.items.append(record)
        return record

    async def list(self) -> list[Appointment]:
        return sorted(self.items, key=lambda a: a.start_at)

    def clear(self):
        self.items.clear()
