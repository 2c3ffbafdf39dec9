from ..schemas import Appointment, AppointmentDraft


class AppointmentStore:
    name = "base"

    async def create(self, draft: AppointmentDraft) -> Appointment:
        raise NotImplementedError

    async def list(self) -> list[Appointment]:
        raise NotImplementedError
