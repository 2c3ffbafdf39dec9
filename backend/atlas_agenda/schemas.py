from datetime import datetime
from typing import Literal

from pydantic import BaseModel, field_validator

Priority = Literal["low", "medium", "high", "critical"]
Status = Literal["scheduled", "done", "canceled"]

RECURRENCE_PATTERNS = {"none", "daily", "weekly", "monthly", "yearly"}


def _optional_text(value):
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _text_list(value):
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _whole_number(value, minimum: int):
    # bool is an int subclass; "true" minutes make no sense
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if isinstance(value, int) and value >= minimum:
        return value
    return None


class RawRecurrence(BaseModel):
    pattern: str | None = None
    every: int | None = None
    days_of_week: list[str] = []

    @field_validator("pattern", mode="before")
    @classmethod
    def _pattern(cls, value):
        value = _optional_text(value)
        if value is None:
            return None
        value = value.lower()
        return value if value in RECURRENCE_PATTERNS else None

    @field_validator("every", mode="before")
    @classmethod
    def _every(cls, value):
        return _whole_number(value, minimum=1)

    @field_validator("days_of_week", mode="before")
    @classmethod
    def _days(cls, value):
        return _text_list(value)


class RawExtractedAppointment(BaseModel):
    """One item of the model's `appointments` array.

    Nothing the completion service sends is trusted: every field is optional
    and a value of the wrong shape decodes to "absent" instead of failing the
    item. Defaulting happens later, in the normalizer.
    """

    type: str | None = None
    title: str | None = None
    date: str | None = None
    time: str | None = None
    end_time: str | None = None
    location: str | None = None
    person: str | None = None
    actions_before: list[str] = []
    actions_after: list[str] = []
    tags: list[str] = []
    recurrence: RawRecurrence | None = None
    reminder_minutes_before: int | None = None
    notes: str | None = None

    @field_validator(
        "type", "title", "date", "time", "end_time", "location", "person", "notes",
        mode="before",
    )
    @classmethod
    def _text(cls, value):
        return _optional_text(value)

    @field_validator("actions_before", "actions_after", "tags", mode="before")
    @classmethod
    def _lists(cls, value):
        return _text_list(value)

    @field_validator("recurrence", mode="before")
    @classmethod
    def _recurrence(cls, value):
        return value if isinstance(value, dict) else None

    @field_validator("reminder_minutes_before", mode="before")
    @classmethod
    def _reminder(cls, value):
        return _whole_number(value, minimum=0)


class AppointmentDraft(BaseModel):
    title: str
    description: str | None = None
    tag: str | None = None
    start_at: datetime
    end_at: datetime | None = None
    priority: Priority = "medium"
    status: Literal["scheduled"] = "scheduled"
    location: str | None = None
    reminder_minutes_before: int | None = None


class Appointment(AppointmentDraft):
    id: str
    status: Status = "scheduled"
    created_at: datetime | None = None


class ExtractionRequest(BaseModel):
    text: str


class ExtractionOutcome(BaseModel):
    ok: bool
    kind: str
    message: str
    drafts: list[AppointmentDraft] = []
    created: list[Appointment] = []
    count: int = 0
