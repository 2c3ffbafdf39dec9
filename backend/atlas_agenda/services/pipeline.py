from datetime import datetime, tzinfo
from typing import Callable

from pydantic import ValidationError

from ..config import settings
from ..errors import (
    ConfigurationError,
    CompletionAPIError,
    EmptyInputError,
    ExtractionError,
    RateLimitError,
    StorageError,
    UnparseableResponseError,
)
from ..schemas import Appointment, AppointmentDraft, ExtractionOutcome, RawExtractedAppointment
from ..state import InMemoryState, state as default_state
from ..stores.base import AppointmentStore
from .atlas import AtlasClient
from .extractor import appointments_from_payload, parse_assistant_content
from .normalizer import normalize, resolve_timezone

EMPTY_INPUT_MESSAGE = "اكتب تفاصيل الموعد أولاً."
RATE_LIMIT_MESSAGE = "تجاوزت الحد المسموح. الرجاء الانتظار ثم المحاولة."
NO_APPOINTMENTS_MESSAGE = "لم يتم استخراج أي مواعيد."


def success_message(count: int) -> str:
    return f"تمت إضافة {count} موعد/مواعيد."


class AppointmentPipeline:
    """Free text in, normalized appointment drafts (or a classified failure) out.

    Every failure is turned into an `ExtractionOutcome` here; callers never see
    the component exceptions.
    """

    def __init__(
        self,
        client: AtlasClient | None = None,
        clock: Callable[[], datetime] | None = None,
        tz: tzinfo | None = None,
        event_log: InMemoryState | None = None,
    ):
        self.client = client or AtlasClient()
        self.tz = tz or resolve_timezone(settings.timezone)
        self.clock = clock or (lambda: datetime.now(self.tz))
        self.events = event_log or default_state

    async def _drafts(self, text: str) -> list[AppointmentDraft]:
        if not (text or "").strip():
            raise EmptyInputError(EMPTY_INPUT_MESSAGE)

        self.events.log_event("ai.request", f"chars={len(text.strip())}")
        result = await self.client.complete(text.strip())
        parsed = parse_assistant_content(result.assistant)
        items = appointments_from_payload(parsed)

        now = self.clock()
        drafts = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                self.events.log_event("ai.item_skipped", f"index={index} type={type(item).__name__}")
                continue
            try:
                raw = RawExtractedAppointment.model_validate(item)
            except ValidationError as exc:
                self.events.log_event("ai.item_skipped", f"index={index} error={exc.error_count()} errors")
                continue
            drafts.append(normalize(raw, now=now, tz=self.tz))
        return drafts

    def _failure(self, exc: ExtractionError) -> ExtractionOutcome:
        if isinstance(exc, RateLimitError):
            self.events.log_event("ai.rate_limited", exc.body[:200])
            return ExtractionOutcome(ok=False, kind=exc.kind, message=RATE_LIMIT_MESSAGE)
        if isinstance(exc, UnparseableResponseError):
            self.events.log_event("ai.unparseable", str(exc))
        elif isinstance(exc, (CompletionAPIError, ConfigurationError)):
            self.events.log_event("ai.error", str(exc)[:200])
        return ExtractionOutcome(ok=False, kind=exc.kind, message=str(exc))

    async def extract(self, text: str) -> ExtractionOutcome:
        try:
            drafts = await self._drafts(text)
        except ExtractionError as exc:
            return self._failure(exc)

        if not drafts:
            self.events.log_event("ai.no_appointments", "empty appointments array")
            return ExtractionOutcome(ok=False, kind="no_appointments", message=NO_APPOINTMENTS_MESSAGE)

        self.events.log_event("ai.extracted", f"count={len(drafts)}")
        return ExtractionOutcome(
            ok=True,
            kind="ok",
            message=success_message(len(drafts)),
            drafts=drafts,
            count=len(drafts),
        )

    async def extract_and_store(self, text: str, store: AppointmentStore) -> ExtractionOutcome:
        outcome = await self.extract(text)
        if not outcome.ok:
            return outcome

        created, error = await persist_drafts(outcome.drafts, store, self.events)
        if error is not None:
            return ExtractionOutcome(
                ok=False,
                kind=error.kind,
                message=f"{error} (تم حفظ {len(created)} من {len(outcome.drafts)})",
                drafts=outcome.drafts,
                created=created,
                count=len(created),
            )
        outcome.created = created
        return outcome


async def persist_drafts(
    drafts: list[AppointmentDraft],
    store: AppointmentStore,
    events: InMemoryState | None = None,
) -> tuple[list[Appointment], StorageError | None]:
    """Store drafts one at a time, in order. Stops at the first failure without
    undoing what was already written."""
    events = events or default_state
    created: list[Appointment] = []
    for draft in drafts:
        try:
            record = await store.create(draft)
        except StorageError as exc:
            events.log_event("appointment.error", str(exc)[:200])
            return created, exc
        created.append(record)
        events.log_event("appointment.created", f"id={record.id} title={record.title} store={store.name}")
    return created, None
