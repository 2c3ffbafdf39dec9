from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo

from ..schemas import AppointmentDraft, Priority, RawExtractedAppointment

DEFAULT_TITLE = "موعد بدون عنوان"
DEFAULT_TIME = "09:00"
MEDICAL_REMINDER_MINUTES = 120
DESCRIPTION_SEPARATOR = " | "

# hospital, clinic, lab test, medication, follow-up, doctor
MEDICAL_KEYWORDS = ("مستشفى", "عيادة", "تحليل", "دواء", "مراجعة", "طبيب")

MEDICAL_BEFORE_HINT = "اقتراح قبل الموعد: تحضير التحاليل أو الملفات الضرورية"
MEDICAL_AFTER_HINT = "اقتراح بعد الموعد: تدوين الملاحظات والتعليمات الطبية"
MEDICAL_ALERT_HINT = "تنبيه مقترح: قبل 15 دقيقة على الأقل"


def resolve_timezone(name: str | None) -> tzinfo:
    if name:
        return ZoneInfo(name)
    return datetime.now().astimezone().tzinfo


def is_medical(raw: RawExtractedAppointment) -> bool:
    text = f"{raw.title or ''} {raw.notes or ''} {raw.location or ''}".lower()
    if any(keyword in text for keyword in MEDICAL_KEYWORDS):
        return True
    return "medical" in (raw.type or "").lower()


def priority_for_type(kind: str | None) -> Priority:
    t = (kind or "").lower()
    if "critical" in t:
        return "critical"
    if "medical" in t or "medication" in t:
        return "high"
    if "work" in t:
        return "medium"
    if "personal" in t:
        return "low"
    return "medium"


def reminder_for(raw: RawExtractedAppointment, medical: bool) -> int | None:
    if raw.reminder_minutes_before is not None:
        return raw.reminder_minutes_before
    return MEDICAL_REMINDER_MINUTES if medical else None


def _combine(date_part: str, time_part: str, tz: tzinfo) -> datetime | None:
    try:
        dt = datetime.fromisoformat(f"{date_part}T{time_part}")
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return dt


def recurrence_summary(raw: RawExtractedAppointment) -> str | None:
    rec = raw.recurrence
    if rec is None or not rec.pattern or rec.pattern == "none":
        return None
    every = f"كل {rec.every}" if rec.every else "متكرر"
    days = f" ({','.join(rec.days_of_week)})" if rec.days_of_week else ""
    return f"تكرار: {rec.pattern} {every}{days}"


def description_parts(raw: RawExtractedAppointment, medical: bool, reminder: int | None) -> list[str]:
    parts: list[str] = []
    if raw.notes:
        parts.append(raw.notes)
    if raw.person:
        parts.append(f"مع: {raw.person}")
    if raw.actions_before:
        parts.append(f"قبل: {' | '.join(raw.actions_before)}")
    if raw.actions_after:
        parts.append(f"بعد: {' | '.join(raw.actions_after)}")
    recurrence = recurrence_summary(raw)
    if recurrence:
        parts.append(recurrence)
    if raw.tags:
        parts.append(f"وسوم: {', '.join(raw.tags)}")
    if medical:
        if not raw.actions_before:
            parts.append(MEDICAL_BEFORE_HINT)
        if not raw.actions_after:
            parts.append(MEDICAL_AFTER_HINT)
        parts.append(MEDICAL_ALERT_HINT)
    if reminder is not None:
        parts.append(f"تذكير قبل: {reminder} دقيقة")
    return parts


def normalize(
    raw: RawExtractedAppointment,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> AppointmentDraft:
    """Turn one untrusted extracted item into a storage-ready draft.

    Never fails on bad field values: an unparseable date or time falls back to
    `now`, an unparseable end time is dropped.
    """
    tz = tz or resolve_timezone(None)
    now = now or datetime.now(tz)
    if now.tzinfo is None:
        now = now.replace(tzinfo=tz)

    date_part = raw.date or now.astimezone(tz).date().isoformat()
    time_part = raw.time or DEFAULT_TIME
    start_at = _combine(date_part, time_part, tz)

    end_at = None
    if start_at is None:
        # an end on the extracted day means nothing once start fell back to now
        start_at = now
    elif raw.end_time:
        end_at = _combine(date_part, raw.end_time, tz)

    medical = is_medical(raw)
    reminder = reminder_for(raw, medical)
    parts = description_parts(raw, medical, reminder)

    return AppointmentDraft(
        title=raw.title or DEFAULT_TITLE,
        description=DESCRIPTION_SEPARATOR.join(parts) if parts else None,
        tag=raw.tags[0] if raw.tags else None,
        start_at=start_at,
        end_at=end_at,
        priority="high" if medical else priority_for_type(raw.type),
        status="scheduled",
        location=raw.location,
        reminder_minutes_before=reminder,
    )
