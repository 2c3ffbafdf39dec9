MAX_INPUT_CHARS = 2000

SYSTEM_PROMPT = """
أنت مساعد عربي لتحويل النصوص إلى JSON مواعيد. أعد كائناً واحداً بهذه الصيغة:
{
  "appointments": [
    {
      "type": "medical|medication|personal_event|work|other",
      "title": "عنوان قصير",
      "date": "YYYY-MM-DD",
      "time": "HH:MM",
      "end_time": "HH:MM أو null",
      "location": "اختياري أو null",
      "person": "اختياري أو null",
      "actions_before": ["خطوة", "..."],
      "actions_after": ["خطوة", "..."],
      "tags": ["وسم1", "وسم2"],
      "recurrence": { "pattern": "none|daily|weekly|monthly|yearly", "every": 1, "days_of_week": ["sat","sun","mon","tue","wed","thu","fri"] },
      "reminder_minutes_before": 30,
      "notes": "اختياري أو null"
    }
  ]
}
شروط:
- إن لم تجد مواعيد أرجع {"appointments": []}.
- لا تضع حقولاً فارغة؛ استخدم null أو [] عند الحاجة.
- تأكد أن JSON صالح بالكامل دون نص زائد.
""".strip()


def truncate_user_text(text: str | None) -> str:
    return (text or "")[:MAX_INPUT_CHARS]


def build_messages(user_text: str | None) -> list[dict]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": truncate_user_text(user_text)},
    ]
