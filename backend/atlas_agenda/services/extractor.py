import json
import re
from typing import Any

from ..errors import UnparseableResponseError

FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
BRACES_RE = re.compile(r"\{[\s\S]*\}")

UNPARSEABLE_MESSAGE = "تعذر قراءة JSON. يرجى إعادة المحاولة وإرجاع كائن appointments."


def extract_appointments_json(content: str) -> Any:
    """Recover the JSON payload from an assistant reply.

    Models wrap their answer in ```json fences or in prose despite being told
    not to, so the fenced block wins when there is one, and a greedy brace span
    is tried when the candidate does not parse as-is.
    """
    fence = FENCE_RE.search(content)
    candidate = fence.group(1) if fence else content
    try:
        return json.loads(candidate)
    except (ValueError, RecursionError):
        pass
    braces = BRACES_RE.search(candidate)
    if braces:
        try:
            return json.loads(braces.group(0))
        except (ValueError, RecursionError):
            pass
    raise UnparseableResponseError(UNPARSEABLE_MESSAGE)


def parse_assistant_content(content: Any) -> Any:
    if isinstance(content, str):
        return extract_appointments_json(content)
    # None or an already-decoded object
    return content


def appointments_from_payload(parsed: Any) -> list:
    if not isinstance(parsed, dict):
        return []
    items = parsed.get("appointments")
    return items if isinstance(items, list) else []
