from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import httpx

from ..config import resolve_atlas_key, resolve_atlas_url, settings
from ..errors import CompletionAPIError, ConfigurationError, RateLimitError
from .prompt import build_messages

RATE_LIMIT_MARKERS = ("too many requests", "only request this after")

GENERATION_PARAMS = {
    "max_tokens": 256,
    "temperature": 0.2,
    "top_p": 0.7,
    "top_k": 20,
    "repetition_penalty": 1.02,
    "stream": False,
}


@dataclass
class CompletionResult:
    raw: Any
    assistant: str | None


def is_rate_limited(status: int, body: str) -> bool:
    lowered = (body or "").lower()
    return status == 429 or any(marker in lowered for marker in RATE_LIMIT_MARKERS)


def assistant_content(envelope: Any) -> str | None:
    """Pull the assistant text out of a chat-completions envelope.

    Finalized responses carry `message.content`; some providers answer with a
    streaming-style `delta.content` even when `stream` is false.
    """
    if not isinstance(envelope, dict):
        return None
    choices = envelope.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    first = choices[0]
    for key in ("message", "delta"):
        part = first.get(key)
        if isinstance(part, dict) and part.get("content"):
            return part["content"]
    return None


class AtlasClient:
    def __init__(
        self,
        sources: Sequence[Mapping[str, str | None]] | None = None,
        model: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.sources = sources
        self.model = model or settings.atlas_model
        self.timeout = timeout or settings.request_timeout
        self.transport = transport

    def build_payload(self, user_text: str) -> dict:
        return {
            "model": self.model,
            "messages": build_messages(user_text),
            **GENERATION_PARAMS,
        }

    async def complete(self, user_text: str) -> CompletionResult:
        # resolved per call so a rotated key is picked up without a restart
        url = resolve_atlas_url(self.sources)
        api_key = resolve_atlas_key(self.sources)
        if not api_key:
            raise ConfigurationError("مفتاح Atlas غير موجود. أضف VITE_ATLAS_API_KEY أو ATLAS_API_KEY.")

        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.post(
                    url,
                    json=self.build_payload(user_text),
                    headers={
                        "Content-Type": "application/json",
                        "Authorization": f"Bearer {api_key}",
                    },
                    timeout=self.timeout,
                )
        except httpx.HTTPError as exc:
            raise CompletionAPIError(None, str(exc)) from exc

        if not response.is_success:
            body = response.text
            if is_rate_limited(response.status_code, body):
                raise RateLimitError(body, status=response.status_code)
            raise CompletionAPIError(response.status_code, body)

        try:
            envelope = response.json()
        except (ValueError, RecursionError) as exc:
            raise CompletionAPIError(response.status_code, response.text[:500]) from exc

        return CompletionResult(raw=envelope, assistant=assistant_content(envelope))
