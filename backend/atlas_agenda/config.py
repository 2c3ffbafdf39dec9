import os
from typing import Mapping, Sequence

from dotenv import dotenv_values
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    env: str = "dev"

    atlas_model: str = "openai/gpt-oss-20b"
    request_timeout: float = 30.0

    # IANA name; empty means the system local timezone.
    timezone: str = ""

    appointment_store: str = "memory"  # memory | supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""

    event_log_size: int = 200

    class Config:
        env_file = ".env"
        # the .env file also carries the Atlas keys resolved below
        extra = "ignore"


settings = Settings()


DEFAULT_ATLAS_URL = "https://api.atlascloud.ai/v1/chat/completions"

ATLAS_URL_KEYS = (
    "VITE_ATLAS_API_URL",
    "VITE_ATLASCLOUD_API_URL",
    "ATLAS_API_URL",
    "ATLASCLOUD_API_URL",
)

ATLAS_KEY_KEYS = (
    "VITE_ATLAS_API_KEY",
    "VITE_ATLASCLOUD_API_KEY",
    "ATLAS_API_KEY",
    "ATLASCLOUD_API_KEY",
)


def default_sources(env_file: str = ".env") -> list[Mapping[str, str | None]]:
    """Process environment first, then the .env file. Read on every call."""
    return [os.environ, dotenv_values(env_file)]


def resolve_value(keys: Sequence[str], sources: Sequence[Mapping[str, str | None]]) -> str | None:
    for key in keys:
        for source in sources:
            value = source.get(key)
            if value:
                return value
    return None


def resolve_atlas_url(sources: Sequence[Mapping[str, str | None]] | None = None) -> str:
    return resolve_value(ATLAS_URL_KEYS, sources if sources is not None else default_sources()) or DEFAULT_ATLAS_URL


def resolve_atlas_key(sources: Sequence[Mapping[str, str | None]] | None = None) -> str | None:
    return resolve_value(ATLAS_KEY_KEYS, sources if sources is not None else default_sources())
