import os
import sys
from typing import Mapping, Optional
from pydantic import BaseModel

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10MB
DEFAULT_PAGE_SIZE = 10
DEFAULT_MAX_PAGE_SIZE = 100


class Settings(BaseModel):
    maxUploadBytes: int = DEFAULT_MAX_UPLOAD_BYTES
    pageSize: int = DEFAULT_PAGE_SIZE
    maxPageSize: int = DEFAULT_MAX_PAGE_SIZE


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        print(f"[Config] WARNING: {key}={raw!r} is not an integer, using {default}", file=sys.stderr)
        return default
    return value if value > 0 else default


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from SOCIAL_PULSE_* environment variables."""
    env = os.environ if env is None else env
    return Settings(
        maxUploadBytes=_env_int(env, "SOCIAL_PULSE_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
        pageSize=_env_int(env, "SOCIAL_PULSE_PAGE_SIZE", DEFAULT_PAGE_SIZE),
        maxPageSize=_env_int(env, "SOCIAL_PULSE_MAX_PAGE_SIZE", DEFAULT_MAX_PAGE_SIZE),
    )
