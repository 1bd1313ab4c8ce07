"""Runtime settings for the sailing backend client and the dashboard API.

Every value can be overridden with an environment variable:
SAILING_API_BASE_URL, SAILING_API_PREFIX, SAILING_API_TIMEOUT and
DASHBOARD_CORS_ORIGINS (comma-separated).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple


DEFAULT_BASE_URL = "http://localhost:5000"
DEFAULT_PREFIX = "/sailing"
DEFAULT_TIMEOUT_S = 30.0
DEFAULT_CORS_ORIGINS = ("http://localhost:3000", "http://127.0.0.1:3000")


@dataclass(frozen=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    api_prefix: str = DEFAULT_PREFIX
    timeout_s: float = DEFAULT_TIMEOUT_S
    cors_origins: Tuple[str, ...] = DEFAULT_CORS_ORIGINS


def _env_float(var_name: str, default: float) -> float:
    raw = os.getenv(var_name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    prefix = os.getenv("SAILING_API_PREFIX", DEFAULT_PREFIX).strip() or DEFAULT_PREFIX
    if not prefix.startswith("/"):
        prefix = "/" + prefix
    origins = tuple(
        o.strip() for o in os.getenv("DASHBOARD_CORS_ORIGINS", ",".join(DEFAULT_CORS_ORIGINS)).split(",") if o.strip()
    )
    return Settings(
        base_url=os.getenv("SAILING_API_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
        api_prefix=prefix.rstrip("/"),
        timeout_s=_env_float("SAILING_API_TIMEOUT", DEFAULT_TIMEOUT_S),
        cors_origins=origins,
    )
