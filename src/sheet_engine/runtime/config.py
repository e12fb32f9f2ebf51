"""Environment-driven settings for hosts embedding the engine."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Literal, Mapping, Optional, cast

ENV_PREFIX = "SHEET_ENGINE_"
DEFAULT_API_URL = "http://localhost:3001/api/items"

Backend = Literal["http", "memory"]


def _env_float(env: Mapping[str, str], key: str, fallback: float) -> float:
    value = env.get(f"{ENV_PREFIX}{key}")
    if value is None:
        return fallback
    try:
        return float(value)
    except ValueError:
        return fallback


def _env_flag(env: Mapping[str, str], key: str, fallback: bool) -> bool:
    raw = env.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return fallback
    return raw.lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class EngineConfig:
    api_url: str = DEFAULT_API_URL
    http_timeout: float = 5.0
    backend: Backend = "http"
    confirm_delete: bool = True

    def __post_init__(self) -> None:
        if self.backend not in ("http", "memory"):
            raise ValueError(f"Unknown backend '{self.backend}'")
        if self.http_timeout <= 0:
            raise ValueError("http_timeout must be positive")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        source = os.environ if env is None else env
        backend = source.get(f"{ENV_PREFIX}BACKEND", "http").lower()
        return cls(
            api_url=source.get(f"{ENV_PREFIX}API_URL", DEFAULT_API_URL),
            http_timeout=_env_float(source, "HTTP_TIMEOUT", 5.0),
            backend=cast(Backend, backend),
            confirm_delete=_env_flag(source, "CONFIRM_DELETE", True),
        )

    def with_overrides(self, **changes: object) -> "EngineConfig":
        """Return a copy with the non-``None`` overrides applied."""

        applied = {key: value for key, value in changes.items() if value is not None}
        return replace(self, **applied)


__all__ = ["EngineConfig", "DEFAULT_API_URL"]
