"""Runtime services: telemetry and configuration."""

from . import telemetry
from .config import DEFAULT_API_URL, EngineConfig

__all__ = ["telemetry", "EngineConfig", "DEFAULT_API_URL"]
