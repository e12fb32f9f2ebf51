"""Telemetry for the sheet engine, built on telelog.

Everything else in the package goes through five helpers:

``configure(...)`` -- adopt a telelog config, a preset, or the env defaults
``get_logger(name)`` -- cached telelog logger per dotted name
``record_event(name, ...)`` -- one structured ``event::<name>`` line
``record_failure(error, ...)`` -- an engine error as a warning event
``span(name, ...)`` -- profile a block, tag it with a component and context

Environment (all optional, prefixed ``SHEET_ENGINE_``): ``LOG_LEVEL``,
``LOG_FILE``, ``LOG_JSON``, ``DISABLE_CONSOLE``, ``NO_COLOR``,
``LOG_BUFFERED`` and ``LOG_BUFFER_SIZE``.
"""

from __future__ import annotations

import os
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, MutableMapping, Optional, Tuple, cast

import telelog  # type: ignore[import]

tl = cast(Any, telelog)

ENV_PREFIX = "SHEET_ENGINE_"
ROOT_LOGGER = "sheet_engine"
LEVELS = ("debug", "info", "warning", "error")

_loggers: MutableMapping[str, Any] = {}
_config: Optional[Any] = None


def _setting(name: str) -> Optional[str]:
    return os.environ.get(ENV_PREFIX + name) or None


def _enabled(name: str) -> bool:
    return (_setting(name) or "").lower() in {"1", "true", "yes", "on"}


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list, tuple, set)):
        return repr(value)
    return str(value)


def _pairs(payload: Dict[str, Any]) -> List[Tuple[str, str]]:
    return [(str(key), _text(value)) for key, value in payload.items()]


def _env_config() -> Any:
    config = tl.Config()
    config.with_min_level((_setting("LOG_LEVEL") or "INFO").upper())

    console = not _enabled("DISABLE_CONSOLE")
    config.with_console_output(console)
    if console:
        config.with_colored_output(not _enabled("NO_COLOR"))
    if _enabled("LOG_JSON"):
        config.with_json_format(True)

    log_file = _setting("LOG_FILE")
    if log_file:
        config.with_file_output(log_file)

    if _enabled("LOG_BUFFERED"):
        config.with_buffering(True)
        config.with_buffer_size(int(_setting("LOG_BUFFER_SIZE") or "2048"))
    return config


def _quiet_config() -> Any:
    # Textual owns the terminal, so only the log file (if any) gets lines.
    config = tl.Config()
    config.with_min_level("WARNING")
    config.with_console_output(False)
    log_file = _setting("LOG_FILE")
    if log_file:
        config.with_file_output(log_file)
    return config


_PRESETS = {"quiet": _quiet_config}


def configure(*, config: Optional[Any] = None, preset: Optional[str] = None) -> None:
    """Replace the active telelog configuration.

    ``config`` is a ready ``telelog.Config``; ``preset`` names a built-in one
    (``"quiet"``). With neither, settings are read from the environment.
    Cached loggers are dropped so the next ``get_logger`` call picks it up.
    """

    global _config
    if config is not None and preset:
        raise ValueError("Provide either `config` or `preset`, not both.")
    if preset:
        try:
            config = _PRESETS[preset.lower()]()
        except KeyError:
            raise ValueError(f"Unknown preset '{preset}'.") from None
    _config = config if config is not None else _env_config()
    _loggers.clear()


def get_logger(name: Optional[str] = None) -> Any:
    global _config
    logger_name = name or ROOT_LOGGER
    logger = _loggers.get(logger_name)
    if logger is None:
        if _config is None:
            _config = _env_config()
        logger = _loggers[logger_name] = tl.Logger.with_config(logger_name, _config)
    return logger


def _write(logger: Any, level: str, message: str, payload: Dict[str, Any]) -> None:
    level = str(level).lower()
    if level not in LEVELS:
        raise ValueError(f"Unsupported log level '{level}'.")
    structured = getattr(logger, f"{level}_with", None)
    if structured is not None:
        structured(message, _pairs(payload))
    else:
        getattr(logger, level)(f"{message} {payload}")


def record_event(
    name: str,
    *,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    _write(get_logger(logger_name), level, f"event::{name}", {"event": name, **(data or {})})


def record_failure(
    error: BaseException,
    *,
    operation: str,
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    payload = {
        "operation": operation,
        "error": type(error).__name__,
        "status": getattr(error, "status", "error"),
        "reason": str(error),
        **(data or {}),
    }
    record_event("failure", level="warning", data=payload, logger_name=logger_name)


@dataclass
class SpanHandle:
    """Lets the body of a ``span`` attach results to its closing line."""

    logger: Any
    name: str
    component: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    results: Dict[str, str] = field(default_factory=dict)

    def add_metadata(self, key: str, value: Any) -> None:
        self.results[key] = _text(value)

    def _close(self, level: str, message: str, **extra: Any) -> None:
        payload: Dict[str, Any] = {"span": self.name, **self.metadata, **self.results}
        if self.component:
            payload["component"] = self.component
        payload.update(extra)
        _write(self.logger, level, message, payload)


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str | bool] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Iterator[SpanHandle]:
    """Profile a block and, if ``component`` is given, track it as one.

    ``metadata`` becomes logger context while the block runs. Values passed
    to ``SpanHandle.add_metadata`` are written on a ``span::end`` debug line
    when the block finishes, or on the ``span::fail`` line if it raises.
    """

    log = get_logger(logger_name)
    component_name = name if component is True else component or None
    context = {key: _text(value) for key, value in (metadata or {}).items()}

    with ExitStack() as stack:
        for key, value in context.items():
            log.add_context(key, value)
            stack.callback(log.remove_context, key)
        if component_name:
            stack.enter_context(log.track_component(component_name))
        stack.enter_context(log.profile(name))

        handle = SpanHandle(
            logger=log, name=name, component=component_name, metadata=context
        )
        try:
            yield handle
        except Exception as exc:
            handle._close("error", "span::fail", reason=str(exc))
            raise
        if handle.results:
            handle._close("debug", "span::end")


configure()

__all__ = [
    "SpanHandle",
    "configure",
    "get_logger",
    "record_event",
    "record_failure",
    "span",
]
