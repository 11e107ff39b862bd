"""structlog setup for the convexnav CLI.

Events are rendered by stdlib handlers, one per configured output, so a
run can log to the console and a JSON file at different levels. Each CLI
invocation gets a short request id stamped on every event it emits.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

from convexnav.core.progress import is_console_suppressed

if TYPE_CHECKING:
    from convexnav.config.models import LoggingConfig

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)

_LEVELS = logging.getLevelNamesMapping()

_CONSOLE_DESTINATIONS = ("stderr", "stdout")


def set_request_id(request_id: str | None = None) -> str:
    """Tag every following log event with ``request_id``, generating one when omitted."""
    rid = request_id or uuid4().hex[:12]
    _request_id.set(rid)
    return rid


def _add_request_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if rid := _request_id.get():
        event_dict["request_id"] = rid
    return event_dict


_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
    _add_request_id,  # type: ignore[list-item]
]


def _level(name: str | None, default: int) -> int:
    if name is None:
        return default
    return _LEVELS.get(name.upper(), default)


def _handler(destination: str) -> logging.Handler:
    if destination in _CONSOLE_DESTINATIONS:
        handler: logging.Handler = logging.StreamHandler(getattr(sys, destination))
        # A running spinner owns the terminal line
        handler.addFilter(lambda _record: not is_console_suppressed())
        return handler
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path)


def _formatter(fmt: str, *, colors: bool) -> structlog.stdlib.ProcessorFormatter:
    renderer: structlog.types.Processor
    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=colors, pad_event_to=0, pad_level=False)
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=_PROCESSORS)


def configure_logging(*, config: LoggingConfig | None = None, level: str = "WARNING") -> None:
    """Route structlog events to the outputs in ``config``.

    Without a config, events go to stderr in console format at ``level``.
    Handlers installed by an earlier call are closed and replaced.
    """
    from convexnav.config.models import LoggingConfig

    if config is None:
        config = LoggingConfig(level=level)  # type: ignore[arg-type]

    root_level = _level(config.level, logging.WARNING)

    structlog.configure(
        processors=[*_PROCESSORS, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Commands reconfigure after loading the workspace config
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
        existing.close()
    root.setLevel(root_level)

    colors = sys.stderr.isatty()
    for output in config.outputs:
        handler = _handler(output.destination)
        handler.setLevel(_level(output.level, root_level))
        handler.setFormatter(
            _formatter(output.format, colors=colors and output.destination in _CONSOLE_DESTINATIONS)
        )
        root.addHandler(handler)

