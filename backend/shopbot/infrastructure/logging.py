import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# httpx logs full request URLs at INFO, and order lookups carry visitor emails.
_NOISY_LOGGERS = ("httpx", "httpcore")


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _service_name(service: str) -> Processor:
    def add_service(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service)
        return event_dict

    return add_service


def setup_logging(
    level: int | str = logging.INFO,
    *,
    service: str = "shopbot",
    json_logs: bool | None = None,
) -> None:
    """Configures structlog on top of stdlib logging.

    Output is a console renderer when stderr is a terminal and JSON lines
    otherwise, unless ``json_logs`` forces one or the other.
    """
    resolved = _resolve_level(level)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=resolved)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))

    if json_logs is None:
        json_logs = not sys.stderr.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        _service_name(service),
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    renderer: list[Processor]
    if json_logs:
        renderer = [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        renderer = [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=shared_processors + renderer,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)
