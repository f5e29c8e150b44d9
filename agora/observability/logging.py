"""
Structured logging for the API, CLI and domain modules.

API code logs through structlog with keyword fields; domain modules log
through the standard library. Both end up on one stdout handler rendered
by structlog, as JSON in production and as coloured console lines
elsewhere. A request id bound with ``bind_context`` appears on every line
logged while the request is handled.
"""

import logging
import sys

import structlog
from structlog.types import Processor

from agora.config.settings import Settings, get_settings

# Third-party loggers that are too chatty at INFO
_QUIET_LOGGERS = ("asyncpg", "asyncio", "uvicorn.access")

_HANDLER_NAME = "agora"


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def _renderer(settings: Settings) -> Processor:
    if settings.is_production:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def setup_logging() -> None:
    """
    Configure structlog and the root stdlib logger. Safe to call twice.

    Usage:
        setup_logging()
        logger = get_logger(__name__)
        logger.info("Feedback voted", feedback_id="0K3Z5...", direction="up")
    """
    settings = get_settings()
    shared = _shared_processors()

    structlog.configure(
        processors=shared + [
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(settings),
            ],
        )
    )

    handler.set_name(_HANDLER_NAME)

    # Replace only our own handler; others (pytest, uvicorn) stay attached
    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, settings.log_level))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Attach fields (e.g. ``request_id``) to every log line in the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
