"""Structured logging for the asset layer.

Production gets one JSON object per line; everything else gets the coloured
console renderer, which also formats tracebacks. Poll loops bind `task_id`
and `kind` through structlog.contextvars, so every line logged while a task
is being polled carries them.
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from tryon_assets.config import Settings, settings as default_settings

# Transport libraries log every request; a poll loop issues one every few seconds
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")


class AppContext:
    """Processor stamping app name and version onto every event."""

    def __init__(self, app: str, version: str) -> None:
        self.app = app
        self.version = version

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("app", self.app)
        event_dict.setdefault("app_version", self.version)
        return event_dict


def build_processors(settings: Settings) -> tuple[list[Processor], Processor]:
    """
    Shared processor chain and final renderer for the given settings.

    Returns:
        (shared processors, renderer)
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        AppContext(settings.APP_NAME, settings.APP_VERSION),
    ]

    if settings.ENVIRONMENT.lower() == "production":
        processors.append(structlog.processors.format_exc_info)
        return processors, structlog.processors.JSONRenderer()

    return processors, structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Route structlog and stdlib logging through one stdout handler.

    Args:
        settings: LOG_LEVEL, ENVIRONMENT, APP_NAME and APP_VERSION are read;
            defaults to the module-level settings
    """
    settings = settings or default_settings

    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    shared, renderer = build_processors(settings)

    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared))
    handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info(
        "Logging configured",
        log_level=settings.LOG_LEVEL,
        environment=settings.ENVIRONMENT,
        renderer=type(renderer).__name__,
    )
