import logging
from dataclasses import dataclass, field
from enum import StrEnum

import orjson
import structlog
from asgi_correlation_id import correlation_id
from beartype import beartype

from app.core.settings import settings


class LoggerError(Exception):
    """Exception for logger related issues."""


class LogLevel(StrEnum):
    """Levels accepted by LOG_LEVEL."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogIcon(StrEnum):
    """Icons prefixed to upload service events in DEBUG mode."""

    DEFAULT = "📋"
    ERROR = "❌"
    WARNING = "⚠️"
    DETECTION = "🔍"
    CLEANUP = "🧹"
    ADAPTER = "🔌"
    HEALTHCHECK = "❤️"
    IMAGE = "🖼️"
    FOLDER = "📁"
    UPLOAD = "📤"
    FORBIDDEN = "🚫"


@dataclass
class LoggerConfig:
    """Logger configuration with debug-specific settings."""
    debug: bool = field(default_factory=lambda: settings.DEBUG)
    app_name: str = field(default="robyn-upload-api")
    log_level: LogLevel = field(default_factory=lambda: LogLevel(settings.LOG_LEVEL))


def add_correlation_id(logger, method_name: str, event_dict: dict) -> dict:
    """Add the upload request's correlation_id when one is bound."""
    request_id = correlation_id.get()
    if request_id:
        event_dict["correlation_id"] = request_id
    return event_dict


class BusinessRulesProcessor:
    """
    Normalize upload service events.

    - Event messages are uppercased and cut at 80 characters.
    - The icon kwarg must be a LogIcon member; it is rendered only in DEBUG mode.
    """

    def __init__(self, debug: bool) -> None:
        self.debug = debug

    @beartype
    def __call__(self, logger, name: str, event_dict: dict) -> dict:
        try:
            icon = LogIcon(event_dict.pop("icon", LogIcon.DEFAULT))
        except ValueError as err:
            raise LoggerError("Wrong Icon chosen, please choose a valid LogIcon enum member") from err

        event = str(event_dict.get("event", ""))[:80].upper()
        event_dict["event"] = f"{icon.value} {event}" if self.debug else event
        return event_dict


def dev_pipeline_renderer(logger, name: str, event_dict: dict) -> str:
    """Render `timestamp | LEVEL | EVENT | k=v ... | file:line`."""
    timestamp = event_dict.pop("timestamp", "")
    level = event_dict.pop("level", LogLevel.INFO.value).upper()
    event = event_dict.pop("event", "")
    filename = event_dict.pop("filename", "")
    lineno = event_dict.pop("lineno", "")

    location = f"{filename}:{lineno}" if filename else ""
    extra_kwargs = " | ".join(f"{k}={v}" for k, v in event_dict.items())
    return " | ".join(filter(None, [timestamp, level, event, extra_kwargs, location]))


def setup_logging(config: LoggerConfig) -> None:
    """Configure structlog: pipe renderer in DEBUG, orjson lines with correlation ids otherwise."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
            additional_ignores=["logger"]
        ),
        BusinessRulesProcessor(debug=config.debug),
    ]

    if config.debug:
        processors.append(dev_pipeline_renderer)
        logger_factory = structlog.PrintLoggerFactory()
    else:
        processors += [
            add_correlation_id,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(serializer=orjson.dumps),
        ]
        # orjson renders bytes
        logger_factory = structlog.BytesLoggerFactory()

    structlog.configure(
        processors=processors,
        logger_factory=logger_factory,
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(config.log_level.value)),
        cache_logger_on_first_use=True,
    )


_default_config = LoggerConfig()
setup_logging(_default_config)

logger = structlog.get_logger(_default_config.app_name)
