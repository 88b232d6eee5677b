import logging
from dataclasses import dataclass, field
from enum import StrEnum

import orjson
import structlog
from asgi_correlation_id import correlation_id
from beartype import beartype

from httpexchange.core.settings import settings


class LoggerError(Exception):
    """Exception for logger related issues."""


class LogLevel(StrEnum):
    """LogLevel types for logger configuration."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogIcon(StrEnum):
    """Icon mappings for body decoding log categories."""

    DEFAULT = "📋"

    SUCCESS = "✅"
    ERROR = "❌"
    WARNING = "⚠️"

    PROCESSING = "🔄"
    DETECTION = "🔍"
    ADAPTER = "🔌"
    PARSER = "⚙️"
    VALIDATION = "✓"

    JSON = "📝"
    FILE = "📄"
    UPLOAD = "📤"
    MOVE = "📦"
    CLEANUP = "🧹"


@dataclass
class LoggerConfig:
    """Logger configuration with debug-specific settings."""
    debug: bool = field(default_factory=lambda: settings.DEBUG)
    log_level: LogLevel = field(default_factory=lambda: LogLevel(settings.LOG_LEVEL))


def add_correlation_id(logger, method_name: str, event_dict: dict) -> dict:
    """Add correlation_id to event_dict if the host set one for this request."""
    request_id = correlation_id.get()
    if request_id:
        event_dict["correlation_id"] = request_id
    return event_dict


class BusinessRulesProcessor:
    """
    Normalize log events.

    - Event messages are upper-cased and cut at 80 characters.
    - The `icon` kwarg, if given, must be a LogIcon member.
    - Icons are prepended only in debug mode.
    """

    def __init__(self, debug: bool) -> None:
        self.debug = debug

    @beartype
    def __call__(self, logger, name: str, event_dict: dict) -> dict:
        try:
            event = str(event_dict.get("event", ""))[:80].upper()
            icon_enum = LogIcon(event_dict.pop("icon", LogIcon.DEFAULT))
        except ValueError as err:
            raise LoggerError("Wrong Icon chosen, please choose a valid LogIcon enum member") from err

        if self.debug:
            event = f"{icon_enum.value} {event}"
        event_dict["event"] = event
        return event_dict


def dev_pipeline_renderer(logger, name: str, event_dict: dict) -> str:
    """Render log events as pipe-separated fields."""
    reserved_keys = {"timestamp", "level", "event", "filename", "lineno"}

    location = ""
    if filename := event_dict.get("filename", ""):
        location = f"{filename}:{event_dict.get('lineno', '')}"

    extra_kwargs = " | ".join(f"{k}={v}" for k, v in event_dict.items() if k not in reserved_keys)

    parts = [
        event_dict.get("timestamp", ""),
        str(event_dict.get("level", LogLevel.INFO.value)).upper(),
        event_dict.get("event", ""),
        extra_kwargs,
        location,
    ]
    return " | ".join(filter(None, parts))


def setup_logging(config: LoggerConfig) -> None:
    """Configure structlog for either the debug renderer or JSON lines."""
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
            additional_ignores=["logger"],
        ),
        BusinessRulesProcessor(debug=config.debug),
    ]

    logger_factory = structlog.PrintLoggerFactory()
    if config.debug:
        processors = shared_processors + [dev_pipeline_renderer]
    else:
        # orjson renders bytes
        logger_factory = structlog.BytesLoggerFactory()
        processors = shared_processors + [
            add_correlation_id,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(serializer=orjson.dumps),
        ]

    structlog.configure(
        processors=processors,
        logger_factory=logger_factory,
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(config.log_level.value)),
        cache_logger_on_first_use=True,
    )


setup_logging(LoggerConfig())

logger = structlog.get_logger()
