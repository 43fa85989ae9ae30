"""
Structured logging configuration for the content-generator service.
Provides JSON output with content.* prefixed business context attributes.
"""

import json
import logging
import os
import sys
from datetime import UTC, datetime

import structlog
from structlog.typing import EventDict, WrappedLogger

SENSITIVE_KEYS = frozenset({"password", "secret", "token", "dsn", "authorization", "api_key"})


def filter_sensitive_data(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Redact values whose keys contain sensitive substrings."""
    for key in list(event_dict.keys()):
        if any(s in key.lower() for s in SENSITIVE_KEYS):
            event_dict[key] = "***REDACTED***"
    return event_dict


def add_business_context(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """
    Structlog processor that renames keys to the content.* namespace.

    Transforms:
    - unit_name -> content.unit.name
    - run_id -> content.run.id

    Also adds content.pipeline = 'content-generation' for all logs.
    """
    if "unit_name" in event_dict:
        event_dict["content.unit.name"] = event_dict.pop("unit_name")
    if "run_id" in event_dict:
        event_dict["content.run.id"] = event_dict.pop("run_id")

    event_dict["content.pipeline"] = "content-generation"

    return event_dict


class JsonFormatter(logging.Formatter):
    """
    A custom formatter to render log records as JSON.
    It extracts all non-standard attributes from the LogRecord
    and includes them in the final JSON output.
    """

    standard_attrs = frozenset(
        {
            "args",
            "asctime",
            "created",
            "exc_info",
            "exc_text",
            "filename",
            "funcName",
            "levelname",
            "levelno",
            "lineno",
            "module",
            "msecs",
            "message",
            "msg",
            "name",
            "pathname",
            "process",
            "processName",
            "relativeCreated",
            "stack_info",
            "taskName",
            "thread",
            "threadName",
        }
    )

    def format(self, record):
        # Prefer structlog's timestamp if available, otherwise format it
        timestamp = getattr(record, "timestamp", None)
        if not isinstance(timestamp, str):
            if self.datefmt == "iso":
                timestamp = datetime.fromtimestamp(record.created, tz=UTC).isoformat()
            else:
                timestamp = self.formatTime(record, self.datefmt)

        log_record = {
            "timestamp": timestamp,
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }

        # This is how we get the context and kwargs from structlog.
        for key, value in record.__dict__.items():
            if key not in self.standard_attrs and key not in log_record:
                log_record[key] = value

        # structlog passes the original event name in the 'event' key.
        if "event" in log_record:
            log_record["msg"] = log_record.pop("event")

        # default=str renders non-serialisable objects (e.g. Exception instances) as text.
        return json.dumps(log_record, sort_keys=True, default=str)


def setup_logging() -> None:
    """
    Set up structured logging using structlog, integrated with the standard
    logging library to output JSON.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            filter_sensitive_data,
            add_business_context,
            # Hands the event dict to the standard logger as keyword arguments.
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Use environment variable to allow test override
    service_name = os.getenv("SERVICE_NAME", "content-generator")
    structlog.contextvars.bind_contextvars(service=service_name)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter(datefmt="iso"))

    root_logger = logging.getLogger()

    # Clear any existing handlers to avoid duplicate output.
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    root_logger.addHandler(handler)

    log_level_str = os.getenv("CONTENT_GEN_LOG_LEVEL", "INFO").upper()
    root_logger.setLevel(getattr(logging, log_level_str, logging.INFO))
