"""
Structured logging.

structlog with ISO timestamps, log level and the event name under
``event_type``. JSON output by default; LOG_FORMAT=console for local runs.
Modules call get_logger(__name__) and log an event name plus key/value context:

    logger.info("analysis_completed", media_type="image", elapsed_ms=812)
"""

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict

import structlog
from dotenv import load_dotenv


def _add_timestamp(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _normalize_event(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Rename structlog 'event' to event_type."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    return event_dict


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    level_value = getattr(logging, level.upper(), logging.INFO)
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_timestamp,
        _normalize_event,
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str):
    return structlog.get_logger(name).bind(logger=name)


# Configured at import so module-level loggers pick up LOG_LEVEL and LOG_FORMAT
if not structlog.is_configured():
    load_dotenv()
    configure_logging(
        os.getenv("LOG_LEVEL", "INFO"),
        os.getenv("LOG_FORMAT", "json").strip().lower(),
    )
