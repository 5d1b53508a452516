"""structlog setup for tracking plugins running inside a host process."""

import logging
import threading

import structlog
from opentelemetry import trace
from structlog.types import EventDict, Processor

from .settings import get_settings

# Loggers owned by the tracking add-ons. The host keeps its root logger.
PLUGIN_LOGGERS = ("tracking_core", "ga_tracking", "stats_tracking")
# Chatty below WARNING: one line per request and per scheduler wakeup.
QUIET_LIBRARIES = ("httpx", "apscheduler")

_lock = threading.Lock()
_handler: logging.Handler | None = None


def add_trace_context(_, __, event_dict: EventDict) -> EventDict:
    """Attach the ids of the delivery span being logged from, if any."""
    context = trace.get_current_span().get_span_context()
    if context.is_valid:
        event_dict["trace_id"] = trace.format_trace_id(context.trace_id)
        event_dict["span_id"] = trace.format_span_id(context.span_id)
    return event_dict


def add_service_info(_, __, event_dict: EventDict) -> EventDict:
    settings = get_settings()
    event_dict.setdefault("service", settings.service_name)
    event_dict.setdefault("env", settings.environment)
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        add_service_info,
        add_trace_context,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]


def setup_structlog(json_logs: bool = False, log_level: str = "INFO") -> logging.Handler:
    """
    Route the plugin packages' logs through a structlog formatter.

    Both add-ons call this from ``start()``; only the first call installs the
    handler and later calls return it unchanged. Nothing outside
    ``PLUGIN_LOGGERS`` gets a handler, and a structlog configuration the host
    already made is left alone.
    """
    global _handler
    with _lock:
        if _handler is not None:
            return _handler

        renderer = (
            structlog.processors.JSONRenderer()
            if json_logs
            else structlog.dev.ConsoleRenderer(colors=False)
        )
        handler = logging.StreamHandler()
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                foreign_pre_chain=_shared_processors(),
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    renderer,
                ],
            )
        )

        for name in PLUGIN_LOGGERS:
            logger = logging.getLogger(name)
            logger.addHandler(handler)
            logger.setLevel(log_level.upper())
            logger.propagate = False
        for name in QUIET_LIBRARIES:
            logging.getLogger(name).setLevel(logging.WARNING)

        if not structlog.is_configured():
            structlog.configure(
                processors=_shared_processors()
                + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
                logger_factory=structlog.stdlib.LoggerFactory(),
                wrapper_class=structlog.stdlib.BoundLogger,
                cache_logger_on_first_use=True,
            )

        _handler = handler
        return handler


def teardown_structlog() -> None:
    """Detach the plugin handler so a later ``setup_structlog`` starts fresh."""
    global _handler
    with _lock:
        if _handler is None:
            return
        for name in PLUGIN_LOGGERS:
            logging.getLogger(name).removeHandler(_handler)
        _handler = None
