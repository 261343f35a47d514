"""
Structured JSON logging for the FyxxLabs access layer.

Every event carries the service name, the OpenTelemetry trace ids when a span
is recording, and whatever correlation ids the request middleware bound
through ``structlog.contextvars`` (``request_id``, ``user_id``).
"""

import sys
import uuid
import logging
from typing import Any, Callable, Dict, Optional

import structlog
from opentelemetry import trace

EventDict = Dict[str, Any]


def configure_logging(service_name: str, log_level: str = "info") -> None:
    """Route structlog through stdlib logging and render one JSON object per line."""
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            service_name_adder(service_name),
            add_trace_ids,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)


def service_name_adder(service_name: str) -> Callable[[Any, str, EventDict], EventDict]:
    """Processor stamping ``service`` unless the event already names one."""
    def add_service_name(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service_name)
        return event_dict

    return add_service_name


def add_trace_ids(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    span = trace.get_current_span()
    if not span.is_recording():
        return event_dict

    ctx = span.get_span_context()
    if ctx.trace_id:
        event_dict["trace_id"] = trace.format_trace_id(ctx.trace_id)
    if ctx.span_id:
        event_dict["span_id"] = trace.format_span_id(ctx.span_id)
    return event_dict


def set_request_id(request_id: Optional[str] = None) -> str:
    """Bind the caller's request id, or a fresh uuid4, for the current context."""
    request_id = request_id or str(uuid.uuid4())
    structlog.contextvars.bind_contextvars(request_id=request_id)
    return request_id


def set_user_context(user_id: Optional[str] = None) -> None:
    if user_id:
        structlog.contextvars.bind_contextvars(user_id=user_id)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
