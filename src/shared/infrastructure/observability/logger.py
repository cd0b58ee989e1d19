"""
Structured logging
structlog on top of stdlib logging; every event carries the service name and
whatever request / worker / tenant context is currently bound
"""
from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator, MutableMapping

import structlog

_SERVICE_NAME = "shop-tenancy"


def _add_service(logger: Any, method_name: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    event_dict.setdefault("service", _SERVICE_NAME)
    return event_dict


def _enum_values(logger: Any, method_name: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    # CheckStatus.WARNING -> "warning" in both renderers
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def configure_logging(log_level: str = "INFO", json_logs: bool = True, *, service: str | None = None) -> None:
    """
    Configure structlog for the API process or a worker.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_logs: JSON lines (deployed) or colored console output (local)
        service: value of the `service` field on every event
    """
    global _SERVICE_NAME
    if service:
        _SERVICE_NAME = service

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        _add_service,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _enum_values,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(colors=True),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Replace the bound context (one request or one worker run)."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """
    Add fields for the duration of a block, restoring the outer context after.

    Usage:
        with log_context(tenant_id=tenant_id):
            ...
    """
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield
