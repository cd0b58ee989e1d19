"""
Observability Infrastructure
Structured logging
"""
from shared.infrastructure.observability.logger import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    log_context,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "log_context",
]
