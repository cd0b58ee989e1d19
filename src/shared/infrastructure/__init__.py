"""
Shared Infrastructure Layer
Database and observability
"""
from shared.infrastructure.database import (
    Base,
    DatabaseSessionFactory,
    SQLAlchemyUnitOfWork,
)
from shared.infrastructure.observability import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)

__all__ = [
    # Database
    "Base",
    "DatabaseSessionFactory",
    "SQLAlchemyUnitOfWork",
    # Observability
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
