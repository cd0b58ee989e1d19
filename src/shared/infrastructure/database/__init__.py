"""
Database Infrastructure
Declarative base, session factory and unit of work
"""
from shared.infrastructure.database.base_model import Base, JSONType
from shared.infrastructure.database.session import DatabaseSessionFactory
from shared.infrastructure.database.sqlalchemy_unit_of_work import SQLAlchemyUnitOfWork

__all__ = [
    "Base",
    "JSONType",
    "DatabaseSessionFactory",
    "SQLAlchemyUnitOfWork",
]
