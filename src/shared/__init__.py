"""
Shared Layer - Cross-Cutting Concerns
Result type, configuration, database and logging infrastructure
"""

from shared.domain import Failure, Result, Success

__all__ = [
    "Success",
    "Failure",
    "Result",
]
