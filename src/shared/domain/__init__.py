"""
Shared Domain Layer
"""
from shared.domain.result import Failure, Result, Success

__all__ = [
    "Success",
    "Failure",
    "Result",
]
