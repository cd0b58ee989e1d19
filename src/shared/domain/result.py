"""
Per-item outcome of a fan-out operation
A Success carries the returned value, a Failure the exception that was caught
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    def is_success(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """
    An item that raised instead of returning.

    Attributes:
        error: The exception raised for this item
    """

    error: Exception

    def is_success(self) -> bool:
        return False

    @property
    def message(self) -> str:
        """DomainError.message when present, else the exception text or class name."""
        return getattr(self.error, "message", None) or str(self.error) or self.error.__class__.__name__


Result = Success[T] | Failure
