"""
Tagged result returned by command handlers.

Handlers never raise DomainError to their callers. Success carries a value
(and the new concurrency token when a write happened); failure carries the
DomainError describing the error kind.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from core.exceptions import DomainError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a handler call.

    Attributes:
        value: Payload on success (None on failure)
        error: DomainError on failure (None on success)
        token: ConcurrencyToken minted by a successful write, if any
    """

    value: Optional[T] = None
    error: Optional[DomainError] = None
    token: Optional[object] = None

    @classmethod
    def success(cls, value, token=None):
        return cls(value=value, token=token)

    @classmethod
    def failure(cls, error):
        return cls(error=error)

    @property
    def ok(self):
        return self.error is None

    @property
    def code(self):
        """Error kind code ("NOT_FOUND", "CONCURRENCY_CONFLICT", ...) or None."""
        return None if self.error is None else self.error.code
