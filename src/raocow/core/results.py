"""Operation results returned by repositories and relationship managers."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(Enum):
    """Why an operation did not succeed."""

    VALIDATION = "validation"  # Bad input, store never touched
    NOT_FOUND = "not_found"  # Expected outcome of a lookup
    STORE = "store"  # Connectivity, conflict or query failure
    ALLOCATION = "allocation"  # No free id could be claimed


@dataclass
class OperationResult(Generic[T]):
    """
    Outcome of a repository or relationship operation.

    Truthy on success, so callers that only care about success/failure can
    treat it as a bool; error tells failures apart.

    Example:
        >>> result = await repo.get_by_id("super-marisa-world")
        >>> if result:
        ...     print(result.value.name)
        ... elif result.error is ErrorKind.NOT_FOUND:
        ...     print("no such series")
    """

    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: Optional[T] = None) -> "OperationResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ErrorKind, message: str) -> "OperationResult[T]":
        return cls(error=error, message=message)
