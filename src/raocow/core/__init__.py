"""Core catalog functionality."""

from .results import ErrorKind, OperationResult

__all__ = [
    "ErrorKind",
    "OperationResult",
]
