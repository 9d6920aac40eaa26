"""Exceptions for graph store operations."""

from pathlib import Path
from typing import Any, Dict, Optional


class DatabaseError(Exception):
    """Base exception for graph store errors."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when connecting to the graph store fails."""

    def __init__(
        self,
        message: str,
        path: Optional[Path] = None,
        uri: Optional[str] = None,
    ):
        super().__init__(message)
        self.path = path
        self.uri = uri


class QueryError(DatabaseError):
    """Raised when a store query fails."""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.query = query
        self.params = params


class TransactionError(DatabaseError):
    """Raised when a transaction cannot be started, committed or rolled back."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation


class DuplicateRecordError(DatabaseError):
    """Raised when a node with the same label and id already exists."""

    def __init__(
        self,
        message: str,
        label: Optional[str] = None,
        node_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.label = label
        self.node_id = node_id


class IdentifierAllocationError(DatabaseError):
    """Raised when no free identifier is found within the attempt limit."""

    def __init__(
        self,
        message: str,
        label: Optional[str] = None,
        base_name: Optional[str] = None,
        attempts: int = 0,
    ):
        super().__init__(message)
        self.label = label
        self.base_name = base_name
        self.attempts = attempts
