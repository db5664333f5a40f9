"""
Exception hierarchy for the farm dashboard.

Views never see raw SDK errors: the store layer wraps them in DataAccessError
and the service layer turns any FarmDashError into a toast message.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class FarmDashError(Exception):
    """Base exception for all farm dashboard errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(FarmDashError):
    """Raised when environment configuration is invalid."""
    pass


class DataAccessError(FarmDashError):
    """Base class for document-store errors."""
    pass


class StoreUnavailableError(DataAccessError):
    """The hosted store could not be reached or initialized."""
    pass


class AuthError(DataAccessError):
    """Sign-in or permission failure against the hosted auth service."""
    pass


class NotFoundError(FarmDashError):
    """A document that must exist was not found."""

    def __init__(self, kind: str, doc_id: str, collection: Optional[str] = None):
        super().__init__(
            f"{kind} with ID {doc_id} not found",
            details={"collection": collection, "doc_id": doc_id},
        )
        self.kind = kind
        self.collection = collection
        self.doc_id = doc_id


class ValidationError(FarmDashError):
    """Form or argument validation failed."""

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        super().__init__(message, details={"errors": errors or {}})
        self.errors = errors or {}
