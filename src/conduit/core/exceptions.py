"""Error taxonomy shared by the store and the repositories."""

from typing import Any, Dict, Optional


class StoreError(Exception):
    """Base class for every failure surfaced by the relational store."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{key}={value!r}" for key, value in self.details.items())
        return f"{self.message} ({context})"


class NotFound(StoreError):
    """A referenced entity or relation row does not exist."""


class ConstraintViolation(StoreError):
    """A uniqueness or foreign-key constraint would be broken."""


class ReferenceNotFound(NotFound, ConstraintViolation):
    """A foreign key points at a row that does not exist."""


class TransactionAborted(StoreError):
    """The operation could not complete and its transaction was rolled back."""
