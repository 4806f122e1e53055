"""Typed errors returned to orchestrator callers."""

import sqlite3
from contextlib import contextmanager

import structlog

logger = structlog.get_logger(__name__)


class CareLedgerError(Exception):
    """Base error with a stable machine-readable code."""

    code = "ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class PermissionDenied(CareLedgerError):
    code = "FORBIDDEN"

    def __init__(self, message: str, reason: str):
        super().__init__(message)
        self.reason = reason

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "reason": self.reason}


class NotFound(CareLedgerError):
    code = "NOT_FOUND"


class InvalidState(CareLedgerError):
    code = "INVALID_STATE"


class ValidationError(CareLedgerError):
    code = "VALIDATION_ERROR"


class Conflict(CareLedgerError):
    code = "CONFLICT"


class DependencyFailure(CareLedgerError):
    code = "DEPENDENCY_FAILURE"

    def __init__(self, message: str = "A required service is unavailable"):
        super().__init__(message)


class AuthenticationError(CareLedgerError):
    code = "INVALID_CREDENTIALS"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        if code:
            self.code = code


@contextmanager
def storage_guard(operation: str):
    """Translate storage-engine errors into the public taxonomy."""
    try:
        yield
    except sqlite3.IntegrityError as e:
        logger.warning("Storage constraint violated", operation=operation, error=str(e))
        raise Conflict("Record conflicts with an existing record") from e
    except sqlite3.Error as e:
        logger.error("Storage failure", operation=operation, error=str(e))
        raise DependencyFailure() from e
