# app/core/exceptions.py

"""
Typed repository errors and the database error translator.

Every repository call funnels driver failures through `wrap_error`, which
first asks `translate_error` for a typed domain error (unique / foreign-key
violation) and otherwise wraps the raw exception together with the name of
the failing operation.
"""

import logging
from typing import Optional

from fastapi import status
from sqlalchemy.exc import DBAPIError

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE codes
PG_UNIQUE_VIOLATION = "23505"
PG_FOREIGN_KEY_VIOLATION = "23503"


class RepositoryError(Exception):
    """Base class for every error raised by the data-access layer."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "database operation failed"

    def __init__(self, op: str, message: Optional[str] = None, cause: Optional[BaseException] = None):
        self.op = op
        self.message = message or self.default_message
        self.cause = cause
        super().__init__(f"{op}: {self.message}")


class NotFoundError(RepositoryError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "not found"


class DuplicateError(RepositoryError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "duplicate entry"


class ForeignKeyViolationError(RepositoryError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "referenced record does not exist"


class InvalidStatusError(RepositoryError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "operation not allowed in the current status"


class InvalidFlowRateError(RepositoryError):
    """Flow rate cannot be derived (no end time, or a non-positive duration)."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "flow rate cannot be calculated"


class InvalidDateRangeError(RepositoryError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "invalid date range"


class BlockedPeriodError(RepositoryError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "dates fall into a blocked period of the department"


class VacationOverlapError(RepositoryError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "vacation overlaps an existing one"


class NegativeNetAmountError(RepositoryError):
    status_code = 422
    default_message = "net amount cannot be negative"


def _driver_error(exc: DBAPIError) -> BaseException:
    # asyncpg errors arrive wrapped twice: DBAPIError.orig -> adapter error -> __cause__
    orig = exc.orig
    cause = getattr(orig, "__cause__", None)
    return cause if cause is not None else orig


def translate_error(exc: BaseException, op: str) -> Optional[RepositoryError]:
    """
    Maps a raw database error to a typed domain error.

    Returns None when the error is not a recognized constraint violation;
    callers then wrap it generically.
    """
    if isinstance(exc, RepositoryError):
        return exc
    if not isinstance(exc, DBAPIError) or exc.orig is None:
        return None

    driver_exc = _driver_error(exc)
    code = getattr(driver_exc, "sqlstate", None) or getattr(driver_exc, "pgcode", None)
    text = str(driver_exc)

    if code == PG_UNIQUE_VIOLATION or "UNIQUE constraint failed" in text:
        return DuplicateError(op, cause=exc)
    if code == PG_FOREIGN_KEY_VIOLATION or "FOREIGN KEY constraint failed" in text:
        return ForeignKeyViolationError(op, cause=exc)
    return None


def wrap_error(exc: BaseException, op: str) -> RepositoryError:
    """Translated error if recognized, otherwise a generic RepositoryError."""
    translated = translate_error(exc, op)
    if translated is not None:
        if not isinstance(exc, RepositoryError):
            logger.warning("%s: %s", op, translated.message)
        return translated
    logger.error("%s: unexpected database error: %s", op, exc)
    return RepositoryError(op, cause=exc)
