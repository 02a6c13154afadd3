"""Storage error taxonomy and its translation into HTTP responses.

Data access failures are raised as :class:`StorageError` or one of its
subclasses so the API layer can tell a uniqueness violation and a
missing foreign key apart from any other failure. The exception
handlers registered by :func:`register_exception_handlers` turn them
into envelope responses.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .schemas import Envelope

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "the record is already registered"
MISSING_REFERENCE_MESSAGE = "the referenced record does not exist"

# SQLite extended result codes, PostgreSQL SQLSTATEs, MySQL error numbers
UNIQUE_VIOLATION_CODES = {"2067", "1555", "23505", "1062"}
FOREIGN_KEY_VIOLATION_CODES = {"787", "23503", "1452"}


class StorageError(Exception):
    """A database operation failed."""


class DuplicateRecordError(StorageError):
    """A uniqueness constraint rejected the write."""


class MissingReferenceError(StorageError):
    """A foreign key points at a record that does not exist."""


def _driver_error_code(orig: BaseException | None) -> str | None:
    """Extract the driver specific error code of a DBAPI exception."""
    if orig is None:
        return None
    for attr in ("sqlite_errorcode", "pgcode", "sqlstate"):
        code = getattr(orig, attr, None)
        if code is not None:
            return str(code)
    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int):
        return str(args[0])
    return None


def translate_storage_error(exc: SQLAlchemyError) -> StorageError:
    """
    Map a SQLAlchemy exception onto the storage error taxonomy.

    Args:
        exc (SQLAlchemyError): Exception raised while talking to the database.

    Returns:
        StorageError: ``DuplicateRecordError`` for uniqueness violations,
        ``MissingReferenceError`` for foreign key violations and a plain
        ``StorageError`` for anything else.
    """
    orig = getattr(exc, "orig", None)
    detail = str(orig) if orig is not None else str(exc)

    if isinstance(exc, IntegrityError):
        code = _driver_error_code(orig)
        text = detail.lower()
        if code in UNIQUE_VIOLATION_CODES or "unique" in text or "duplicate" in text:
            return DuplicateRecordError(detail)
        if code in FOREIGN_KEY_VIOLATION_CODES or "foreign key" in text:
            return MissingReferenceError(detail)

    return StorageError(detail)


def _envelope_response(status_code: int, message: str) -> JSONResponse:
    """Error envelope with no data."""
    body = Envelope(error=True, message=message, data=None)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def duplicate_record_handler(request: Request, exc: DuplicateRecordError):
    """Uniqueness violation: 400 with the already registered message."""
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return _envelope_response(status.HTTP_400_BAD_REQUEST, DUPLICATE_MESSAGE)


async def missing_reference_handler(request: Request, exc: MissingReferenceError):
    """Foreign key violation: 400 with the missing reference message."""
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return _envelope_response(status.HTTP_400_BAD_REQUEST, MISSING_REFERENCE_MESSAGE)


async def storage_error_handler(request: Request, exc: StorageError):
    """Any other storage failure: 500 carrying the driver message."""
    logger.error("%s %s failed in storage: %s", request.method, request.url.path, exc)
    return _envelope_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


async def value_error_handler(request: Request, exc: ValueError):
    """Unsupported argument, such as an unknown sort field: 500."""
    logger.warning("%s %s invalid value: %s", request.method, request.url.path, exc)
    return _envelope_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request body or path: 500 listing the offending fields."""
    message = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    logger.warning("%s %s malformed request: %s", request.method, request.url.path, message)
    return _envelope_response(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


async def unexpected_error_handler(request: Request, exc: Exception):
    """Last resort for unhandled exceptions: 500 with the exception text."""
    logger.exception("%s %s failed", request.method, request.url.path)
    return _envelope_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


def register_exception_handlers(app: FastAPI) -> None:
    """
    Attach the envelope producing exception handlers to the application.

    Args:
        app (FastAPI): Application instance.
    """
    app.add_exception_handler(DuplicateRecordError, duplicate_record_handler)
    app.add_exception_handler(MissingReferenceError, missing_reference_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
