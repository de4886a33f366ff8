"""Errors raised by the video metadata store."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, TypeVar

from sqlalchemy import exc as sa_exc

__all__ = [
    "RepositoryError",
    "NotFoundError",
    "IntegrityConstraintViolation",
    "DatabaseOperationError",
    "require_row",
    "translate_db_errors",
]

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT")


class RepositoryError(Exception):
    """Metadata store failure for one kind of record."""

    def __init__(self, message: str, *, entity: str = "video") -> None:
        super().__init__(f"{entity}: {message}")
        self.entity = entity


class NotFoundError(RepositoryError):
    """No row with the requested id."""

    def __init__(self, identifier: str, *, entity: str = "video") -> None:
        super().__init__(f"'{identifier}' not found", entity=entity)
        self.identifier = identifier


class IntegrityConstraintViolation(RepositoryError):
    """A write was rejected by a key or constraint."""


class DatabaseOperationError(RepositoryError):
    """Driver, connection or locking failure."""


def require_row(row: RowT | None, *, identifier: str, entity: str = "video") -> RowT:
    if row is None:
        raise NotFoundError(identifier, entity=entity)
    return row


@contextmanager
def translate_db_errors(*, operation: str, entity: str = "video") -> Iterator[None]:
    """Re-raise SQLAlchemy failures inside the block as :class:`RepositoryError`."""
    try:
        yield
    except sa_exc.IntegrityError as exc:
        logger.warning(
            "db.integrity_violation",
            extra={"entity": entity, "operation": operation, "error": str(exc.orig)},
        )
        raise IntegrityConstraintViolation(f"{operation} violated a constraint", entity=entity) from exc
    except sa_exc.DBAPIError as exc:
        logger.error(
            "db.operation_failed",
            extra={"entity": entity, "operation": operation, "error": str(exc.orig)},
        )
        raise DatabaseOperationError(f"{operation} failed", entity=entity) from exc
    except sa_exc.SQLAlchemyError as exc:
        logger.error(
            "db.error",
            extra={"entity": entity, "operation": operation, "error": str(exc)},
        )
        raise RepositoryError(f"{operation} failed: {exc}", entity=entity) from exc
