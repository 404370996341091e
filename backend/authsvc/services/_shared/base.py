# authsvc/services/_shared/base.py
from __future__ import annotations

from datetime import datetime

from authsvc.core import errors as api_errors
from authsvc.services._shared.errors import (
    AuthenticationError,
    ConflictError,
    InfrastructureError,
    NotFoundError,
    ServiceError,
    TokenError,
    ValidationError,
)
from authsvc.services._shared.ports.clock import Clock, SystemClock


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide a read-write Unit of Work helper for SQL-backed use cases.
    * Own the injectable clock.
    * Centralize error translation to API errors.
    * Keep services thin, orchestration-only, no web/ORM leakage.
    """

    def __init__(self, *, clock: Clock | None = None) -> None:
        """
        Initialize the base service.

        :param clock: Time source; defaults to the system clock.
        :type clock: Clock | None
        """
        self.clock: Clock = clock or SystemClock()

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self):
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        # Imported lazily so the credential engine stays importable without Flask.
        from authsvc.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

        return SQLAlchemyUnitOfWork()

    def now_utc(self) -> datetime:
        """Return the current instant from the injected clock."""
        return self.clock.now()

    # -------------------------- Error handling ------------------------------

    @staticmethod
    def translate_exceptions(exc: Exception) -> Exception:
        """
        Map domain/service-level errors to API-level (HTTP) errors.

        Infrastructure failures never expose their message: hashes, store
        errors and signer details stay in the server logs.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, NotFoundError):
            return api_errors.NotFound(str(exc))

        if isinstance(exc, ConflictError):
            return api_errors.Conflict(str(exc))

        if isinstance(exc, ValidationError):
            return api_errors.APIError(message=str(exc), status_code=400, code="bad_request")

        if isinstance(exc, (AuthenticationError, TokenError)):
            return api_errors.Unauthorized(str(exc))

        if isinstance(exc, InfrastructureError):
            return api_errors.APIError(
                message="Unexpected error",
                status_code=500,
                code="internal_server_error",
            )

        # Any other ServiceError subclass → 400 Bad Request
        if isinstance(exc, ServiceError):
            return api_errors.APIError(message=str(exc), status_code=400, code="bad_request")

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc
