from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from http import HTTPStatus

from tickit.core import errors as api_errors
from tickit.services._shared.errors import (
    ConflictError,
    DataInconsistencyError,
    EmailDeliveryError,
    InvalidCredentialsError,
    InvalidDomainError,
    InvalidOtpError,
    NotFoundError,
    OtpAlreadyPendingError,
    OtpExpiredError,
    OtpNotVerifiedError,
    PasswordMismatchError,
    ServiceError,
    TokenError,
)
from tickit.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)

# First match wins, so subclasses must precede their bases.
ERROR_STATUS_MAP: tuple[tuple[type[ServiceError], HTTPStatus, str], ...] = (
    (InvalidDomainError, HTTPStatus.BAD_REQUEST, "invalid_domain"),
    (PasswordMismatchError, HTTPStatus.BAD_REQUEST, "password_mismatch"),
    # Unknown user and wrong password share one answer
    (InvalidCredentialsError, HTTPStatus.NOT_FOUND, "invalid_credentials"),
    (NotFoundError, HTTPStatus.NOT_FOUND, "not_found"),
    (InvalidOtpError, HTTPStatus.UNAUTHORIZED, "invalid_otp"),
    (TokenError, HTTPStatus.UNAUTHORIZED, "invalid_token"),
    (OtpNotVerifiedError, HTTPStatus.FORBIDDEN, "otp_not_verified"),
    (ConflictError, HTTPStatus.CONFLICT, "conflict"),
    (OtpExpiredError, HTTPStatus.GONE, "otp_expired"),
    (OtpAlreadyPendingError, HTTPStatus.TOO_MANY_REQUESTS, "otp_pending"),
    (DataInconsistencyError, HTTPStatus.INTERNAL_SERVER_ERROR, "data_inconsistency"),
    (EmailDeliveryError, HTTPStatus.INTERNAL_SERVER_ERROR, "email_delivery_failed"),
    (ServiceError, HTTPStatus.BAD_REQUEST, "bad_request"),
)


@dataclass(slots=True)
class ServiceContext:
    """
    Request-scoped data handed to services by the API layer.

    :param actor_id: Authenticated user id, ``None`` on public routes.
    :param actor_username: Authenticated username, when known.
    :param request_id: Correlation id for logging.
    """

    actor_id: int | None = None
    actor_username: str | None = None
    request_id: str | None = None


class BaseService:
    """
    Common ground for the auth services.

    Services open a unit of work per operation (never the global session),
    raise the framework-agnostic errors of :mod:`tickit.services._shared.errors`
    and leave HTTP concerns to :meth:`translate_exceptions`.
    """

    DEFAULT_READ_ISOLATION = "READ COMMITTED"

    def __init__(self, *, ctx: ServiceContext | None = None) -> None:
        self.ctx = ctx or ServiceContext()

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """Unit of work that commits on a clean exit."""
        return SQLAlchemyUnitOfWork()

    def ro_uow(
        self, *, isolation: str | None = None, enforce_db_readonly: bool = True
    ) -> SQLAlchemyReadOnlyUnitOfWork:
        """Unit of work that refuses writes and always rolls back."""
        return SQLAlchemyReadOnlyUnitOfWork(
            isolation_level=isolation or self.DEFAULT_READ_ISOLATION,
            enforce_db_readonly=enforce_db_readonly,
        )

    @staticmethod
    def now_utc() -> datetime:
        return datetime.now(UTC)

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map a service error onto the API error carrying its status and code.

        The client-facing message is the service error's own message.
        Exceptions that are not :class:`ServiceError` are returned untouched
        and end up in the generic Flask handlers.

        :param exc: Exception raised within a service.
        :returns: Exception ready to be re-raised.
        """
        for error_type, status, code in ERROR_STATUS_MAP:
            if isinstance(exc, error_type):
                return api_errors.APIError(str(exc), status_code=int(status), code=code)
        return exc
