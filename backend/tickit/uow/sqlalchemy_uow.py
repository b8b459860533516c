"""SQLAlchemy units of work: a committing writer and a guarded read-only reader."""

from __future__ import annotations

import logging
from contextlib import suppress

from sqlalchemy import event, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import InvalidRequestError, SQLAlchemyError
from sqlalchemy.orm import Session, SessionTransaction

from tickit.core.extensions import db
from tickit.repositories import (
    ActivityLogRepository,
    PasswordResetOtpRepository,
    UserRepository,
)
from tickit.uow.base import UnitOfWork

log = logging.getLogger(__name__)

# Dialects that understand SET TRANSACTION ...
_SET_TRANSACTION_DIALECTS = ("postgresql", "mysql", "mariadb")


class SQLAlchemyRepositoryContainer:
    """Provide repository instances that share a SQLAlchemy session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=self.session)
        self.password_resets = PasswordResetOtpRepository(session=self.session)
        self.activity_logs = ActivityLogRepository(session=self.session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    SQLAlchemy-backed UoW using the Flask-scoped session.

    Commits when the block exits cleanly, rolls back when it raises. The same
    session is shared across all repositories for a consistent transaction.
    """

    def __init__(self) -> None:
        super().__init__(session=db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # No-op: the session is lazily started on the first statement.
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            try:
                self.commit()
            except Exception:
                self.rollback()
                raise
        else:
            self.rollback()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class WriteGuard:
    """Session and connection listeners that reject any write.

    ORM flushes with pending changes and DML/DDL statements reaching the
    cursor raise :class:`RuntimeError`.
    """

    WRITE_VERBS = frozenset(
        {
            "insert",
            "update",
            "delete",
            "merge",
            "replace",
            "create",
            "alter",
            "drop",
            "truncate",
            "grant",
            "revoke",
        }
    )

    def __init__(self, session: Session, connection: Connection) -> None:
        self.session = session
        self.connection = connection
        self.active = False

    def _before_flush(self, session, flush_context, instances) -> None:
        if session.new or session.dirty or session.deleted:
            raise RuntimeError(
                "Read-only UnitOfWork: ORM flush blocked (new/dirty/deleted objects present)."
            )

    def _before_cursor_execute(self, conn, cursor, statement, parameters, context, many) -> None:
        verb = statement.lstrip().split(None, 1)[0].lower() if statement else ""
        if verb in self.WRITE_VERBS:
            raise RuntimeError(f"Read-only UnitOfWork: SQL statement blocked: {verb.upper()}")

    def install(self) -> None:
        if self.active:
            return
        event.listen(self.session, "before_flush", self._before_flush)
        event.listen(self.connection, "before_cursor_execute", self._before_cursor_execute)
        self.active = True

    def remove(self) -> None:
        if not self.active:
            return
        with suppress(InvalidRequestError):
            event.remove(self.session, "before_flush", self._before_flush)
        with suppress(InvalidRequestError):
            event.remove(self.connection, "before_cursor_execute", self._before_cursor_execute)
        self.active = False


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only Unit of Work over the Flask-scoped session.

    Used by lookups that must never write (principal resolution, activity
    listings). A :class:`WriteGuard` blocks writes on every dialect; on
    PostgreSQL and MySQL/MariaDB the owned transaction is additionally marked
    ``READ ONLY`` with the requested isolation level. ``commit()`` raises and
    the owned transaction is always rolled back.

    :param isolation_level: Isolation hint such as ``"READ COMMITTED"``; ``None``
        keeps the connection default.
    :param enforce_db_readonly: Issue ``SET TRANSACTION READ ONLY`` where supported.
    """

    ISOLATION_LEVELS = frozenset(
        {"READ COMMITTED", "REPEATABLE READ", "SERIALIZABLE", "READ UNCOMMITTED"}
    )

    def __init__(
        self,
        *,
        isolation_level: str | None = "READ COMMITTED",
        enforce_db_readonly: bool = True,
    ) -> None:
        super().__init__(session=db.session)
        if isolation_level and isolation_level.upper().strip() not in self.ISOLATION_LEVELS:
            raise ValueError(f"Unknown isolation level {isolation_level!r}")
        self.isolation_level = isolation_level.upper().strip() if isolation_level else None
        self.enforce_db_readonly = enforce_db_readonly
        self._owned: SessionTransaction | None = None
        self._guard: WriteGuard | None = None

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        # Attach to a transaction the session already runs (autobegin); the
        # guard still applies but isolation follows the outer transaction.
        try:
            self._owned = self.session.begin()
        except InvalidRequestError:
            self._owned = None

        conn = self.session.connection()
        self._guard = WriteGuard(self.session, conn)
        self._guard.install()

        if self._owned is not None and conn.dialect.name in _SET_TRANSACTION_DIALECTS:
            self._apply_transaction_directives()
        return self

    def _apply_transaction_directives(self) -> None:
        directives = []
        if self.isolation_level:
            directives.append(f"SET TRANSACTION ISOLATION LEVEL {self.isolation_level}")
        if self.enforce_db_readonly:
            directives.append("SET TRANSACTION READ ONLY")
        try:
            for sql in directives:
                self.session.execute(text(sql))
        except SQLAlchemyError as exc:
            log.warning("SET TRANSACTION directives failed (%s). Using guards only.", exc)

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._owned is not None:
                with suppress(SQLAlchemyError):
                    self.session.rollback()
        finally:
            self._owned = None
            if self._guard is not None:
                self._guard.remove()
                self._guard = None

    def commit(self) -> None:
        """Always raises :class:`RuntimeError`; nothing is ever written here."""
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()
