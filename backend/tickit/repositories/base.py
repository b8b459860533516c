"""Generic repository base for SQLAlchemy 2.x.

This module centralizes persistence-only concerns shared by all repositories:
- Session resolution (injected Unit of Work session or the Flask-scoped one).
- Primary-key lookups, optionally with ``SELECT ... FOR UPDATE``.
- Equality filtering restricted to a per-repository whitelist.
- No business logic, no commit/rollback: services own transactions.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, and_, delete, func, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from tickit.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


class BaseRepository(Generic[E]):
    """Generic, persistence-only repository for a single aggregate.

    Subclasses MUST define:

    * ``model``: the SQLAlchemy mapped class.

    Subclasses MAY override:

    * ``_filterable_fields`` to whitelist equality filters.

    This class NEVER opens/commits/rolls back transactions.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """Initialise the repository with an optional SQLAlchemy session.

        When no explicit session is provided the repository falls back to the
        Flask-scoped session exposed by ``tickit.core.extensions``.

        :param session: Session shared across the Unit of Work scope.
        :type session: :class:`sqlalchemy.orm.Session` | None
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Return the injected session, else the Flask-scoped one."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    # ------------------------------ Extensibility ----------------------------

    def _pk_attr(self) -> InstrumentedAttribute[Any]:
        """Return the model's ``id`` attribute."""
        return cast(InstrumentedAttribute[Any], getattr(self.model, "id"))

    def _filterable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        """Whitelist mapping of public filter keys to model attributes.

        Unknown keys passed to :meth:`find_one`/:meth:`exists` raise
        ``ValueError`` so typos never widen a query.
        """
        return {}

    def _where(self, stmt: Select[Any], filters: Mapping[str, Any]) -> Select[Any]:
        allowed = self._filterable_fields()
        unknown = [k for k in filters if k not in allowed]
        if unknown:
            raise ValueError(f"Unknown or non-filterable fields: {unknown}")
        clauses = [allowed[k] == v for k, v in filters.items()]
        return stmt.where(and_(*clauses)) if clauses else stmt

    # --------------------------------- CRUD ----------------------------------

    def add(self, instance: E) -> E:
        """Stage a new entity and flush to materialize the PK (and hit constraints).

        :param instance: New entity instance.
        :type instance: E
        :returns: The same instance after ``flush()``.
        :rtype: E
        """
        self.session.add(instance)
        self.flush()
        return instance

    def get(self, entity_id: Any) -> E | None:
        """Retrieve a single entity by primary key.

        :param entity_id: Primary-key value.
        :returns: Entity or ``None``.
        """
        stmt = select(self.model).where(self._pk_attr() == entity_id)
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def get_for_update(self, entity_id: Any) -> E | None:
        """Retrieve an entity by PK with a ``FOR UPDATE`` row lock.

        Dialects without row locks (SQLite) ignore the clause; the write lock
        taken by the first statement of the transaction serializes instead.

        :param entity_id: Primary-key value.
        :returns: Locked entity or ``None``.
        """
        stmt = select(self.model).where(self._pk_attr() == entity_id).with_for_update()
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def find_one(self, **filters: Any) -> E | None:
        """Find a single entity by whitelisted equality filters."""
        stmt = self._where(select(self.model), filters)
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def exists(self, **filters: Any) -> bool:
        """Return ``True`` when at least one row matches the equality filters."""
        stmt = self._where(select(func.count()).select_from(self.model), filters)
        return bool(self.session.execute(stmt).scalar())

    def delete(self, instance: E) -> None:
        """Delete an entity and flush changes."""
        self.session.delete(instance)
        self.flush()

    def delete_where(self, **filters: Any) -> int:
        """Bulk-delete rows matching whitelisted equality filters.

        :returns: Number of deleted rows (as reported by the driver).
        """
        if not filters:
            raise ValueError("delete_where requires at least one filter.")
        allowed = self._filterable_fields()
        unknown = [k for k in filters if k not in allowed]
        if unknown:
            raise ValueError(f"Unknown or non-filterable fields: {unknown}")
        stmt = delete(self.model).where(*[allowed[k] == v for k, v in filters.items()])
        result = self.session.execute(stmt.execution_options(synchronize_session="fetch"))
        return int(getattr(result, "rowcount", 0) or 0)

    def flush(self) -> None:
        """Flush pending changes to the database without committing."""
        self.session.flush()
