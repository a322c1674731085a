"""
Tenant-scoped database handles.

CRITICAL: A handle obtained for tenant A can never read or write rows that
belong to tenant B. Isolation is enforced by session events on
TenantScopedSession, not by callers remembering to filter:

- Every ORM SELECT, UPDATE and DELETE issued through the handle gets a
  tenant_id criterion on each TenantScopedMixin entity it touches
  (including aliases, relationship loads and Session.get()).
- ORM INSERT statements must carry the handle's tenant_id on every row.
- ORM UPDATE statements may not assign tenant_id, and the bulk by-primary-key
  UPDATE form (a list of parameter rows) is rejected: its rows are matched by
  id alone.
- On flush, new tenant-scoped objects are stamped with the handle's
  tenant_id; objects carrying any other tenant_id abort the flush.
- Non-ORM statements (text(), Core table selects) are rejected because
  they cannot be scoped.

Global models (users, sessions, organizations, memberships, feature flags,
fuel type mappings) do not use TenantScopedMixin and pass through unfiltered.

Usage:
    from greenfleet.database.tenant_scope import get_session_for_tenant

    with get_session_for_tenant(tenant_id) as db:
        employees = db.query(Employee).all()   # only this tenant's rows
"""

import logging
from functools import lru_cache
from typing import Any, Iterable, List

from sqlalchemy import event
from sqlalchemy.orm import ORMExecuteState, Session, sessionmaker, with_loader_criteria

from greenfleet.models.base import TenantScopedMixin

logger = logging.getLogger(__name__)

TENANT_INFO_KEY = "tenant_id"


class TenantIsolationError(Exception):
    """Raised when an operation would cross the tenant boundary of a handle."""
    pass


class TenantScopedSession(Session):
    """
    Session bound to exactly one tenant.

    The tenant id lives in Session.info and is set once by the per-tenant
    sessionmaker; it is never changed on an existing session.
    """

    @property
    def tenant_id(self) -> str:
        return self.info[TENANT_INFO_KEY]


def _is_tenant_scoped(cls: Any) -> bool:
    return isinstance(cls, type) and issubclass(cls, TenantScopedMixin)


def _iter_param_rows(parameters: Any) -> Iterable[dict]:
    if not parameters:
        return []
    if isinstance(parameters, dict):
        return [parameters]
    return list(parameters)


def _set_clause_keys(statement: Any) -> List[str]:
    """Column names assigned by an UPDATE's values() or ordered_values()."""
    keys = list(getattr(statement, "_values", None) or ())
    keys += [key for key, _ in getattr(statement, "_ordered_values", None) or ()]
    return [getattr(key, "key", key) for key in keys]


@event.listens_for(TenantScopedSession, "do_orm_execute")
def _scope_statement_to_tenant(execute_state: ORMExecuteState) -> None:
    """Attach tenant criteria to every statement issued through the handle."""
    tenant_id = execute_state.session.info[TENANT_INFO_KEY]

    if not execute_state.is_orm_statement:
        logger.error(
            "Rejected non-ORM statement on tenant-scoped session",
            extra={"tenant_id": tenant_id},
        )
        raise TenantIsolationError(
            "Raw SQL cannot be scoped to a tenant; use ORM statements "
            "or the global session for cross-tenant work"
        )

    if execute_state.is_insert:
        mapper = execute_state.bind_mapper
        if mapper is not None and _is_tenant_scoped(mapper.class_):
            rows = _iter_param_rows(execute_state.parameters)
            if not rows:
                # insert().values(...) hides the rows from this hook
                raise TenantIsolationError(
                    f"Insert into {mapper.class_.__name__} must pass its rows as parameters"
                )
            for row in rows:
                if row.get("tenant_id") != tenant_id:
                    raise TenantIsolationError(
                        f"Insert into {mapper.class_.__name__} must target tenant {tenant_id}"
                    )
        return

    if execute_state.is_update or execute_state.is_delete:
        mapper = execute_state.bind_mapper
        if mapper is not None and _is_tenant_scoped(mapper.class_):
            name = mapper.class_.__name__
            if _iter_param_rows(execute_state.parameters):
                # Bulk by-primary-key form: rows are matched by id only
                raise TenantIsolationError(
                    f"Bulk {name} writes by primary key cannot be scoped to a tenant"
                )
            if execute_state.is_update and TENANT_INFO_KEY in _set_clause_keys(execute_state.statement):
                raise TenantIsolationError(f"Cannot reassign {name} rows to another tenant")

    if execute_state.is_select or execute_state.is_update or execute_state.is_delete:
        execute_state.statement = execute_state.statement.options(
            with_loader_criteria(
                TenantScopedMixin,
                lambda cls: cls.tenant_id == tenant_id,
                include_aliases=True,
            )
        )


@event.listens_for(TenantScopedSession, "before_flush")
def _enforce_tenant_on_flush(session: Session, flush_context, instances) -> None:
    """Stamp new objects and refuse writes to another tenant's rows."""
    tenant_id = session.info[TENANT_INFO_KEY]

    for obj in session.new:
        if not isinstance(obj, TenantScopedMixin):
            continue
        if obj.tenant_id is None:
            obj.tenant_id = tenant_id
        elif obj.tenant_id != tenant_id:
            logger.error(
                "Cross-tenant insert blocked",
                extra={
                    "tenant_id": tenant_id,
                    "object_tenant_id": obj.tenant_id,
                    "entity_type": type(obj).__name__,
                },
            )
            raise TenantIsolationError(
                f"Cannot insert {type(obj).__name__} for tenant {obj.tenant_id} "
                f"through a handle scoped to {tenant_id}"
            )

    for obj in list(session.dirty) + list(session.deleted):
        if isinstance(obj, TenantScopedMixin) and obj.tenant_id != tenant_id:
            logger.error(
                "Cross-tenant write blocked",
                extra={
                    "tenant_id": tenant_id,
                    "object_tenant_id": obj.tenant_id,
                    "entity_type": type(obj).__name__,
                },
            )
            raise TenantIsolationError(
                f"Cannot modify {type(obj).__name__} of tenant {obj.tenant_id} "
                f"through a handle scoped to {tenant_id}"
            )


@lru_cache(maxsize=None)
def _get_tenant_session_factory(tenant_id: str) -> sessionmaker:
    # Imported here: session.py imports this module to reset the cache.
    from greenfleet.database.session import get_engine

    logger.debug("Creating session factory for tenant", extra={"tenant_id": tenant_id})
    return sessionmaker(
        bind=get_engine(),
        class_=TenantScopedSession,
        autocommit=False,
        autoflush=False,
        info={TENANT_INFO_KEY: tenant_id},
    )


def get_session_for_tenant(tenant_id: str) -> TenantScopedSession:
    """
    Return a new session whose every query is confined to tenant_id.

    The per-tenant factory is memoized; each call returns a fresh session
    that the caller must close (use it as a context manager).

    Raises:
        ValueError: If tenant_id is empty
    """
    if not tenant_id or not isinstance(tenant_id, str):
        raise ValueError("tenant_id is required and cannot be empty")
    return _get_tenant_session_factory(tenant_id)()


def reset_tenant_session_factories() -> None:
    """Drop every cached tenant session factory (engine changes, tests)."""
    _get_tenant_session_factory.cache_clear()
