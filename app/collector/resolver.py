"""Usage Stats — Dimension Resolver.

Find-or-create lookups mapping natural keys onto surrogate keys. A miss is
followed by an "insert or ignore" and a second read, so two uploads racing
on the same new value both end up with the row the database kept.
"""

import re
from typing import Any, Dict, Optional, Type

from sqlalchemy import insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from app.core.dimension_registry import DimensionDefinition, SchemaRevision
from app.core.exceptions import (
    ConstraintViolationError,
    DatabaseConnectionError,
    StatementError,
)
from app.core.logging import get_logger
from app.models.dimension_models import PluginObject, UpdateSite
from app.models.payload_models import SitePayload, StatPayload, UsagePayload

logger = get_logger("collector.resolver")

# Early clients uploaded legacy command arguments verbatim, file paths included.
# Any legacy identifier with a path separator after the "?" keeps only the command.
LEGACY_PATH_PATTERN = re.compile(r"^(legacy:[^?]*)\?.*[/\\].*$", re.DOTALL)

# session.info key holding a Counter of rows created per table
NEW_ROWS_KEY = "new_rows"


def sanitize_identifier(identifier: str) -> str:
    """Strip file-path arguments from legacy plugin identifiers."""
    return LEGACY_PATH_PATTERN.sub(r"\1", identifier)


def _primary_key(model: Type[SQLModel]) -> str:
    return model.__table__.primary_key.columns.values()[0].name


def _insert_ignoring_conflicts(session: Session, model: Type[SQLModel], values: Dict[str, Any]):
    """Build a dialect-native INSERT that is a no-op on a unique-key clash."""
    table = model.__table__
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert(table).values(**values).on_conflict_do_nothing()
    if dialect == "sqlite":
        return sqlite_insert(table).values(**values).on_conflict_do_nothing()
    return insert(table).values(**values)


def _record_new_row(session: Session, table_name: str) -> None:
    """Count a created row in the upload tally, when one is being kept."""
    tally = session.info.get(NEW_ROWS_KEY)
    if tally is not None:
        tally[table_name] += 1


def _lookup(session: Session, model: Type[SQLModel], natural_key: Dict[str, str]) -> Optional[int]:
    pk = getattr(model, _primary_key(model))
    statement = select(pk).where(
        *(getattr(model, column) == value for column, value in natural_key.items())
    )
    return session.exec(statement).first()


def find_or_create(
    session: Session,
    model: Type[SQLModel],
    natural_key: Dict[str, str],
    defaults: Optional[Dict[str, Any]] = None,
) -> int:
    """Return the surrogate key for a natural key, inserting the row if absent.

    `defaults` only apply to a newly created row; an existing row is never
    updated.
    """
    table_name = model.__tablename__
    try:
        existing = _lookup(session, model, natural_key)
        if existing is not None:
            return existing

        result = session.connection().execute(
            _insert_ignoring_conflicts(session, model, {**(defaults or {}), **natural_key})
        )
        created = _lookup(session, model, natural_key)
    except IntegrityError as e:
        raise ConstraintViolationError(
            f"Conflicting {table_name} record", detail=str(e)
        ) from e
    except OperationalError as e:
        if e.connection_invalidated:
            raise DatabaseConnectionError(detail=str(e)) from e
        raise StatementError(detail=str(e)) from e
    except SQLAlchemyError as e:
        raise StatementError(detail=str(e)) from e

    if created is None:
        raise ConstraintViolationError(f"Conflicting {table_name} record")
    if result.rowcount == 1:
        _record_new_row(session, table_name)
        logger.debug(f"New {table_name} row {created}: {natural_key}")
    return created


def resolve_dimension(session: Session, dimension: DimensionDefinition, payload: UsagePayload) -> int:
    """Resolve one environment dimension of an upload."""
    return find_or_create(session, dimension.model, dimension.natural_key(payload))


def resolve_environment(
    session: Session, payload: UsagePayload, revision: SchemaRevision
) -> Dict[str, int]:
    """Resolve every environment dimension the revision tracks.

    Returns a mapping of events column (e.g. "country_id") to surrogate key.
    """
    return {
        dimension.key_column: resolve_dimension(session, dimension, payload)
        for dimension in revision.dimensions
    }


def resolve_site(session: Session, site: SitePayload) -> int:
    """Gets the site_id of an update site, creating it if needed."""
    return find_or_create(session, UpdateSite, {"name": site.name, "url": site.url})


def resolve_object(session: Session, stat: StatPayload, site_id: int) -> int:
    """Gets the object_id of a plugin object, creating it if needed."""
    return find_or_create(
        session,
        PluginObject,
        {"identifier": sanitize_identifier(stat.id), "version": stat.version},
        defaults={
            "site_id": site_id,
            "name": stat.name,
            "label": stat.label,
            "description": stat.description,
        },
    )
