"""Usage Stats — Upload Pipeline.

Runs the full data flow for one upload:
  ensure schema → resolve environment → write event → per site: resolve site
  → per stat: resolve object, write stat → commit

The whole upload is one transaction; any failure rolls it back.
"""

import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.config import settings
from app.collector.resolver import (
    NEW_ROWS_KEY,
    resolve_environment,
    resolve_object,
    resolve_site,
)
from app.collector.writer import write_event, write_stat
from app.core.dimension_registry import get_revision
from app.core.exceptions import CollectorError, StatementError
from app.core.logging import get_logger
from app.database import check_connection, ensure_schema
from app.models.payload_models import UsagePayload

logger = get_logger("collector.pipeline")


@dataclass
class UploadResult:
    """Summary of one stored upload."""

    event_id: Optional[int]
    sites: int
    stats: int
    new_rows: Dict[str, int] = field(default_factory=dict)  # table -> rows created


def process_upload(
    session: Session,
    payload: UsagePayload,
    ip_address: str = "",
    timestamp: Optional[datetime] = None,
    revision: Optional[int] = None,
) -> UploadResult:
    """Store one upload, returning what was written.

    Raises a CollectorError subclass on failure, after rolling back.
    """
    schema = get_revision(revision or settings.schema_revision)
    bind = session.get_bind()
    check_connection(bind)
    ensure_schema(bind, schema.number)

    timestamp = timestamp or datetime.now(timezone.utc)
    started = time.perf_counter()
    new_rows: Counter = Counter()
    session.info[NEW_ROWS_KEY] = new_rows
    stats_written = 0
    try:
        dimension_ids = resolve_environment(session, payload, schema)
        event_id = None
        if schema.models_events:
            event_id = write_event(session, timestamp, ip_address, dimension_ids)

        for site in payload.sites:
            site_id = resolve_site(session, site)
            for stat in site.stats:
                object_id = resolve_object(session, stat, site_id)
                write_stat(session, event_id, object_id, stat.count)
                stats_written += 1

        session.commit()
    except CollectorError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        raise StatementError(detail=str(e)) from e
    finally:
        session.info.pop(NEW_ROWS_KEY, None)

    result = UploadResult(
        event_id=event_id,
        sites=len(payload.sites),
        stats=stats_written,
        new_rows=dict(new_rows),
    )
    logger.info(
        f"Stored upload: {result.sites} sites, {result.stats} stats, "
        f"{sum(new_rows.values())} new dimension rows",
        extra={
            "ip_address": ip_address,
            "event_id": event_id,
            "sites": result.sites,
            "stats": result.stats,
            "new_rows": result.new_rows,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        },
    )
    return result
