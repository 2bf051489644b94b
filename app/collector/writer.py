"""Usage Stats — Fact Writer."""

from datetime import datetime
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.exceptions import StatementError
from app.models.fact_models import Event, Stat


def write_event(
    session: Session,
    timestamp: datetime,
    ip_address: str,
    dimension_ids: Dict[str, int],
) -> int:
    """Inserts a row into the events table, returning the new event ID."""
    event = Event(timestamp=timestamp, ip_address=ip_address, **dimension_ids)
    try:
        session.add(event)
        session.flush()
    except SQLAlchemyError as e:
        raise StatementError(detail=str(e)) from e
    return event.event_id


def write_stat(session: Session, event_id: Optional[int], object_id: int, count: int) -> Stat:
    """Inserts a row into the stats table."""
    stat = Stat(event_id=event_id, object_id=object_id, count=count)
    try:
        session.add(stat)
        session.flush()
    except SQLAlchemyError as e:
        raise StatementError(detail=str(e)) from e
    return stat
