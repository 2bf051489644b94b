"""Usage Stats — Fact Tables (Immutable)."""

from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import BigInteger, Column
from sqlmodel import SQLModel, Field


class Event(SQLModel, table=True):
    """One row each time a client uploads a batch of statistics.

    Dimension keys stay NULL when the active schema revision does not
    resolve that dimension.
    """

    __tablename__ = "events"

    event_id: Optional[int] = Field(default=None, primary_key=True)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    ip_address: str = Field(default="")
    user_id: Optional[int] = Field(default=None)
    country_id: Optional[int] = Field(default=None)
    language_id: Optional[int] = Field(default=None)
    timezone_id: Optional[int] = Field(default=None)
    os_id: Optional[int] = Field(default=None)
    java_id: Optional[int] = Field(default=None)


class Stat(SQLModel, table=True):
    """Usage count of one object within one upload."""

    __tablename__ = "stats"

    stat_id: Optional[int] = Field(default=None, primary_key=True)
    event_id: Optional[int] = Field(default=None, index=True)
    object_id: int = Field(index=True)
    count: int = Field(default=0, sa_column=Column(BigInteger, nullable=False, default=0))
