# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Vessel schedule ORM model – one row per vessel voyage call.

Store-level invariants
----------------------
* (vessel_name, voyage_no) is unique – enforced by the database index.
* ETD is strictly after ETA – enforced twice: by a CHECK constraint and by
  a mapper hook that raises :class:`ScheduleError` before the row is
  flushed, so the API can report it against the ETD field.

All timestamps are written in UTC.  Some backends (SQLite) hand them back
naive; :func:`as_utc` restores the zone before any comparison.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Index,
    String,
    UniqueConstraint,
    event,
)
from sqlalchemy.sql import func

from shipline.database import Base

SCHEDULE_MESSAGE = "Estimated Time of Departure must be after Estimated Time of Arrival"


class ScheduleError(ValueError):
    """Raised when a row would be stored with ETD <= ETA."""

    field = "ETD"

    def __init__(self, message: str = SCHEDULE_MESSAGE):
        super().__init__(message)


class VesselStatus(str, enum.Enum):
    UPCOMING = "UPCOMING"
    AT_PORT = "AT PORT"
    DEPARTED = "DEPARTED"


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def derive_status(eta: datetime, etd: datetime, now: Optional[datetime] = None) -> VesselStatus:
    """
    Status is never stored: it is recomputed from the clock on every read.
    """
    now = as_utc(now) if now else datetime.now(timezone.utc)
    if now < as_utc(eta):
        return VesselStatus.UPCOMING
    if now <= as_utc(etd):
        return VesselStatus.AT_PORT
    return VesselStatus.DEPARTED


def _new_id() -> str:
    return str(uuid.uuid4())


class Vessel(Base):
    __tablename__ = "vessels"

    id = Column(String(36), primary_key=True, default=_new_id)
    vessel_name = Column(String(100), nullable=False, index=True)
    voyage_no = Column(String(50), nullable=False, index=True)
    country = Column(String(60), nullable=False, index=True)
    port_name = Column(String(80), nullable=False, index=True)
    eta = Column(DateTime(timezone=True), nullable=False, index=True)
    etd = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("vessel_name", "voyage_no", name="uq_vessels_name_voyage"),
        CheckConstraint("etd > eta", name="ck_vessels_etd_after_eta"),
        Index("idx_vessels_created_at", "created_at"),
    )

    @property
    def status(self) -> VesselStatus:
        return derive_status(self.eta, self.etd)

    def ensure_schedule(self) -> None:
        if self.eta is not None and self.etd is not None and as_utc(self.etd) <= as_utc(self.eta):
            raise ScheduleError()


@event.listens_for(Vessel, "before_insert")
@event.listens_for(Vessel, "before_update")
def _check_schedule(mapper, connection, target: Vessel) -> None:
    target.ensure_schedule()
