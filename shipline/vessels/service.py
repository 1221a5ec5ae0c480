# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Vessel query engine – create, list (search / filter / sort / paginate),
fetch, partial update, delete, bulk delete and dashboard statistics.

Invariants
----------
* Ids are checked for shape before any query runs (``InvalidIdFormat``).
* Uniqueness of (vessel_name, voyage_no) is left to the database index;
  the resulting IntegrityError is remapped to ``DuplicateVessel``.
* ETD > ETA is checked by the request schema and again by the model hook
  and CHECK constraint, so a partial update that only moves one side is
  still measured against the stored value of the other.
* Sort keys come from a fixed whitelist; ties are broken by id so pages
  never overlap.
"""

import math
import re
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from sqlalchemy import distinct, extract, func, literal, literal_column, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from shipline.core.errors import (
    DatabaseError,
    DuplicateVessel,
    InvalidIdFormat,
    RequestTimeout,
    VesselNotFound,
    is_schedule_violation,
    is_unique_violation,
    translate,
)
from shipline.core.logger import logger
from shipline.models.vessel import ScheduleError, Vessel, as_utc
from shipline.vessels.schemas import (
    Pagination,
    UpcomingArrival,
    UpcomingDeparture,
    VesselCreate,
    VesselListQuery,
    VesselListResponse,
    VesselOut,
    VesselStatistics,
    VesselStatsResponse,
    VesselUpdate,
)

# API sort key → column
_SORT_COLUMNS = {
    "vesselName": Vessel.vessel_name,
    "voyageNo": Vessel.voyage_no,
    "country": Vessel.country,
    "portName": Vessel.port_name,
    "ETA": Vessel.eta,
    "ETD": Vessel.etd,
    "createdAt": Vessel.created_at,
    "updatedAt": Vessel.updated_at,
}

# Columns searched by the free-text ``q`` parameter
_TEXT_COLUMNS = (Vessel.vessel_name, Vessel.voyage_no, Vessel.port_name, Vessel.country)

_TERM_RE = re.compile(r'"([^"]+)"|(\S+)')

UPCOMING_WINDOW = timedelta(days=7)
UPCOMING_LIMIT = 5


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def is_valid_id(value: str) -> bool:
    """Canonical UUID text, e.g. ``0b6f7c1e-5d0a-4c0e-9a51-3f2b8e7d9c10``."""
    try:
        return str(uuid.UUID(value)) == value.lower()
    except (ValueError, AttributeError, TypeError):
        return False


def _check_id(vessel_id: str) -> None:
    if not is_valid_id(vessel_id):
        raise InvalidIdFormat()


def _like(value: str) -> str:
    """Contains-pattern with LIKE wildcards in *value* escaped."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _contains(column, value: str):
    return column.ilike(_like(value), escape="\\")


def search_terms(q: str) -> list[str]:
    """Split *q* on whitespace, keeping double-quoted phrases whole."""
    return [phrase or word for phrase, word in _TERM_RE.findall(q) if (phrase or word).strip()]


def _commit(db: Session) -> None:
    """
    Commit, remapping store-level constraint failures onto the taxonomy.

    A session whose request deadline has already passed is rolled back
    instead, so a timed-out write never lands.
    """
    deadline = db.info.get("deadline")
    if deadline is not None and time.monotonic() > deadline:
        db.rollback()
        logger.error("Write abandoned: request deadline passed before commit")
        raise RequestTimeout()
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if is_unique_violation(exc):
            raise DuplicateVessel() from exc
        if is_schedule_violation(exc):
            raise translate(ScheduleError()) from exc
        raise DatabaseError() from exc
    except ScheduleError as exc:
        db.rollback()
        raise translate(exc) from exc


def _load(db: Session, vessel_id: str) -> Vessel:
    _check_id(vessel_id)
    vessel = db.get(Vessel, vessel_id.lower())
    if vessel is None:
        raise VesselNotFound()
    return vessel


# ---------------------------------------------------------------------------
# Query building
# ---------------------------------------------------------------------------


def apply_filters(query: Query, params: VesselListQuery) -> Query:
    """
    AND together: free-text search (any term in any text column), per-field
    case-insensitive contains, and inclusive date-range bounds.
    """
    if params.q:
        terms = search_terms(params.q)
        if terms:
            query = query.filter(
                or_(*(_contains(column, term) for term in terms for column in _TEXT_COLUMNS))
            )

    if params.vesselName:
        query = query.filter(_contains(Vessel.vessel_name, params.vesselName))
    if params.country:
        query = query.filter(_contains(Vessel.country, params.country))
    if params.portName:
        query = query.filter(_contains(Vessel.port_name, params.portName))

    if params.fromETA:
        query = query.filter(Vessel.eta >= params.fromETA)
    if params.toETA:
        query = query.filter(Vessel.eta <= params.toETA)
    if params.fromETD:
        query = query.filter(Vessel.etd >= params.fromETD)
    if params.toETD:
        query = query.filter(Vessel.etd <= params.toETD)
    return query


def apply_sort(query: Query, sort: str) -> Query:
    descending = sort.startswith("-")
    column = _SORT_COLUMNS[sort.lstrip("-")]
    primary = column.desc() if descending else column.asc()
    return query.order_by(primary, Vessel.id.asc())


def paginate(total: int, page: int, limit: int) -> Pagination:
    total_pages = math.ceil(total / limit) if total else 0
    return Pagination(
        page=page,
        limit=limit,
        total=total,
        totalPages=total_pages,
        hasNextPage=page < total_pages,
        hasPreviousPage=page > 1,
    )


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def create_vessel(db: Session, body: VesselCreate) -> Vessel:
    vessel = Vessel(**body.model_dump())
    db.add(vessel)
    _commit(db)
    db.refresh(vessel)
    logger.info("Vessel created id=%s name=%s voyage=%s", vessel.id, vessel.vessel_name, vessel.voyage_no)
    return vessel


def list_vessels(db: Session, params: VesselListQuery) -> VesselListResponse:
    """One page of matching vessels plus the pagination envelope."""
    filtered = apply_filters(db.query(Vessel), params)

    # Page fetch and count share the same filter; an empty match is a normal
    # result with total == 0, not an error.
    total = filtered.order_by(None).count()
    rows = (
        apply_sort(filtered, params.sort)
        .offset((params.page - 1) * params.limit)
        .limit(params.limit)
        .all()
    )

    return VesselListResponse(
        data=[VesselOut.model_validate(row) for row in rows],
        pagination=paginate(total, params.page, params.limit),
        filters=params.filters(),
        sort=params.sort,
    )


def get_vessel(db: Session, vessel_id: str) -> Vessel:
    return _load(db, vessel_id)


def update_vessel(db: Session, vessel_id: str, body: VesselUpdate) -> Vessel:
    vessel = _load(db, vessel_id)
    changes = body.changes()
    for field, value in changes.items():
        setattr(vessel, field, value)
    _commit(db)
    db.refresh(vessel)
    logger.info("Vessel updated id=%s fields=%s", vessel.id, ",".join(sorted(changes)) or "-")
    return vessel


def delete_vessel(db: Session, vessel_id: str) -> VesselOut:
    """Delete and return a snapshot of the row as it was."""
    vessel = _load(db, vessel_id)
    snapshot = VesselOut.model_validate(vessel)
    db.delete(vessel)
    _commit(db)
    logger.info("Vessel deleted id=%s", vessel_id)
    return snapshot


def bulk_delete_vessels(db: Session, ids: Iterable[str]) -> int:
    """
    All-or-nothing on id shape: a single malformed id rejects the whole
    batch before anything is deleted.  Unknown (well-formed) ids are
    simply not counted.
    """
    ids = list(ids)
    if not all(isinstance(i, str) and is_valid_id(i) for i in ids):
        raise InvalidIdFormat("Some vessel IDs are invalid")

    deleted = (
        db.query(Vessel)
        .filter(Vessel.id.in_([i.lower() for i in ids]))
        .delete(synchronize_session=False)
    )
    _commit(db)
    logger.info("Bulk delete removed %d of %d requested vessels", deleted, len(ids))
    return deleted


def _days_from(now: datetime, column, dialect: str):
    """SQL expression for the signed number of days from *now* to *column*."""
    at = literal(now, type_=column.type)
    if dialect == "sqlite":
        return func.julianday(column) - func.julianday(at)
    if dialect == "postgresql":
        return extract("epoch", column - at) / 86400.0
    # MySQL / MariaDB
    return func.timestampdiff(literal_column("SECOND"), at, column) / 86400.0


def vessel_stats(db: Session, now: Optional[datetime] = None) -> VesselStatsResponse:
    """
    Dashboard aggregates.  An empty store yields zeroed statistics and
    empty upcoming lists.  Counts and average ETA/ETD offsets are computed
    by the store in a single round-trip; no vessel rows are loaded for them.
    """
    now = as_utc(now) if now else datetime.now(timezone.utc)
    horizon = now + UPCOMING_WINDOW
    dialect = db.get_bind().dialect.name

    total, countries, ports, eta_days, etd_days = db.query(
        func.count(Vessel.id),
        func.count(distinct(Vessel.country)),
        func.count(distinct(Vessel.port_name)),
        func.avg(_days_from(now, Vessel.eta, dialect)),
        func.avg(_days_from(now, Vessel.etd, dialect)),
    ).one()

    statistics = VesselStatistics()
    if total:
        statistics = VesselStatistics(
            totalVessels=total,
            totalCountries=countries,
            totalPorts=ports,
            avgETADays=round(float(eta_days), 1),
            avgETDDays=round(float(etd_days), 1),
        )

    arrivals = (
        db.query(Vessel)
        .filter(Vessel.eta >= now, Vessel.eta <= horizon)
        .order_by(Vessel.eta.asc())
        .limit(UPCOMING_LIMIT)
        .all()
    )
    departures = (
        db.query(Vessel)
        .filter(Vessel.etd >= now, Vessel.etd <= horizon)
        .order_by(Vessel.etd.asc())
        .limit(UPCOMING_LIMIT)
        .all()
    )

    return VesselStatsResponse(
        statistics=statistics,
        upcomingArrivals=[UpcomingArrival.model_validate(v) for v in arrivals],
        upcomingDepartures=[UpcomingDeparture.model_validate(v) for v in departures],
    )
