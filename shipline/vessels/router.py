# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Vessel endpoints – public schedule reads, authenticated writes.

Access rules
------------
* list / get-by-id are public.
* create / update / delete / stats need a logged-in user (any role).
* bulk delete is admin only.
* Every route shares the 60 requests/minute API budget.

``/stats`` and ``/bulk`` are declared before ``/{vessel_id}`` so they are
not swallowed by the path parameter.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from shipline.core.ratelimit import api_rate_limit
from shipline.core.security import get_current_user, require_admin
from shipline.database import get_db
from shipline.models.user import User
from shipline.vessels import service
from shipline.vessels.schemas import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    VesselCreate,
    VesselListQuery,
    VesselListResponse,
    VesselMessageResponse,
    VesselOut,
    VesselResponse,
    VesselStatsResponse,
    VesselUpdate,
)

router = APIRouter(
    prefix="/api/vessels",
    tags=["vessels"],
    dependencies=[Depends(api_rate_limit)],
)


# ---------------------------------------------------------------------------
# POST /api/vessels  – create a schedule entry
# ---------------------------------------------------------------------------


@router.post("", response_model=VesselMessageResponse, status_code=status.HTTP_201_CREATED)
def create_vessel(
    body: VesselCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    vessel = service.create_vessel(db, body)
    return VesselMessageResponse(
        message="Vessel created successfully",
        vessel=VesselOut.model_validate(vessel),
    )


# ---------------------------------------------------------------------------
# GET /api/vessels  – search / filter / sort / paginate
# ---------------------------------------------------------------------------


@router.get("", response_model=VesselListResponse)
def list_vessels(
    params: Annotated[VesselListQuery, Query()],
    db: Session = Depends(get_db),
):
    """Public listing; see ``VesselListQuery`` for the accepted parameters."""
    return service.list_vessels(db, params)


# ---------------------------------------------------------------------------
# GET /api/vessels/stats  – dashboard aggregates
# ---------------------------------------------------------------------------


@router.get("/stats", response_model=VesselStatsResponse)
def vessel_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return service.vessel_stats(db)


# ---------------------------------------------------------------------------
# DELETE /api/vessels/bulk  – admin-only batch delete
# ---------------------------------------------------------------------------


@router.delete("/bulk", response_model=BulkDeleteResponse)
def bulk_delete_vessels(
    body: BulkDeleteRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Rejects the whole batch if any id is malformed; nothing is deleted then."""
    deleted = service.bulk_delete_vessels(db, body.ids)
    return BulkDeleteResponse(
        message=f"Successfully deleted {deleted} vessels",
        deletedCount=deleted,
    )


# ---------------------------------------------------------------------------
# GET /api/vessels/{id}
# ---------------------------------------------------------------------------


@router.get("/{vessel_id}", response_model=VesselResponse)
def get_vessel(vessel_id: str, db: Session = Depends(get_db)):
    vessel = service.get_vessel(db, vessel_id)
    return VesselResponse(vessel=VesselOut.model_validate(vessel))


# ---------------------------------------------------------------------------
# PUT /api/vessels/{id}  – partial update
# ---------------------------------------------------------------------------


@router.put("/{vessel_id}", response_model=VesselMessageResponse)
def update_vessel(
    vessel_id: str,
    body: VesselUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    vessel = service.update_vessel(db, vessel_id, body)
    return VesselMessageResponse(
        message="Vessel updated successfully",
        vessel=VesselOut.model_validate(vessel),
    )


# ---------------------------------------------------------------------------
# DELETE /api/vessels/{id}
# ---------------------------------------------------------------------------


@router.delete("/{vessel_id}", response_model=VesselMessageResponse)
def delete_vessel(
    vessel_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    snapshot = service.delete_vessel(db, vessel_id)
    return VesselMessageResponse(message="Vessel deleted successfully", vessel=snapshot)
