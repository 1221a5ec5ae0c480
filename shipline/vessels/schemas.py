# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Pydantic request / response models for the vessel endpoints.

Wire names follow the client contract (``vesselName``, ``voyageNo``,
``ETA`` …); Python attributes follow the ORM columns.  Every incoming
timestamp is normalised to UTC here, before it reaches the store.
"""

from datetime import datetime, timezone
from typing import Annotated, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    ValidationInfo,
    computed_field,
    field_serializer,
    field_validator,
)

from shipline.models.vessel import SCHEDULE_MESSAGE, VesselStatus, as_utc, derive_status

_EARLIEST = datetime(1900, 1, 1, tzinfo=timezone.utc)

VesselName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100, pattern=r"^[a-zA-Z0-9\s\-_.()]+$")
]
VoyageNo = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50, pattern=r"^[a-zA-Z0-9\s\-_]+$")
]
Country = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=2, max_length=60, pattern=r"^[a-zA-Z\s\-.'()]+$")
]
PortName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=2, max_length=80, pattern=r"^[a-zA-Z0-9\s\-_.()]+$")
]

SORT_FIELDS = ("vesselName", "voyageNo", "country", "portName", "ETA", "ETD", "createdAt", "updatedAt")

SortKey = Literal[
    "vesselName", "voyageNo", "country", "portName", "ETA", "ETD", "createdAt", "updatedAt",
    "-vesselName", "-voyageNo", "-country", "-portName", "-ETA", "-ETD", "-createdAt", "-updatedAt",
]


def normalise_timestamp(value: Optional[datetime]) -> Optional[datetime]:
    """UTC-normalise and reject anything not after 1900-01-01."""
    if value is None:
        return None
    value = as_utc(value)
    if value <= _EARLIEST:
        raise ValueError("Must be a valid date after 1900-01-01")
    return value


# -- Requests --------------------------------------------------------------


class VesselCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    vessel_name: VesselName = Field(alias="vesselName")
    voyage_no: VoyageNo = Field(alias="voyageNo")
    country: Country
    port_name: PortName = Field(alias="portName")
    eta: datetime = Field(alias="ETA")
    etd: datetime = Field(alias="ETD")

    normalise_timestamps = field_validator("eta", "etd")(normalise_timestamp)

    @field_validator("etd")
    @classmethod
    def etd_after_eta(cls, value: datetime, info: ValidationInfo) -> datetime:
        eta = info.data.get("eta")
        if eta is not None and value <= eta:
            raise ValueError(SCHEDULE_MESSAGE)
        return value


class VesselUpdate(BaseModel):
    """Partial update – ETD > ETA is only checked here when both are sent."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    vessel_name: Optional[VesselName] = Field(default=None, alias="vesselName")
    voyage_no: Optional[VoyageNo] = Field(default=None, alias="voyageNo")
    country: Optional[Country] = None
    port_name: Optional[PortName] = Field(default=None, alias="portName")
    eta: Optional[datetime] = Field(default=None, alias="ETA")
    etd: Optional[datetime] = Field(default=None, alias="ETD")

    normalise_timestamps = field_validator("eta", "etd")(normalise_timestamp)

    @field_validator("etd")
    @classmethod
    def etd_after_eta(cls, value: Optional[datetime], info: ValidationInfo) -> Optional[datetime]:
        eta = info.data.get("eta")
        if value is not None and eta is not None and value <= eta:
            raise ValueError(SCHEDULE_MESSAGE)
        return value

    def changes(self) -> dict:
        """Only the columns the client actually sent (explicit nulls ignored)."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class BulkDeleteRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ids: list[str] = Field(min_length=1, max_length=1000)


class VesselListQuery(BaseModel):
    """
    Query-string model for ``GET /api/vessels``.  Unknown keys are rejected;
    ``_t`` is accepted (and ignored) so clients can bust caches.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    cache_buster: Optional[str] = Field(default=None, alias="_t")
    q: Optional[str] = Field(default=None, max_length=200)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    sort: SortKey = "-ETA"
    vesselName: Optional[str] = Field(default=None, max_length=100)
    country: Optional[str] = Field(default=None, max_length=60)
    portName: Optional[str] = Field(default=None, max_length=80)
    fromETA: Optional[datetime] = None
    toETA: Optional[datetime] = None
    fromETD: Optional[datetime] = None
    toETD: Optional[datetime] = None

    normalise_timestamps = field_validator("fromETA", "toETA", "fromETD", "toETD")(normalise_timestamp)

    def filters(self) -> dict:
        return {
            "q": self.q,
            "vesselName": self.vesselName,
            "country": self.country,
            "portName": self.portName,
            "fromETA": self.fromETA,
            "toETA": self.toETA,
            "fromETD": self.fromETD,
            "toETD": self.toETD,
        }


# -- Responses -------------------------------------------------------------


class VesselOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    vessel_name: str = Field(alias="vesselName")
    voyage_no: str = Field(alias="voyageNo")
    country: str
    port_name: str = Field(alias="portName")
    eta: datetime = Field(alias="ETA")
    etd: datetime = Field(alias="ETD")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @field_serializer("eta", "etd", "created_at", "updated_at")
    def serialise_utc(self, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @computed_field
    @property
    def status(self) -> VesselStatus:
        return derive_status(self.eta, self.etd)


class VesselResponse(BaseModel):
    vessel: VesselOut


class VesselMessageResponse(BaseModel):
    message: str
    vessel: VesselOut


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int
    hasNextPage: bool
    hasPreviousPage: bool


class VesselListResponse(BaseModel):
    data: list[VesselOut]
    pagination: Pagination
    filters: dict
    sort: str


class BulkDeleteResponse(BaseModel):
    message: str
    deletedCount: int


class VesselStatistics(BaseModel):
    totalVessels: int = 0
    totalCountries: int = 0
    totalPorts: int = 0
    avgETADays: float = 0
    avgETDDays: float = 0


class UpcomingArrival(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    vessel_name: str = Field(alias="vesselName")
    voyage_no: str = Field(alias="voyageNo")
    eta: datetime = Field(alias="ETA")
    port_name: str = Field(alias="portName")

    @field_serializer("eta")
    def serialise_utc(self, value: datetime) -> datetime:
        return as_utc(value)


class UpcomingDeparture(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    vessel_name: str = Field(alias="vesselName")
    voyage_no: str = Field(alias="voyageNo")
    etd: datetime = Field(alias="ETD")
    port_name: str = Field(alias="portName")

    @field_serializer("etd")
    def serialise_utc(self, value: datetime) -> datetime:
        return as_utc(value)


class VesselStatsResponse(BaseModel):
    statistics: VesselStatistics
    upcomingArrivals: list[UpcomingArrival]
    upcomingDepartures: list[UpcomingDeparture]
