# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the auth endpoints."""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_serializer

from shipline.models.user import Role
from shipline.models.vessel import as_utc


# -- Requests --------------------------------------------------------------

UserIdStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9_-]+$"),
]


class LoginRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    user_id: UserIdStr = Field(alias="userId")
    password: str = Field(min_length=6, max_length=128)


# -- Responses -------------------------------------------------------------


class UserPublic(BaseModel):
    """Outward projection of a User row – never carries the hash."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    user_id: str = Field(alias="userId")
    role: Role
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @field_serializer("created_at", "updated_at")
    def serialise_utc(self, value: datetime) -> datetime:
        return as_utc(value)


class UserResponse(BaseModel):
    user: UserPublic


class LoginResponse(BaseModel):
    message: str
    user: UserPublic


class MessageResponse(BaseModel):
    message: str


class CheckAuthResponse(BaseModel):
    authenticated: bool
    user: Optional[UserPublic] = None
