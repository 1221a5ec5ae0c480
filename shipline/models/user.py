# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""User ORM model."""

import enum

from sqlalchemy import Column, Integer, String, Enum, DateTime
from sqlalchemy.sql import func

from shipline.database import Base


class Role(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Login handle: 3-50 chars of [A-Za-z0-9_-]
    user_id = Column(String(50), unique=True, nullable=False, index=True)
    # passlib pbkdf2_sha256 string; the salt is embedded in it
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(*[r.value for r in Role], name="user_role"),
        nullable=False,
        default=Role.USER.value,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def role_enum(self) -> Role:
        return Role(self.role)
