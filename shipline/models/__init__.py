"""ORM models.  Importing this package registers every table on Base.metadata."""

from shipline.models.user import Role, User
from shipline.models.vessel import Vessel, VesselStatus

__all__ = ["Role", "User", "Vessel", "VesselStatus"]
