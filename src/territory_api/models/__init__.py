"""ORM model registry — import all models so Alembic autogenerate discovers them."""

from territory_api.models.address import Address
from territory_api.models.quadrant import Quadrant
from territory_api.models.sector import Sector
from territory_api.models.street import Street
from territory_api.models.street_range import StreetRange
from territory_api.models.subsector import Subsector
from territory_api.models.user import User

__all__ = [
    "Address",
    "Quadrant",
    "Sector",
    "Street",
    "StreetRange",
    "Subsector",
    "User",
]
