"""Territory library — street range registry, address resolution and proximity search.

Public API:
    - RangeRecord / Side: street segment ranges and their parity constraint
    - validate_range: check a candidate range against a street's active ranges
    - find_candidates / find_catch_all_candidates: ordered range candidates
    - RangeRegistry: registry over a RangeStore with street existence checks
    - AddressResolver: street + number or block/lot -> quadrant -> sector
    - address_kind_from_fields: build Numbered / BlockLot / Both from a draft
    - near / GridIndex: quadrants within a radius of a point
    - TerritorialCatalogGateway / RangeStore: interfaces consumed by the core
    - TerritoryError and subclasses: typed resolution outcomes
"""

from territory_api.lib.territory.errors import (
    ConcurrentRangeEdit,
    ConflictError,
    GeocoderUnavailable,
    InvalidArgument,
    InvalidRange,
    NoCoverage,
    NoGeocodeMatch,
    NotFound,
    ResolutionError,
    TerritoryError,
)
from territory_api.lib.territory.gateway import RangeStore, TerritorialCatalogGateway
from territory_api.lib.territory.geo import bounding_box, haversine_km, polygon_centroid, validate_coordinates
from territory_api.lib.territory.numbers import normalize_block, parse_municipal_number
from territory_api.lib.territory.proximity import GridIndex, NearbyQuadrant, near
from territory_api.lib.territory.ranges import (
    MAX_PRIORITY,
    MIN_PRIORITY,
    RangeRegistry,
    find_candidates,
    find_catch_all_candidates,
    sides_overlap,
    validate_range,
)
from territory_api.lib.territory.resolver import AddressResolver, address_kind_from_fields
from territory_api.lib.territory.types import (
    AddressKind,
    Assignment,
    BlockLot,
    Both,
    Numbered,
    QuadrantPoint,
    QuadrantRef,
    RangeConflict,
    RangeRecord,
    RangeValidation,
    SectorRef,
    Side,
    StreetRef,
)

__all__ = [
    "MAX_PRIORITY",
    "MIN_PRIORITY",
    "AddressKind",
    "AddressResolver",
    "Assignment",
    "BlockLot",
    "Both",
    "ConcurrentRangeEdit",
    "ConflictError",
    "GeocoderUnavailable",
    "GridIndex",
    "InvalidArgument",
    "InvalidRange",
    "NearbyQuadrant",
    "NoCoverage",
    "NoGeocodeMatch",
    "NotFound",
    "Numbered",
    "QuadrantPoint",
    "QuadrantRef",
    "RangeConflict",
    "RangeRecord",
    "RangeRegistry",
    "RangeStore",
    "RangeValidation",
    "ResolutionError",
    "SectorRef",
    "Side",
    "StreetRef",
    "TerritorialCatalogGateway",
    "TerritoryError",
    "address_kind_from_fields",
    "bounding_box",
    "find_candidates",
    "find_catch_all_candidates",
    "haversine_km",
    "near",
    "normalize_block",
    "parse_municipal_number",
    "polygon_centroid",
    "sides_overlap",
    "validate_coordinates",
    "validate_range",
]
