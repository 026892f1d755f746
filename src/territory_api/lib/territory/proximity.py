"""Proximity search — quadrants whose center lies within a radius of a point.

:func:`near` is a linear scan; :class:`GridIndex` buckets quadrant centers
into a lat/lng grid so large catalogs only measure quadrants in nearby
cells. Both apply the same inclusion test (haversine distance ``<=``
radius) and the same ordering (nearest first, ties by quadrant code).
"""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Iterable
from typing import NamedTuple

from territory_api.lib.territory.errors import InvalidArgument
from territory_api.lib.territory.geo import bounding_box, haversine_km, validate_coordinates, validate_radius
from territory_api.lib.territory.types import QuadrantPoint


class NearbyQuadrant(NamedTuple):
    quadrant: QuadrantPoint
    distance_km: float


def _check_query(lat: float, lng: float, radius_km: float) -> InvalidArgument | None:
    try:
        validate_coordinates(lat, lng)
        validate_radius(radius_km)
    except InvalidArgument as e:
        return e
    return None


def _measure(lat: float, lng: float, radius_km: float, quadrants: Iterable[QuadrantPoint]) -> list[NearbyQuadrant]:
    hits = []
    for quadrant in quadrants:
        distance = haversine_km(lat, lng, quadrant.latitude, quadrant.longitude)
        if distance <= radius_km:
            hits.append(NearbyQuadrant(quadrant, distance))
    hits.sort(key=lambda hit: (hit.distance_km, hit.quadrant.code))
    return hits


def near(
    lat: float,
    lng: float,
    radius_km: float,
    quadrants: Iterable[QuadrantPoint],
) -> list[NearbyQuadrant] | InvalidArgument:
    """Find quadrants whose center is within ``radius_km`` of a point.

    Args:
        lat: Query latitude in degrees.
        lng: Query longitude in degrees.
        radius_km: Search radius in kilometers; a quadrant exactly at the
            radius is included.
        quadrants: Quadrants to consider.

    Returns:
        ``(quadrant, distance_km)`` pairs nearest first, ties broken by
        quadrant code; InvalidArgument for out-of-range input.
    """
    problem = _check_query(lat, lng, radius_km)
    if problem is not None:
        return problem
    return _measure(lat, lng, radius_km, quadrants)


class GridIndex:
    """Uniform lat/lng grid over quadrant centers.

    Args:
        quadrants: Quadrants to index.
        cell_deg: Cell edge length in degrees.
    """

    def __init__(self, quadrants: Iterable[QuadrantPoint], cell_deg: float = 0.05) -> None:
        if cell_deg <= 0:
            msg = f"cell_deg must be positive, got {cell_deg}"
            raise ValueError(msg)
        self.cell_deg = cell_deg
        self._cells: dict[tuple[int, int], list[QuadrantPoint]] = defaultdict(list)
        self._size = 0
        for quadrant in quadrants:
            self._cells[self._cell_of(quadrant.latitude, quadrant.longitude)].append(quadrant)
            self._size += 1

    def __len__(self) -> int:
        return self._size

    def _cell_of(self, lat: float, lng: float) -> tuple[int, int]:
        return math.floor(lat / self.cell_deg), math.floor(lng / self.cell_deg)

    def query(self, lat: float, lng: float, radius_km: float) -> list[NearbyQuadrant] | InvalidArgument:
        """Same contract as :func:`near`, restricted to cells touching the search box."""
        problem = _check_query(lat, lng, radius_km)
        if problem is not None:
            return problem

        box = bounding_box(lat, lng, radius_km)
        min_row, min_col = self._cell_of(box.min_lat, box.min_lng)
        max_row, max_col = self._cell_of(box.max_lat, box.max_lng)

        candidates: list[QuadrantPoint] = []
        box_cells = (max_row - min_row + 1) * (max_col - min_col + 1)
        if box_cells <= len(self._cells):
            for row in range(min_row, max_row + 1):
                for col in range(min_col, max_col + 1):
                    candidates.extend(self._cells.get((row, col), ()))
        else:
            # Sparse grid: fewer occupied cells than cells in the box
            for (row, col), members in self._cells.items():
                if min_row <= row <= max_row and min_col <= col <= max_col:
                    candidates.extend(members)
        return _measure(lat, lng, radius_km, candidates)
