"""Data models for user-drawn polygons.

This module defines the record persisted by the feature store and the
GeoJSON shape it is served as. A polygon carries a GeoJSON geometry, a
free-form attribute mapping, a creation timestamp and an optional
soft-delete timestamp.

Example:
    Creating a UserPolygon and serialising it as a GeoJSON feature:
        >>> from polydraw.db.models import UserPolygon
        >>> polygon = UserPolygon(
        ...     id="0b6f3c1e-7c2a-4f61-9a53-0d2b6b0d3c11",
        ...     geometry={
        ...         "type": "Polygon",
        ...         "coordinates": [[[0, 0], [0, 1], [1, 1], [1, 0], [0, 0]]],
        ...     },
        ...     attributes={"name": "Field A"},
        ... )
        >>> polygon.to_feature()["properties"]["name"]
        'Field A'
"""

from __future__ import annotations

import dataclasses
import datetime
import numbers
from typing import Any

Geometry = dict[str, Any]
Feature = dict[str, Any]
FeatureCollection = dict[str, Any]

# A closed linear ring needs three distinct vertices plus the closing one.
MIN_RING_POSITIONS = 4


class InvalidGeometryError(ValueError):
    """Raised when a submitted geometry is not a usable GeoJSON Polygon."""


class PolygonNotFoundError(LookupError):
    """Raised when a polygon is absent or already soft-deleted."""


class FeatureStoreError(RuntimeError):
    """Raised when the underlying storage fails."""


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(tz=datetime.UTC)


@dataclasses.dataclass
class UserPolygon:
    """A polygon drawn by a user and persisted in the feature store.

    Attributes:
        id: Unique identifier (UUID string).
        geometry: GeoJSON Polygon geometry in EPSG:4326.
        attributes: Free-form key/value pairs entered by the user.
        created_at: Timestamp when the polygon was saved.
        deleted_at: Soft-delete timestamp, None while the record is live.
    """

    id: str
    geometry: Geometry
    attributes: dict[str, Any] = dataclasses.field(default_factory=dict)
    created_at: datetime.datetime = dataclasses.field(default_factory=_utcnow)
    deleted_at: datetime.datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def to_feature(self) -> Feature:
        """Serialise as a GeoJSON feature.

        Attributes are merged into the property bag next to ``id`` and
        ``created_at``; the two reserved keys win over user attributes.
        """
        return {
            "type": "Feature",
            "id": self.id,
            "geometry": self.geometry,
            "properties": {
                **self.attributes,
                "id": self.id,
                "created_at": self.created_at.isoformat(),
            },
        }


def feature_collection(polygons: list[UserPolygon]) -> FeatureCollection:
    """Wrap polygons into a GeoJSON FeatureCollection."""
    return {
        "type": "FeatureCollection",
        "features": [polygon.to_feature() for polygon in polygons],
    }


def _is_position(value: object) -> bool:
    return (
        isinstance(value, list | tuple)
        and len(value) >= 2
        and all(
            isinstance(v, numbers.Real) and not isinstance(v, bool)
            for v in value
        )
    )


def validate_polygon_geometry(geometry: object) -> Geometry:
    """Check that a geometry is a GeoJSON Polygon with coordinates.

    Args:
        geometry: Decoded GeoJSON geometry object.

    Returns:
        The geometry, unchanged.

    Raises:
        InvalidGeometryError: If the geometry is missing, is not a Polygon,
            or its coordinates are not a non-empty list of closed position
            rings.
    """
    if not isinstance(geometry, dict) or geometry.get("type") != "Polygon":
        raise InvalidGeometryError("Invalid polygon geometry")

    rings = geometry.get("coordinates")
    if not isinstance(rings, list) or not rings:
        raise InvalidGeometryError("Invalid polygon geometry")

    for ring in rings:
        if not isinstance(ring, list) or len(ring) < MIN_RING_POSITIONS:
            raise InvalidGeometryError("Invalid polygon geometry")
        if not all(_is_position(position) for position in ring):
            raise InvalidGeometryError("Invalid polygon geometry")
        if list(ring[0]) != list(ring[-1]):
            raise InvalidGeometryError("Invalid polygon geometry")

    return geometry
