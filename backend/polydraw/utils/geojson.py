"""Small GeoJSON helpers shared by the map canvas."""

from __future__ import annotations

from typing import Any


def ring_centroid(ring: list[list[float]]) -> list[float]:
    """Average of a ring's vertices as ``[lng, lat]``.

    The closing vertex is counted like any other, which slightly biases the
    result toward the first vertex. That is good enough for a marker.
    """
    if not ring:
        raise ValueError("Cannot compute centroid of an empty ring")
    lng_sum = sum(position[0] for position in ring)
    lat_sum = sum(position[1] for position in ring)
    return [lng_sum / len(ring), lat_sum / len(ring)]


def centroid_collection(collection: dict[str, Any]) -> dict[str, Any]:
    """Point collection placing a marker on each polygon's outer ring.

    Ids and properties are carried over so a click on a marker resolves to
    the same record as a click on the polygon.
    """
    features = []
    for feature in collection.get("features", []):
        outer_ring = feature["geometry"]["coordinates"][0]
        features.append(
            {
                "type": "Feature",
                "id": feature.get("id"),
                "geometry": {
                    "type": "Point",
                    "coordinates": ring_centroid(outer_ring),
                },
                "properties": feature.get("properties", {}),
            }
        )
    return {"type": "FeatureCollection", "features": features}
