"""Incremental viewport loading of remote POI features.

As the map pans and zooms, each settled viewport is reduced to a coarse
string key by rounding its edges. A key that has already been fetched
successfully is never fetched again. Fetched features are merged into an
append-only accumulated set keyed by their identifier, and the whole set is
pushed to the map's POI data source after every successful merge.

The rounding means two viewports that differ by less than the precision
share one fetch, so a slightly shifted viewport covering new ground may be
skipped. That approximation is accepted in exchange for a trivial key.

All state lives on a ``ViewportTileCache`` instance owned by one map canvas.
Mutation happens only on the event loop, so no locking is needed; fetches
for different viewports may overlap and the id check on merge keeps the
accumulated set free of duplicates.

Example:
    Drive the cache from viewport events:
        >>> cache = ViewportTileCache(client, source, max_features=1000)
        >>> await cache.consider_bounds(BoundingBox(-122.5, 37.7, -122.3, 37.9))
        >>> cache.feature_count
        42
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from typing import Any, Protocol

from polydraw.services import poi_client

logger = logging.getLogger(__name__)

DEFAULT_BOUNDS_PRECISION = 3
DEFAULT_MAX_FEATURES = 1000


@dataclasses.dataclass(frozen=True)
class BoundingBox:
    """Geographic extent of a viewport in EPSG:4326 degrees."""

    west: float
    south: float
    east: float
    north: float

    @classmethod
    def from_sequence(cls, values: tuple[float, float, float, float]) -> BoundingBox:
        west, south, east, north = values
        return cls(float(west), float(south), float(east), float(north))


def bounds_key(bbox: BoundingBox, precision: int = DEFAULT_BOUNDS_PRECISION) -> str:
    """Deterministic cache key for a bounding box.

    Each edge is formatted with ``precision`` decimals and the four values
    are joined in west, south, east, north order. Negative zero is
    folded into zero so edges on either side of the equator or the prime
    meridian that round to the same value share a key.
    """
    return ",".join(
        f"{round(edge, precision) + 0.0:.{precision}f}"
        for edge in (bbox.west, bbox.south, bbox.east, bbox.north)
    )


def resolve_feature_id(feature: Any) -> str | None:
    """Identifier used to deduplicate a POI feature.

    The ``id`` property wins; the feature-level ``id`` is the fallback.
    Entries that are not objects have no identifier, and non-object
    ``properties`` are treated as absent.
    """
    if not isinstance(feature, Mapping):
        return None
    properties = feature.get("properties")
    if not isinstance(properties, Mapping):
        properties = {}
    value = properties.get("id")
    if value is None:
        value = feature.get("id")
    return None if value is None else str(value)


class GeoJSONSourceProtocol(Protocol):
    """Rendering-layer data source that accepts a full collection."""

    def set_data(self, data: dict[str, Any]) -> None: ...


class ViewportTileCache:
    """Tracks queried viewports and the POI features they produced.

    Attributes:
        queried_bounds: Keys of viewports fetched successfully. Grows
            monotonically for the lifetime of the owning map.
        features: Accumulated features in first-seen order, no two sharing
            a resolved identifier.
    """

    def __init__(
        self,
        client: poi_client.PoiServiceClient,
        source: GeoJSONSourceProtocol,
        max_features: int = DEFAULT_MAX_FEATURES,
        precision: int = DEFAULT_BOUNDS_PRECISION,
    ) -> None:
        self.client = client
        self.source = source
        self.max_features = max_features
        self.precision = precision
        self.queried_bounds: set[str] = set()
        self.features: list[dict[str, Any]] = []
        self._feature_ids: set[str] = set()
        self._in_flight = 0

    @property
    def loading(self) -> bool:
        """True while at least one fetch is outstanding."""
        return self._in_flight > 0

    @property
    def feature_count(self) -> int:
        return len(self.features)

    def feature_collection(self) -> dict[str, Any]:
        return {"type": "FeatureCollection", "features": list(self.features)}

    async def consider_bounds(self, bbox: BoundingBox) -> int:
        """Fetch and merge POIs for a settled viewport unless already done.

        Args:
            bbox: Current viewport bounds.

        Returns:
            Number of features newly added to the accumulated set. Zero when
            the viewport was skipped, the fetch failed or nothing was new.
        """
        key = bounds_key(bbox, self.precision)
        if key in self.queried_bounds:
            logger.debug("Skipping already queried bounds %s", key)
            return 0

        self._in_flight += 1
        try:
            collection = await self.client.query(bbox, self.max_features)
        except poi_client.PoiServiceError as exc:
            logger.warning("POI fetch for bounds %s failed: %s", key, exc)
            return 0
        finally:
            self._in_flight -= 1

        added = self._merge(collection["features"])
        self.queried_bounds.add(key)
        self.source.set_data(self.feature_collection())
        logger.debug(
            "Merged %d new POIs for bounds %s (%d total)",
            added,
            key,
            len(self.features),
        )
        return added

    def _merge(self, incoming: list[dict[str, Any]]) -> int:
        added = 0
        for feature in incoming:
            feature_id = resolve_feature_id(feature)
            if feature_id is None:
                logger.debug("Dropping POI feature without an identifier")
                continue
            if feature_id in self._feature_ids:
                continue
            self._feature_ids.add(feature_id)
            self.features.append(feature)
            added += 1
        return added

    def reset(self) -> None:
        """Forget all queried bounds and features."""
        self.queried_bounds.clear()
        self.features.clear()
        self._feature_ids.clear()
