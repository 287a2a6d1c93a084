"""Map canvas state: rendering sources, drawing mode and POI loading.

The canvas owns the GeoJSON sources the renderer draws from and one
``ViewportTileCache`` for the POI overlay. Viewport settle events feed the
cache; draw and click events are forwarded to the application shell through
callbacks.

Example:
    Wire a canvas to a POI service:
        >>> canvas = MapCanvas(settings, poi=PoiServiceClient(url))
        >>> await canvas.on_viewport_settle(bbox, zoom=15)
        >>> canvas.poi_count
        12
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from polydraw.services import tile_cache
from polydraw.utils import geojson

if TYPE_CHECKING:
    from polydraw.core import config
    from polydraw.services import poi_client

logger = logging.getLogger(__name__)

POLYGONS_SOURCE = "polygons"
CENTROIDS_SOURCE = "centroids"
POIS_SOURCE = "pois"


def _empty_collection() -> dict[str, Any]:
    return {"type": "FeatureCollection", "features": []}


class GeoJSONSource:
    """In-process stand-in for a renderer's GeoJSON source.

    Every ``set_data`` call replaces the data wholesale and bumps
    ``version`` so observers can tell a republish happened.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.data: dict[str, Any] = _empty_collection()
        self.version = 0

    def set_data(self, data: dict[str, Any]) -> None:
        self.data = data
        self.version += 1


class MapCanvas:
    """Map state shared between the renderer and the application shell."""

    def __init__(
        self,
        settings: config.Settings,
        poi: poi_client.PoiServiceClient | None = None,
        on_polygon_created: Callable[[dict[str, Any]], None] | None = None,
        on_polygon_selected: Callable[[dict[str, Any] | None], None] | None = None,
    ) -> None:
        self.settings = settings
        self.center = settings.default_center
        self.zoom = settings.default_zoom
        self.on_polygon_created = on_polygon_created
        self.on_polygon_selected = on_polygon_selected
        self.is_drawing = False

        self.sources = {
            name: GeoJSONSource(name)
            for name in (POLYGONS_SOURCE, CENTROIDS_SOURCE, POIS_SOURCE)
        }

        self._poi = poi
        self.poi_cache: tile_cache.ViewportTileCache | None = None
        if poi is not None:
            self.poi_cache = tile_cache.ViewportTileCache(
                poi,
                self.sources[POIS_SOURCE],
                max_features=settings.poi_max_features,
                precision=settings.bounds_precision,
            )

    @property
    def poi_loading(self) -> bool:
        return self.poi_cache is not None and self.poi_cache.loading

    @property
    def poi_count(self) -> int:
        return self.poi_cache.feature_count if self.poi_cache else 0

    async def on_viewport_settle(
        self,
        bbox: tile_cache.BoundingBox,
        zoom: float,
    ) -> None:
        """Handle the end of a pan or zoom gesture.

        POIs are only requested at or above the configured zoom threshold.
        """
        self.zoom = zoom
        if self.poi_cache is None or zoom < self.settings.poi_min_zoom:
            return
        await self.poi_cache.consider_bounds(bbox)

    def set_polygons(self, collection: dict[str, Any] | None) -> None:
        """Push the shell's polygon collection into the polygon sources."""
        if collection is None:
            return
        self.sources[POLYGONS_SOURCE].set_data(collection)
        self.sources[CENTROIDS_SOURCE].set_data(
            geojson.centroid_collection(collection)
        )

    def visible_polygon_source(self, zoom: float | None = None) -> str:
        """Source drawn for user polygons at a zoom level.

        Outlines are drawn when zoomed in; below the threshold each polygon
        is drawn as a marker at its centroid.
        """
        zoom = self.zoom if zoom is None else zoom
        if zoom >= self.settings.polygon_zoom_threshold:
            return POLYGONS_SOURCE
        return CENTROIDS_SOURCE

    def start_drawing(self) -> None:
        self.is_drawing = True

    def cancel_drawing(self) -> None:
        self.is_drawing = False

    def handle_draw_create(self, features: list[dict[str, Any]]) -> None:
        """Forward a completed drawing to the shell.

        Only the first feature is considered and only when it is a Polygon.
        """
        if not features:
            return
        geometry = features[0].get("geometry") or {}
        if geometry.get("type") != "Polygon":
            return
        if self.on_polygon_created is not None:
            self.on_polygon_created(geometry)
        self.is_drawing = False

    def handle_feature_click(self, feature: dict[str, Any] | None) -> None:
        """Forward a click on a polygon or centroid marker to the shell."""
        if self.on_polygon_selected is None:
            return
        if feature is None:
            self.on_polygon_selected(None)
            return
        properties = feature.get("properties") or {}
        self.on_polygon_selected(
            {
                "type": "Feature",
                "id": properties.get("id", feature.get("id")),
                "geometry": feature.get("geometry"),
                "properties": properties,
            }
        )

    async def close(self) -> None:
        """Tear down the canvas, dropping all accumulated POI state."""
        if self.poi_cache is not None:
            self.poi_cache.reset()
            self.poi_cache = None
        if self._poi is not None:
            await self._poi.aclose()
            self._poi = None
