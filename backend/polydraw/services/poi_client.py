"""HTTP client for the remote point-of-interest feature service.

The POI service is an open WFS-style endpoint queried by bounding box. It
returns a GeoJSON FeatureCollection of points and polygons with free-form
properties. No authentication is sent.

The bounding box is sent in latitude/longitude axis order
(``south,west,north,east``) because WFS 2.0 follows the EPSG:4326 axis
definition.

Example:
    Query features for a viewport:
        >>> client = PoiServiceClient("https://example.org/geoserver/wfs")
        >>> bbox = tile_cache.BoundingBox(-122.5, 37.7, -122.3, 37.9)
        >>> collection = await client.query(bbox, max_features=1000)
        >>> await client.aclose()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from polydraw.core import config
    from polydraw.services import tile_cache


class PoiServiceError(RuntimeError):
    """Raised when the POI service cannot produce a feature collection."""


class PoiServiceClient:
    """Async client issuing bounding-box feature requests."""

    def __init__(
        self,
        base_url: str,
        type_name: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url
        self.type_name = type_name
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: config.Settings) -> PoiServiceClient | None:
        """Build a client from settings, or None when no service is set."""
        if not settings.poi_service_url:
            return None
        return cls(
            str(settings.poi_service_url),
            type_name=settings.poi_type_name,
            timeout=settings.poi_timeout_seconds,
        )

    def build_params(
        self,
        bbox: tile_cache.BoundingBox,
        max_features: int,
    ) -> dict[str, str]:
        """Query parameters for a bounding-box GetFeature request."""
        params = {
            "service": "WFS",
            "version": "2.0.0",
            "request": "GetFeature",
            "bbox": f"{bbox.south},{bbox.west},{bbox.north},{bbox.east},EPSG:4326",
            "outputFormat": "application/json",
            "count": str(max_features),
        }
        if self.type_name:
            params["typeNames"] = self.type_name
        return params

    async def query(
        self,
        bbox: tile_cache.BoundingBox,
        max_features: int,
    ) -> dict[str, Any]:
        """Fetch features intersecting ``bbox``.

        Args:
            bbox: Area to query, in EPSG:4326.
            max_features: Cap on the number of returned features.

        Returns:
            Decoded GeoJSON FeatureCollection.

        Raises:
            PoiServiceError: On transport failure, a non-success status,
                an undecodable body, a payload without a features list or a
                features list holding non-object entries.
        """
        try:
            response = await self._client.get(
                self.base_url,
                params=self.build_params(bbox, max_features),
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise PoiServiceError(f"POI request failed: {exc}") from exc
        except ValueError as exc:
            raise PoiServiceError("POI response is not valid JSON") from exc

        if not isinstance(payload, dict) or not isinstance(
            payload.get("features"), list
        ):
            raise PoiServiceError("POI response has no features list")
        if not all(isinstance(feature, dict) for feature in payload["features"]):
            raise PoiServiceError("POI response holds a non-object feature")
        return payload

    async def aclose(self) -> None:
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()
