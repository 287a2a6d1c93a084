"""Async HTTP client for the polydraw REST API.

Used by the application shell. The session cookie set by ``login`` is kept
in the underlying ``httpx.AsyncClient`` cookie jar and sent on every later
request.
"""

from __future__ import annotations

from typing import Any

import httpx


class ApiError(RuntimeError):
    """Non-success response from the API."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and isinstance(body.get("detail"), str):
        return body["detail"]
    return fallback


class PolygonClient:
    """Session-aware client for the polygon and login endpoints."""

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url, timeout=timeout
        )

    async def _request(
        self,
        method: str,
        url: str,
        fallback: str,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise ApiError(0, fallback) from exc
        if response.is_error:
            raise ApiError(
                response.status_code, _error_message(response, fallback)
            )
        return response

    async def _request_json(
        self,
        method: str,
        url: str,
        fallback: str,
        **kwargs: Any,
    ) -> dict[str, Any]:
        response = await self._request(method, url, fallback, **kwargs)
        try:
            body = response.json()
        except ValueError as exc:
            raise ApiError(response.status_code, fallback) from exc
        if not isinstance(body, dict):
            raise ApiError(response.status_code, fallback)
        return body

    async def login(self, password: str) -> None:
        await self._request(
            "POST", "/api/auth", "Invalid password", json={"password": password}
        )

    async def list_polygons(self) -> dict[str, Any]:
        """Fetch all live polygons as a FeatureCollection."""
        return await self._request_json(
            "GET", "/api/polygons", "Failed to fetch polygons"
        )

    async def create_polygon(
        self,
        geometry: dict[str, Any],
        attributes: dict[str, Any],
    ) -> dict[str, Any]:
        """Save a polygon and return the created feature."""
        return await self._request_json(
            "POST",
            "/api/polygons",
            "Failed to save polygon",
            json={"geometry": geometry, "attributes": attributes},
        )

    async def delete_polygon(self, polygon_id: str) -> None:
        await self._request(
            "DELETE", f"/api/polygons/{polygon_id}", "Failed to delete polygon"
        )

    async def aclose(self) -> None:
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()
