"""Polygon feature store API endpoints.

This module provides REST API endpoints for listing, creating and
soft-deleting user-drawn polygons. Geometries are GeoJSON Polygons in
EPSG:4326; attributes are merged into each feature's properties. All
endpoints require a valid session cookie.

Example:
    Create a polygon:
        >>> response = client.post(
        ...     "/api/polygons",
        ...     json={
        ...         "geometry": {
        ...             "type": "Polygon",
        ...             "coordinates": [[[0, 0], [0, 1], [1, 1], [1, 0], [0, 0]]],
        ...         },
        ...         "attributes": {"name": "Field A"},
        ...     },
        ... )
        >>> response.status_code
        201

    List live polygons (newest first):
        >>> response = client.get("/api/polygons")
        >>> response.json()["type"]
        'FeatureCollection'
"""

from __future__ import annotations

import logging
from typing import Any

import fastapi
import pydantic
from fastapi import responses

from polydraw.core import config, session
from polydraw.db import database
from polydraw.db import models as db_models

logger = logging.getLogger(__name__)

router = fastapi.APIRouter(
    prefix="/api/polygons",
    tags=["polygons"],
    dependencies=[fastapi.Depends(session.require_session)],
)


class PolygonCreate(pydantic.BaseModel):
    """Request body for creating a polygon.

    Both fields are optional at the schema level so a missing geometry is
    reported as an invalid polygon rather than a schema error.
    """

    geometry: dict[str, Any] | None = None
    attributes: dict[str, Any] | None = None


def _get_repo(
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
) -> database.PolygonRepositoryProtocol:
    """Resolve the polygon repository dependency.

    Args:
        settings: Application settings (injected via FastAPI Depends).

    Returns:
        PolygonRepositoryProtocol implementation
            (PostgresPolygonRepository in production).

    Raises:
        HTTPException: 500 when the database cannot be reached.
    """
    try:
        return database.get_polygon_repository(settings)
    except db_models.FeatureStoreError as exc:
        logger.exception("Feature store unavailable")
        raise fastapi.HTTPException(
            status_code=500,
            detail="Feature store unavailable",
        ) from exc


@router.get("")
async def list_polygons(
    repo: database.PolygonRepositoryProtocol = fastapi.Depends(_get_repo),  # noqa: B008
) -> dict[str, Any]:
    """List all live polygons as a GeoJSON FeatureCollection.

    Soft-deleted polygons are excluded and the newest polygon comes first.

    Raises:
        HTTPException: 500 when the feature store fails.
    """
    try:
        polygons = repo.list()
    except db_models.FeatureStoreError as exc:
        logger.exception("Failed to fetch polygons")
        raise fastapi.HTTPException(
            status_code=500,
            detail="Failed to fetch polygons",
        ) from exc

    return db_models.feature_collection(polygons)


@router.post("", status_code=201)
async def create_polygon(
    body: PolygonCreate,
    repo: database.PolygonRepositoryProtocol = fastapi.Depends(_get_repo),  # noqa: B008
) -> dict[str, Any]:
    """Save a newly drawn polygon.

    Args:
        body: Geometry (GeoJSON Polygon) and free-form attributes.
        repo: Polygon repository (injected via FastAPI Depends).

    Returns:
        The created feature including its generated id and creation time.

    Raises:
        HTTPException: 400 for a missing or malformed Polygon geometry,
            500 when the feature store fails.
    """
    try:
        polygon = repo.create(body.geometry or {}, body.attributes or {})
    except db_models.InvalidGeometryError as exc:
        raise fastapi.HTTPException(status_code=400, detail=str(exc)) from exc
    except db_models.FeatureStoreError as exc:
        logger.exception("Failed to create polygon")
        raise fastapi.HTTPException(
            status_code=500,
            detail="Failed to save polygon",
        ) from exc

    logger.info("Created polygon %s", polygon.id)
    return polygon.to_feature()


@router.delete("/{polygon_id}", status_code=204, response_class=responses.Response)
async def delete_polygon(
    polygon_id: str,
    repo: database.PolygonRepositoryProtocol = fastapi.Depends(_get_repo),  # noqa: B008
) -> responses.Response:
    """Soft-delete a polygon.

    Raises:
        HTTPException: 404 if the polygon is absent or already deleted,
            500 when the feature store fails.
    """
    try:
        repo.soft_delete(polygon_id)
    except db_models.PolygonNotFoundError as exc:
        raise fastapi.HTTPException(
            status_code=404,
            detail="Polygon not found",
        ) from exc
    except db_models.FeatureStoreError as exc:
        logger.exception("Failed to delete polygon %s", polygon_id)
        raise fastapi.HTTPException(
            status_code=500,
            detail="Failed to delete polygon",
        ) from exc

    logger.info("Deleted polygon %s", polygon_id)
    return responses.Response(status_code=204)
