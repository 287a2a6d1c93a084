"""API endpoint tests for the polygon feature store endpoints.

This module provides tests for the /api/polygons endpoints, covering:
    - Listing live polygons newest first as a FeatureCollection,
    - Creating polygons and rejecting malformed geometry with 400,
    - Soft-deleting polygons with 204 and 404 semantics,
    - Generic 500 responses that never leak storage details,
    - Rejecting requests without a session with 401.

The repository is always injected through dependency overrides, and the
session guard is overridden except where it is under test.

See Also:
    - backend/polydraw/api/polygons.py for API implementation,
    - backend/polydraw/db/database.py for repository protocol.
"""

from __future__ import annotations

import datetime
from typing import Any

import fastapi
from fastapi import testclient

from polydraw import main
from polydraw.api import polygons as api_polygons
from polydraw.core import session
from polydraw.db import database
from polydraw.db import models as db_models

SQUARE = {
    "type": "Polygon",
    "coordinates": [[[0, 0], [0, 1], [1, 1], [1, 0], [0, 0]]],
}


class BrokenRepository(database.PolygonRepositoryProtocol):
    """Repository whose every call fails like a lost database."""

    def list(self) -> list[db_models.UserPolygon]:
        raise db_models.FeatureStoreError("connection to 10.0.0.5 refused")

    def create(
        self,
        geometry: db_models.Geometry,
        attributes: dict[str, Any],
    ) -> db_models.UserPolygon:
        raise db_models.FeatureStoreError("connection to 10.0.0.5 refused")

    def soft_delete(self, polygon_id: str) -> None:
        raise db_models.FeatureStoreError("connection to 10.0.0.5 refused")


def _make_app(
    repo: database.PolygonRepositoryProtocol,
    authenticated: bool = True,
) -> fastapi.FastAPI:
    app = main.create_app()
    app.dependency_overrides[api_polygons._get_repo] = lambda: repo
    if authenticated:
        app.dependency_overrides[session.require_session] = lambda: None
    return app


def test_list_polygons_empty() -> None:
    """Test listing polygons when repository is empty."""
    app = _make_app(database.InMemoryPolygonRepository())
    client = testclient.TestClient(app)
    try:
        response = client.get("/api/polygons")
        assert response.status_code == 200
        assert response.json() == {"type": "FeatureCollection", "features": []}
    finally:
        app.dependency_overrides.clear()


def test_list_polygons_newest_first() -> None:
    """Test that polygons are listed newest first with merged attributes."""
    repo = database.InMemoryPolygonRepository()
    older = repo.create(SQUARE, {"name": "older"})
    newer = repo.create(SQUARE, {"name": "newer"})
    older.created_at = datetime.datetime(2024, 1, 1, tzinfo=datetime.UTC)
    newer.created_at = datetime.datetime(2024, 6, 1, tzinfo=datetime.UTC)

    app = _make_app(repo)
    client = testclient.TestClient(app)
    try:
        features = client.get("/api/polygons").json()["features"]
        assert [f["id"] for f in features] == [newer.id, older.id]
        assert features[0]["properties"] == {
            "id": newer.id,
            "name": "newer",
            "created_at": "2024-06-01T00:00:00+00:00",
        }
        assert features[0]["geometry"] == SQUARE
    finally:
        app.dependency_overrides.clear()


def test_create_polygon_returns_201() -> None:
    """Test creating a polygon returns the stored feature."""
    repo = database.InMemoryPolygonRepository()
    app = _make_app(repo)
    client = testclient.TestClient(app)
    try:
        response = client.post(
            "/api/polygons",
            json={"geometry": SQUARE, "attributes": {"name": "Field A"}},
        )
        assert response.status_code == 201
        feature = response.json()
        assert feature["type"] == "Feature"
        assert feature["id"]
        assert feature["properties"]["id"] == feature["id"]
        assert feature["properties"]["name"] == "Field A"
        assert "created_at" in feature["properties"]
        assert repo.get(feature["id"]) is not None
    finally:
        app.dependency_overrides.clear()


def test_create_polygon_without_attributes() -> None:
    """Test that attributes default to an empty mapping."""
    app = _make_app(database.InMemoryPolygonRepository())
    client = testclient.TestClient(app)
    try:
        response = client.post("/api/polygons", json={"geometry": SQUARE})
        assert response.status_code == 201
        assert set(response.json()["properties"]) == {"id", "created_at"}
    finally:
        app.dependency_overrides.clear()


def test_create_polygon_invalid_geometry() -> None:
    """Test that non-Polygon, coordinate-less or unclosed geometry returns 400."""
    app = _make_app(database.InMemoryPolygonRepository())
    client = testclient.TestClient(app)
    try:
        for body in (
            {"attributes": {"name": "no geometry"}},
            {"geometry": {"type": "Point", "coordinates": [0, 0]}},
            {"geometry": {"type": "Polygon"}},
            {
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [[[0, 0], [0, 1], [1, 1], [1, 0]]],
                }
            },
        ):
            response = client.post("/api/polygons", json=body)
            assert response.status_code == 400
            assert response.json() == {"detail": "Invalid polygon geometry"}
    finally:
        app.dependency_overrides.clear()


def test_delete_polygon() -> None:
    """Test that delete returns 204, then 404 on repeat."""
    repo = database.InMemoryPolygonRepository()
    polygon = repo.create(SQUARE, {})
    app = _make_app(repo)
    client = testclient.TestClient(app)
    try:
        response = client.delete(f"/api/polygons/{polygon.id}")
        assert response.status_code == 204
        assert response.content == b""

        response = client.delete(f"/api/polygons/{polygon.id}")
        assert response.status_code == 404
        assert response.json() == {"detail": "Polygon not found"}
    finally:
        app.dependency_overrides.clear()


def test_delete_unknown_polygon() -> None:
    """Test that deleting an id that never existed returns 404."""
    app = _make_app(database.InMemoryPolygonRepository())
    client = testclient.TestClient(app)
    try:
        response = client.delete("/api/polygons/does-not-exist")
        assert response.status_code == 404
    finally:
        app.dependency_overrides.clear()


def test_storage_failures_return_generic_500() -> None:
    """Test that storage errors map to 500 without leaking details."""
    app = _make_app(BrokenRepository())
    client = testclient.TestClient(app)
    try:
        response = client.get("/api/polygons")
        assert response.status_code == 500
        assert response.json() == {"detail": "Failed to fetch polygons"}

        response = client.post("/api/polygons", json={"geometry": SQUARE})
        assert response.status_code == 500
        assert response.json() == {"detail": "Failed to save polygon"}

        response = client.delete("/api/polygons/abc")
        assert response.status_code == 500
        assert response.json() == {"detail": "Failed to delete polygon"}
        assert "10.0.0.5" not in response.text
    finally:
        app.dependency_overrides.clear()


def test_requests_without_session_are_rejected() -> None:
    """Test that every polygon route returns 401 without a session."""
    app = _make_app(database.InMemoryPolygonRepository(), authenticated=False)
    client = testclient.TestClient(app)
    try:
        assert client.get("/api/polygons").status_code == 401
        assert client.post(
            "/api/polygons", json={"geometry": SQUARE}
        ).status_code == 401
        assert client.delete("/api/polygons/abc").status_code == 401
        assert client.get("/api/polygons").json() == {"detail": "Unauthorized"}
    finally:
        app.dependency_overrides.clear()
