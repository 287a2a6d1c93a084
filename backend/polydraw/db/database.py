"""Database helpers and repositories for user-drawn polygons."""

from __future__ import annotations

import datetime
import itertools
import json
import logging
import uuid
from typing import TYPE_CHECKING, Any, Protocol, cast

import psycopg2
import psycopg2.extensions
import psycopg2.extras

from polydraw.db import models as db_models

if TYPE_CHECKING:
    from polydraw.core import config

logger = logging.getLogger(__name__)


class PolygonRepositoryProtocol(Protocol):
    """Protocol interface for storing and retrieving user polygons.

    Implementations provide persistence for UserPolygon records, supporting
    both in-memory (testing) and PostgreSQL (production) backends. Records
    are never removed; deletion only sets ``deleted_at``.
    """

    def list(self) -> list[db_models.UserPolygon]: ...

    def create(
        self,
        geometry: db_models.Geometry,
        attributes: dict[str, Any],
    ) -> db_models.UserPolygon: ...

    def soft_delete(self, polygon_id: str) -> None: ...


class InMemoryPolygonRepository(PolygonRepositoryProtocol):
    """Simple in-memory store for tests and local development.

    Stores polygons in a dictionary. Data is lost when the process exits.
    """

    def __init__(self) -> None:
        """Initialize an empty in-memory repository."""
        self._store: dict[str, db_models.UserPolygon] = {}
        self._order: dict[str, int] = {}
        self._sequence = itertools.count()

    def list(self) -> list[db_models.UserPolygon]:
        """Return live polygons, newest first.

        Returns:
            Polygons without a soft-delete timestamp, ordered by creation
            time descending (insertion order breaks ties).
        """
        live = [p for p in self._store.values() if not p.is_deleted]
        return sorted(
            live,
            key=lambda p: (p.created_at, self._order[p.id]),
            reverse=True,
        )

    def create(
        self,
        geometry: db_models.Geometry,
        attributes: dict[str, Any],
    ) -> db_models.UserPolygon:
        """Validate and store a new polygon.

        Args:
            geometry: GeoJSON Polygon geometry.
            attributes: Free-form attribute mapping.

        Returns:
            The stored polygon with a generated id and creation timestamp.

        Raises:
            InvalidGeometryError: If the geometry is not a usable Polygon.
        """
        db_models.validate_polygon_geometry(geometry)
        polygon = db_models.UserPolygon(
            id=str(uuid.uuid4()),
            geometry=geometry,
            attributes=dict(attributes),
        )
        self._store[polygon.id] = polygon
        self._order[polygon.id] = next(self._sequence)
        return polygon

    def soft_delete(self, polygon_id: str) -> None:
        """Mark a polygon as deleted.

        Raises:
            PolygonNotFoundError: If the polygon is absent or already deleted.
        """
        polygon = self._store.get(polygon_id)
        if polygon is None or polygon.is_deleted:
            raise db_models.PolygonNotFoundError(polygon_id)
        polygon.deleted_at = datetime.datetime.now(datetime.UTC)

    def get(self, polygon_id: str) -> db_models.UserPolygon | None:
        """Retrieve a polygon by ID, including soft-deleted ones."""
        return self._store.get(polygon_id)


class PostgresPolygonRepository(PolygonRepositoryProtocol):
    """PostgreSQL/PostGIS-backed repository for user polygons.

    Geometries are stored as ``GEOMETRY(Polygon, 4326)`` and attributes as
    JSONB. The PostGIS extension, the polygons table and its indexes are
    created on initialization.
    """

    CREATE_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS polygons (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      geometry GEOMETRY(Polygon, 4326) NOT NULL,
      attributes JSONB DEFAULT '{}',
      created_at TIMESTAMPTZ DEFAULT now(),
      deleted_at TIMESTAMPTZ
    );
    CREATE INDEX IF NOT EXISTS idx_polygons_geometry
      ON polygons USING GIST (geometry);
    CREATE INDEX IF NOT EXISTS idx_polygons_deleted
      ON polygons (deleted_at) WHERE deleted_at IS NULL;
    """

    LIST_SQL = """
    SELECT id, ST_AsGeoJSON(geometry)::json AS geometry, attributes, created_at
    FROM polygons
    WHERE deleted_at IS NULL
    ORDER BY created_at DESC;
    """

    INSERT_SQL = """
    INSERT INTO polygons (geometry, attributes)
    VALUES (
      ST_SetSRID(ST_GeomFromGeoJSON(%(geometry)s), 4326),
      %(attributes)s::jsonb
    )
    RETURNING id, ST_AsGeoJSON(geometry)::json AS geometry, attributes,
      created_at;
    """

    SOFT_DELETE_SQL = """
    UPDATE polygons
    SET deleted_at = now()
    WHERE id = %(id)s::uuid AND deleted_at IS NULL
    RETURNING id;
    """

    def __init__(self, settings: config.Settings) -> None:
        """Initialize repository with database settings.

        Args:
            settings: Application settings containing database connection URL.
        """
        self.settings = settings
        self._ensure_schema()

    def _connection(self) -> psycopg2.extensions.connection:
        """Create a new database connection returning dict rows."""
        return psycopg2.connect(
            self.settings.database_url,
            cursor_factory=psycopg2.extras.RealDictCursor,
        )

    def _ensure_schema(self) -> None:
        """Ensure the PostGIS extension and polygons table exist."""
        try:
            with self._connection() as conn, conn.cursor() as cur:
                cur.execute("CREATE EXTENSION IF NOT EXISTS postgis;")
                cur.execute(self.CREATE_TABLE_SQL)
                conn.commit()
        except psycopg2.Error as exc:
            raise db_models.FeatureStoreError("Failed to prepare schema") from exc

    def list(self) -> list[db_models.UserPolygon]:
        try:
            with self._connection() as conn, conn.cursor() as cur:
                cur.execute(self.LIST_SQL)
                rows = cur.fetchall()
        except psycopg2.Error as exc:
            raise db_models.FeatureStoreError("Failed to list polygons") from exc
        return [self._from_row(cast(dict[str, object], row)) for row in rows]

    def create(
        self,
        geometry: db_models.Geometry,
        attributes: dict[str, Any],
    ) -> db_models.UserPolygon:
        db_models.validate_polygon_geometry(geometry)
        try:
            with self._connection() as conn, conn.cursor() as cur:
                cur.execute(self.INSERT_SQL, self._to_row(geometry, attributes))
                row = cur.fetchone()
                conn.commit()
        except psycopg2.DataError as exc:
            raise db_models.InvalidGeometryError(
                "Invalid polygon geometry"
            ) from exc
        except psycopg2.Error as exc:
            raise db_models.FeatureStoreError("Failed to save polygon") from exc
        if row is None:
            raise db_models.FeatureStoreError("Insert returned no row")
        return self._from_row(cast(dict[str, object], row))

    def soft_delete(self, polygon_id: str) -> None:
        try:
            uuid.UUID(polygon_id)
        except ValueError as exc:
            raise db_models.PolygonNotFoundError(polygon_id) from exc

        try:
            with self._connection() as conn, conn.cursor() as cur:
                cur.execute(self.SOFT_DELETE_SQL, {"id": polygon_id})
                row = cur.fetchone()
                conn.commit()
        except psycopg2.Error as exc:
            raise db_models.FeatureStoreError("Failed to delete polygon") from exc
        if row is None:
            raise db_models.PolygonNotFoundError(polygon_id)

    @staticmethod
    def _to_row(
        geometry: db_models.Geometry,
        attributes: dict[str, Any],
    ) -> dict[str, object]:
        """Convert a geometry and attributes to SQL parameters.

        Args:
            geometry: GeoJSON Polygon geometry.
            attributes: Free-form attribute mapping.

        Returns:
            Dictionary suitable for parameterized SQL insertion.
        """
        return {
            "geometry": json.dumps(geometry),
            "attributes": json.dumps(attributes or {}),
        }

    @staticmethod
    def _from_row(row: dict[str, object]) -> db_models.UserPolygon:
        """Convert a database row dictionary to a UserPolygon.

        Args:
            row: Dictionary from database query result. ``geometry`` and
                ``attributes`` may arrive decoded or as JSON text.

        Returns:
            UserPolygon with all fields populated.
        """
        geometry = row["geometry"]
        if isinstance(geometry, str):
            geometry = json.loads(geometry)
        attributes = row.get("attributes") or {}
        if isinstance(attributes, str):
            attributes = json.loads(attributes)
        created_at = cast(
            datetime.datetime | None, row.get("created_at")
        ) or datetime.datetime.now(datetime.UTC)

        return db_models.UserPolygon(
            id=str(row["id"]),
            geometry=cast(db_models.Geometry, geometry),
            attributes=cast(dict[str, Any], attributes),
            created_at=created_at,
            deleted_at=cast(datetime.datetime | None, row.get("deleted_at")),
        )


def get_polygon_repository(settings: config.Settings) -> PolygonRepositoryProtocol:
    """Factory function to create a polygon repository.

    Args:
        settings: Application settings for database connection.

    Returns:
        PostgresPolygonRepository instance for production use.
    """
    return PostgresPolygonRepository(settings)
