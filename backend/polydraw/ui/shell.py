"""Application shell: glue between the map canvas and the polygon API.

The shell loads the polygon collection on start, opens an attribute form
when the user finishes drawing, saves or discards the pending polygon, and
shows a detail panel with delete for a clicked polygon.

Failures never lose user input: a failed save keeps the pending geometry
and the form exactly as entered, and a failed initial load keeps whatever
was shown before and exposes a retry message.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from polydraw.ui import client as api_client
from polydraw.ui import forms

if TYPE_CHECKING:
    from polydraw.ui import map_canvas

logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Failed to load polygons. Click to retry."
DELETE_ERROR_MESSAGE = "Failed to delete polygon"


class ApplicationShell:
    """Orchestrates load, save and delete for one map session.

    Attributes:
        polygons: Last successfully loaded FeatureCollection, or None.
        pending_geometry: Drawn geometry awaiting attributes, or None.
        form: Attribute form shown while a geometry is pending.
        detail: Detail panel for the selected polygon, or None.
        saving: True while a save request is outstanding.
        error: Message from the last failed save.
        load_error: Retry message when loading the collection failed.
        delete_error: Message from the last failed delete.
    """

    def __init__(
        self,
        client: api_client.PolygonClient,
        canvas: map_canvas.MapCanvas,
    ) -> None:
        self.client = client
        self.canvas = canvas
        self.polygons: dict[str, Any] | None = None
        self.pending_geometry: dict[str, Any] | None = None
        self.form: forms.AttributeForm | None = None
        self.detail: forms.PolygonDetail | None = None
        self.saving = False
        self.error: str | None = None
        self.load_error: str | None = None
        self.delete_error: str | None = None

        canvas.on_polygon_created = self.handle_polygon_created
        canvas.on_polygon_selected = self.handle_polygon_selected

    async def load(self) -> bool:
        """Fetch all polygons and hand them to the canvas.

        Returns:
            True on success. On failure ``load_error`` is set and the
            previously loaded collection stays in place.
        """
        try:
            collection = await self.client.list_polygons()
        except api_client.ApiError as exc:
            logger.warning("Loading polygons failed: %s", exc)
            self.load_error = LOAD_ERROR_MESSAGE
            return False

        self.polygons = collection
        self.load_error = None
        self.canvas.set_polygons(collection)
        return True

    async def retry_load(self) -> bool:
        return await self.load()

    def handle_polygon_created(self, geometry: dict[str, Any]) -> None:
        self.pending_geometry = geometry
        self.form = forms.AttributeForm()
        self.error = None

    def handle_polygon_selected(self, feature: dict[str, Any] | None) -> None:
        self.detail = forms.PolygonDetail(feature) if feature else None
        self.delete_error = None

    async def save(self) -> dict[str, Any] | None:
        """Persist the pending geometry with the form's attributes.

        Returns:
            The created feature, or None when nothing was pending or the
            save failed.
        """
        if self.pending_geometry is None or self.form is None:
            return None

        self.saving = True
        self.error = None
        try:
            created = await self.client.create_polygon(
                self.pending_geometry, self.form.to_attributes()
            )
        except api_client.ApiError as exc:
            logger.warning("Saving polygon failed: %s", exc)
            self.error = exc.message
            return None
        finally:
            self.saving = False

        self.pending_geometry = None
        self.form = None
        await self.load()
        return created

    def cancel(self) -> None:
        self.pending_geometry = None
        self.form = None
        self.error = None

    def close_detail(self) -> None:
        self.detail = None

    async def delete(self, polygon_id: str) -> bool:
        """Delete a polygon and refresh the collection.

        On failure the detail panel stays open with ``delete_error`` set.
        """
        if self.detail is not None:
            self.detail.deleting = True
        try:
            await self.client.delete_polygon(polygon_id)
        except api_client.ApiError as exc:
            logger.warning("Deleting polygon %s failed: %s", polygon_id, exc)
            self.delete_error = DELETE_ERROR_MESSAGE
            return False
        finally:
            if self.detail is not None:
                self.detail.deleting = False

        self.detail = None
        self.delete_error = None
        await self.load()
        return True
