"""Backend for a small team tool that draws polygons over satellite imagery.

Polygons are stored in PostGIS behind a shared-password session gate. The
map canvas can overlay points of interest from an external feature service,
loaded incrementally per viewport and deduplicated by identifier.

- REST endpoints to list, create and soft-delete polygons (GeoJSON)
- Signed session cookie issued for the shared team password
- Viewport tile cache for the remote POI overlay
- Application shell and map canvas state driving the same HTTP contract

See the module sub-docstrings for details on architecture and usage.
"""
