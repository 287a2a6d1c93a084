"""API router subpackage for the polygon drawing backend.

This package organizes the HTTP surface of the drawing tool. Each module
exposes its own APIRouter for composition in the application's main FastAPI
instance.

Submodules:
    - polygons: List, create and soft-delete user-drawn polygons.
    - auth: Shared-password login that issues the session cookie.
    - pages: The guarded drawing page and the login form.

Routers are grouped by feature so each can be tested independently with
dependency overrides.
"""
