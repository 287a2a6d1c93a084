"""Database interface and repository abstractions.

This module consolidates the feature-store protocol and repository
implementations for user-drawn polygons. It provides a stable import
location for repository dependency injection throughout the application,
supporting production and testing backends.

Example:
    Use in a service or FastAPI dependency:
        >>> from polydraw.db import database
        >>> repo = database.get_polygon_repository(settings)
        >>> repo.list()
"""
