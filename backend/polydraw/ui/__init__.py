"""Client-side state for the drawing tool.

Submodules:
    - map_canvas: rendering sources, drawing mode and the POI tile cache.
    - shell: load/save/delete orchestration against the REST API.
    - forms: attribute entry form and polygon detail panel state.
    - client: async HTTP client for the REST API.
"""
