"""
tablestore.api

API package for the tablestore service.

Responsibilities:
- FastAPI app factory and the table router.
- API-layer dependency wiring and error rendering.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer stays thin: path/body parsing + delegation to `TableEngine`.
