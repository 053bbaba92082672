"""
tablestore

Top-level package for the tablestore service: a small HTTP document store that
keeps named tables of JSON values in memory and snapshots them to one file.

Responsibilities:
- Expose package version metadata.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"


# --- Module Notes -----------------------------------------------------------
# Keep this file minimal to avoid import-time side effects across the codebase.
