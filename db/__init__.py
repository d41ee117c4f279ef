"""Database package helpers.

Expose connection and initialization helpers so callers can import
from `db` directly (e.g. `from db import connect, init_db`).

Keeping these exports here keeps call sites simple and makes the
`db` package a small explicit public surface.
"""

from .connections import connect, apply_schema, init_db, ensure_db, SCHEMA_PATH

__all__ = ["connect", "apply_schema", "init_db", "ensure_db", "SCHEMA_PATH"]
