"""Utility helpers used across the project.

Make commonly used helpers available at the package level for convenience.

Exports:
- range helpers: `pick_integer_from_range`, `pick_from_pool`
- validation helpers: `is_valid_name`, `VALID_NAME_RE`

Token dependencies live in `utils.auth` and are imported by the routes only.
"""

from .ranges import pick_integer_from_range, pick_from_pool
from .validation import is_valid_name, VALID_NAME_RE

__all__ = [
	"pick_integer_from_range",
	"pick_from_pool",
	"is_valid_name",
	"VALID_NAME_RE",
]
