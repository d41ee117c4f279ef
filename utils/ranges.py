"""Inclusive integer range sampling used by map generation, loot and combat rolls.

Draws come from the module-level `random` generator and are not seeded.
"""
import random


def pick_integer_from_range(minimum: int, maximum: int) -> int:
	"""Return a uniformly sampled integer in [minimum, maximum].

	Raises ValueError if `minimum > maximum`.
	"""
	if minimum > maximum:
		raise ValueError(f"Invalid range: min {minimum} is greater than max {maximum}")
	return random.randint(minimum, maximum)


def pick_from_pool(pool: list):
	"""Return one uniformly chosen element of a non-empty list."""
	return pool[pick_integer_from_range(0, len(pool) - 1)]
