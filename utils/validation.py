"""Validation helpers.

This module provides lightweight input validation used by the services for
user and creature names.
"""
import regex as re


# Allow: any Unicode letter/mark/number, spaces, plus a small, explicit set of name punctuation
VALID_NAME_RE = re.compile(r"^[\p{L}\p{M}\p{N} .'\-`’·]+$", flags=re.UNICODE)


def is_valid_name(s: str) -> bool:
	"""Return True if `s` is a reasonable name for users and creatures.

	- Strips and enforces a sensible maximum length.
	- Uses Unicode-aware character class matching.
	"""
	if not s:
		return False
	if s.isspace():
		return False
	s = s.strip()
	if len(s) == 0 or len(s) > 200:
		return False
	return bool(VALID_NAME_RE.match(s))
