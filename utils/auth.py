"""Header-token checks for FastAPI route handlers.

Each dependency compares a request header against a token from `config`.
An unset token rejects every request for that role.
"""
import secrets
from typing import Optional

from fastapi import Request, HTTPException

import config

ADMIN_TOKEN_HEADER = "api-admin-token"
USER_TOKEN_HEADER = "api-user-token"


class UnauthorizedException(Exception):
	"""Raised when a token is missing or does not match."""
	pass


def _matches(provided: Optional[str], expected: Optional[str]) -> bool:
	if not provided or not expected:
		return False
	return secrets.compare_digest(provided.encode(), expected.encode())


def is_authorized_admin(request: Request) -> bool:
	return _matches(request.headers.get(ADMIN_TOKEN_HEADER), config.API_ADMIN_TOKEN)


def is_authorized_user(request: Request) -> bool:
	return _matches(request.headers.get(USER_TOKEN_HEADER), config.API_USER_TOKEN)


def check_token(request: Request, *, admin: bool = False, user: bool = False) -> None:
	"""Raise UnauthorizedException unless one of the allowed roles presented a valid token."""
	if admin and is_authorized_admin(request):
		return
	if user and is_authorized_user(request):
		return
	raise UnauthorizedException("Unauthorized request.")


def _dependency(*, admin: bool, user: bool):
	async def _check(request: Request) -> None:
		try:
			check_token(request, admin=admin, user=user)
		except UnauthorizedException as e:
			raise HTTPException(status_code=401, detail=str(e))
	return _check


require_admin = _dependency(admin=True, user=False)
require_user = _dependency(admin=False, user=True)
require_shared = _dependency(admin=True, user=True)
