"""HTTP route modules (FastAPI routers) for the application.

This file explicitly exports the router objects provided by each
submodule so callers can do:

	from routes import games_router
	app.include_router(games_router, prefix="/game")

Submodules expose an `APIRouter` named `router`, except `creatures`, which
builds one router per creature type.
"""

from .creatures import monster_router, character_router
from .items import router as items_router
from .treasure import router as treasure_router
from .games import router as games_router

__all__ = [
	"monster_router",
	"character_router",
	"items_router",
	"treasure_router",
	"games_router",
]
