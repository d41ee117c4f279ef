import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

import config
from routes import monster_router, character_router, items_router, treasure_router, games_router
from stores import init_stores, close_stores, StoreError, NotFound, InvalidState

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# --- FastAPI setup ---
app = FastAPI(title="Dungeon session")

# --- Middleware ---
if config.CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )


# --- Store lifecycle ---
@app.on_event("startup")
async def startup_event():
    store = await init_stores(config.DB_PATH)
    logger.info(f"Game store ready: {type(store).__name__}")


@app.on_event("shutdown")
async def shutdown_event():
    await close_stores()


# --- Error mapping ---
@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidState)
async def invalid_state_handler(request: Request, exc: InvalidState):
    logger.info(f"Rejected {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"Unexpected store error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": str(exc), "retryable": exc.retryable})


# --- Register routes ---
app.include_router(monster_router, prefix="/monster", tags=["monsters"])
app.include_router(character_router, prefix="/character", tags=["characters"])
app.include_router(items_router, prefix="/item", tags=["items"])
app.include_router(treasure_router, prefix="/treasure", tags=["treasure"])
app.include_router(games_router, prefix="/game", tags=["games"])
