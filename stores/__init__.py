# Exceptions (imported first: the interface pulls in models, which need them)
from .exceptions import (
    StoreError,
    UnexpectedResult,
    NotFound,
    CreatureNotFound,
    InventoryNotFound,
    GameNotFound,
    PartyNotFound,
    PlayerNotFound,
    CombatNotFound,
    CombatantNotFound,
    TreasureNotFound,
    TreasureTypeNotFound,
    GameStoreError,
    InvalidState,
    CreatureTypeMismatch,
    MalformedInteractions,
    GameFull,
    GameNotActive,
    InCombat,
    InvalidMove,
    DungeonMasterAlreadyAssigned,
    NoMonstersNearby,
    TurnMismatch,
    FriendlyFire,
    TreasureAlreadyOpened,
)

# Abstractions
from .game_store import GameStore

__all__ = [
    # Abstractions
    "GameStore",
    # Exceptions
    "StoreError",
    "UnexpectedResult",
    "NotFound",
    "CreatureNotFound",
    "InventoryNotFound",
    "GameNotFound",
    "PartyNotFound",
    "PlayerNotFound",
    "CombatNotFound",
    "CombatantNotFound",
    "TreasureNotFound",
    "TreasureTypeNotFound",
    "GameStoreError",
    "InvalidState",
    "CreatureTypeMismatch",
    "MalformedInteractions",
    "GameFull",
    "GameNotActive",
    "InCombat",
    "InvalidMove",
    "DungeonMasterAlreadyAssigned",
    "NoMonstersNearby",
    "TurnMismatch",
    "FriendlyFire",
    "TreasureAlreadyOpened",
    # Runtime
    "init_stores",
    "close_stores",
    "get_game_store",
]


# Runtime singleton and initialization helpers
from typing import Optional
import logging

import config

logger = logging.getLogger(__name__)

# Use the abstract interface for typing; the instance is a SqliteGameStore
game_store: Optional[GameStore] = None


async def init_stores(db_path: Optional[str] = None) -> GameStore:
    """Initialize the module-level store singleton for this process.

    Safe to call multiple times; initialization is idempotent. Must run on
    the event loop that will serve requests, since the connection belongs
    to it.
    """
    global game_store

    if game_store is not None:
        return game_store

    # Concrete implementation stays private to this package
    from .sqlite_game_store import SqliteGameStore

    store = SqliteGameStore(db_path or config.DB_PATH)
    await store.init()
    game_store = store
    return game_store


async def close_stores() -> None:
    global game_store
    if game_store is not None:
        await game_store.close()
        game_store = None


def get_game_store() -> GameStore:
    """FastAPI dependency returning the initialized game store."""
    if game_store is None:
        raise RuntimeError("Game store is not initialized; call init_stores() at startup")
    return game_store
