"""
Shared exception definitions for the store and the game services.

Hierarchy:
- StoreError (base for everything raised by stores and services)
  - NotFound (referenced entity absent)
  - UnexpectedResult (storage invariant broken)
  - GameStoreError
    - InvalidState (bad input or failed precondition) and its kinds
"""


# =========================
# Base exception
# =========================

class StoreError(Exception):
    """Base exception for all store-related errors."""
    retryable: bool = True


class UnexpectedResult(StoreError):
    retryable = True
    #aka, the "how the heck did this happen" exception, such as scenarios that can only occur by breaking ACID


# =========================
# Not found
# =========================

class NotFound(StoreError):
    retryable = False


class CreatureNotFound(NotFound):
    retryable = False


class InventoryNotFound(NotFound):
    retryable = False


class GameNotFound(NotFound):
    retryable = False


class PartyNotFound(NotFound):
    retryable = False


class PlayerNotFound(NotFound):
    retryable = False


class CombatNotFound(NotFound):
    retryable = False


class CombatantNotFound(NotFound):
    retryable = False


class TreasureNotFound(NotFound):
    retryable = False


class TreasureTypeNotFound(NotFound):
    retryable = False


# =========================
# Validation / preconditions
# =========================

class GameStoreError(StoreError):
    """Base exception for game store errors."""
    retryable = True


class InvalidState(GameStoreError):
    retryable = False


class CreatureTypeMismatch(InvalidState):
    retryable = False


class MalformedInteractions(InvalidState):
    retryable = False


class GameFull(InvalidState):
    retryable = False


class GameNotActive(InvalidState):
    retryable = False


class InCombat(InvalidState):
    retryable = False


class InvalidMove(InvalidState):
    retryable = False


class DungeonMasterAlreadyAssigned(InvalidState):
    retryable = False


class NoMonstersNearby(InvalidState):
    retryable = False


class TurnMismatch(InvalidState):
    retryable = False


class FriendlyFire(InvalidState):
    retryable = False


class TreasureAlreadyOpened(InvalidState):
    retryable = False
