from __future__ import annotations

from typing import Optional, Iterable, TYPE_CHECKING
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager

from models.domain_models import (
    Combat,
    Consumable,
    Creature,
    CreatureProperties,
    CreatureUpdate,
    Currency,
    DungeonMaster,
    Equipment,
    Game,
    GameInfo,
    GameMap,
    InventoryIds,
    Location,
    NewCreature,
    Party,
    Player,
    Range,
    Treasure,
    TreasureType,
)

if TYPE_CHECKING:
    from models.interaction_grid import InteractionGrid


# =========================
# GameStore Interface
# =========================

class GameStore(ABC):
    """
    The GameStore is the sole authority over persisted game state.

    Invariants:
    - Creature creation is all-or-nothing
    - Every method runs inside `transaction()`; callers wrap multi-write
      operations in one outer `transaction()` so they commit or roll back together
    - All concurrency control lives here
    """

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager["GameStore"]:
        """Return an async context manager around one atomic unit of work.

        Nested use from the same task joins the outer transaction. Any
        exception rolls the whole unit back and propagates.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying connection."""

    # -------------------------------------------------
    # Creatures
    # -------------------------------------------------

    @abstractmethod
    async def create_creature(self, data: NewCreature) -> Creature:
        """Create properties, type, inventory and creature rows atomically.

        Properties start at lvl 1 / xp 0; the inventory is empty; every
        equipment slot is unset.
        """

    @abstractmethod
    async def get_creatures(
        self,
        ids: Optional[Iterable[int]] = None,
        creature_type: Optional[str] = None,
    ) -> list[Creature]:
        """Return creatures with equipped items and inventory contents resolved.

        An empty or missing `ids` means every creature (of `creature_type`, if given).
        """

    @abstractmethod
    async def get_creature(self, creature_id: int, creature_type: Optional[str] = None) -> Creature:
        """Return one creature.

        Raises:
            CreatureNotFound: If no creature with that id (and type) exists.
        """

    @abstractmethod
    async def get_creature_type_of(self, creature_id: int) -> Optional[str]:
        """Return the stored creature_type of a creature, or None if it does not exist."""

    @abstractmethod
    async def delete_creature(self, creature_id: int, creature_type: str) -> bool:
        """Delete a creature and its sub-rows.

        Returns False if the creature does not exist.

        Raises:
            CreatureTypeMismatch: If the stored type differs from `creature_type`.
            InCombat: If the creature is a combatant in an active combat.
        """

    @abstractmethod
    async def update_creature(self, creature_id: int, data: CreatureUpdate) -> None:
        """Full replace of a creature and its existing sub-rows.

        Raises:
            CreatureNotFound: If the creature does not exist.
            InvalidState: If a referenced properties/type/inventory row does not exist.
        """

    @abstractmethod
    async def update_creature_properties(self, properties: CreatureProperties) -> None:
        """Persist lvl/xp/hp/abilities of an existing properties row."""

    # -------------------------------------------------
    # Items and inventories
    # -------------------------------------------------

    @abstractmethod
    async def create_equipment(self, name: str, slot: int, ability_modifiers: list[int]) -> Equipment:
        """Add an equipment item to the catalog."""

    @abstractmethod
    async def create_consumable(self, name: str, consumable_type: str) -> Consumable:
        """Add a consumable to the catalog."""

    @abstractmethod
    async def create_currency(self, currency_type: str, total: int) -> Currency:
        """Add a currency item to the catalog."""

    @abstractmethod
    async def get_equipment(self, ids: Iterable[Optional[int]]) -> list[Equipment]:
        """Resolve equipment ids, preserving order and duplicates; unknown ids are skipped."""

    @abstractmethod
    async def get_consumables(self, ids: Iterable[int]) -> list[Consumable]:
        """Resolve consumable ids, preserving order and duplicates."""

    @abstractmethod
    async def get_currencies(self, ids: Iterable[int]) -> list[Currency]:
        """Resolve currency ids, preserving order and duplicates."""

    @abstractmethod
    async def get_party_inventories(self, party_id: int) -> list[InventoryIds]:
        """Return the unresolved inventories of the party's characters, in player order.

        Players without a character contribute nothing.
        """

    @abstractmethod
    async def update_inventory_items(self, inventory: InventoryIds) -> None:
        """Persist the item id lists of an inventory.

        Raises:
            InventoryNotFound: If the inventory does not exist.
        """

    # -------------------------------------------------
    # Treasure
    # -------------------------------------------------

    @abstractmethod
    async def create_treasure_type(
        self,
        *,
        equipment_ids: list[int],
        consumable_ids: list[int],
        currency_ids: list[int],
        num_equipment: Range,
        num_consumables: Range,
        num_currencies: Range,
    ) -> TreasureType:
        """Create a treasure type template."""

    @abstractmethod
    async def update_treasure_type(
        self,
        treasure_type_id: int,
        *,
        equipment_ids: list[int],
        consumable_ids: list[int],
        currency_ids: list[int],
        num_equipment: Range,
        num_consumables: Range,
        num_currencies: Range,
    ) -> TreasureType:
        """Replace a treasure type template.

        Raises:
            TreasureTypeNotFound: If the treasure type does not exist.
        """

    @abstractmethod
    async def get_treasure_type(self, treasure_type_id: int) -> TreasureType:
        """
        Raises:
            TreasureTypeNotFound: If the treasure type does not exist.
        """

    @abstractmethod
    async def list_treasure_types(self) -> list[TreasureType]:
        """Return every treasure type."""

    @abstractmethod
    async def delete_treasure_type(self, treasure_type_id: int) -> bool:
        """
        Raises:
            TreasureTypeNotFound: If the treasure type does not exist.
            InvalidState: If treasure instances still use it.
        """

    @abstractmethod
    async def create_treasure(self, treasure_type_id: int) -> Treasure:
        """Create an unopened treasure instance of a type."""

    @abstractmethod
    async def get_treasure(self, treasure_id: int) -> Treasure:
        """
        Raises:
            TreasureNotFound: If the treasure does not exist.
        """

    @abstractmethod
    async def mark_treasure_opened(self, treasure_id: int) -> None:
        """Flip `opened` to true."""

    # -------------------------------------------------
    # Maps, parties, players, dungeon masters
    # -------------------------------------------------

    @abstractmethod
    async def create_game_map(self, num_rows: int, num_cols: int, interactions: "InteractionGrid") -> GameMap:
        """Persist a map with its flattened interaction grid."""

    @abstractmethod
    async def create_player(self, user_id: str, user_name: str, character_id: Optional[int]) -> Player:
        """Create a player record."""

    @abstractmethod
    async def create_party(self, players: list[Player], location: Location) -> Party:
        """Create a party with the given players at `location`."""

    @abstractmethod
    async def get_party(self, party_id: int) -> Party:
        """
        Raises:
            PartyNotFound: If the party does not exist.
        """

    @abstractmethod
    async def update_party(self, party: Party) -> Party:
        """Persist the player list and location of a party."""

    @abstractmethod
    async def create_dungeon_master(self, user_id: str, user_name: str) -> DungeonMaster:
        """Create a dungeon master record."""

    # -------------------------------------------------
    # Games
    # -------------------------------------------------

    @abstractmethod
    async def create_game(self, game_map: GameMap, party: Party, dm: Optional[DungeonMaster] = None) -> Game:
        """Create an inactive game linking party, map and optional dungeon master."""

    @abstractmethod
    async def get_game(self, game_id: int) -> Game:
        """Return the game with party, players, dungeon master and map assembled.

        Raises:
            GameNotFound: If the game does not exist.
            MalformedInteractions: If the stored interaction grid cannot be parsed.
        """

    @abstractmethod
    async def update_game(self, game: Game) -> Game:
        """Persist dm, combat reference and active flag of a game."""

    @abstractmethod
    async def list_available_party_games(self, max_players: int) -> list[GameInfo]:
        """Inactive games whose party has fewer than `max_players` players."""

    @abstractmethod
    async def list_available_dungeon_master_games(self) -> list[GameInfo]:
        """Inactive games without a dungeon master."""

    # -------------------------------------------------
    # Combat
    # -------------------------------------------------

    @abstractmethod
    async def create_combat(self, game_id: int, combatants: list[tuple[Creature, str]]) -> Combat:
        """Create combatant rows in the given order and a combat with turn index 0."""

    @abstractmethod
    async def get_combat(self, combat_id: int) -> Combat:
        """Return the combat with combatants in turn order and their creatures resolved.

        Raises:
            CombatNotFound: If the combat does not exist.
        """

    @abstractmethod
    async def update_combat(self, combat: Combat) -> None:
        """Persist turn index, combatant order and fainted lists."""

    @abstractmethod
    async def delete_combat(self, game_id: int, combat_id: int) -> bool:
        """Delete a combat and its combatants and clear the game's reference."""


