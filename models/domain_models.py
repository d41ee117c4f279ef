"""Domain-level typed models used by services and stores.

Prefer `TypedDict` for lightweight structural typing that maps directly to
the JSON-like dicts stored in the database. Enumerations keep their ordinal
order stable because abilities, equipment slots and interaction types are
persisted positionally.
"""
from __future__ import annotations

from enum import Enum, IntEnum
from typing import TypedDict, TYPE_CHECKING

if TYPE_CHECKING:
    from .interaction_grid import InteractionGrid


class Ability(IntEnum):
    STR = 0
    DEX = 1
    CON = 2
    INT = 3
    WIS = 4
    CHA = 5


class EquipmentSlot(IntEnum):
    HEAD = 0
    TORSO = 1
    LEGS = 2
    HANDS = 3
    FEET = 4
    RING = 5
    NECKLACE = 6


ABILITY_COUNT = len(Ability)
EQUIPMENT_SLOT_COUNT = len(EquipmentSlot)


class CharacterClass(str, Enum):
    FIGHTER = "fighter"
    MONK = "monk"
    ROGUE = "rogue"
    RANGER = "ranger"
    WIZARD = "wizard"


class Race(str, Enum):
    DWARF = "dwarf"
    ELF = "elf"
    HUMAN = "human"
    ORC = "orc"


class CreatureType(str, Enum):
    CHARACTER = "character"
    MONSTER = "monster"
    NPC = "npc"


class ItemType(str, Enum):
    EQUIPMENT = "equipment"
    CONSUMABLE = "consumable"
    CURRENCY = "currency"


class ConsumableType(str, Enum):
    POTION = "potion"
    REVIVE = "revive"


class CurrencyType(str, Enum):
    GOLD = "gold"
    SILVER = "silver"


class InteractionType(IntEnum):
    MONSTER = 0
    NPC = 1
    TREASURE = 2


class CombatantType(str, Enum):
    MONSTER = "monster"
    PLAYER = "player"


class Direction(str, Enum):
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"


# (row delta, col delta) for a single step
DIRECTION_STEPS = {
    Direction.NORTH: (1, 0),
    Direction.SOUTH: (-1, 0),
    Direction.EAST: (0, 1),
    Direction.WEST: (0, -1),
}


# --- Items ---

class Equipment(TypedDict):
    id: int
    name: str
    slot: int
    ability_modifiers: list[int]


class Consumable(TypedDict):
    id: int
    name: str
    consumable_type: str


class Currency(TypedDict):
    id: int
    currency_type: str
    total: int


# --- Creatures ---

class CreatureProperties(TypedDict):
    id: int
    lvl: int
    xp: int
    hp: int
    abilities: list[int]


class CreatureTypeRecord(TypedDict):
    id: int
    creature_class: str
    race: str
    c_type: str


class Inventory(TypedDict):
    id: int
    equipment_capacity: int
    consumables_capacity: int
    equipment: list[Equipment]
    consumables: list[Consumable]
    currencies: list[Currency]


class InventoryIds(TypedDict):
    """Unresolved inventory row, as used when inserting loot."""
    id: int
    equipment_capacity: int
    consumables_capacity: int
    equipment_ids: list[int]
    consumable_ids: list[int]
    currency_ids: list[int]


class Creature(TypedDict):
    id: int
    name: str
    creature_type: str
    properties: CreatureProperties
    type: CreatureTypeRecord
    inventory: Inventory
    equipped: list[Equipment | None]


class NewCreature(TypedDict):
    name: str
    hp: int
    abilities: list[int]
    creature_class: str
    race: str
    creature_type: str
    equipment_capacity: int
    consumables_capacity: int


class CreatureUpdate(TypedDict):
    name: str
    creature_type: str
    properties: CreatureProperties
    type: CreatureTypeRecord
    inventory: InventoryIds
    equipped_ids: list[int | None]


# --- Treasure ---

class Range(TypedDict):
    min: int
    max: int


class TreasureType(TypedDict):
    id: int
    equipment_ids: list[int]
    consumable_ids: list[int]
    currency_ids: list[int]
    num_equipment: Range
    num_consumables: Range
    num_currencies: Range


class Treasure(TypedDict):
    id: int
    treasure_type: TreasureType
    opened: bool


# --- Games ---

class Location(TypedDict):
    row: int
    col: int


class Interaction(TypedDict):
    id: int
    interaction_type: InteractionType


class Player(TypedDict):
    id: int
    user_id: str
    user_name: str
    character_id: int | None


class DungeonMaster(TypedDict):
    id: int
    user_id: str
    user_name: str


class Party(TypedDict):
    id: int
    players: list[Player]
    location: Location


class GameMap(TypedDict):
    id: int
    num_rows: int
    num_cols: int
    interactions: InteractionGrid


class Combatant(TypedDict):
    id: int
    creature: Creature
    combatant_type: str


class Combat(TypedDict):
    id: int
    game_id: int
    combatant_turn_index: int
    combatants: list[Combatant]
    fainted_monster_ids: list[int]
    fainted_character_ids: list[int]


class Game(TypedDict):
    id: int
    party: Party
    dm: DungeonMaster | None
    map: GameMap
    combat_id: int | None
    active: bool


class GameInfo(TypedDict):
    game_id: int
    player_ids: list[int]
    dm_id: int | None


__all__ = [
    "Ability",
    "EquipmentSlot",
    "ABILITY_COUNT",
    "EQUIPMENT_SLOT_COUNT",
    "CharacterClass",
    "Race",
    "CreatureType",
    "ItemType",
    "ConsumableType",
    "CurrencyType",
    "InteractionType",
    "CombatantType",
    "Direction",
    "DIRECTION_STEPS",
    "Equipment",
    "Consumable",
    "Currency",
    "CreatureProperties",
    "CreatureTypeRecord",
    "Inventory",
    "InventoryIds",
    "Creature",
    "NewCreature",
    "CreatureUpdate",
    "Range",
    "TreasureType",
    "Treasure",
    "Location",
    "Interaction",
    "Player",
    "DungeonMaster",
    "Party",
    "GameMap",
    "Combatant",
    "Combat",
    "Game",
    "GameInfo",
]
