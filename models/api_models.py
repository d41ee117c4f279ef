"""Pydantic request models for the FastAPI endpoints.

Keep transport concerns (validation, docs) here and keep business/domain
types in `models.domain_models`. Services receive plain dicts produced by
`model_dump()`.
"""
from __future__ import annotations

from pydantic import BaseModel, Field

from .domain_models import (
    CharacterClass,
    ConsumableType,
    CreatureType,
    CurrencyType,
    Direction,
    EquipmentSlot,
    Race,
)


class RangeModel(BaseModel):
    min: int = Field(ge=0)
    max: int = Field(ge=0)


class LocationModel(BaseModel):
    row: int
    col: int


# --- Creatures ---

class CreateCreatureRequest(BaseModel):
    name: str
    hp: int
    abilities: list[int]
    creature_class: CharacterClass
    race: Race
    creature_type: CreatureType
    equipment_capacity: int = 10
    consumables_capacity: int = 10


class CreaturePropertiesModel(BaseModel):
    id: int | None = None
    lvl: int = 1
    xp: int = 0
    hp: int
    abilities: list[int]


class CreatureTypeModel(BaseModel):
    id: int | None = None
    creature_class: CharacterClass
    race: Race
    c_type: CreatureType


class InventoryModel(BaseModel):
    id: int | None = None
    equipment_capacity: int
    consumables_capacity: int
    equipment_ids: list[int] = []
    consumable_ids: list[int] = []
    currency_ids: list[int] = []


class UpdateCreatureRequest(BaseModel):
    name: str
    creature_type: CreatureType
    properties: CreaturePropertiesModel
    type: CreatureTypeModel
    inventory: InventoryModel
    equipped_ids: list[int | None]


# --- Items ---

class CreateEquipmentRequest(BaseModel):
    name: str
    slot: EquipmentSlot
    ability_modifiers: list[int] = [0, 0, 0, 0, 0, 0]


class CreateConsumableRequest(BaseModel):
    name: str
    consumable_type: ConsumableType


class CreateCurrencyRequest(BaseModel):
    currency_type: CurrencyType
    total: int = Field(ge=0)


# --- Treasure ---

class TreasureTypeRequest(BaseModel):
    equipment_ids: list[int]
    consumable_ids: list[int]
    currency_ids: list[int]
    num_equipment: RangeModel
    num_consumables: RangeModel
    num_currencies: RangeModel


# --- Games ---

class UserRef(BaseModel):
    user_id: str
    user_name: str


class PlayerRef(UserRef):
    character_id: int | None = None


class CreateGameRequest(BaseModel):
    num_rows: int = Field(default=10, ge=1)
    num_cols: int = Field(default=10, ge=1)
    min_monsters: int = 1
    max_monsters: int = 5
    min_treasures: int = 1
    max_treasures: int = 5
    user: PlayerRef | None = None
    dm: UserRef | None = None


class UpdateGameRequest(BaseModel):
    location: LocationModel | None = None
    active: bool | None = None


class JoinAsDungeonMasterRequest(BaseModel):
    user_name: str


class JoinAsPlayerRequest(BaseModel):
    user_name: str
    character_id: int | None = None


class MovePartyRequest(BaseModel):
    direction: Direction


class BeginCombatRequest(BaseModel):
    location: LocationModel | None = None


class CombatTurnRequest(BaseModel):
    attacker_combatant_id: int
    defender_combatant_id: int


__all__ = [
    "RangeModel",
    "LocationModel",
    "CreateCreatureRequest",
    "CreaturePropertiesModel",
    "CreatureTypeModel",
    "InventoryModel",
    "UpdateCreatureRequest",
    "CreateEquipmentRequest",
    "CreateConsumableRequest",
    "CreateCurrencyRequest",
    "TreasureTypeRequest",
    "UserRef",
    "PlayerRef",
    "CreateGameRequest",
    "UpdateGameRequest",
    "JoinAsDungeonMasterRequest",
    "JoinAsPlayerRequest",
    "MovePartyRequest",
    "BeginCombatRequest",
    "CombatTurnRequest",
]
