"""
Creature and item catalog operations.

Called from the HTTP routes (routes/creatures.py, routes/items.py) and by
game creation when it spawns monsters. They validate input and delegate
persistence to the store.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from models.domain_models import (
    ABILITY_COUNT,
    EQUIPMENT_SLOT_COUNT,
    Consumable,
    Creature,
    CreatureUpdate,
    Currency,
    Equipment,
    NewCreature,
)
from stores import (
    GameStore,
    CreatureNotFound,
    CreatureTypeMismatch,
    InvalidState,
)
from utils.validation import is_valid_name

logger = logging.getLogger(__name__)


def _enum_value(value):
    return getattr(value, "value", value)


def _validate_abilities(abilities: list[int]) -> None:
    if len(abilities) != ABILITY_COUNT:
        raise InvalidState(f"Expected {ABILITY_COUNT} abilities, got {len(abilities)}")


def _validate_name(name: str) -> None:
    if not is_valid_name(name):
        raise InvalidState(f"Invalid name: {name!r}")


async def _validate_inventory(store: GameStore, creature_id: int, inventory: Dict[str, Any], equipped_ids: list) -> None:
    for label, items, capacity in (
        ("equipment", inventory["equipment_ids"], inventory["equipment_capacity"]),
        ("consumables", inventory["consumable_ids"], inventory["consumables_capacity"]),
    ):
        if capacity < 0:
            raise InvalidState(f"Inventory {label} capacity cannot be negative")
        if len(items) > capacity:
            raise InvalidState(
                f"Could not update creature {creature_id}: {len(items)} {label} exceed capacity {capacity}"
            )

    equipment_ids = list(inventory["equipment_ids"]) + [i for i in equipped_ids if i is not None]
    for label, ids, lookup in (
        ("equipment", equipment_ids, store.get_equipment),
        ("consumable", inventory["consumable_ids"], store.get_consumables),
        ("currency", inventory["currency_ids"], store.get_currencies),
    ):
        known = {item["id"] for item in await lookup(ids)}
        missing = sorted(set(ids) - known)
        if missing:
            raise InvalidState(f"Could not update creature {creature_id}: unknown {label} ids {missing}")


async def create_creature(store: GameStore, data: Dict[str, Any], expected_type: str) -> Creature:
    """
    Create a monster or character.

    Args:
        store: GameStore instance
        data: creature fields (name, hp, abilities, creature_class, race,
            creature_type, equipment_capacity, consumables_capacity)
        expected_type: the creature type the caller is allowed to create

    Raises:
        CreatureTypeMismatch: if data's creature_type is not expected_type
        InvalidState: if the name, abilities, hp or capacities are invalid
    """
    creature_type = _enum_value(data["creature_type"])
    expected_type = _enum_value(expected_type)
    if creature_type != expected_type:
        raise CreatureTypeMismatch(
            f"Could not create {expected_type} because type was not of {expected_type}"
        )

    _validate_name(data["name"])
    _validate_abilities(data["abilities"])
    if data["hp"] < 1:
        raise InvalidState("hp must be at least 1")
    if data.get("equipment_capacity", 0) < 0 or data.get("consumables_capacity", 0) < 0:
        raise InvalidState("Inventory capacities cannot be negative")

    new_creature: NewCreature = {
        "name": data["name"],
        "hp": data["hp"],
        "abilities": list(data["abilities"]),
        "creature_class": _enum_value(data["creature_class"]),
        "race": _enum_value(data["race"]),
        "creature_type": creature_type,
        "equipment_capacity": data["equipment_capacity"],
        "consumables_capacity": data["consumables_capacity"],
    }
    return await store.create_creature(new_creature)


async def get_creatures(
    store: GameStore,
    ids: Optional[Iterable[int]] = None,
    creature_type: Optional[str] = None,
) -> list[Creature]:
    return await store.get_creatures(ids, _enum_value(creature_type))


async def get_creature(store: GameStore, creature_id: int, creature_type: Optional[str] = None) -> Creature:
    return await store.get_creature(creature_id, _enum_value(creature_type))


async def delete_creature(store: GameStore, creature_id: int, creature_type: str) -> bool:
    """
    Delete a creature, guarded by its stored type.

    Returns False when the creature does not exist.

    Raises:
        CreatureTypeMismatch: if the stored creature is of another type
    """
    return await store.delete_creature(creature_id, _enum_value(creature_type))


async def update_creature(
    store: GameStore,
    creature_id: int,
    data: Dict[str, Any],
    expected_type: Optional[str] = None,
) -> Creature:
    """
    Replace a creature and its existing properties, type and inventory rows.

    Sub-objects must carry ids of rows that already exist; nothing is
    created here.

    Raises:
        InvalidState: if a sub-object id is missing or the payload is malformed
            or the inventory is over capacity or references unknown items
        CreatureNotFound: if the creature does not exist
        CreatureTypeMismatch: if expected_type is given and the stored type differs
    """
    properties = data["properties"]
    creature_type_record = data["type"]
    inventory = data["inventory"]

    for label, part in (("properties", properties), ("type", creature_type_record), ("inventory", inventory)):
        if part.get("id") is None:
            raise InvalidState(f"Could not update creature {creature_id} because {label}.id was not set")

    _validate_name(data["name"])
    _validate_abilities(properties["abilities"])
    if len(data["equipped_ids"]) != EQUIPMENT_SLOT_COUNT:
        raise InvalidState(
            f"Expected {EQUIPMENT_SLOT_COUNT} equipped slots, got {len(data['equipped_ids'])}"
        )

    update: CreatureUpdate = {
        "name": data["name"],
        "creature_type": _enum_value(data["creature_type"]),
        "properties": {
            "id": properties["id"],
            "lvl": properties["lvl"],
            "xp": properties["xp"],
            "hp": properties["hp"],
            "abilities": list(properties["abilities"]),
        },
        "type": {
            "id": creature_type_record["id"],
            "creature_class": _enum_value(creature_type_record["creature_class"]),
            "race": _enum_value(creature_type_record["race"]),
            "c_type": _enum_value(creature_type_record["c_type"]),
        },
        "inventory": {
            "id": inventory["id"],
            "equipment_capacity": inventory["equipment_capacity"],
            "consumables_capacity": inventory["consumables_capacity"],
            "equipment_ids": list(inventory.get("equipment_ids", [])),
            "consumable_ids": list(inventory.get("consumable_ids", [])),
            "currency_ids": list(inventory.get("currency_ids", [])),
        },
        "equipped_ids": list(data["equipped_ids"]),
    }

    async with store.transaction():
        stored_type = await store.get_creature_type_of(creature_id)
        if stored_type is None:
            raise CreatureNotFound(f"Could not update creature {creature_id} because it could not be found.")
        if expected_type is not None and stored_type != _enum_value(expected_type):
            raise CreatureTypeMismatch(
                f"Could not update creature {creature_id} because it is a {stored_type}"
            )
        await _validate_inventory(store, creature_id, update["inventory"], update["equipped_ids"])
        await store.update_creature(creature_id, update)
        return await store.get_creature(creature_id)


# --- Item catalog ---

async def create_equipment(store: GameStore, name: str, slot: int, ability_modifiers: list[int]) -> Equipment:
    _validate_name(name)
    if len(ability_modifiers) != ABILITY_COUNT:
        raise InvalidState(f"Expected {ABILITY_COUNT} ability modifiers, got {len(ability_modifiers)}")
    return await store.create_equipment(name, int(slot), list(ability_modifiers))


async def create_consumable(store: GameStore, name: str, consumable_type: str) -> Consumable:
    _validate_name(name)
    return await store.create_consumable(name, _enum_value(consumable_type))


async def create_currency(store: GameStore, currency_type: str, total: int) -> Currency:
    if total < 0:
        raise InvalidState("Currency total cannot be negative")
    return await store.create_currency(_enum_value(currency_type), total)
