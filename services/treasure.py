"""
Treasure types, treasure instances and the loot engine.

Loot is rolled per item kind from a treasure type's pools (with
replacement) and handed out to random party inventories.
"""

import logging
from typing import Any, Dict, Optional

from models.domain_models import InventoryIds, ItemType, Range, Treasure, TreasureType
from stores import (
    GameStore,
    InvalidState,
    TreasureAlreadyOpened,
)
from utils import ranges

logger = logging.getLogger(__name__)


def _validate_range(label: str, value: Range) -> None:
    if value["min"] < 0 or value["min"] > value["max"]:
        raise InvalidState(f"{label} must satisfy 0 <= min <= max, got {value['min']}..{value['max']}")


async def _validate_pools(store: GameStore, data: Dict[str, Any]) -> None:
    for label, ids, lookup in (
        ("equipment", data["equipment_ids"], store.get_equipment),
        ("consumable", data["consumable_ids"], store.get_consumables),
        ("currency", data["currency_ids"], store.get_currencies),
    ):
        known = {item["id"] for item in await lookup(ids)}
        missing = sorted(set(ids) - known)
        if missing:
            raise InvalidState(f"Unknown {label} ids in treasure pool: {missing}")


def _treasure_type_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    fields = {
        "equipment_ids": list(data["equipment_ids"]),
        "consumable_ids": list(data["consumable_ids"]),
        "currency_ids": list(data["currency_ids"]),
        "num_equipment": {"min": data["num_equipment"]["min"], "max": data["num_equipment"]["max"]},
        "num_consumables": {"min": data["num_consumables"]["min"], "max": data["num_consumables"]["max"]},
        "num_currencies": {"min": data["num_currencies"]["min"], "max": data["num_currencies"]["max"]},
    }
    for label in ("num_equipment", "num_consumables", "num_currencies"):
        _validate_range(label, fields[label])
    return fields


async def create_treasure_type(store: GameStore, data: Dict[str, Any]) -> TreasureType:
    """
    Create a treasure type template.

    Raises:
        InvalidState: if a range is malformed or a pool references unknown items
    """
    fields = _treasure_type_fields(data)
    async with store.transaction():
        await _validate_pools(store, fields)
        return await store.create_treasure_type(**fields)


async def update_treasure_type(store: GameStore, treasure_type_id: int, data: Dict[str, Any]) -> TreasureType:
    fields = _treasure_type_fields(data)
    async with store.transaction():
        await _validate_pools(store, fields)
        return await store.update_treasure_type(treasure_type_id, **fields)


async def get_treasure_type(store: GameStore, treasure_type_id: int) -> TreasureType:
    return await store.get_treasure_type(treasure_type_id)


async def list_treasure_types(store: GameStore) -> list[TreasureType]:
    return await store.list_treasure_types()


async def delete_treasure_type(store: GameStore, treasure_type_id: int) -> bool:
    return await store.delete_treasure_type(treasure_type_id)


async def create_treasure(store: GameStore, treasure_type_id: int) -> Treasure:
    return await store.create_treasure(treasure_type_id)


async def get_treasure(store: GameStore, treasure_id: int) -> Treasure:
    return await store.get_treasure(treasure_id)


def get_loot(value_range: Optional[Range], id_pool: Optional[list[int]]) -> list[int]:
    """Roll how many items to draw from `value_range`, then draw that many ids from the pool with replacement."""
    if not id_pool or not value_range:
        return []
    count = ranges.pick_integer_from_range(value_range["min"], value_range["max"])
    return [ranges.pick_from_pool(id_pool) for _ in range(count)]


def _distribute(
    item_type: ItemType,
    item_ids: list[int],
    inventories: list[InventoryIds],
    awarded: Dict[int, Dict[str, list[int]]],
    dropped: list[Dict[str, Any]],
) -> None:
    """Hand each item to a random inventory; capped kinds are dropped when the pick is full."""
    for item_id in item_ids:
        inventory = ranges.pick_from_pool(inventories)
        if item_type == ItemType.EQUIPMENT:
            ids_key, capacity = "equipment_ids", inventory["equipment_capacity"]
        elif item_type == ItemType.CONSUMABLE:
            ids_key, capacity = "consumable_ids", inventory["consumables_capacity"]
        else:
            ids_key, capacity = "currency_ids", None

        if capacity is not None and len(inventory[ids_key]) >= capacity:
            dropped.append({"item_type": item_type.value, "id": item_id, "inventory_id": inventory["id"]})
            continue

        inventory[ids_key].append(item_id)
        awarded[inventory["id"]][ids_key].append(item_id)


async def open_treasure_instance(store: GameStore, treasure_id: int, party_id: int) -> Dict[str, Any]:
    """
    Open a treasure and distribute its loot among the party's inventories.

    Each rolled item goes to a uniformly chosen inventory. Equipment and
    consumables landing in a full inventory are dropped; currency always
    lands. The treasure is marked opened in the same transaction.

    Raises:
        TreasureNotFound: if the treasure does not exist
        TreasureAlreadyOpened: if it was opened before
        PartyNotFound: if the party does not exist
        InvalidState: if the party has no players, or none has a character
    """
    async with store.transaction():
        treasure = await store.get_treasure(treasure_id)
        if treasure["opened"]:
            raise TreasureAlreadyOpened(f"Treasure {treasure_id} has already been opened")

        party = await store.get_party(party_id)
        if not party["players"]:
            raise InvalidState(f"Party {party_id} has no players")

        inventories = await store.get_party_inventories(party_id)
        if not inventories:
            raise InvalidState(f"No player in party {party_id} has a character to carry loot")

        treasure_type = treasure["treasure_type"]
        consumable_ids = get_loot(treasure_type["num_consumables"], treasure_type["consumable_ids"])
        equipment_ids = get_loot(treasure_type["num_equipment"], treasure_type["equipment_ids"])
        currency_ids = get_loot(treasure_type["num_currencies"], treasure_type["currency_ids"])

        awarded = {
            inventory["id"]: {"equipment_ids": [], "consumable_ids": [], "currency_ids": []}
            for inventory in inventories
        }
        dropped: list[Dict[str, Any]] = []
        _distribute(ItemType.CONSUMABLE, consumable_ids, inventories, awarded, dropped)
        _distribute(ItemType.EQUIPMENT, equipment_ids, inventories, awarded, dropped)
        _distribute(ItemType.CURRENCY, currency_ids, inventories, awarded, dropped)

        for inventory in inventories:
            if any(awarded[inventory["id"]].values()):
                await store.update_inventory_items(inventory)

        await store.mark_treasure_opened(treasure_id)

    logger.info(
        f"Opened treasure {treasure_id} for party {party_id}: "
        f"{len(equipment_ids)} equipment, {len(consumable_ids)} consumables, "
        f"{len(currency_ids)} currencies rolled, {len(dropped)} dropped"
    )
    return {
        "treasure_id": treasure_id,
        "party_id": party_id,
        "awarded": [{"inventory_id": inventory_id, **items} for inventory_id, items in awarded.items()],
        "dropped": dropped,
    }
