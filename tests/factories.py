"""Test data factories to reduce boilerplate in tests.

Usage examples:
    from tests.factories import create_character, create_monster, create_game_with_party

    async def scenario(store):
        hero = await create_character(store, "Hero", abilities=[14, 12, 10, 10, 10, 10])
        game = await create_game_with_party(store, [hero])

All factories are coroutines and take the store first.
"""
from __future__ import annotations
from typing import Optional

from models.domain_models import CreatureType, InteractionType
from models.interaction_grid import InteractionGrid
from services import creatures

DEFAULT_ABILITIES = [10, 10, 10, 10, 10, 10]


def creature_data(
    name: str,
    creature_type: str,
    *,
    hp: int = 20,
    abilities: Optional[list[int]] = None,
    equipment_capacity: int = 10,
    consumables_capacity: int = 10,
) -> dict:
    return {
        "name": name,
        "hp": hp,
        "abilities": list(abilities or DEFAULT_ABILITIES),
        "creature_class": "fighter",
        "race": "human" if creature_type == CreatureType.CHARACTER.value else "orc",
        "creature_type": creature_type,
        "equipment_capacity": equipment_capacity,
        "consumables_capacity": consumables_capacity,
    }


async def create_character(store, name: str = "Hero", **kwargs):
    data = creature_data(name, CreatureType.CHARACTER.value, **kwargs)
    return await creatures.create_creature(store, data, CreatureType.CHARACTER)


async def create_monster(store, name: str = "Goblin", **kwargs):
    data = creature_data(name, CreatureType.MONSTER.value, **kwargs)
    return await creatures.create_creature(store, data, CreatureType.MONSTER)


async def create_treasure_type(
    store,
    *,
    equipment_ids=(),
    consumable_ids=(),
    currency_ids=(),
    num_equipment=(0, 0),
    num_consumables=(0, 0),
    num_currencies=(0, 0),
):
    return await store.create_treasure_type(
        equipment_ids=list(equipment_ids),
        consumable_ids=list(consumable_ids),
        currency_ids=list(currency_ids),
        num_equipment={"min": num_equipment[0], "max": num_equipment[1]},
        num_consumables={"min": num_consumables[0], "max": num_consumables[1]},
        num_currencies={"min": num_currencies[0], "max": num_currencies[1]},
    )


async def create_game_with_party(
    store,
    characters=(),
    *,
    num_rows: int = 10,
    num_cols: int = 10,
    monsters_at: Optional[dict] = None,
    location: tuple[int, int] = (0, 0),
    dm_user_id: Optional[str] = "dm-1",
    active: bool = False,
):
    """Build a game directly through the store, bypassing random map population.

    `monsters_at` maps (row, col) to a list of monster creatures placed there.
    Each character gets its own player with user ids user-1, user-2, ...
    """
    grid = InteractionGrid()
    for (row, col), monsters in (monsters_at or {}).items():
        for monster in monsters:
            grid.set_tile_interaction(row, col, {"id": monster["id"], "interaction_type": InteractionType.MONSTER})

    players = []
    for i, character in enumerate(characters, start=1):
        players.append(await store.create_player(f"user-{i}", f"Player {i}", character["id"]))

    dm = await store.create_dungeon_master(dm_user_id, "Dungeon Master") if dm_user_id else None
    party = await store.create_party(players, {"row": location[0], "col": location[1]})
    game_map = await store.create_game_map(num_rows, num_cols, grid)
    game = await store.create_game(game_map, party, dm)
    if active:
        game["active"] = True
        await store.update_game(game)
    return await store.get_game(game["id"])
