import pytest

import config
from models.domain_models import Direction, InteractionType
from services import games
from stores.exceptions import (
    CreatureNotFound,
    DungeonMasterAlreadyAssigned,
    GameFull,
    GameNotActive,
    InCombat,
    InvalidMove,
    InvalidState,
    PlayerNotFound,
)
from tests.factories import create_character, create_game_with_party, create_monster, create_treasure_type


def _create_request(**overrides):
    data = {
        "num_rows": 6,
        "num_cols": 4,
        "min_monsters": 2,
        "max_monsters": 2,
        "min_treasures": 1,
        "max_treasures": 1,
        "user": None,
        "dm": None,
    }
    data.update(overrides)
    return data


def test_create_game_requires_a_treasure_type(run_with_store):
    async def scenario(store):
        with pytest.raises(InvalidState):
            await games.create_game(store, _create_request())
        return await store.get_creatures()

    assert run_with_store(scenario) == []


@pytest.mark.parametrize("overrides", [
    {"min_monsters": 0},
    {"min_monsters": 3, "max_monsters": 2},
    {"max_monsters": config.MAX_MONSTERS_ON_MAP + 1},
    {"min_treasures": 0},
    {"max_treasures": config.MAX_TREASURES_ON_MAP + 1},
    {"num_rows": -1},
    {"num_rows": 0},
    {"num_rows": 0, "num_cols": 0},
    {"num_cols": 0},
])
def test_create_game_validates_counts(run_with_store, overrides):
    async def scenario(store):
        await create_treasure_type(store)
        with pytest.raises(InvalidState):
            await games.create_game(store, _create_request(**overrides))

    run_with_store(scenario)


def test_create_game_populates_map(run_with_store, scripted_rolls):
    async def scenario(store):
        hero = await create_character(store)
        treasure_type = await create_treasure_type(store)
        # monster count, treasure count, then per monster: hp, row, col
        scripted_rolls.extend([2, 1, 120, 5, 3, 60, 1, 2])
        game = await games.create_game(store, _create_request(
            user={"user_id": "u-1", "user_name": "Alice", "character_id": hero["id"]},
            dm={"user_id": "u-2", "user_name": "Bob"},
        ))
        return hero, treasure_type, game, await store.get_game(game["id"]), await store.get_creatures(creature_type="monster")

    hero, treasure_type, game, stored, monsters = run_with_store(scenario)
    assert game["active"] is False
    assert game["combat_id"] is None
    assert stored["party"]["location"] == {"row": 0, "col": 0}
    assert [p["character_id"] for p in stored["party"]["players"]] == [hero["id"]]
    assert stored["dm"]["user_id"] == "u-2"
    assert (stored["map"]["num_rows"], stored["map"]["num_cols"]) == (6, 4)

    grid = stored["map"]["interactions"]
    assert grid == game["map"]["interactions"]
    assert len(grid) == 3
    assert grid.get_interactions_at(5, 3)[0]["interaction_type"] == InteractionType.MONSTER
    assert grid.get_interactions_at(1, 2)[0]["interaction_type"] == InteractionType.MONSTER
    treasure_tile = grid.get_interactions_at(0, 0)
    assert [i["interaction_type"] for i in treasure_tile] == [InteractionType.TREASURE]

    assert sorted(m["properties"]["hp"] for m in monsters) == [60, 120]
    for monster in monsters:
        assert monster["name"] == config.MONSTER_NAME
        assert monster["properties"]["abilities"] == config.MONSTER_ABILITIES
        assert monster["type"]["race"] == config.MONSTER_RACE


def test_create_game_rolls_back_on_bad_character(run_with_store):
    async def scenario(store):
        await create_treasure_type(store)
        with pytest.raises(CreatureNotFound):
            await games.create_game(store, _create_request(
                user={"user_id": "u-1", "user_name": "Alice", "character_id": 999},
            ))
        return await store.get_creatures(), await store.list_available_party_games(config.MAX_PLAYERS)

    monsters, available = run_with_store(scenario)
    assert monsters == []
    assert available == []


def test_join_as_dungeon_master(run_with_store):
    async def scenario(store):
        game = await create_game_with_party(store, dm_user_id=None)
        first = await games.join_game_as_dungeon_master(store, game["id"], "dm-a", "Ann")
        again = await games.join_game_as_dungeon_master(store, game["id"], "dm-a", "Ann")
        with pytest.raises(DungeonMasterAlreadyAssigned):
            await games.join_game_as_dungeon_master(store, game["id"], "dm-b", "Ben")
        return first, again, await store.get_game(game["id"])

    first, again, stored = run_with_store(scenario)
    assert first["dm"]["user_id"] == "dm-a"
    assert again["dm"]["id"] == first["dm"]["id"]
    assert stored["dm"]["id"] == first["dm"]["id"]


def test_join_as_player_is_idempotent_and_capped(run_with_store):
    async def scenario(store):
        game = await create_game_with_party(store)
        heroes = [await create_character(store, f"Hero {i}") for i in range(config.MAX_PLAYERS + 1)]

        await games.join_game_as_player(store, game["id"], "p-0", "Zero", heroes[0]["id"])
        repeat = await games.join_game_as_player(store, game["id"], "p-0", "Zero", heroes[0]["id"])
        for i in range(1, config.MAX_PLAYERS):
            await games.join_game_as_player(store, game["id"], f"p-{i}", f"Player {i}", heroes[i]["id"])
        with pytest.raises(GameFull):
            await games.join_game_as_player(store, game["id"], "p-late", "Late", heroes[-1]["id"])
        return repeat, await store.get_game(game["id"])

    repeat, stored = run_with_store(scenario)
    assert len(repeat["party"]["players"]) == 1
    assert [p["user_id"] for p in stored["party"]["players"]] == [f"p-{i}" for i in range(config.MAX_PLAYERS)]


def test_join_as_player_checks_character(run_with_store):
    async def scenario(store):
        game = await create_game_with_party(store)
        goblin = await create_monster(store)
        hero = await create_character(store)
        with pytest.raises(InvalidState):
            await games.join_game_as_player(store, game["id"], "p-1", "Alice", goblin["id"])
        with pytest.raises(CreatureNotFound):
            await games.join_game_as_player(store, game["id"], "p-1", "Alice", 999)
        await games.join_game_as_player(store, game["id"], "p-1", "Alice", hero["id"])
        with pytest.raises(InvalidState):
            await games.join_game_as_player(store, game["id"], "p-2", "Bob", hero["id"])
        without_character = await games.join_game_as_player(store, game["id"], "p-3", "Cy")
        return hero["id"], without_character

    hero_id, game = run_with_store(scenario)
    assert [p["character_id"] for p in game["party"]["players"]] == [hero_id, None]


def test_same_user_can_be_dungeon_master_and_player(run_with_store):
    async def scenario(store):
        game = await create_game_with_party(store, dm_user_id="both")
        hero = await create_character(store)
        return await games.join_game_as_player(store, game["id"], "both", "Both", hero["id"])

    game = run_with_store(scenario)
    assert game["dm"]["user_id"] == "both"
    assert game["party"]["players"][0]["user_id"] == "both"


def test_start_game_preconditions(run_with_store):
    async def scenario(store):
        hero = await create_character(store)
        no_dm = await create_game_with_party(store, [hero], dm_user_id=None)
        no_players = await create_game_with_party(store, [])
        ready = await create_game_with_party(store, [hero])

        with pytest.raises(InvalidState):
            await games.start_game(store, no_dm["id"])
        with pytest.raises(InvalidState):
            await games.start_game(store, no_players["id"])
        started = await games.start_game(store, ready["id"])
        again = await games.start_game(store, ready["id"])
        return started, again, await store.get_game(no_dm["id"])

    started, again, no_dm = run_with_store(scenario)
    assert started["active"] is True
    assert again["active"] is True
    assert no_dm["active"] is False


def test_move_party_boundaries(run_with_store):
    async def scenario(store):
        hero = await create_character(store)
        game = await create_game_with_party(store, [hero], num_rows=3, num_cols=3, active=True)
        player_id = game["party"]["players"][0]["id"]

        for direction in (Direction.SOUTH, Direction.WEST):
            with pytest.raises(InvalidMove):
                await games.move_party(store, game["id"], player_id, direction)
        moved = await games.move_party(store, game["id"], player_id, Direction.NORTH)
        east = await games.move_party(store, game["id"], player_id, Direction.EAST)
        with pytest.raises(PlayerNotFound):
            await games.move_party(store, game["id"], player_id + 100, Direction.NORTH)
        return moved["location"], east["location"], await store.get_party(game["party"]["id"])

    moved, east, party = run_with_store(scenario)
    assert moved == {"row": 1, "col": 0}
    assert east == {"row": 1, "col": 1}
    assert party["location"] == {"row": 1, "col": 1}


def test_move_party_requires_active_game_out_of_combat(run_with_store):
    async def scenario(store):
        hero = await create_character(store)
        inactive = await create_game_with_party(store, [hero])
        player_id = inactive["party"]["players"][0]["id"]
        with pytest.raises(GameNotActive):
            await games.move_party(store, inactive["id"], player_id, Direction.NORTH)

        empty = await create_game_with_party(store, [], active=True)
        with pytest.raises(InvalidState):
            await games.move_party(store, empty["id"], player_id, Direction.NORTH)

        goblin = await create_monster(store)
        fighting = await create_game_with_party(store, [hero], monsters_at={(0, 0): [goblin]}, active=True)
        combat = await store.create_combat(fighting["id"], [(goblin, "monster")])
        fighting["combat_id"] = combat["id"]
        await store.update_game(fighting)
        with pytest.raises(InCombat):
            await games.move_party(store, fighting["id"], fighting["party"]["players"][0]["id"], Direction.NORTH)

    run_with_store(scenario)


def test_available_lists(run_with_store):
    async def scenario(store):
        hero = await create_character(store)
        open_for_dm = await create_game_with_party(store, [hero], dm_user_id=None)
        has_dm = await create_game_with_party(store, [hero])
        full = await create_game_with_party(store, [hero] * config.MAX_PLAYERS)
        started = await create_game_with_party(store, [hero], active=True)
        return (
            [open_for_dm["id"], has_dm["id"], full["id"], started["id"]],
            await games.get_available_party_list(store),
            await games.get_available_dungeon_master_list(store),
        )

    (open_for_dm, has_dm, full, started), party_list, dm_list = run_with_store(scenario)
    assert [g["game_id"] for g in party_list] == [open_for_dm, has_dm]
    assert [g["game_id"] for g in dm_list] == [open_for_dm]
    assert dm_list[0]["dm_id"] is None
    assert len(dm_list[0]["player_ids"]) == 1


def test_update_game(run_with_store):
    async def scenario(store):
        hero = await create_character(store)
        game = await create_game_with_party(store, [hero], num_rows=4, num_cols=4)
        with pytest.raises(InvalidState):
            await games.update_game(store, game["id"], {"location": {"row": 4, "col": 0}, "active": None})
        moved = await games.update_game(store, game["id"], {"location": {"row": 3, "col": 2}, "active": True})
        with pytest.raises(InvalidState):
            await games.update_game(store, game["id"], {"location": None, "active": False})
        return moved

    moved = run_with_store(scenario)
    assert moved["active"] is True
    assert moved["party"]["location"] == {"row": 3, "col": 2}
