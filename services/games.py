"""
Game business logic: creation with map population, lobby joins, start,
party movement and the lobby listings.

These functions operate on domain objects and a store instance, not HTTP
requests, so they can be called from the routes or from scripts.
"""

import logging
from typing import Any, Dict, Optional

import config
from models.domain_models import (
    DIRECTION_STEPS,
    CharacterClass,
    CreatureType,
    Direction,
    Game,
    GameInfo,
    InteractionType,
    Location,
    Party,
    Race,
)
from models.interaction_grid import InteractionGrid
from stores import (
    GameStore,
    CreatureNotFound,
    DungeonMasterAlreadyAssigned,
    GameFull,
    GameNotActive,
    InCombat,
    InvalidMove,
    InvalidState,
    PlayerNotFound,
)
from utils import ranges
from utils.validation import is_valid_name
from . import creatures

logger = logging.getLogger(__name__)


def _validate_count_range(label: str, minimum: int, maximum: int, cap: int) -> None:
    if not (1 <= minimum <= maximum <= cap):
        raise InvalidState(f"{label} must satisfy 1 <= min <= max <= {cap}, got {minimum}..{maximum}")


def _in_bounds(location: Location, num_rows: int, num_cols: int) -> bool:
    return 0 <= location["row"] < num_rows and 0 <= location["col"] < num_cols


def _validate_user(user_id: str, user_name: str) -> None:
    if not user_id:
        raise InvalidState("user_id is required")
    if not is_valid_name(user_name):
        raise InvalidState(f"Invalid user name: {user_name!r}")


async def _require_character(store: GameStore, character_id: Optional[int]) -> None:
    if character_id is None:
        return
    creature_type = await store.get_creature_type_of(character_id)
    if creature_type is None:
        raise CreatureNotFound(f"Character {character_id} not found")
    if creature_type != CreatureType.CHARACTER.value:
        raise InvalidState(f"Creature {character_id} is a {creature_type}, not a character")


def _monster_template() -> Dict[str, Any]:
    return {
        "name": config.MONSTER_NAME,
        "hp": ranges.pick_integer_from_range(config.MONSTER_MIN_HP, config.MONSTER_MAX_HP),
        "abilities": list(config.MONSTER_ABILITIES),
        "creature_class": CharacterClass(config.MONSTER_CLASS).value,
        "race": Race(config.MONSTER_RACE).value,
        "creature_type": CreatureType.MONSTER.value,
        "equipment_capacity": config.MONSTER_EQUIPMENT_CAPACITY,
        "consumables_capacity": config.MONSTER_CONSUMABLES_CAPACITY,
    }


def _random_tile(num_rows: int, num_cols: int) -> tuple[int, int]:
    return (
        ranges.pick_integer_from_range(0, num_rows - 1),
        ranges.pick_integer_from_range(0, num_cols - 1),
    )


async def create_game(store: GameStore, data: Dict[str, Any]) -> Game:
    """
    Create a game with a freshly populated map.

    Monsters are synthesized from the configured template and treasure
    instances are drawn from the existing treasure types; each is placed on
    a random tile. The party starts at (0, 0) and the game starts inactive.

    Args:
        store: GameStore instance
        data: num_rows, num_cols, min/max monsters, min/max treasures and
            optional `user` (player) and `dm` records

    Raises:
        InvalidState: if a count range or the map size is invalid, or no treasure type exists
        CreatureNotFound: if the player's character does not exist
    """
    num_rows = data.get("num_rows")
    num_cols = data.get("num_cols")
    if num_rows is None:
        num_rows = config.DEFAULT_MAP_ROWS
    if num_cols is None:
        num_cols = config.DEFAULT_MAP_COLS
    if num_rows < 1 or num_cols < 1:
        raise InvalidState(f"Map must be at least 1x1, got {num_rows}x{num_cols}")

    _validate_count_range("monsters", data["min_monsters"], data["max_monsters"], config.MAX_MONSTERS_ON_MAP)
    _validate_count_range("treasures", data["min_treasures"], data["max_treasures"], config.MAX_TREASURES_ON_MAP)

    user = data.get("user")
    dm_data = data.get("dm")
    if user:
        _validate_user(user["user_id"], user["user_name"])
    if dm_data:
        _validate_user(dm_data["user_id"], dm_data["user_name"])

    async with store.transaction():
        treasure_types = await store.list_treasure_types()
        if not treasure_types:
            raise InvalidState("At least one treasure type must exist before a game can be created")

        num_monsters = ranges.pick_integer_from_range(data["min_monsters"], data["max_monsters"])
        num_treasures = ranges.pick_integer_from_range(data["min_treasures"], data["max_treasures"])

        grid = InteractionGrid()
        for _ in range(num_monsters):
            monster = await creatures.create_creature(store, _monster_template(), CreatureType.MONSTER)
            row, col = _random_tile(num_rows, num_cols)
            grid.set_tile_interaction(row, col, {"id": monster["id"], "interaction_type": InteractionType.MONSTER})

        for _ in range(num_treasures):
            treasure_type = ranges.pick_from_pool(treasure_types)
            treasure = await store.create_treasure(treasure_type["id"])
            row, col = _random_tile(num_rows, num_cols)
            grid.set_tile_interaction(row, col, {"id": treasure["id"], "interaction_type": InteractionType.TREASURE})

        players = []
        if user:
            await _require_character(store, user.get("character_id"))
            players.append(await store.create_player(user["user_id"], user["user_name"], user.get("character_id")))

        dm = None
        if dm_data:
            dm = await store.create_dungeon_master(dm_data["user_id"], dm_data["user_name"])

        party = await store.create_party(players, {"row": 0, "col": 0})
        game_map = await store.create_game_map(num_rows, num_cols, grid)
        game = await store.create_game(game_map, party, dm)

    logger.info(
        f"Created game {game['id']} on a {num_rows}x{num_cols} map "
        f"with {num_monsters} monsters and {num_treasures} treasures"
    )
    return game


async def get_game(store: GameStore, game_id: int) -> Game:
    return await store.get_game(game_id)


async def join_game_as_dungeon_master(store: GameStore, game_id: int, user_id: str, user_name: str) -> Game:
    """
    Attach a dungeon master to a game.

    Joining again as the same user is a no-op.

    Raises:
        GameNotFound: if the game does not exist
        DungeonMasterAlreadyAssigned: if another user is the dungeon master
    """
    _validate_user(user_id, user_name)
    async with store.transaction():
        game = await store.get_game(game_id)
        dm = game["dm"]
        if dm is not None:
            if dm["user_id"] == user_id:
                return game
            raise DungeonMasterAlreadyAssigned(f"Game {game_id} already has a dungeon master")

        game["dm"] = await store.create_dungeon_master(user_id, user_name)
        await store.update_game(game)

    logger.info(f"User {user_id} joined game {game_id} as dungeon master")
    return game


async def join_game_as_player(
    store: GameStore,
    game_id: int,
    user_id: str,
    user_name: str,
    character_id: Optional[int] = None,
) -> Game:
    """
    Add a player to a game's party.

    Joining again as the same user is a no-op. The same user may also be
    the game's dungeon master.

    Raises:
        GameNotFound: if the game does not exist
        GameFull: if the party already has MAX_PLAYERS players
        CreatureNotFound: if character_id does not reference a creature
        InvalidState: if character_id is not a character or is already in the party
    """
    _validate_user(user_id, user_name)
    async with store.transaction():
        game = await store.get_game(game_id)
        party = game["party"]
        if any(p["user_id"] == user_id for p in party["players"]):
            return game

        if len(party["players"]) >= config.MAX_PLAYERS:
            raise GameFull(f"Game {game_id} is full")

        if character_id is not None:
            await _require_character(store, character_id)
            if any(p["character_id"] == character_id for p in party["players"]):
                raise InvalidState(f"Character {character_id} is already in game {game_id}")

        player = await store.create_player(user_id, user_name, character_id)
        party["players"].append(player)
        await store.update_party(party)
        await store.update_game(game)

    if game["dm"] is not None and game["dm"]["user_id"] == user_id:
        logger.info(f"User {user_id} is both dungeon master and player in game {game_id}")
    logger.info(f"User {user_id} joined game {game_id} as player {player['id']}")
    return game


async def start_game(store: GameStore, game_id: int) -> Game:
    """
    Activate a game. Starting an active game is a no-op.

    Raises:
        GameNotFound: if the game does not exist
        InvalidState: if the game has no dungeon master or no players
    """
    async with store.transaction():
        game = await store.get_game(game_id)
        if game["active"]:
            return game
        if game["dm"] is None:
            raise InvalidState(f"Game {game_id} cannot start without a dungeon master")
        if not game["party"]["players"]:
            raise InvalidState(f"Game {game_id} cannot start without players")

        game["active"] = True
        await store.update_game(game)

    logger.info(f"Started game {game_id}")
    return game


async def move_party(store: GameStore, game_id: int, player_id: int, direction: Direction) -> Party:
    """
    Move the party one tile.

    Raises:
        GameNotFound: if the game does not exist
        GameNotActive: if the game has not started
        InCombat: if the game is in combat
        InvalidState: if the party is empty
        PlayerNotFound: if the player is not in the party
        InvalidMove: if the step would leave the map
    """
    direction = Direction(direction)
    async with store.transaction():
        game = await store.get_game(game_id)
        if not game["active"]:
            raise GameNotActive(f"Game {game_id} is not active")
        if game["combat_id"] is not None:
            raise InCombat(f"Game {game_id} is in combat {game['combat_id']}")

        party = game["party"]
        if not party["players"]:
            raise InvalidState(f"Game {game_id} has no players to move")
        if not any(p["id"] == player_id for p in party["players"]):
            raise PlayerNotFound(f"Player {player_id} is not in game {game_id}")

        row_step, col_step = DIRECTION_STEPS[direction]
        target = {"row": party["location"]["row"] + row_step, "col": party["location"]["col"] + col_step}
        game_map = game["map"]
        if not _in_bounds(target, game_map["num_rows"], game_map["num_cols"]):
            logger.warning(f"Rejected move {direction.value} of game {game_id} to ({target['row']}, {target['col']})")
            raise InvalidMove(f"Cannot move {direction.value}: ({target['row']}, {target['col']}) is outside the map")

        party["location"] = target
        await store.update_party(party)

    return party


async def update_game(store: GameStore, game_id: int, data: Dict[str, Any]) -> Game:
    """
    Administrative update: reposition the party and/or activate the game.

    Raises:
        GameNotFound: if the game does not exist
        InvalidState: if the location is outside the map, or deactivation is requested
    """
    async with store.transaction():
        game = await store.get_game(game_id)

        location = data.get("location")
        if location is not None:
            game_map = game["map"]
            if not _in_bounds(location, game_map["num_rows"], game_map["num_cols"]):
                raise InvalidState(f"Location ({location['row']}, {location['col']}) is outside the map")
            game["party"]["location"] = {"row": location["row"], "col": location["col"]}
            await store.update_party(game["party"])

        active = data.get("active")
        if active is True:
            game = await start_game(store, game_id)
        elif active is False and game["active"]:
            raise InvalidState(f"Game {game_id} is active and cannot be deactivated")

    return game


async def get_available_party_list(store: GameStore) -> list[GameInfo]:
    return await store.list_available_party_games(config.MAX_PLAYERS)


async def get_available_dungeon_master_list(store: GameStore) -> list[GameInfo]:
    return await store.list_available_dungeon_master_games()
