"""
Turn-based combat.

A combat starts on a tile with monsters, orders every combatant by DEX and
then resolves one attack per call. When one side has no combatant left the
combat is deleted and the game leaves combat.
"""

import logging
from typing import Any, Dict, Optional

from models.domain_models import (
    Ability,
    Combat,
    CombatantType,
    InteractionType,
    Location,
)
from stores import (
    GameStore,
    CombatNotFound,
    CombatantNotFound,
    FriendlyFire,
    InCombat,
    InvalidState,
    NoMonstersNearby,
    TurnMismatch,
    UnexpectedResult,
)
from utils import ranges

logger = logging.getLogger(__name__)

ATTACK_DIE = 20


def _dex(creature) -> int:
    return creature["properties"]["abilities"][Ability.DEX]


async def begin_combat(store: GameStore, game_id: int, location: Optional[Location] = None) -> Combat:
    """
    Start combat between the party and the monsters on a tile.

    `location` defaults to the party's location. Fainted creatures (hp 0)
    do not take part. Combatants are ordered by ascending DEX; ties keep
    monsters first, then characters in party order.

    Raises:
        GameNotFound: if the game does not exist
        InCombat: if the game is already in combat
        InvalidState: if the location is off the map or no character can fight
        NoMonstersNearby: if no living monster is on the tile
    """
    async with store.transaction():
        game = await store.get_game(game_id)
        if game["combat_id"] is not None:
            raise InCombat(f"Game {game_id} is already in combat {game['combat_id']}")

        if location is None:
            location = game["party"]["location"]
        game_map = game["map"]
        if not (0 <= location["row"] < game_map["num_rows"] and 0 <= location["col"] < game_map["num_cols"]):
            raise InvalidState(f"Location ({location['row']}, {location['col']}) is outside the map")

        monster_ids = []
        for interaction in game_map["interactions"].get_interactions_at(location["row"], location["col"]):
            if interaction["interaction_type"] == InteractionType.MONSTER and interaction["id"] not in monster_ids:
                monster_ids.append(interaction["id"])
        if not monster_ids:
            raise NoMonstersNearby(f"No monsters at ({location['row']}, {location['col']}) in game {game_id}")

        character_ids = []
        for player in game["party"]["players"]:
            if player["character_id"] is not None and player["character_id"] not in character_ids:
                character_ids.append(player["character_id"])

        creatures_by_id = {c["id"]: c for c in await store.get_creatures(monster_ids + character_ids)}
        monsters = [
            creatures_by_id[i] for i in monster_ids
            if i in creatures_by_id and creatures_by_id[i]["properties"]["hp"] > 0
        ]
        characters = [
            creatures_by_id[i] for i in character_ids
            if i in creatures_by_id and creatures_by_id[i]["properties"]["hp"] > 0
        ]
        if not monsters:
            raise NoMonstersNearby(f"No living monsters at ({location['row']}, {location['col']}) in game {game_id}")
        if not characters:
            raise InvalidState(f"Game {game_id} has no living character to fight")

        # sorted() is stable, so equal DEX keeps this insertion order
        entrants = [(m, CombatantType.MONSTER.value) for m in monsters]
        entrants += [(c, CombatantType.PLAYER.value) for c in characters]
        entrants = sorted(entrants, key=lambda entrant: _dex(entrant[0]))

        combat = await store.create_combat(game_id, entrants)
        game["combat_id"] = combat["id"]
        await store.update_game(game)

    logger.info(
        f"Began combat {combat['id']} in game {game_id}: "
        f"{len(monsters)} monsters vs {len(characters)} characters"
    )
    return combat


async def get_combat(store: GameStore, game_id: int, combat_id: int) -> Combat:
    combat = await store.get_combat(combat_id)
    if combat["game_id"] != game_id:
        raise CombatNotFound(f"Combat {combat_id} not found in game {game_id}")
    return combat


async def _handle_victory(store: GameStore, game_id: int, combat: Combat) -> None:
    await store.delete_combat(game_id, combat["id"])
    logger.info(f"Party won combat {combat['id']} in game {game_id}")


async def _handle_defeat(store: GameStore, game_id: int, combat: Combat) -> None:
    await store.delete_combat(game_id, combat["id"])
    logger.info(f"Party lost combat {combat['id']} in game {game_id}")


async def take_combat_turn_for_combatant(
    store: GameStore,
    game_id: int,
    combat_id: int,
    attacker_id: int,
    defender_id: int,
) -> Dict[str, Any]:
    """
    Resolve one attack and advance the turn.

    The attack roll is d20 + attacker STR against defender DEX; a strictly
    higher attack hits for the difference. A defender reduced to 0 hp
    faints and leaves the turn order. When that empties its side the
    combat is deleted.

    Returns:
        dict with the roll, attack, defend, hit, damage, fainted, outcome
        ("victory", "defeat" or None) and the updated combat (None once deleted)

    Raises:
        CombatNotFound: if the combat does not exist or belongs to another game
        TurnMismatch: if it is not attacker_id's turn
        CombatantNotFound: if the defender is not in the combat
        FriendlyFire: if both combatants are on the same side
    """
    async with store.transaction():
        combat = await get_combat(store, game_id, combat_id)
        combatants = combat["combatants"]
        index = combat["combatant_turn_index"]
        if not (0 <= index < len(combatants)):
            raise UnexpectedResult(f"Combat {combat_id} turn index {index} is out of range")

        attacker = combatants[index]
        if attacker["id"] != attacker_id:
            raise TurnMismatch(f"It is combatant {attacker['id']}'s turn, not {attacker_id}'s")

        defender = next((c for c in combatants if c["id"] == defender_id), None)
        if defender is None:
            raise CombatantNotFound(f"Combatant {defender_id} not found in combat {combat_id}")
        if defender["combatant_type"] == attacker["combatant_type"]:
            raise FriendlyFire(f"Combatant {attacker_id} cannot attack its own side")

        roll = ranges.pick_integer_from_range(1, ATTACK_DIE)
        attack = roll + attacker["creature"]["properties"]["abilities"][Ability.STR]
        defend = _dex(defender["creature"])
        result: Dict[str, Any] = {
            "roll": roll,
            "attack": attack,
            "defend": defend,
            "hit": attack > defend,
            "damage": 0,
            "fainted": False,
            "outcome": None,
            "combat": combat,
        }

        if result["hit"]:
            properties = defender["creature"]["properties"]
            result["damage"] = attack - defend
            properties["hp"] = max(properties["hp"] - result["damage"], 0)
            await store.update_creature_properties(properties)

            if properties["hp"] == 0:
                result["fainted"] = True
                fainted_id = defender["creature"]["id"]
                if defender["combatant_type"] == CombatantType.MONSTER.value:
                    combat["fainted_monster_ids"].append(fainted_id)
                else:
                    combat["fainted_character_ids"].append(fainted_id)
                combatants.remove(defender)

                if not any(c["combatant_type"] == defender["combatant_type"] for c in combatants):
                    if defender["combatant_type"] == CombatantType.MONSTER.value:
                        await _handle_victory(store, game_id, combat)
                        result["outcome"] = "victory"
                    else:
                        await _handle_defeat(store, game_id, combat)
                        result["outcome"] = "defeat"
                    result["combat"] = None
                    return result

        combat["combatant_turn_index"] = (combatants.index(attacker) + 1) % len(combatants)
        await store.update_combat(combat)

    return result
