"""Services package: game rules that sit between the routes and the store.

Import submodules to make them available as `services.games`,
`services.combat`, etc. Every function takes the store as its first
argument.
"""

from . import creatures, treasure, games, combat

from .treasure import get_loot, open_treasure_instance
from .games import (
	create_game,
	join_game_as_dungeon_master,
	join_game_as_player,
	start_game,
	move_party,
	get_available_party_list,
	get_available_dungeon_master_list,
)
from .combat import begin_combat, take_combat_turn_for_combatant

__all__ = [
	"creatures",
	"treasure",
	"games",
	"combat",
	"get_loot",
	"open_treasure_instance",
	"create_game",
	"join_game_as_dungeon_master",
	"join_game_as_player",
	"start_game",
	"move_party",
	"get_available_party_list",
	"get_available_dungeon_master_list",
	"begin_combat",
	"take_combat_turn_for_combatant",
]
