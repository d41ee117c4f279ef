from fastapi import APIRouter, Depends
import logging

from models import (
	CreateGameRequest,
	UpdateGameRequest,
	JoinAsDungeonMasterRequest,
	JoinAsPlayerRequest,
	MovePartyRequest,
	BeginCombatRequest,
	CombatTurnRequest,
)
from stores import get_game_store
from services import games, combat
from utils.auth import require_admin, require_user, require_shared
from . import games_helpers

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Lobby ---
# Declared before /{game_id} so "available" is not parsed as an id

@router.get("/available/party", dependencies=[Depends(require_shared)])
async def get_available_party_list(store = Depends(get_game_store)):
	return await games.get_available_party_list(store)


@router.get("/available/dm", dependencies=[Depends(require_shared)])
async def get_available_dungeon_master_list(store = Depends(get_game_store)):
	return await games.get_available_dungeon_master_list(store)


# --- Games ---

@router.post("", status_code=201, dependencies=[Depends(require_shared)])
async def create_game(req: CreateGameRequest, store = Depends(get_game_store)):
	logger.info(f"Creating game ({req.num_rows}x{req.num_cols})")
	game = await games.create_game(store, req.model_dump())
	return games_helpers.public_game_view(game)


@router.get("/{game_id}", dependencies=[Depends(require_shared)])
async def get_game(game_id: int, store = Depends(get_game_store)):
	game = await games.get_game(store, game_id)
	return games_helpers.public_game_view(game)


@router.put("/{game_id}", dependencies=[Depends(require_admin)])
async def update_game(game_id: int, req: UpdateGameRequest, store = Depends(get_game_store)):
	game = await games.update_game(store, game_id, req.model_dump())
	return games_helpers.public_game_view(game)


@router.post("/{game_id}/start", dependencies=[Depends(require_shared)])
async def start_game(game_id: int, store = Depends(get_game_store)):
	game = await games.start_game(store, game_id)
	return games_helpers.public_game_view(game)


@router.post("/{game_id}/dm/{user_id}", dependencies=[Depends(require_user)])
async def join_game_as_dungeon_master(game_id: int, user_id: str, req: JoinAsDungeonMasterRequest, store = Depends(get_game_store)):
	game = await games.join_game_as_dungeon_master(store, game_id, user_id, req.user_name)
	return games_helpers.public_game_view(game)


@router.post("/{game_id}/player/{user_id}", dependencies=[Depends(require_user)])
async def join_game_as_player(game_id: int, user_id: str, req: JoinAsPlayerRequest, store = Depends(get_game_store)):
	game = await games.join_game_as_player(store, game_id, user_id, req.user_name, req.character_id)
	return games_helpers.public_game_view(game)


@router.post("/{game_id}/player/{player_id}/move", dependencies=[Depends(require_user)])
async def move_party(game_id: int, player_id: int, req: MovePartyRequest, store = Depends(get_game_store)):
	party = await games.move_party(store, game_id, player_id, req.direction)
	return {"game_id": game_id, "party_id": party["id"], "location": party["location"]}


# --- Combat ---

@router.post("/{game_id}/combat", status_code=201, dependencies=[Depends(require_user)])
async def begin_combat(game_id: int, req: BeginCombatRequest | None = None, store = Depends(get_game_store)):
	location = req.location.model_dump() if req and req.location else None
	return await combat.begin_combat(store, game_id, location)


@router.get("/{game_id}/combat/{combat_id}", dependencies=[Depends(require_shared)])
async def get_combat(game_id: int, combat_id: int, store = Depends(get_game_store)):
	return await combat.get_combat(store, game_id, combat_id)


@router.post("/{game_id}/combat/{combat_id}/turn", dependencies=[Depends(require_user)])
async def take_combat_turn(game_id: int, combat_id: int, req: CombatTurnRequest, store = Depends(get_game_store)):
	result = await combat.take_combat_turn_for_combatant(
		store,
		game_id,
		combat_id,
		req.attacker_combatant_id,
		req.defender_combatant_id,
	)
	return games_helpers.turn_result_view(result, combat_id)
