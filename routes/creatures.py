from fastapi import APIRouter, HTTPException, Depends, Query
import logging

from models import CreateCreatureRequest, UpdateCreatureRequest, CreatureType
from stores import get_game_store
from services import creatures
from utils.auth import require_admin, require_user, require_shared

logger = logging.getLogger(__name__)


def _creature_router(creature_type: CreatureType, write_gate) -> APIRouter:
	"""Build the CRUD router for one creature type; writes use `write_gate`, reads are shared."""
	router = APIRouter()

	@router.post("", status_code=201, dependencies=[Depends(write_gate)])
	async def create(req: CreateCreatureRequest, store = Depends(get_game_store)):
		return await creatures.create_creature(store, req.model_dump(mode="json"), creature_type)

	@router.get("", dependencies=[Depends(require_shared)])
	async def list_all(ids: list[int] = Query(default=[]), store = Depends(get_game_store)):
		return await creatures.get_creatures(store, ids, creature_type)

	@router.get("/{creature_id}", dependencies=[Depends(require_shared)])
	async def get_one(creature_id: int, store = Depends(get_game_store)):
		return await creatures.get_creature(store, creature_id, creature_type)

	@router.put("/{creature_id}", dependencies=[Depends(write_gate)])
	async def update(creature_id: int, req: UpdateCreatureRequest, store = Depends(get_game_store)):
		return await creatures.update_creature(store, creature_id, req.model_dump(mode="json"), creature_type)

	@router.delete("/{creature_id}", dependencies=[Depends(write_gate)])
	async def delete(creature_id: int, store = Depends(get_game_store)):
		if not await creatures.delete_creature(store, creature_id, creature_type):
			raise HTTPException(status_code=404, detail=f"{creature_type.value.capitalize()} {creature_id} not found")
		return {"id": creature_id, "status": "deleted"}

	return router


monster_router = _creature_router(CreatureType.MONSTER, require_admin)
character_router = _creature_router(CreatureType.CHARACTER, require_user)
