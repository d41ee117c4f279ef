from fastapi import APIRouter, Depends
from pydantic import BaseModel
import logging

from models import TreasureTypeRequest
from stores import get_game_store
from services import treasure
from utils.auth import require_admin, require_user, require_shared

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateTreasureRequest(BaseModel):
	treasure_type_id: int


# --- Treasure types ---

@router.post("", status_code=201, dependencies=[Depends(require_admin)])
async def create_treasure_type(req: TreasureTypeRequest, store = Depends(get_game_store)):
	return await treasure.create_treasure_type(store, req.model_dump())


@router.get("", dependencies=[Depends(require_shared)])
async def list_treasure_types(store = Depends(get_game_store)):
	return await treasure.list_treasure_types(store)


@router.get("/{treasure_type_id}", dependencies=[Depends(require_shared)])
async def get_treasure_type(treasure_type_id: int, store = Depends(get_game_store)):
	return await treasure.get_treasure_type(store, treasure_type_id)


@router.put("/{treasure_type_id}", dependencies=[Depends(require_admin)])
async def update_treasure_type(treasure_type_id: int, req: TreasureTypeRequest, store = Depends(get_game_store)):
	return await treasure.update_treasure_type(store, treasure_type_id, req.model_dump())


@router.delete("/{treasure_type_id}", dependencies=[Depends(require_admin)])
async def delete_treasure_type(treasure_type_id: int, store = Depends(get_game_store)):
	await treasure.delete_treasure_type(store, treasure_type_id)
	return {"id": treasure_type_id, "status": "deleted"}


# --- Treasure instances ---

@router.post("/instance", status_code=201, dependencies=[Depends(require_admin)])
async def create_treasure(req: CreateTreasureRequest, store = Depends(get_game_store)):
	return await treasure.create_treasure(store, req.treasure_type_id)


@router.get("/instance/{treasure_id}", dependencies=[Depends(require_shared)])
async def get_treasure(treasure_id: int, store = Depends(get_game_store)):
	return await treasure.get_treasure(store, treasure_id)


@router.post("/instance/{treasure_id}/open/{party_id}", dependencies=[Depends(require_user)])
async def open_treasure_instance(treasure_id: int, party_id: int, store = Depends(get_game_store)):
	return await treasure.open_treasure_instance(store, treasure_id, party_id)
