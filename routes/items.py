from fastapi import APIRouter, Depends

from models import CreateEquipmentRequest, CreateConsumableRequest, CreateCurrencyRequest
from stores import get_game_store
from services import creatures
from utils.auth import require_admin

router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("/equipment", status_code=201)
async def create_equipment(req: CreateEquipmentRequest, store = Depends(get_game_store)):
	return await creatures.create_equipment(store, req.name, req.slot, req.ability_modifiers)


@router.post("/consumable", status_code=201)
async def create_consumable(req: CreateConsumableRequest, store = Depends(get_game_store)):
	return await creatures.create_consumable(store, req.name, req.consumable_type)


@router.post("/currency", status_code=201)
async def create_currency(req: CreateCurrencyRequest, store = Depends(get_game_store)):
	return await creatures.create_currency(store, req.currency_type, req.total)
