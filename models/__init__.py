"""Data models used by the application.

Split into:
- `api_models`: Pydantic models used for request validation
- `domain_models`: enums and typed dicts used in business logic
- `interaction_grid`: the sparse tile grid stored on each game map

Import submodules to make them available as `models.api_models`.
"""

from . import api_models, domain_models

# Re-export selected API models (Pydantic models used for request validation)
from .api_models import (
	RangeModel,
	LocationModel,
	CreateCreatureRequest,
	UpdateCreatureRequest,
	CreateEquipmentRequest,
	CreateConsumableRequest,
	CreateCurrencyRequest,
	TreasureTypeRequest,
	CreateGameRequest,
	UpdateGameRequest,
	JoinAsDungeonMasterRequest,
	JoinAsPlayerRequest,
	MovePartyRequest,
	BeginCombatRequest,
	CombatTurnRequest,
)

# Re-export the enums most callers need
from .domain_models import (
	Ability,
	EquipmentSlot,
	ABILITY_COUNT,
	EQUIPMENT_SLOT_COUNT,
	CreatureType,
	CombatantType,
	InteractionType,
	ItemType,
	Direction,
)

# Imported last: it pulls in the stores package, whose interface imports the domain models above.
from .interaction_grid import InteractionGrid

__all__ = [
	# submodules
	"api_models",
	"domain_models",
	# api models
	"RangeModel",
	"LocationModel",
	"CreateCreatureRequest",
	"UpdateCreatureRequest",
	"CreateEquipmentRequest",
	"CreateConsumableRequest",
	"CreateCurrencyRequest",
	"TreasureTypeRequest",
	"CreateGameRequest",
	"UpdateGameRequest",
	"JoinAsDungeonMasterRequest",
	"JoinAsPlayerRequest",
	"MovePartyRequest",
	"BeginCombatRequest",
	"CombatTurnRequest",
	# domain
	"Ability",
	"EquipmentSlot",
	"ABILITY_COUNT",
	"EQUIPMENT_SLOT_COUNT",
	"CreatureType",
	"CombatantType",
	"InteractionType",
	"ItemType",
	"Direction",
	"InteractionGrid",
]
