import asyncio
import json
import logging
import sqlite3
from contextlib import asynccontextmanager
from contextvars import ContextVar
from enum import Enum
from typing import Iterable, Optional

import aiosqlite

from db import connect, apply_schema
from models.domain_models import (
    EQUIPMENT_SLOT_COUNT,
    Combat,
    Combatant,
    Consumable,
    Creature,
    CreatureProperties,
    CreatureUpdate,
    Currency,
    DungeonMaster,
    Equipment,
    Game,
    GameInfo,
    GameMap,
    InventoryIds,
    Location,
    NewCreature,
    Party,
    Player,
    Range,
    Treasure,
    TreasureType,
)
from models.interaction_grid import InteractionGrid
from .exceptions import (
    CombatNotFound,
    CreatureNotFound,
    CreatureTypeMismatch,
    GameNotFound,
    InCombat,
    InvalidState,
    InventoryNotFound,
    PartyNotFound,
    TreasureNotFound,
    TreasureTypeNotFound,
    UnexpectedResult,
)
from .game_store import GameStore

logger = logging.getLogger(__name__)

# The store whose transaction the current task is inside, if any.
_active_store: ContextVar[Optional["SqliteGameStore"]] = ContextVar("_active_store", default=None)


def _text(value) -> str:
    """Plain string for an enum member or a string."""
    return value.value if isinstance(value, Enum) else value


def _dumps(values: Iterable) -> str:
    return json.dumps(list(values))


def _loads(text: Optional[str]) -> list:
    return json.loads(text) if text else []


def _range_to_array(value: Range) -> list[int]:
    return [value["min"], value["max"]]


def _array_to_range(data: list[int]) -> Range:
    if not data or len(data) != 2:
        raise InvalidState("Cannot map array to range")
    return {"min": data[0], "max": data[1]}


def _placeholders(values: list) -> str:
    return ",".join("?" for _ in values)


class SqliteGameStore(GameStore):
    """SQLite-based implementation of GameStore with atomic operations."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.db: aiosqlite.Connection = None
        self._lock = asyncio.Lock()
        logger.info(f"[STORE] SqliteGameStore initialized with db_path: {db_path}")

    async def init(self, *, create_schema: bool = True):
        """Initialize database connection. Call this after construction."""
        # isolation_level=None disables implicit transactions; transaction() manages them explicitly
        self.db = await connect(
            self.db_path,
            pragmas={"journal_mode": "DELETE"},
            timeout=30.0,
            isolation_level=None,
        )
        logger.info(f"[STORE] Database connection established to {self.db_path}")

        cur = await self.db.execute("SELECT name FROM sqlite_master WHERE type='table'")
        tables = await cur.fetchall()
        if not tables:
            if not create_schema:
                logger.error(f"[STORE] ✗ No tables found! Database may be empty or corrupted")
                raise RuntimeError(f"Database at {self.db_path} has no tables - initialization may have failed")
            logger.info(f"[STORE] Empty database, applying schema")
            await apply_schema(self.db)
        else:
            logger.info(f"[STORE] Database has {len(tables)} tables: {[t[0] for t in tables]}")

    async def close(self):
        """Close database connection."""
        if self.db:
            await self.db.close()
            self.db = None

    @asynccontextmanager
    async def transaction(self):
        if _active_store.get() is self:
            # Already inside this store's transaction on this task: join it
            yield self
            return

        async with self._lock:
            await self.db.execute("BEGIN IMMEDIATE")
            token = _active_store.set(self)
            try:
                yield self
            except BaseException:
                await self.db.rollback()
                raise
            else:
                await self.db.commit()
            finally:
                _active_store.reset(token)

    async def _fetchone(self, sql: str, params: Iterable = ()):
        cur = await self.db.execute(sql, tuple(params))
        return await cur.fetchone()

    async def _fetchall(self, sql: str, params: Iterable = ()):
        cur = await self.db.execute(sql, tuple(params))
        return await cur.fetchall()

    async def _insert(self, sql: str, params: Iterable) -> int:
        try:
            cur = await self.db.execute(sql, tuple(params))
        except sqlite3.IntegrityError as exc:
            raise UnexpectedResult(f"Unexpected integrity error: {exc}") from exc
        return cur.lastrowid

    # -------------------------------------------------
    # Creatures
    # -------------------------------------------------

    async def create_creature(self, data: NewCreature) -> Creature:
        # Raises: UnexpectedResult
        """Create a creature and all of its components in one transaction."""
        abilities = list(data["abilities"])
        async with self.transaction():
            properties_id = await self._insert_properties(data["hp"], abilities)
            type_id = await self._insert_creature_type(data["creature_class"], data["race"], data["creature_type"])
            inventory_id = await self._insert_inventory(data["equipment_capacity"], data["consumables_capacity"])
            creature_id = await self._insert_creature_row(
                data["name"], data["creature_type"], properties_id, type_id, inventory_id
            )

        logger.info(f"[STORE] Created {data['creature_type']} {creature_id} ({data['name']})")
        return {
            "id": creature_id,
            "name": data["name"],
            "creature_type": _text(data["creature_type"]),
            "properties": {"id": properties_id, "lvl": 1, "xp": 0, "hp": data["hp"], "abilities": abilities},
            "type": {
                "id": type_id,
                "creature_class": _text(data["creature_class"]),
                "race": _text(data["race"]),
                "c_type": _text(data["creature_type"]),
            },
            "inventory": {
                "id": inventory_id,
                "equipment_capacity": data["equipment_capacity"],
                "consumables_capacity": data["consumables_capacity"],
                "equipment": [],
                "consumables": [],
                "currencies": [],
            },
            "equipped": [None] * EQUIPMENT_SLOT_COUNT,
        }

    async def _insert_properties(self, hp: int, abilities: list[int]) -> int:
        return await self._insert(
            "INSERT INTO creature_properties (lvl, xp, hp, abilities) VALUES (?, ?, ?, ?)",
            (1, 0, hp, _dumps(abilities)),
        )

    async def _insert_creature_type(self, creature_class: str, race: str, c_type: str) -> int:
        return await self._insert(
            "INSERT INTO creature_types (creature_class, race, c_type) VALUES (?, ?, ?)",
            (_text(creature_class), _text(race), _text(c_type)),
        )

    async def _insert_inventory(self, equipment_capacity: int, consumables_capacity: int) -> int:
        return await self._insert(
            """
            INSERT INTO inventories (equipment_capacity, consumables_capacity, equipment_ids, consumable_ids, currency_ids)
            VALUES (?, ?, '[]', '[]', '[]')
            """,
            (equipment_capacity, consumables_capacity),
        )

    async def _insert_creature_row(self, name: str, creature_type: str, properties_id: int, type_id: int, inventory_id: int) -> int:
        return await self._insert(
            """
            INSERT INTO creatures (creature_name, creature_type, creature_properties_id, creature_type_id, inventory_id, equipped_ids)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (name, _text(creature_type), properties_id, type_id, inventory_id, _dumps([None] * EQUIPMENT_SLOT_COUNT)),
        )

    async def get_creatures(
        self,
        ids: Optional[Iterable[int]] = None,
        creature_type: Optional[str] = None,
    ) -> list[Creature]:
        # Raises: None
        query = """
            SELECT c.id, c.creature_name, c.creature_type, c.creature_properties_id,
                   c.creature_type_id, c.inventory_id, c.equipped_ids,
                   cp.lvl, cp.xp, cp.hp, cp.abilities,
                   ct.creature_class, ct.race, ct.c_type,
                   i.equipment_capacity, i.consumables_capacity,
                   i.equipment_ids, i.consumable_ids, i.currency_ids
            FROM creatures AS c
            JOIN creature_properties AS cp ON c.creature_properties_id = cp.id
            JOIN creature_types AS ct ON c.creature_type_id = ct.id
            JOIN inventories AS i ON c.inventory_id = i.id
        """
        clauses = []
        values: list = []
        id_list = sorted(set(ids)) if ids else []
        if id_list:
            clauses.append(f"c.id IN ({_placeholders(id_list)})")
            values.extend(id_list)
        if creature_type:
            clauses.append("c.creature_type = ?")
            values.append(_text(creature_type))
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY c.id"

        async with self.transaction():
            rows = await self._fetchall(query, values)

            # Resolve every referenced item in one query per item kind
            equipment_ids: set[int] = set()
            consumable_ids: set[int] = set()
            currency_ids: set[int] = set()
            for r in rows:
                equipment_ids.update(i for i in _loads(r["equipped_ids"]) if i is not None)
                equipment_ids.update(_loads(r["equipment_ids"]))
                consumable_ids.update(_loads(r["consumable_ids"]))
                currency_ids.update(_loads(r["currency_ids"]))
            equipment_by_id = {e["id"]: e for e in await self.get_equipment(equipment_ids)}
            consumables_by_id = {c["id"]: c for c in await self.get_consumables(consumable_ids)}
            currencies_by_id = {c["id"]: c for c in await self.get_currencies(currency_ids)}

        creatures: list[Creature] = []
        for r in rows:
            equipped_ids = _loads(r["equipped_ids"])
            creatures.append({
                "id": r["id"],
                "name": r["creature_name"],
                "creature_type": r["creature_type"],
                "properties": {
                    "id": r["creature_properties_id"],
                    "lvl": r["lvl"],
                    "xp": r["xp"],
                    "hp": r["hp"],
                    "abilities": _loads(r["abilities"]),
                },
                "type": {
                    "id": r["creature_type_id"],
                    "creature_class": r["creature_class"],
                    "race": r["race"],
                    "c_type": r["c_type"],
                },
                "inventory": {
                    "id": r["inventory_id"],
                    "equipment_capacity": r["equipment_capacity"],
                    "consumables_capacity": r["consumables_capacity"],
                    "equipment": [equipment_by_id[i] for i in _loads(r["equipment_ids"]) if i in equipment_by_id],
                    "consumables": [consumables_by_id[i] for i in _loads(r["consumable_ids"]) if i in consumables_by_id],
                    "currencies": [currencies_by_id[i] for i in _loads(r["currency_ids"]) if i in currencies_by_id],
                },
                "equipped": [equipment_by_id.get(i) if i is not None else None for i in equipped_ids],
            })
        return creatures

    async def get_creature(self, creature_id: int, creature_type: Optional[str] = None) -> Creature:
        # Raises: CreatureNotFound
        creatures = await self.get_creatures([creature_id], creature_type)
        if not creatures:
            raise CreatureNotFound(f"Creature {creature_id} not found")
        return creatures[0]

    async def get_creature_type_of(self, creature_id: int) -> Optional[str]:
        async with self.transaction():
            row = await self._fetchone("SELECT creature_type FROM creatures WHERE id = ?", (creature_id,))
        return row["creature_type"] if row else None

    async def delete_creature(self, creature_id: int, creature_type: str) -> bool:
        # Raises: CreatureTypeMismatch, InCombat
        async with self.transaction():
            row = await self._fetchone(
                """
                SELECT creature_type, creature_properties_id, creature_type_id, inventory_id
                FROM creatures WHERE id = ?
                """,
                (creature_id,),
            )
            if row is None:
                logger.warning(f"[STORE] Could not delete creature {creature_id} because it could not be found.")
                return False

            if row["creature_type"] != _text(creature_type):
                raise CreatureTypeMismatch(
                    f"Could not delete creature {creature_id} because creature type "
                    f"{row['creature_type']} did not match {creature_type}"
                )

            if await self._fetchone("SELECT 1 FROM combatant WHERE creature_id = ? LIMIT 1", (creature_id,)):
                raise InCombat(f"Could not delete creature {creature_id} because it is in an active combat")

            await self.db.execute("DELETE FROM creatures WHERE id = ?", (creature_id,))
            await self.db.execute("DELETE FROM creature_properties WHERE id = ?", (row["creature_properties_id"],))
            await self.db.execute("DELETE FROM creature_types WHERE id = ?", (row["creature_type_id"],))
            await self.db.execute("DELETE FROM inventories WHERE id = ?", (row["inventory_id"],))

        logger.info(f"[STORE] Deleted {creature_type} {creature_id}")
        return True

    async def update_creature(self, creature_id: int, data: CreatureUpdate) -> None:
        # Raises: CreatureNotFound, InvalidState
        """This update does a full replace for a creature and all of its components."""
        properties = data["properties"]
        creature_type = data["type"]
        inventory = data["inventory"]

        async with self.transaction():
            if await self._fetchone("SELECT 1 FROM creatures WHERE id = ?", (creature_id,)) is None:
                raise CreatureNotFound(f"Could not update creature {creature_id} because it could not be found.")

            for table, label, row_id in (
                ("creature_properties", "creature properties", properties["id"]),
                ("creature_types", "creature type", creature_type["id"]),
                ("inventories", "creature inventory", inventory["id"]),
            ):
                if await self._fetchone(f"SELECT 1 FROM {table} WHERE id = ?", (row_id,)) is None:
                    raise InvalidState(f"Could not update {label} {row_id} because it could not be found.")

            await self.db.execute(
                """
                UPDATE creatures SET equipped_ids = ?, creature_name = ?, creature_type = ?,
                    creature_properties_id = ?, creature_type_id = ?, inventory_id = ?
                WHERE id = ?
                """,
                (
                    _dumps(data["equipped_ids"]),
                    data["name"],
                    _text(data["creature_type"]),
                    properties["id"],
                    creature_type["id"],
                    inventory["id"],
                    creature_id,
                ),
            )
            await self.update_creature_properties(properties)
            await self.db.execute(
                "UPDATE creature_types SET creature_class = ?, race = ?, c_type = ? WHERE id = ?",
                (_text(creature_type["creature_class"]), _text(creature_type["race"]), _text(creature_type["c_type"]), creature_type["id"]),
            )
            await self.db.execute(
                """
                UPDATE inventories SET equipment_capacity = ?, consumables_capacity = ?
                WHERE id = ?
                """,
                (inventory["equipment_capacity"], inventory["consumables_capacity"], inventory["id"]),
            )
            await self.update_inventory_items(inventory)

        logger.info(f"[STORE] Updated creature {creature_id}")

    async def update_creature_properties(self, properties: CreatureProperties) -> None:
        # Raises: InvalidState
        async with self.transaction():
            cur = await self.db.execute(
                "UPDATE creature_properties SET abilities = ?, lvl = ?, xp = ?, hp = ? WHERE id = ?",
                (_dumps(properties["abilities"]), properties["lvl"], properties["xp"], properties["hp"], properties["id"]),
            )
            if cur.rowcount == 0:
                raise InvalidState(
                    f"Could not update creature properties {properties['id']} because it could not be found."
                )

    # -------------------------------------------------
    # Items and inventories
    # -------------------------------------------------

    async def create_equipment(self, name: str, slot: int, ability_modifiers: list[int]) -> Equipment:
        async with self.transaction():
            item_id = await self._insert(
                "INSERT INTO equipment (equipment_name, slot, ability_modifiers) VALUES (?, ?, ?)",
                (name, int(slot), _dumps(ability_modifiers)),
            )
        return {"id": item_id, "name": name, "slot": int(slot), "ability_modifiers": list(ability_modifiers)}

    async def create_consumable(self, name: str, consumable_type: str) -> Consumable:
        async with self.transaction():
            item_id = await self._insert(
                "INSERT INTO consumables (consumable_name, consumable_type) VALUES (?, ?)",
                (name, _text(consumable_type)),
            )
        return {"id": item_id, "name": name, "consumable_type": _text(consumable_type)}

    async def create_currency(self, currency_type: str, total: int) -> Currency:
        async with self.transaction():
            item_id = await self._insert(
                "INSERT INTO currencies (currency_type, total) VALUES (?, ?)",
                (_text(currency_type), total),
            )
        return {"id": item_id, "currency_type": _text(currency_type), "total": total}

    async def get_equipment(self, ids: Iterable[Optional[int]]) -> list[Equipment]:
        id_list = [i for i in ids if i is not None]
        if not id_list:
            return []
        unique = sorted(set(id_list))
        async with self.transaction():
            rows = await self._fetchall(
                f"SELECT id, equipment_name, slot, ability_modifiers FROM equipment WHERE id IN ({_placeholders(unique)})",
                unique,
            )
        by_id = {
            r["id"]: {
                "id": r["id"],
                "name": r["equipment_name"],
                "slot": r["slot"],
                "ability_modifiers": _loads(r["ability_modifiers"]),
            }
            for r in rows
        }
        return [by_id[i] for i in id_list if i in by_id]

    async def get_consumables(self, ids: Iterable[int]) -> list[Consumable]:
        id_list = list(ids)
        if not id_list:
            return []
        unique = sorted(set(id_list))
        async with self.transaction():
            rows = await self._fetchall(
                f"SELECT id, consumable_name, consumable_type FROM consumables WHERE id IN ({_placeholders(unique)})",
                unique,
            )
        by_id = {
            r["id"]: {"id": r["id"], "name": r["consumable_name"], "consumable_type": r["consumable_type"]}
            for r in rows
        }
        return [by_id[i] for i in id_list if i in by_id]

    async def get_currencies(self, ids: Iterable[int]) -> list[Currency]:
        id_list = list(ids)
        if not id_list:
            return []
        unique = sorted(set(id_list))
        async with self.transaction():
            rows = await self._fetchall(
                f"SELECT id, currency_type, total FROM currencies WHERE id IN ({_placeholders(unique)})",
                unique,
            )
        by_id = {r["id"]: {"id": r["id"], "currency_type": r["currency_type"], "total": r["total"]} for r in rows}
        return [by_id[i] for i in id_list if i in by_id]

    async def get_party_inventories(self, party_id: int) -> list[InventoryIds]:
        # Raises: PartyNotFound
        """Get the inventories for the characters of a party's players."""
        async with self.transaction():
            party = await self.get_party(party_id)
            player_ids = [p["id"] for p in party["players"]]
            if not player_ids:
                return []
            rows = await self._fetchall(
                f"""
                SELECT p.id AS player_id, i.id, i.equipment_capacity, i.consumables_capacity,
                       i.equipment_ids, i.consumable_ids, i.currency_ids
                FROM player AS p
                JOIN creatures AS c ON p.character_id = c.id
                JOIN inventories AS i ON c.inventory_id = i.id
                WHERE p.id IN ({_placeholders(player_ids)})
                """,
                player_ids,
            )
        by_player = {r["player_id"]: r for r in rows}
        inventories: list[InventoryIds] = []
        seen: set[int] = set()
        for player_id in player_ids:
            r = by_player.get(player_id)
            if r is None or r["id"] in seen:
                continue
            seen.add(r["id"])
            inventories.append({
                "id": r["id"],
                "equipment_capacity": r["equipment_capacity"],
                "consumables_capacity": r["consumables_capacity"],
                "equipment_ids": _loads(r["equipment_ids"]),
                "consumable_ids": _loads(r["consumable_ids"]),
                "currency_ids": _loads(r["currency_ids"]),
            })
        return inventories

    async def update_inventory_items(self, inventory: InventoryIds) -> None:
        # Raises: InventoryNotFound
        async with self.transaction():
            cur = await self.db.execute(
                "UPDATE inventories SET equipment_ids = ?, consumable_ids = ?, currency_ids = ? WHERE id = ?",
                (
                    _dumps(inventory["equipment_ids"]),
                    _dumps(inventory["consumable_ids"]),
                    _dumps(inventory["currency_ids"]),
                    inventory["id"],
                ),
            )
            if cur.rowcount == 0:
                raise InventoryNotFound(f"Inventory {inventory['id']} not found")

    # -------------------------------------------------
    # Treasure
    # -------------------------------------------------

    @staticmethod
    def _treasure_type_from_row(row, id_column: str = "id") -> TreasureType:
        return {
            "id": row[id_column],
            "equipment_ids": _loads(row["equipment_ids"]),
            "consumable_ids": _loads(row["consumable_ids"]),
            "currency_ids": _loads(row["currency_ids"]),
            "num_equipment": _array_to_range(_loads(row["num_equipment"])),
            "num_consumables": _array_to_range(_loads(row["num_consumables"])),
            "num_currencies": _array_to_range(_loads(row["num_currencies"])),
        }

    async def create_treasure_type(
        self,
        *,
        equipment_ids: list[int],
        consumable_ids: list[int],
        currency_ids: list[int],
        num_equipment: Range,
        num_consumables: Range,
        num_currencies: Range,
    ) -> TreasureType:
        async with self.transaction():
            treasure_type_id = await self._insert(
                """
                INSERT INTO treasure_type (equipment_ids, consumable_ids, currency_ids, num_equipment, num_consumables, num_currencies)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    _dumps(equipment_ids),
                    _dumps(consumable_ids),
                    _dumps(currency_ids),
                    _dumps(_range_to_array(num_equipment)),
                    _dumps(_range_to_array(num_consumables)),
                    _dumps(_range_to_array(num_currencies)),
                ),
            )
            return await self.get_treasure_type(treasure_type_id)

    async def update_treasure_type(
        self,
        treasure_type_id: int,
        *,
        equipment_ids: list[int],
        consumable_ids: list[int],
        currency_ids: list[int],
        num_equipment: Range,
        num_consumables: Range,
        num_currencies: Range,
    ) -> TreasureType:
        # Raises: TreasureTypeNotFound
        async with self.transaction():
            cur = await self.db.execute(
                """
                UPDATE treasure_type SET equipment_ids = ?, consumable_ids = ?, currency_ids = ?,
                    num_equipment = ?, num_consumables = ?, num_currencies = ?
                WHERE id = ?
                """,
                (
                    _dumps(equipment_ids),
                    _dumps(consumable_ids),
                    _dumps(currency_ids),
                    _dumps(_range_to_array(num_equipment)),
                    _dumps(_range_to_array(num_consumables)),
                    _dumps(_range_to_array(num_currencies)),
                    treasure_type_id,
                ),
            )
            if cur.rowcount == 0:
                raise TreasureTypeNotFound(f"Treasure type {treasure_type_id} not found")
            return await self.get_treasure_type(treasure_type_id)

    async def get_treasure_type(self, treasure_type_id: int) -> TreasureType:
        # Raises: TreasureTypeNotFound
        async with self.transaction():
            row = await self._fetchone("SELECT * FROM treasure_type WHERE id = ?", (treasure_type_id,))
        if row is None:
            raise TreasureTypeNotFound(f"Treasure type {treasure_type_id} not found")
        return self._treasure_type_from_row(row)

    async def list_treasure_types(self) -> list[TreasureType]:
        async with self.transaction():
            rows = await self._fetchall("SELECT * FROM treasure_type ORDER BY id")
        return [self._treasure_type_from_row(r) for r in rows]

    async def delete_treasure_type(self, treasure_type_id: int) -> bool:
        # Raises: TreasureTypeNotFound, InvalidState
        async with self.transaction():
            if await self._fetchone("SELECT 1 FROM treasure_type WHERE id = ?", (treasure_type_id,)) is None:
                raise TreasureTypeNotFound(f"Treasure type {treasure_type_id} not found")
            row = await self._fetchone(
                "SELECT COUNT(*) FROM treasure WHERE treasure_type_id = ?",
                (treasure_type_id,),
            )
            if row[0] > 0:
                raise InvalidState(f"Treasure type {treasure_type_id} is used by {row[0]} treasure instance(s)")
            await self.db.execute("DELETE FROM treasure_type WHERE id = ?", (treasure_type_id,))
        logger.info(f"[STORE] Deleted treasure type {treasure_type_id}")
        return True

    async def create_treasure(self, treasure_type_id: int) -> Treasure:
        # Raises: TreasureTypeNotFound
        async with self.transaction():
            treasure_type = await self.get_treasure_type(treasure_type_id)
            treasure_id = await self._insert(
                "INSERT INTO treasure (treasure_type_id, opened) VALUES (?, 0)",
                (treasure_type_id,),
            )
        return {"id": treasure_id, "treasure_type": treasure_type, "opened": False}

    async def get_treasure(self, treasure_id: int) -> Treasure:
        # Raises: TreasureNotFound
        async with self.transaction():
            row = await self._fetchone(
                """
                SELECT t.id, t.opened, t.treasure_type_id, tt.equipment_ids, tt.consumable_ids, tt.currency_ids,
                       tt.num_equipment, tt.num_consumables, tt.num_currencies
                FROM treasure AS t
                JOIN treasure_type AS tt ON t.treasure_type_id = tt.id
                WHERE t.id = ?
                """,
                (treasure_id,),
            )
        if row is None:
            raise TreasureNotFound(f"Treasure {treasure_id} not found")
        return {
            "id": row["id"],
            "treasure_type": self._treasure_type_from_row(row, id_column="treasure_type_id"),
            "opened": bool(row["opened"]),
        }

    async def mark_treasure_opened(self, treasure_id: int) -> None:
        # Raises: TreasureNotFound
        async with self.transaction():
            cur = await self.db.execute("UPDATE treasure SET opened = 1 WHERE id = ?", (treasure_id,))
            if cur.rowcount == 0:
                raise TreasureNotFound(f"Treasure {treasure_id} not found")

    # -------------------------------------------------
    # Maps, parties, players, dungeon masters
    # -------------------------------------------------

    async def create_game_map(self, num_rows: int, num_cols: int, interactions: InteractionGrid) -> GameMap:
        interactions.validate_bounds(num_rows, num_cols)
        async with self.transaction():
            map_id = await self._insert(
                "INSERT INTO game_map (num_rows, num_cols, interactions) VALUES (?, ?, ?)",
                (num_rows, num_cols, _dumps(interactions.serialize())),
            )
        return {"id": map_id, "num_rows": num_rows, "num_cols": num_cols, "interactions": interactions}

    async def create_player(self, user_id: str, user_name: str, character_id: Optional[int]) -> Player:
        async with self.transaction():
            player_id = await self._insert(
                "INSERT INTO player (user_id, user_name, character_id) VALUES (?, ?, ?)",
                (user_id, user_name, character_id),
            )
        return {"id": player_id, "user_id": user_id, "user_name": user_name, "character_id": character_id}

    async def _get_players(self, player_ids: list[int]) -> list[Player]:
        if not player_ids:
            return []
        rows = await self._fetchall(
            f"SELECT id, user_id, user_name, character_id FROM player WHERE id IN ({_placeholders(player_ids)})",
            player_ids,
        )
        by_id = {
            r["id"]: {
                "id": r["id"],
                "user_id": r["user_id"],
                "user_name": r["user_name"],
                "character_id": r["character_id"],
            }
            for r in rows
        }
        return [by_id[i] for i in player_ids if i in by_id]

    async def create_party(self, players: list[Player], location: Location) -> Party:
        async with self.transaction():
            party_id = await self._insert(
                "INSERT INTO party (player_ids, location_row, location_col) VALUES (?, ?, ?)",
                (_dumps(p["id"] for p in players), location["row"], location["col"]),
            )
        return {"id": party_id, "players": list(players), "location": dict(location)}

    async def get_party(self, party_id: int) -> Party:
        # Raises: PartyNotFound
        async with self.transaction():
            row = await self._fetchone(
                "SELECT id, player_ids, location_row, location_col FROM party WHERE id = ?",
                (party_id,),
            )
            if row is None:
                raise PartyNotFound(f"Party {party_id} not found")
            players = await self._get_players(_loads(row["player_ids"]))
        return {
            "id": row["id"],
            "players": players,
            "location": {"row": row["location_row"], "col": row["location_col"]},
        }

    async def update_party(self, party: Party) -> Party:
        # Raises: PartyNotFound
        async with self.transaction():
            cur = await self.db.execute(
                "UPDATE party SET player_ids = ?, location_row = ?, location_col = ? WHERE id = ?",
                (
                    _dumps(p["id"] for p in party["players"]),
                    party["location"]["row"],
                    party["location"]["col"],
                    party["id"],
                ),
            )
            if cur.rowcount == 0:
                raise PartyNotFound(f"Party {party['id']} not found")
        return party

    async def create_dungeon_master(self, user_id: str, user_name: str) -> DungeonMaster:
        async with self.transaction():
            dm_id = await self._insert(
                "INSERT INTO dungeon_master (user_id, user_name) VALUES (?, ?)",
                (user_id, user_name),
            )
        return {"id": dm_id, "user_id": user_id, "user_name": user_name}

    # -------------------------------------------------
    # Games
    # -------------------------------------------------

    async def create_game(self, game_map: GameMap, party: Party, dm: Optional[DungeonMaster] = None) -> Game:
        async with self.transaction():
            game_id = await self._insert(
                "INSERT INTO game (party_id, map_id, dm_id, combat_id, active) VALUES (?, ?, ?, NULL, 0)",
                (party["id"], game_map["id"], dm["id"] if dm else None),
            )
        logger.info(f"[STORE] Created game {game_id} (party {party['id']}, map {game_map['id']})")
        return {
            "id": game_id,
            "party": party,
            "dm": dm,
            "map": game_map,
            "combat_id": None,
            "active": False,
        }

    async def get_game(self, game_id: int) -> Game:
        # Raises: GameNotFound, MalformedInteractions
        async with self.transaction():
            row = await self._fetchone(
                """
                SELECT g.id, g.party_id, g.dm_id, g.combat_id, g.active,
                       gm.id AS map_id, gm.num_rows, gm.num_cols, gm.interactions,
                       dm.user_id AS dm_user_id, dm.user_name AS dm_user_name
                FROM game AS g
                JOIN game_map AS gm ON g.map_id = gm.id
                LEFT JOIN dungeon_master AS dm ON g.dm_id = dm.id
                WHERE g.id = ?
                """,
                (game_id,),
            )
            if row is None:
                raise GameNotFound(f"Game {game_id} not found")
            party = await self.get_party(row["party_id"])

        dm: Optional[DungeonMaster] = None
        if row["dm_id"] is not None:
            dm = {"id": row["dm_id"], "user_id": row["dm_user_id"], "user_name": row["dm_user_name"]}

        interactions = InteractionGrid.deserialize(_loads(row["interactions"]))
        interactions.validate_bounds(row["num_rows"], row["num_cols"])

        return {
            "id": row["id"],
            "party": party,
            "dm": dm,
            "map": {
                "id": row["map_id"],
                "num_rows": row["num_rows"],
                "num_cols": row["num_cols"],
                "interactions": interactions,
            },
            "combat_id": row["combat_id"],
            "active": bool(row["active"]),
        }

    async def update_game(self, game: Game) -> Game:
        # Raises: GameNotFound
        dm = game.get("dm")
        async with self.transaction():
            cur = await self.db.execute(
                "UPDATE game SET party_id = ?, map_id = ?, dm_id = ?, combat_id = ?, active = ? WHERE id = ?",
                (
                    game["party"]["id"],
                    game["map"]["id"],
                    dm["id"] if dm else None,
                    game.get("combat_id"),
                    1 if game["active"] else 0,
                    game["id"],
                ),
            )
            if cur.rowcount == 0:
                raise GameNotFound(f"Game {game['id']} not found")
        return game

    async def _list_inactive_games(self, extra_where: str = "") -> list[GameInfo]:
        async with self.transaction():
            rows = await self._fetchall(
                f"""
                SELECT g.id, g.dm_id, p.player_ids
                FROM game AS g
                JOIN party AS p ON g.party_id = p.id
                WHERE g.active = 0 {extra_where}
                ORDER BY g.id
                """
            )
        return [{"game_id": r["id"], "player_ids": _loads(r["player_ids"]), "dm_id": r["dm_id"]} for r in rows]

    async def list_available_party_games(self, max_players: int) -> list[GameInfo]:
        games = await self._list_inactive_games()
        return [g for g in games if len(g["player_ids"]) < max_players]

    async def list_available_dungeon_master_games(self) -> list[GameInfo]:
        return await self._list_inactive_games("AND g.dm_id IS NULL")

    # -------------------------------------------------
    # Combat
    # -------------------------------------------------

    async def create_combat(self, game_id: int, combatants: list[tuple[Creature, str]]) -> Combat:
        async with self.transaction():
            combat_id = await self._insert(
                "INSERT INTO combat (game_id, combatant_turn_index, combatant_ids) VALUES (?, 0, '[]')",
                (game_id,),
            )
            created: list[Combatant] = []
            for creature, combatant_type in combatants:
                combatant_id = await self._insert(
                    "INSERT INTO combatant (combat_id, creature_id, combatant_type) VALUES (?, ?, ?)",
                    (combat_id, creature["id"], _text(combatant_type)),
                )
                created.append({"id": combatant_id, "creature": creature, "combatant_type": _text(combatant_type)})
            await self.db.execute(
                "UPDATE combat SET combatant_ids = ? WHERE id = ?",
                (_dumps(c["id"] for c in created), combat_id),
            )

        logger.info(f"[STORE] Created combat {combat_id} for game {game_id} with {len(created)} combatants")
        return {
            "id": combat_id,
            "game_id": game_id,
            "combatant_turn_index": 0,
            "combatants": created,
            "fainted_monster_ids": [],
            "fainted_character_ids": [],
        }

    async def get_combat(self, combat_id: int) -> Combat:
        # Raises: CombatNotFound
        async with self.transaction():
            row = await self._fetchone("SELECT * FROM combat WHERE id = ?", (combat_id,))
            if row is None:
                raise CombatNotFound(f"Combat {combat_id} not found")

            combatant_ids = _loads(row["combatant_ids"])
            combatant_rows = []
            if combatant_ids:
                combatant_rows = await self._fetchall(
                    f"SELECT id, creature_id, combatant_type FROM combatant WHERE id IN ({_placeholders(combatant_ids)})",
                    combatant_ids,
                )
            creatures = await self.get_creatures([r["creature_id"] for r in combatant_rows])

        creatures_by_id = {c["id"]: c for c in creatures}
        rows_by_id = {r["id"]: r for r in combatant_rows}
        combatants: list[Combatant] = []
        for combatant_id in combatant_ids:
            r = rows_by_id.get(combatant_id)
            if r is None or r["creature_id"] not in creatures_by_id:
                continue
            combatants.append({
                "id": r["id"],
                "creature": creatures_by_id[r["creature_id"]],
                "combatant_type": r["combatant_type"],
            })

        return {
            "id": row["id"],
            "game_id": row["game_id"],
            "combatant_turn_index": row["combatant_turn_index"],
            "combatants": combatants,
            "fainted_monster_ids": _loads(row["fainted_monster_ids"]),
            "fainted_character_ids": _loads(row["fainted_character_ids"]),
        }

    async def update_combat(self, combat: Combat) -> None:
        # Raises: CombatNotFound
        async with self.transaction():
            cur = await self.db.execute(
                """
                UPDATE combat SET combatant_turn_index = ?, combatant_ids = ?,
                    fainted_monster_ids = ?, fainted_character_ids = ?
                WHERE id = ?
                """,
                (
                    combat["combatant_turn_index"],
                    _dumps(c["id"] for c in combat["combatants"]),
                    _dumps(combat["fainted_monster_ids"]),
                    _dumps(combat["fainted_character_ids"]),
                    combat["id"],
                ),
            )
            if cur.rowcount == 0:
                raise CombatNotFound(f"Combat {combat['id']} not found")

    async def delete_combat(self, game_id: int, combat_id: int) -> bool:
        async with self.transaction():
            cur = await self.db.execute("DELETE FROM combat WHERE id = ?", (combat_id,))
            deleted = cur.rowcount > 0
            await self.db.execute("UPDATE game SET combat_id = NULL WHERE id = ?", (game_id,))
        logger.info(f"[STORE] Deleted combat {combat_id} of game {game_id}")
        return deleted
