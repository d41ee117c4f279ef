import os
from pathlib import Path

# Path to the SQLite database file used by stores. Can be overridden
# using the DUNGEON_DB_PATH environment variable.
DB_PATH = os.environ.get("DUNGEON_DB_PATH", str(Path(__file__).parent / "db.sqlite3"))

# Header tokens checked by the HTTP layer. An unset token rejects every request
# for that role.
API_ADMIN_TOKEN = os.environ.get("API_ADMIN_TOKEN")
API_USER_TOKEN = os.environ.get("API_USER_TOKEN")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
CORS_ORIGINS = [o for o in os.environ.get("CORS_ORIGINS", "").split(",") if o]

# --- Game rules ---
MAX_PLAYERS = 4
MAX_MONSTERS_ON_MAP = 20
MAX_TREASURES_ON_MAP = 20
DEFAULT_MAP_ROWS = 10
DEFAULT_MAP_COLS = 10

# Template used for monsters spawned by game creation
MONSTER_MIN_HP = 50
MONSTER_MAX_HP = 200
MONSTER_ABILITIES = [12, 10, 12, 6, 8, 6]
MONSTER_CLASS = "fighter"
MONSTER_RACE = "orc"
MONSTER_NAME = "Wandering Orc"
MONSTER_EQUIPMENT_CAPACITY = 4
MONSTER_CONSUMABLES_CAPACITY = 4
