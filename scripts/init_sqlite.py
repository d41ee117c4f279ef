#!/usr/bin/env python3
"""Reset the dungeon SQLite database from schema.sql.

Usage: init_sqlite.py [DB_PATH] [SCHEMA_PATH]

Every existing table is dropped first, so this wipes all creatures,
treasure and games.
"""
import sqlite3
import sys
import os
from pathlib import Path

REQUIRED_TABLES = (
    "creatures",
    "creature_properties",
    "inventories",
    "treasure_type",
    "treasure",
    "game_map",
    "party",
    "game",
    "combat",
    "combatant",
)


def reset_db(db_path: str, schema_path: str) -> None:
    db_file = Path(db_path).resolve()
    schema_file = Path(schema_path).resolve()

    if not schema_file.exists():
        print(f"[INIT] ✗ Error: Schema file not found at {schema_file}", file=sys.stderr)
        sys.exit(1)

    try:
        conn = sqlite3.connect(str(db_file))
        try:
            # foreign_keys is off on a fresh sqlite3 connection, so drop order is free
            tables = [row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")]
            for table in tables:
                if table.startswith("sqlite_"):
                    continue
                conn.execute(f"DROP TABLE IF EXISTS {table}")
            conn.commit()

            conn.executescript(schema_file.read_text())
            conn.commit()

            created = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        finally:
            conn.close()

        missing = [t for t in REQUIRED_TABLES if t not in created]
        if missing:
            print(f"[INIT] ✗ Error: Missing tables after applying schema: {missing}", file=sys.stderr)
            sys.exit(1)

        # Containers run the app as another user
        os.chmod(str(db_file), 0o666)
        print(f"[INIT] ✓ Database initialized at {db_file} ({len(created)} tables)")

    except sqlite3.Error as e:
        print(f"[INIT] ✗ Error: Failed to initialize database: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    db_path = sys.argv[1] if len(sys.argv) > 1 else os.environ.get("DUNGEON_DB_PATH", "./db.sqlite3")
    schema_path = sys.argv[2] if len(sys.argv) > 2 else str(Path(__file__).resolve().parent.parent / "db" / "schema.sql")
    reset_db(db_path, schema_path)
