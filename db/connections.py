from pathlib import Path
from typing import Dict, Optional
import aiosqlite

SCHEMA_PATH = Path(__file__).parent / "schema.sql"


async def connect(db_path: str, pragmas: Optional[Dict[str, str]] = None, **kwargs) -> aiosqlite.Connection:
    """Open an aiosqlite connection and apply sensible pragmas.

    - Sets `row_factory` to `aiosqlite.Row` for named access.
    - Enables foreign keys by default.
    - Applies any additional PRAGMA settings supplied in `pragmas`.
    - Extra keyword arguments are passed through to `aiosqlite.connect`.

    Returns an open connection; caller is responsible for closing it.
    """
    conn = await aiosqlite.connect(db_path, **kwargs)
    conn.row_factory = aiosqlite.Row

    # Ensure foreign keys are enabled and apply additional pragmas
    await conn.execute("PRAGMA foreign_keys = ON")
    if pragmas:
        for k, v in pragmas.items():
            await conn.execute(f"PRAGMA {k} = {v}")

    return conn


async def apply_schema(conn: aiosqlite.Connection, schema_path: Optional[str] = None) -> None:
    """Run the SQL schema against an open connection.

    If `schema_path` is not provided this function uses `schema.sql` next to
    this module (i.e. `db/schema.sql`). Every statement is `IF NOT EXISTS`,
    so applying it twice is harmless.
    """
    schema_file = Path(schema_path) if schema_path else SCHEMA_PATH

    if not schema_file.exists():
        raise FileNotFoundError(f"Schema file not found: {schema_file}")

    await conn.executescript(schema_file.read_text())
    await conn.commit()


async def init_db(db_path: str, schema_path: Optional[str] = None) -> None:
    """Initialize a SQLite database file using the provided SQL schema."""
    conn = await connect(db_path)
    try:
        await apply_schema(conn, schema_path)
    finally:
        await conn.close()


async def ensure_db(db_path: str, schema_path: Optional[str] = None) -> None:
    """Create the database file if it doesn't exist, initializing schema.

    If the database already exists this is a no-op.
    """
    db_file = Path(db_path)
    if db_file.exists():
        return
    # Ensure parent directory exists
    if db_file.parent and not db_file.parent.exists():
        db_file.parent.mkdir(parents=True, exist_ok=True)

    await init_db(db_path, schema_path)
