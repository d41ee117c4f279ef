import asyncio
import os
import sys

import pytest

# Ensure repository root importable early
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from stores.sqlite_game_store import SqliteGameStore  # noqa: E402
from utils import ranges  # noqa: E402


@pytest.fixture
def run_with_store():
    """Run `scenario(store)` against a fresh in-memory store inside one event loop.

    Pass `store_class` to use a SqliteGameStore subclass.
    """
    def _run(scenario, store_class=SqliteGameStore):
        async def _main():
            store = store_class(":memory:")
            await store.init()
            try:
                return await scenario(store)
            finally:
                await store.close()

        return asyncio.run(_main())

    return _run


@pytest.fixture
def scripted_rolls(monkeypatch):
    """Replace range sampling with a queue of scripted values.

    Each draw pops the next value (it must lie in the requested range); once
    the queue is empty every draw returns the range minimum.
    """
    queue: list[int] = []

    def _pick(minimum: int, maximum: int) -> int:
        if minimum > maximum:
            raise ValueError(f"Invalid range: min {minimum} is greater than max {maximum}")
        if queue:
            value = queue.pop(0)
            assert minimum <= value <= maximum, f"scripted {value} outside {minimum}..{maximum}"
            return value
        return minimum

    monkeypatch.setattr(ranges, "pick_integer_from_range", _pick)
    return queue
