"""Sparse tile grid holding the interactions placed on a game map.

The grid is a two-level dict (row -> col -> list of interactions). Storage has
no nested-map column, so the grid is flattened to `(row, col, id, type)`
quadruples for persistence.
"""
from __future__ import annotations

from typing import Iterable, Iterator

from stores.exceptions import MalformedInteractions
from .domain_models import Interaction, InteractionType

INTERACTION_STRIDE = 4


class InteractionGrid:

    def __init__(self) -> None:
        self._rows: dict[int, dict[int, list[Interaction]]] = {}

    def set_tile_interaction(self, row: int, col: int, interaction: Interaction) -> None:
        """Append `interaction` to the tile at (row, col)."""
        columns = self._rows.setdefault(row, {})
        columns.setdefault(col, []).append({
            "id": interaction["id"],
            "interaction_type": InteractionType(interaction["interaction_type"]),
        })

    def get_interactions_at(self, row: int, col: int) -> list[Interaction]:
        return list(self._rows.get(row, {}).get(col, []))

    def tiles(self) -> Iterator[tuple[int, int, list[Interaction]]]:
        for row, columns in self._rows.items():
            for col, interactions in columns.items():
                yield row, col, list(interactions)

    def __len__(self) -> int:
        return sum(len(interactions) for _, _, interactions in self.tiles())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InteractionGrid):
            return NotImplemented
        return self._as_tile_map() == other._as_tile_map()

    def _as_tile_map(self) -> dict[tuple[int, int], list[tuple[int, int]]]:
        return {
            (row, col): [(i["id"], int(i["interaction_type"])) for i in interactions]
            for row, col, interactions in self.tiles()
            if interactions
        }

    def validate_bounds(self, num_rows: int, num_cols: int) -> None:
        """Reject interactions placed outside a num_rows x num_cols map."""
        for row, col, _ in self.tiles():
            if not (0 <= row < num_rows and 0 <= col < num_cols):
                raise MalformedInteractions(f"Interaction at ({row}, {col}) is outside a {num_rows}x{num_cols} map")

    # -------------------------------------------------
    # Persistence
    # -------------------------------------------------

    def serialize(self) -> list[int]:
        """Flatten to [row, col, id, type, row, col, id, type, ...]."""
        values: list[int] = []
        for row, col, interactions in self.tiles():
            for interaction in interactions:
                values.extend((row, col, interaction["id"], int(interaction["interaction_type"])))
        return values

    @classmethod
    def deserialize(cls, values: Iterable[int] | None) -> "InteractionGrid":
        grid = cls()
        if not values:
            return grid
        values = list(values)
        if len(values) % INTERACTION_STRIDE != 0:
            raise MalformedInteractions(
                f"Could not parse interactions: length {len(values)} is not a multiple of {INTERACTION_STRIDE}"
            )
        for i in range(0, len(values), INTERACTION_STRIDE):
            row, col, interaction_id, interaction_type = values[i:i + INTERACTION_STRIDE]
            try:
                kind = InteractionType(interaction_type)
            except ValueError as exc:
                raise MalformedInteractions(f"Unknown interaction type {interaction_type}") from exc
            grid.set_tile_interaction(row, col, {"id": interaction_id, "interaction_type": kind})
        return grid

    def to_json(self) -> list[dict]:
        """Render tiles for HTTP responses."""
        return [
            {
                "row": row,
                "col": col,
                "interactions": [
                    {"id": i["id"], "interaction_type": i["interaction_type"].name}
                    for i in interactions
                ],
            }
            for row, col, interactions in sorted(self.tiles(), key=lambda t: (t[0], t[1]))
        ]

    def __repr__(self) -> str:
        return f"InteractionGrid({len(self)} interactions)"
