import pytest

from models.domain_models import InteractionType
from models.interaction_grid import InteractionGrid
from stores.exceptions import InvalidState, MalformedInteractions


def _grid():
    grid = InteractionGrid()
    grid.set_tile_interaction(0, 0, {"id": 4, "interaction_type": InteractionType.MONSTER})
    grid.set_tile_interaction(0, 0, {"id": 9, "interaction_type": InteractionType.TREASURE})
    grid.set_tile_interaction(0, 0, {"id": 2, "interaction_type": InteractionType.MONSTER})
    grid.set_tile_interaction(3, 7, {"id": 5, "interaction_type": InteractionType.NPC})
    return grid


def test_empty_tile_returns_empty_list():
    grid = InteractionGrid()
    assert grid.get_interactions_at(5, 5) == []
    assert len(grid) == 0


def test_round_trip_preserves_tiles_and_order():
    grid = _grid()
    values = grid.serialize()
    assert len(values) == 16

    rebuilt = InteractionGrid.deserialize(values)
    assert rebuilt == grid
    assert [i["id"] for i in rebuilt.get_interactions_at(0, 0)] == [4, 9, 2]
    assert rebuilt.get_interactions_at(3, 7) == [{"id": 5, "interaction_type": InteractionType.NPC}]


def test_serialize_layout_is_row_col_id_type():
    grid = InteractionGrid()
    grid.set_tile_interaction(2, 3, {"id": 11, "interaction_type": InteractionType.TREASURE})
    assert grid.serialize() == [2, 3, 11, 2]


def test_deserialize_rejects_partial_quadruple():
    with pytest.raises(MalformedInteractions):
        InteractionGrid.deserialize([0, 0, 1, 0, 1])


def test_deserialize_rejects_unknown_type():
    with pytest.raises(MalformedInteractions):
        InteractionGrid.deserialize([0, 0, 1, 7])


def test_malformed_is_a_validation_error():
    assert issubclass(MalformedInteractions, InvalidState)


def test_deserialize_empty():
    assert len(InteractionGrid.deserialize([])) == 0
    assert len(InteractionGrid.deserialize(None)) == 0


def test_validate_bounds():
    grid = _grid()
    grid.validate_bounds(4, 8)
    with pytest.raises(MalformedInteractions):
        grid.validate_bounds(3, 8)
    with pytest.raises(MalformedInteractions):
        grid.validate_bounds(4, 7)


def test_to_json_sorted_with_type_names():
    rendered = _grid().to_json()
    assert [(t["row"], t["col"]) for t in rendered] == [(0, 0), (3, 7)]
    assert rendered[0]["interactions"][1] == {"id": 9, "interaction_type": "TREASURE"}
