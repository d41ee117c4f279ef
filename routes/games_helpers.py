"""
Response shaping for game routes.

Domain records are plain dicts except the map's interaction grid, which
is rendered to tile records here before FastAPI encodes the response.
"""

from typing import Any, Dict

from models.domain_models import Game


def public_game_view(game: Game) -> Dict[str, Any]:
    """Return a JSON-ready copy of a game; the stored game is not modified."""
    game_map = game["map"]
    return {
        "id": game["id"],
        "active": game["active"],
        "combat_id": game["combat_id"],
        "dm": game["dm"],
        "party": game["party"],
        "map": {
            "id": game_map["id"],
            "num_rows": game_map["num_rows"],
            "num_cols": game_map["num_cols"],
            "interactions": game_map["interactions"].to_json(),
        },
    }


def turn_result_view(result: Dict[str, Any], combat_id: int) -> Dict[str, Any]:
    """Flatten a resolved turn for the client; `combat` is None once the combat is over."""
    view = dict(result)
    view["combat_id"] = combat_id
    view["combat_over"] = result["combat"] is None
    return view
