import pytest
from fastapi.testclient import TestClient

import config

ADMIN = {"api-admin-token": "admin-secret"}
USER = {"api-user-token": "user-secret"}


@pytest.fixture()
def client(monkeypatch):
    monkeypatch.setattr(config, "DB_PATH", ":memory:")
    monkeypatch.setattr(config, "API_ADMIN_TOKEN", "admin-secret")
    monkeypatch.setattr(config, "API_USER_TOKEN", "user-secret")
    from main import app

    with TestClient(app) as c:
        yield c


def _creature(creature_type, name="Grunt", **overrides):
    body = {
        "name": name,
        "hp": 20,
        "abilities": [10, 10, 10, 10, 10, 10],
        "creature_class": "fighter",
        "race": "orc",
        "creature_type": creature_type,
        "equipment_capacity": 2,
        "consumables_capacity": 2,
    }
    body.update(overrides)
    return body


def test_tokens_gate_routes(client):
    assert client.get("/monster").status_code == 401
    assert client.get("/monster", headers={"api-user-token": "wrong"}).status_code == 401
    assert client.get("/monster", headers=USER).status_code == 200
    assert client.get("/monster", headers=ADMIN).status_code == 200
    assert client.post("/monster", json=_creature("monster"), headers=USER).status_code == 401
    assert client.post("/item/currency", json={"currency_type": "gold", "total": 1}, headers=USER).status_code == 401


def test_monster_crud(client):
    created = client.post("/monster", json=_creature("monster"), headers=ADMIN)
    assert created.status_code == 201
    monster = created.json()
    assert monster["properties"]["lvl"] == 1
    assert monster["equipped"] == [None] * 7

    fetched = client.get(f"/monster/{monster['id']}", headers=USER)
    assert fetched.status_code == 200
    assert fetched.json() == monster

    assert client.get("/character", headers=USER).json() == []
    assert client.delete(f"/monster/{monster['id']}", headers=ADMIN).status_code == 200
    assert client.delete(f"/monster/{monster['id']}", headers=ADMIN).status_code == 404
    assert client.get(f"/monster/{monster['id']}", headers=USER).status_code == 404


def test_creature_type_must_match_route(client):
    assert client.post("/character", json=_creature("monster"), headers=USER).status_code == 400

    hero = client.post("/character", json=_creature("character", "Hero", race="elf"), headers=USER).json()
    assert client.delete(f"/monster/{hero['id']}", headers=ADMIN).status_code == 400
    assert client.get(f"/monster/{hero['id']}", headers=USER).status_code == 404


def test_request_validation(client):
    bad_class = _creature("monster", creature_class="bard")
    assert client.post("/monster", json=bad_class, headers=ADMIN).status_code == 422
    bad_range = {
        "equipment_ids": [],
        "consumable_ids": [],
        "currency_ids": [],
        "num_equipment": {"min": -1, "max": 0},
        "num_consumables": {"min": 0, "max": 0},
        "num_currencies": {"min": 0, "max": 0},
    }
    assert client.post("/treasure", json=bad_range, headers=ADMIN).status_code == 422
    assert client.post("/game", json={"num_rows": 0, "num_cols": 0}, headers=USER).status_code == 422


def test_game_lifecycle(client):
    gold = client.post("/item/currency", json={"currency_type": "gold", "total": 10}, headers=ADMIN).json()
    treasure_type = client.post("/treasure", json={
        "equipment_ids": [],
        "consumable_ids": [],
        "currency_ids": [gold["id"]],
        "num_equipment": {"min": 0, "max": 0},
        "num_consumables": {"min": 0, "max": 0},
        "num_currencies": {"min": 1, "max": 2},
    }, headers=ADMIN)
    assert treasure_type.status_code == 201

    created = client.post("/game", json={
        "num_rows": 5,
        "num_cols": 5,
        "min_monsters": 1,
        "max_monsters": 1,
        "min_treasures": 1,
        "max_treasures": 1,
    }, headers=USER)
    assert created.status_code == 201
    game = created.json()
    assert game["active"] is False
    assert sum(len(tile["interactions"]) for tile in game["map"]["interactions"]) == 2
    game_id = game["id"]

    assert [g["game_id"] for g in client.get("/game/available/dm", headers=USER).json()] == [game_id]
    assert client.post(f"/game/{game_id}/start", headers=USER).status_code == 400

    hero = client.post("/character", json=_creature("character", "Hero", race="human"), headers=USER).json()
    joined = client.post(f"/game/{game_id}/dm/dm-1", json={"user_name": "Dana"}, headers=USER)
    assert joined.status_code == 200
    assert client.post(f"/game/{game_id}/dm/dm-2", json={"user_name": "Eve"}, headers=USER).status_code == 400

    joined = client.post(f"/game/{game_id}/player/p-1", json={"user_name": "Pat", "character_id": hero["id"]}, headers=USER)
    assert joined.status_code == 200
    player_id = joined.json()["party"]["players"][0]["id"]
    party_id = joined.json()["party"]["id"]

    started = client.post(f"/game/{game_id}/start", headers=USER)
    assert started.status_code == 200
    assert started.json()["active"] is True
    assert client.get("/game/available/party", headers=USER).json() == []

    assert client.post(f"/game/{game_id}/player/{player_id}/move", json={"direction": "south"}, headers=USER).status_code == 400
    moved = client.post(f"/game/{game_id}/player/{player_id}/move", json={"direction": "north"}, headers=USER)
    assert moved.status_code == 200
    assert moved.json()["location"] == {"row": 1, "col": 0}

    treasure_tiles = [
        i["id"]
        for tile in game["map"]["interactions"]
        for i in tile["interactions"]
        if i["interaction_type"] == "TREASURE"
    ]
    opened = client.post(f"/treasure/instance/{treasure_tiles[0]}/open/{party_id}", headers=USER)
    assert opened.status_code == 200
    assert 1 <= len(opened.json()["awarded"][0]["currency_ids"]) <= 2
    assert client.post(f"/treasure/instance/{treasure_tiles[0]}/open/{party_id}", headers=USER).status_code == 400


def test_combat_over_http(client):
    client.post("/treasure", json={
        "equipment_ids": [],
        "consumable_ids": [],
        "currency_ids": [],
        "num_equipment": {"min": 0, "max": 0},
        "num_consumables": {"min": 0, "max": 0},
        "num_currencies": {"min": 0, "max": 0},
    }, headers=ADMIN)
    game = client.post("/game", json={
        "num_rows": 1,
        "num_cols": 1,
        "min_monsters": 1,
        "max_monsters": 1,
        "min_treasures": 1,
        "max_treasures": 1,
        "user": {"user_id": "p-1", "user_name": "Pat", "character_id": None},
    }, headers=USER).json()
    game_id = game["id"]

    # no character in the party yet
    assert client.post(f"/game/{game_id}/combat", headers=USER).status_code == 400

    hero = client.post("/character", json=_creature("character", "Hero", race="dwarf"), headers=USER).json()
    client.post(f"/game/{game_id}/player/p-2", json={"user_name": "Sam", "character_id": hero["id"]}, headers=USER)

    began = client.post(f"/game/{game_id}/combat", json={"location": {"row": 0, "col": 0}}, headers=USER)
    assert began.status_code == 201
    fight = began.json()
    assert len(fight["combatants"]) == 2
    assert client.post(f"/game/{game_id}/combat", headers=USER).status_code == 400
    assert client.delete(f"/character/{hero['id']}", headers=USER).status_code == 400

    attacker = fight["combatants"][0]
    defender = fight["combatants"][1]
    wrong_turn = client.post(
        f"/game/{game_id}/combat/{fight['id']}/turn",
        json={"attacker_combatant_id": defender["id"], "defender_combatant_id": attacker["id"]},
        headers=USER,
    )
    assert wrong_turn.status_code == 400

    turn = client.post(
        f"/game/{game_id}/combat/{fight['id']}/turn",
        json={"attacker_combatant_id": attacker["id"], "defender_combatant_id": defender["id"]},
        headers=USER,
    )
    assert turn.status_code == 200
    assert 1 <= turn.json()["roll"] <= 20

    current = client.get(f"/game/{game_id}/combat/{fight['id']}", headers=USER)
    if turn.json()["combat_over"]:
        assert current.status_code == 404
    else:
        assert current.json()["combatant_turn_index"] == 1


def test_unknown_game_is_404(client):
    assert client.get("/game/999", headers=USER).status_code == 404
    assert client.put("/game/999", json={"active": True}, headers=ADMIN).status_code == 404
