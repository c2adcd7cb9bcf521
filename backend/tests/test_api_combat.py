from rpgcombat.api.routers.combat_runtime import combat_feed


def _party(client):
    r = client.post(
        "/parties",
        json={
            "name": "Raiders",
            "members": {
                "hero": {
                    "name": "Hero",
                    "strength": 16,
                    "dexterity": 12,
                    "hp": 20,
                    "max_hp": 20,
                    "armor_class": 14,
                }
            },
        },
    )
    assert r.status_code == 200, r.text
    return r.json()["id"]


def _apply(client, pid, command):
    r = client.post(f"/parties/{pid}/combat/commands:apply", json={"command": command})
    assert r.status_code == 200, r.text
    return r.json()


def _ready(client):
    pid = _party(client)
    r = client.post(f"/parties/{pid}/combat:init", json={"seed": 42})
    assert r.status_code == 200, r.text

    r = client.post(
        f"/parties/{pid}/combat/monsters:add",
        json={"monster_id": "goblin", "combatant_id": "goblin", "position": {"x": 1, "y": 0}},
    )
    assert r.status_code == 200, r.text

    r = client.post(
        f"/parties/{pid}/combat/players:add",
        json={"member_id": "hero", "position": {"x": 0, "y": 0}},
    )
    assert r.status_code == 200, r.text
    return pid


def test_init_is_idempotent_unless_reset(client):
    pid = _party(client)
    r1 = client.post(f"/parties/{pid}/combat:init", json={})
    assert r1.status_code == 200
    body = r1.json()
    assert body["state"]["phase"] == "setup"
    assert (body["state"]["grid_width"], body["state"]["grid_height"]) == (12, 8)

    r2 = client.post(f"/parties/{pid}/combat:init", json={})
    assert r2.json()["save_id"] == body["save_id"]

    r3 = client.post(
        f"/parties/{pid}/combat:init",
        json={"reset_existing": True, "grid_width": 6, "grid_height": 4},
    )
    assert r3.json()["save_id"] != body["save_id"]
    assert r3.json()["state"]["grid_width"] == 6


def test_full_combat_round(client):
    pid = _ready(client)

    body = _apply(client, pid, {"type": "RollInitiative", "external_rolls": {"hero": 20, "goblin": 1}})
    assert body["state"]["phase"] == "active"
    assert body["state"]["turn_owner_id"] == "hero"
    assert body["events_delta"][-1]["type"] == "RoundStarted"

    r = client.get(f"/parties/{pid}/combat/combatants/hero/actions")
    assert r.status_code == 200
    assert [a["name"] for a in r.json()] == ["Move", "Basic Attack", "Ranged Attack"]

    r = client.get(f"/parties/{pid}/combat/combatants/goblin/actions")
    assert [a["name"] for a in r.json()] == ["Move", "Scimitar", "Shortbow"]

    r = client.get(
        f"/parties/{pid}/combat/combatants/hero/targets", params={"action": "Basic Attack"}
    )
    assert r.json()["combatant_ids"] == ["goblin"]

    r = client.get(f"/parties/{pid}/combat/combatants/hero/targets", params={"action": "Move"})
    assert r.json()["positions"] == [{"x": 0, "y": 1}]

    body = _apply(
        client,
        pid,
        {
            "type": "PerformAction",
            "attacker_id": "hero",
            "target_id": "goblin",
            "action_name": "Basic Attack",
            "external_rolls": {"attack": 23, "damage": 3, "critical_damage": 4},
        },
    )
    types = [e["type"] for e in body["events_delta"]]
    assert "CombatantDowned" in types
    assert types[-1] == "TurnAdvanced"
    goblin = next(c for c in body["state"]["combatants"] if c["id"] == "goblin")
    assert goblin["hp"] == 0
    assert body["state"]["turn_owner_id"] == "goblin"

    r = client.get(f"/parties/{pid}/combat")
    assert r.status_code == 200
    assert r.json()["save_id"] == body["save_id"]


def test_rejected_command_keeps_snapshot(client):
    pid = _ready(client)
    before = client.get(f"/parties/{pid}/combat").json()

    body = _apply(client, pid, {"type": "AdvanceTurn"})
    assert [e["type"] for e in body["events_delta"]] == ["CommandRejected"]
    assert body["events_delta"][0]["payload"]["code"] == "NO_ACTIVE_COMBAT"
    assert body["save_id"] == before["save_id"]
    assert body["state"] == before["state"]


def test_malformed_command_is_422(client):
    pid = _ready(client)
    r = client.post(
        f"/parties/{pid}/combat/commands:apply", json={"command": {"type": "Teleport"}}
    )
    assert r.status_code == 422


def test_duplicate_and_occupied_adds_are_422(client):
    pid = _ready(client)
    r = client.post(
        f"/parties/{pid}/combat/monsters:add",
        json={"monster_id": "wolf", "combatant_id": "goblin"},
    )
    assert r.status_code == 422
    assert r.json()["detail"]["code"] == "DUPLICATE_COMBATANT"

    r = client.post(
        f"/parties/{pid}/combat/monsters:add",
        json={"monster_id": "wolf", "position": {"x": 1, "y": 0}},
    )
    assert r.status_code == 422
    assert r.json()["detail"]["code"] == "CELL_OCCUPIED"


def test_add_player_from_inline_sheet(client):
    pid = _party(client)
    client.post(f"/parties/{pid}/combat:init", json={})
    r = client.post(
        f"/parties/{pid}/combat/players:add",
        json={"character": {"name": "Guest", "hp": 8, "max_hp": 8}, "combatant_id": "guest"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["events_delta"][0]["payload"]["kind"] == "player"

    r = client.post(f"/parties/{pid}/combat/players:add", json={})
    assert r.status_code == 422

    r = client.post(f"/parties/{pid}/combat/players:add", json={"member_id": "nobody"})
    assert r.status_code == 404


def test_unknown_monster_is_404(client):
    pid = _party(client)
    client.post(f"/parties/{pid}/combat:init", json={})
    r = client.post(f"/parties/{pid}/combat/monsters:add", json={"monster_id": "beholder"})
    assert r.status_code == 404
    assert r.json()["detail"]["code"] == "MONSTER_NOT_FOUND"


def test_combat_not_initialized(client):
    pid = _party(client)
    assert client.get(f"/parties/{pid}/combat").status_code == 404
    r = client.post(f"/parties/{pid}/combat/commands:apply", json={"command": {"type": "AdvanceTurn"}})
    assert r.status_code == 409


def test_unknown_party(client):
    r = client.post("/parties/missing/combat:init", json={})
    assert r.status_code == 404


def test_unknown_combatant_actions_is_422(client):
    pid = _ready(client)
    r = client.get(f"/parties/{pid}/combat/combatants/ghost/actions")
    assert r.status_code == 422
    assert r.json()["detail"]["code"] == "COMBATANT_NOT_FOUND"


def test_writes_are_pushed_to_feed_subscribers(client):
    pid = _ready(client)
    seen = []
    unsubscribe = combat_feed.subscribe(pid, lambda key, state: seen.append(state.phase))
    try:
        _apply(client, pid, {"type": "RollInitiative", "external_rolls": {"hero": 20, "goblin": 1}})
        assert seen == ["active"]

        # отклонённая команда ничего не пишет и не рассылает
        _apply(client, pid, {"type": "RemoveCombatant", "combatant_id": "goblin"})
        assert seen == ["active"]
    finally:
        unsubscribe()

    _apply(client, pid, {"type": "AdvanceTurn"})
    assert seen == ["active"]
