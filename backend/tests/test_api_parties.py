def _create_party(client, name="Fellowship"):
    r = client.post(
        "/parties",
        json={
            "name": name,
            "members": {
                "hero": {
                    "name": "Hero",
                    "class": "Fighter",
                    "level": 3,
                    "strength": 16,
                    "hp": 20,
                    "max_hp": 20,
                    "armor_class": 16,
                }
            },
        },
    )
    assert r.status_code == 200, r.text
    return r.json()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_party_crud(client):
    party = _create_party(client)
    assert party["name"] == "Fellowship"
    assert party["members"]["hero"]["class"] == "Fighter"
    assert party["members"]["hero"]["strength"] == 16

    r = client.get(f"/parties/{party['id']}")
    assert r.status_code == 200
    assert r.json()["id"] == party["id"]

    r = client.get("/parties")
    assert r.status_code == 200
    assert party["id"] in [p["id"] for p in r.json()]


def test_party_not_found(client):
    r = client.get("/parties/does-not-exist")
    assert r.status_code == 404


def test_party_name_required(client):
    r = client.post("/parties", json={"name": ""})
    assert r.status_code == 422
