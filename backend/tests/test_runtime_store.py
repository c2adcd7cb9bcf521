from rpgcombat.core.engine.commands import AddCombatant, CombatantSpec
from rpgcombat.core.engine.state import CombatState
from rpgcombat.core.persistence.runtime_store import (
    SqlCombatStore,
    load_latest_snapshot,
    save_snapshot,
)
from rpgcombat.core.persistence.sync import CombatSynchronizer
from rpgcombat.db.models import CombatSnapshot, Party


def _party(db, name="Store test"):
    p = Party(name=name, members_json={})
    db.add(p)
    db.commit()
    db.refresh(p)
    return p


def test_latest_snapshot_wins(db):
    party = _party(db)
    assert load_latest_snapshot(db, party.id) == (None, None, [])

    first = save_snapshot(db, party_id=party.id, label="init", state=CombatState(grid_width=5, grid_height=5))
    second = save_snapshot(
        db,
        party_id=party.id,
        label="bigger",
        state=CombatState(grid_width=9, grid_height=9),
        events_delta=[{"type": "Noop"}],
    )
    assert second.id > first.id

    save_id, state, events = load_latest_snapshot(db, party.id)
    assert save_id == second.id
    assert state.grid_width == 9
    assert events == [{"type": "Noop"}]


def test_sql_store_appends_snapshot_per_accepted_command(db):
    party = _party(db)
    save_snapshot(db, party_id=party.id, label="init", state=CombatState().with_seed(2))

    store = SqlCombatStore(db, label="cmd")
    seen = []
    store.subscribe(party.id, lambda key, state: seen.append(list(state.combatants)))

    sync = CombatSynchronizer(store)
    spec = CombatantSpec(id="x", name="X", kind="enemy", hp=3, max_hp=3)
    events = sync.apply(party.id, AddCombatant(combatant=spec))
    assert events[0]["type"] == "CombatantAdded"
    assert seen == [["x"]]

    # дубликат отклоняется и не пишет снапшот
    before = db.query(CombatSnapshot).filter(CombatSnapshot.party_id == party.id).count()
    events = sync.apply(party.id, AddCombatant(combatant=spec))
    assert events[0]["type"] == "CommandRejected"
    after = db.query(CombatSnapshot).filter(CombatSnapshot.party_id == party.id).count()
    assert before == after == 2

    row = db.get(CombatSnapshot, store.last_snapshot_id)
    assert row.label == "cmd"
    assert row.events_json[0]["type"] == "CombatantAdded"
