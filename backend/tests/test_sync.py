import pytest

from rpgcombat.core.engine.commands import (
    AddCombatant,
    AdvanceTurn,
    CombatantSpec,
    PlaceCombatant,
)
from rpgcombat.core.engine.errors import NoActiveCombat
from rpgcombat.core.engine.state import CombatState
from rpgcombat.core.persistence.sync import CombatSynchronizer, InMemoryCombatStore


def _store_with_combat(key="party-1"):
    store = InMemoryCombatStore()
    store.update(key, CombatState().with_seed(4))
    return store


def _add(cid, pos=None):
    return AddCombatant(
        combatant=CombatantSpec(id=cid, name=cid, kind="enemy", hp=5, max_hp=5, position=pos)
    )


def test_synchronizer_writes_back_and_notifies():
    store = _store_with_combat()
    seen = []
    store.subscribe("party-1", lambda key, state: seen.append((key, list(state.combatants))))

    events = CombatSynchronizer(store).apply("party-1", _add("wolf", (0, 0)))
    assert [e["type"] for e in events] == ["CombatantAdded"]

    assert list(store.get("party-1").combatants) == ["wolf"]
    assert seen == [("party-1", ["wolf"])]


def test_rejected_command_is_not_written():
    store = _store_with_combat()
    seen = []
    store.subscribe("party-1", lambda key, state: seen.append(state.seq))

    sync = CombatSynchronizer(store)
    events = sync.apply("party-1", AdvanceTurn())
    assert events[0]["type"] == "CommandRejected"
    assert seen == []
    assert store.get("party-1").seq == 0


def test_unsubscribe_stops_notifications():
    store = _store_with_combat()
    seen = []
    unsubscribe = store.subscribe("party-1", lambda key, state: seen.append(key))

    sync = CombatSynchronizer(store)
    sync.apply("party-1", _add("a", (0, 0)))
    unsubscribe()
    sync.apply("party-1", PlaceCombatant(combatant_id="a", x=1, y=1))

    assert seen == ["party-1"]
    assert store.get("party-1").combatants["a"].position == (1, 1)


def test_subscribers_are_per_key():
    store = _store_with_combat("p1")
    store.update("p2", CombatState().with_seed(1))
    seen = []
    store.subscribe("p2", lambda key, state: seen.append(key))

    CombatSynchronizer(store).apply("p1", _add("a"))
    assert seen == []


def test_failing_subscriber_does_not_block_others():
    store = _store_with_combat()
    seen = []

    def broken(key, state):
        raise RuntimeError("boom")

    store.subscribe("party-1", broken)
    store.subscribe("party-1", lambda key, state: seen.append(key))

    CombatSynchronizer(store).apply("party-1", _add("a"))
    assert seen == ["party-1"]


def test_get_returns_independent_copies():
    store = _store_with_combat()
    CombatSynchronizer(store).apply("party-1", _add("a"))

    first = store.get("party-1")
    first.combatants["a"].hp = 1
    assert store.get("party-1").combatants["a"].hp == 5


def test_missing_combat_raises():
    with pytest.raises(NoActiveCombat):
        CombatSynchronizer(InMemoryCombatStore()).apply("nope", AdvanceTurn())
