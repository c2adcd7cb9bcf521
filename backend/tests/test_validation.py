import pytest
from pydantic import TypeAdapter, ValidationError

from rpgcombat.core.engine.commands import (
    AddCombatant,
    CombatantSpec,
    Command,
    PerformAction,
    PlaceCombatant,
    RemoveCombatant,
    RollInitiative,
)
from rpgcombat.core.engine.rules.apply import apply_command
from rpgcombat.core.engine.rules.validator import validate_command
from rpgcombat.core.engine.state import MAX_GRID_SIZE, CombatState


def _spec(cid, pos=None, kind="player"):
    return CombatantSpec(id=cid, name=cid, kind=kind, hp=8, max_hp=8, position=pos)


def _code(events):
    assert [e["type"] for e in events] == ["CommandRejected"]
    return events[0]["payload"]["code"]


def test_add_combatant_rules():
    state = CombatState().with_seed(1)
    state, _ = apply_command(state, AddCombatant(combatant=_spec("a", (0, 0))))

    _, ev = apply_command(state, AddCombatant(combatant=_spec("a")))
    assert _code(ev) == "DUPLICATE_COMBATANT"

    _, ev = apply_command(state, AddCombatant(combatant=_spec("b", (0, 0))))
    assert _code(ev) == "CELL_OCCUPIED"

    _, ev = apply_command(state, AddCombatant(combatant=_spec("b", (12, 0))))
    assert _code(ev) == "OUT_OF_BOUNDS"

    assert list(state.combatants) == ["a"]


def test_add_after_initiative_rejected():
    state = CombatState().with_seed(1)
    state, _ = apply_command(state, AddCombatant(combatant=_spec("a")))
    state, _ = apply_command(state, RollInitiative())
    _, ev = apply_command(state, AddCombatant(combatant=_spec("b")))
    assert _code(ev) == "COMBAT_ALREADY_STARTED"


def test_remove_combatant_frees_cell():
    state = CombatState().with_seed(1)
    state, _ = apply_command(state, AddCombatant(combatant=_spec("a", (2, 2))))
    state, ev = apply_command(state, RemoveCombatant(combatant_id="a"))
    assert ev[0]["type"] == "CombatantRemoved"
    assert state.combatants == {}
    assert state.board.occupant_at((2, 2)) is None

    _, ev = apply_command(state, RemoveCombatant(combatant_id="a"))
    assert _code(ev) == "COMBATANT_NOT_FOUND"


def test_place_unknown_combatant():
    state = CombatState().with_seed(1)
    _, ev = apply_command(state, PlaceCombatant(combatant_id="ghost", x=0, y=0))
    assert _code(ev) == "COMBATANT_NOT_FOUND"


def test_external_initiative_values_validated():
    state = CombatState().with_seed(1)
    state, _ = apply_command(state, AddCombatant(combatant=_spec("a")))

    _, ev = apply_command(state, RollInitiative(external_rolls={"a": 21}))
    assert _code(ev) == "INVALID_DICE_NOTATION"

    _, ev = apply_command(state, RollInitiative(external_rolls={"zzz": 5}))
    assert _code(ev) == "COMBATANT_NOT_FOUND"
    assert state.phase == "setup"


def test_perform_action_requires_target_and_active_combat():
    state = CombatState().with_seed(1)
    state, _ = apply_command(state, AddCombatant(combatant=_spec("a", (0, 0))))
    state, _ = apply_command(state, AddCombatant(combatant=_spec("b", (1, 0))))

    vr = validate_command(
        state, PerformAction(attacker_id="a", target_id="b", action_name="Basic Attack")
    )
    assert not vr.ok
    assert vr.errors[0].code == "NO_ACTIVE_COMBAT"

    state, _ = apply_command(state, RollInitiative())
    vr = validate_command(state, PerformAction(attacker_id="a", action_name="Basic Attack"))
    assert vr.errors[0].code == "INVALID_TARGET"


def test_unplaced_attacker_rejected():
    state = CombatState().with_seed(1)
    state, _ = apply_command(state, AddCombatant(combatant=_spec("a")))
    state, _ = apply_command(state, AddCombatant(combatant=_spec("b", (1, 0))))
    state, _ = apply_command(state, RollInitiative())

    _, ev = apply_command(
        state, PerformAction(attacker_id="a", target_id="b", action_name="Basic Attack")
    )
    assert _code(ev) == "NOT_POSITIONED"


def test_command_parsing_is_discriminated_and_strict():
    adapter = TypeAdapter(Command)
    cmd = adapter.validate_python({"type": "PlaceCombatant", "combatant_id": "a", "x": 1, "y": 2})
    assert isinstance(cmd, PlaceCombatant)

    with pytest.raises(ValidationError):
        adapter.validate_python({"type": "Teleport"})
    with pytest.raises(ValidationError):
        adapter.validate_python({"type": "AdvanceTurn", "extra": 1})


def test_combatant_spec_hp_cannot_exceed_max():
    with pytest.raises(ValidationError):
        CombatantSpec(id="a", name="a", kind="enemy", hp=9, max_hp=8)
    with pytest.raises(ValidationError):
        CombatantSpec(id="a", name="a", kind="enemy", hp=1, max_hp=0)


def test_combatant_spec_movement_range_is_bounded():
    CombatantSpec(id="a", name="a", kind="enemy", hp=1, max_hp=1, movement_range=MAX_GRID_SIZE)
    with pytest.raises(ValidationError):
        CombatantSpec(
            id="a", name="a", kind="enemy", hp=1, max_hp=1, movement_range=MAX_GRID_SIZE + 1
        )
