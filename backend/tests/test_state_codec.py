import json

from rpgcombat.core.adapters import combatant_from_monster
from rpgcombat.core.catalog.monsters import load_default_catalog
from rpgcombat.core.engine.commands import (
    AddCombatant,
    CombatantSpec,
    RollInitiative,
    combatant_to_spec,
)
from rpgcombat.core.engine.rules.apply import apply_command
from rpgcombat.core.engine.state import CombatState
from rpgcombat.core.persistence.state_codec import (
    CODEC_VERSION,
    combat_state_from_dict,
    combat_state_to_dict,
)


def _state():
    state = CombatState(grid_width=10, grid_height=6).with_seed(21)
    orc = combatant_from_monster(load_default_catalog().get("orc"), "orc", (3, 2))
    state, _ = apply_command(state, AddCombatant(combatant=combatant_to_spec(orc)))
    state, _ = apply_command(
        state,
        AddCombatant(
            combatant=CombatantSpec(id="pc", name="PC", kind="player", hp=12, max_hp=12)
        ),
    )
    state, _ = apply_command(state, RollInitiative())
    return state


def test_roundtrip_is_json_and_lossless():
    state = _state()
    data = combat_state_to_dict(state)

    # только JSON-типы
    assert json.loads(json.dumps(data)) == data
    assert data["codec_version"] == CODEC_VERSION
    assert data["turn_owner_id"] == state.turn_owner_id

    pc = next(c for c in data["combatants"] if c["id"] == "pc")
    assert pc["position"] is None
    assert pc["status_effects"] == []

    restored = combat_state_from_dict(json.loads(json.dumps(data)))
    assert combat_state_to_dict(restored) == data
    assert restored.combatants["orc"].actions == state.combatants["orc"].actions
    assert restored.board.occupant_at((3, 2)) == "orc"
    assert restored.turn_owner_id == state.turn_owner_id


def test_rng_continues_after_reload():
    state = _state()
    restored = combat_state_from_dict(combat_state_to_dict(state))
    assert [state.rng.random() for _ in range(5)] == [restored.rng.random() for _ in range(5)]
