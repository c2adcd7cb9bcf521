from __future__ import annotations

from random import Random
from typing import Any, Dict, List, Optional

from rpgcombat.core.engine.grid import Pos
from rpgcombat.core.engine.state import (
    ActionKind,
    ActionProfile,
    Combatant,
    CombatState,
    InitiativeEntry,
)

# поднимаем при несовместимых изменениях формата
CODEC_VERSION = 1


def _jsonable(v: Any) -> Any:
    """set/tuple -> list, Enum -> value; None остаётся явным null."""
    if v is None or isinstance(v, (str, int, float, bool)):
        return v
    if isinstance(v, ActionKind):
        return v.value
    if isinstance(v, set):
        return sorted(_jsonable(x) for x in v)
    if isinstance(v, (list, tuple)):
        return [_jsonable(x) for x in v]
    if isinstance(v, dict):
        return {str(k): _jsonable(val) for k, val in v.items()}
    raise TypeError(f"Cannot encode {type(v).__name__}")


def _as_pos(v: Any) -> Optional[Pos]:
    if v is None:
        return None
    if isinstance(v, dict):
        return (int(v["x"]), int(v["y"]))
    return (int(v[0]), int(v[1]))


# ---------- rng ----------


def rng_state_to_list(rng: Random) -> List[Any]:
    version, internal, gauss_next = rng.getstate()
    return [version, list(internal), gauss_next]


def rng_from_state(state: Optional[List[Any]], seed: int) -> Random:
    rng = Random(seed)
    if state:
        version, internal, gauss_next = state
        rng.setstate((int(version), tuple(int(x) for x in internal), gauss_next))
    return rng


# ---------- action / combatant ----------


def action_to_dict(a: ActionProfile) -> Dict[str, Any]:
    return {
        "name": a.name,
        "kind": a.kind.value,
        "attack_bonus": a.attack_bonus,
        "damage": a.damage,
        "damage_type": a.damage_type,
        "range_squares": a.range_squares,
        "description": a.description,
        "save": a.save,
    }


def action_from_dict(d: Dict[str, Any]) -> ActionProfile:
    return ActionProfile(
        name=d["name"],
        kind=ActionKind(d["kind"]),
        attack_bonus=d.get("attack_bonus"),
        damage=d.get("damage"),
        damage_type=d.get("damage_type"),
        range_squares=int(d.get("range_squares", 1)),
        description=d.get("description", ""),
        save=d.get("save"),
    )


def combatant_to_dict(c: Combatant) -> Dict[str, Any]:
    return {
        "id": c.id,
        "name": c.name,
        "kind": c.kind,
        "hp": c.hp,
        "max_hp": c.max_hp,
        "armor_class": c.armor_class,
        "initiative_modifier": c.initiative_modifier,
        "position": _jsonable(c.position),
        "actions": [action_to_dict(a) for a in c.actions.values()],
        "ability_scores": dict(c.ability_scores),
        "status_effects": _jsonable(c.status_effects),
        "movement_range": c.movement_range,
    }


def combatant_from_dict(d: Dict[str, Any]) -> Combatant:
    actions = [action_from_dict(a) for a in d.get("actions", [])]
    return Combatant(
        id=d["id"],
        name=d["name"],
        kind=d["kind"],
        hp=int(d["hp"]),
        max_hp=int(d["max_hp"]),
        armor_class=int(d.get("armor_class", 10)),
        initiative_modifier=int(d.get("initiative_modifier", 0)),
        position=_as_pos(d.get("position")),
        actions={a.name: a for a in actions},
        ability_scores={k: int(v) for k, v in d.get("ability_scores", {}).items()},
        status_effects=set(d.get("status_effects", [])),
        movement_range=int(d.get("movement_range", 1)),
    )


def _entry_to_dict(e: InitiativeEntry) -> Dict[str, Any]:
    return {
        "combatant_id": e.combatant_id,
        "name": e.name,
        "kind": e.kind,
        "roll": e.roll,
        "modifier": e.modifier,
        "total": e.total,
    }


def _entry_from_dict(d: Dict[str, Any]) -> InitiativeEntry:
    return InitiativeEntry(
        combatant_id=d["combatant_id"],
        name=d["name"],
        kind=d["kind"],
        roll=int(d["roll"]),
        modifier=int(d["modifier"]),
        total=int(d["total"]),
    )


# ---------- state ----------


def combat_state_to_dict(state: CombatState) -> Dict[str, Any]:
    """
    Единственное место, где типизированное состояние превращается в JSON.
    Сохраняем rng_state, чтобы броски продолжались после загрузки.
    """
    return {
        "codec_version": CODEC_VERSION,
        "phase": state.phase,
        "grid_width": state.grid_width,
        "grid_height": state.grid_height,
        "combatants": [combatant_to_dict(c) for c in state.combatants.values()],
        "initiative_order": [_entry_to_dict(e) for e in state.initiative_order],
        "current_turn_index": state.current_turn_index,
        "round": state.round,
        "turn_owner_id": state.turn_owner_id,
        "seq": state.seq,
        "t": state.t,
        "rng_seed": state.rng_seed,
        "rng_state": rng_state_to_list(state.rng),
    }


def combat_state_from_dict(d: Dict[str, Any]) -> CombatState:
    combatants = [combatant_from_dict(c) for c in d.get("combatants", [])]
    seed = int(d.get("rng_seed", 0))
    # сетка восстанавливается из позиций бойцов в __post_init__
    return CombatState(
        phase=d.get("phase", "setup"),
        grid_width=int(d["grid_width"]),
        grid_height=int(d["grid_height"]),
        combatants={c.id: c for c in combatants},
        initiative_order=[_entry_from_dict(e) for e in d.get("initiative_order", [])],
        current_turn_index=int(d.get("current_turn_index", 0)),
        round=int(d.get("round", 1)),
        seq=int(d.get("seq", 0)),
        t=int(d.get("t", 0)),
        rng_seed=seed,
        rng=rng_from_state(d.get("rng_state"), seed),
    )
