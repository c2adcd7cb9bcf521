from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from rpgcombat.core.engine.actions import check_action
from rpgcombat.core.engine.commands import (
    AddCombatant,
    AdvanceTurn,
    Command,
    EndCombat,
    PerformAction,
    PlaceCombatant,
    RemoveCombatant,
    RollInitiative,
)
from rpgcombat.core.engine.errors import CombatError, DuplicateCombatant
from rpgcombat.core.engine.state import CombatState


@dataclass
class ValidationError:
    code: str
    message: str
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ValidationResult:
    ok: bool
    errors: List[ValidationError] = field(default_factory=list)


def _err(code: str, message: str, **meta: Any) -> ValidationResult:
    return ValidationResult(
        ok=False, errors=[ValidationError(code=code, message=message, meta=meta)]
    )


def _from_error(e: CombatError) -> ValidationResult:
    return _err(e.code, e.message, **e.meta)


def validate_command(state: CombatState, cmd: Command) -> ValidationResult:
    if state.phase == "ended":
        return _err("COMBAT_ENDED", "Combat has already ended")

    if isinstance(cmd, AddCombatant):
        spec = cmd.combatant
        if state.phase != "setup":
            return _err(
                "COMBAT_ALREADY_STARTED",
                "Combatants can only be added during setup",
                phase=state.phase,
            )
        if spec.id in state.combatants:
            return _from_error(
                DuplicateCombatant("Combatant id already in use", combatant_id=spec.id)
            )
        if spec.position is not None:
            try:
                state.board.check_placement(spec.id, spec.position)
            except CombatError as e:
                return _from_error(e)
        return ValidationResult(ok=True)

    if isinstance(cmd, PlaceCombatant):
        if cmd.combatant_id not in state.combatants:
            return _err(
                "COMBATANT_NOT_FOUND",
                "Unknown combatant_id",
                combatant_id=cmd.combatant_id,
            )
        try:
            state.board.check_placement(cmd.combatant_id, (cmd.x, cmd.y))
        except CombatError as e:
            return _from_error(e)
        return ValidationResult(ok=True)

    if isinstance(cmd, RemoveCombatant):
        if state.phase != "setup":
            return _err(
                "COMBAT_ALREADY_STARTED",
                "Combatants can only be removed during setup",
                phase=state.phase,
            )
        if cmd.combatant_id not in state.combatants:
            return _err(
                "COMBATANT_NOT_FOUND",
                "Unknown combatant_id",
                combatant_id=cmd.combatant_id,
            )
        return ValidationResult(ok=True)

    if isinstance(cmd, RollInitiative):
        if state.phase != "setup":
            return _err(
                "COMBAT_ALREADY_STARTED", "Initiative already rolled", phase=state.phase
            )
        if not state.combatants:
            return _err("NO_COMBATANTS", "Cannot roll initiative with zero combatants")
        unknown = [cid for cid in cmd.external_rolls if cid not in state.combatants]
        if unknown:
            return _err(
                "COMBATANT_NOT_FOUND",
                "External initiative rolls reference unknown combatants",
                combatant_ids=unknown,
            )
        bad = {cid: v for cid, v in cmd.external_rolls.items() if not 1 <= v <= 20}
        if bad:
            return _err(
                "INVALID_DICE_NOTATION",
                "External initiative rolls must be natural d20 values (1..20)",
                rolls=bad,
            )
        return ValidationResult(ok=True)

    if isinstance(cmd, AdvanceTurn):
        if state.phase != "active":
            return _err("NO_ACTIVE_COMBAT", "No active combat", phase=state.phase)
        return ValidationResult(ok=True)

    if isinstance(cmd, PerformAction):
        if cmd.target_id is None and cmd.target_position is None:
            return _err(
                "INVALID_TARGET",
                "Either target_id or target_position is required",
                action_name=cmd.action_name,
            )
        # те же проверки, что выполнит resolver, но без изменения state
        try:
            check_action(state, cmd.attacker_id, cmd.target, cmd.action_name)
        except CombatError as e:
            return _from_error(e)
        return ValidationResult(ok=True)

    if isinstance(cmd, EndCombat):
        return ValidationResult(ok=True)

    return _err(
        "UNKNOWN_COMMAND",
        "Unhandled command type",
        type=getattr(cmd, "type", str(type(cmd))),
    )
