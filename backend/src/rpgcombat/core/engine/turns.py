from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from rpgcombat.core.engine.dice import roll_d20
from rpgcombat.core.engine.errors import (
    CombatAlreadyStarted,
    CombatEnded,
    NoActiveCombat,
    NoCombatants,
)
from rpgcombat.core.engine.events import Roll, RollMod
from rpgcombat.core.engine.state import CombatState, InitiativeEntry


@dataclass
class InitiativeOutcome:
    order: List[InitiativeEntry]
    rolls: Dict[str, Roll]


@dataclass
class TurnAdvance:
    previous: InitiativeEntry
    current: InitiativeEntry
    new_round: bool


def _external_d20(nat: int, modifier: int) -> Roll:
    mods = [RollMod(name="initiative", value=modifier)] if modifier else []
    return Roll(
        kind="d20",
        formula=f"1d20{modifier:+d}",
        dice=[nat],
        kept=[nat],
        mods=mods,
        total=nat + modifier,
        nat=nat,
        is_critical=(nat == 20),
    )


def ensure_not_ended(state: CombatState) -> None:
    if state.phase == "ended":
        raise CombatEnded("Combat has already ended")


def ensure_active(state: CombatState) -> None:
    ensure_not_ended(state)
    if state.phase != "active":
        raise NoActiveCombat("No active combat", phase=state.phase)


def roll_initiative(
    state: CombatState, external_rolls: Optional[Mapping[str, int]] = None
) -> InitiativeOutcome:
    """
    d20 + initiative_modifier для каждого бойца, сортировка по total по убыванию.
    sorted() стабилен: при равенстве сохраняется порядок добавления.
    """
    ensure_not_ended(state)
    if state.phase != "setup":
        raise CombatAlreadyStarted("Initiative already rolled", phase=state.phase)
    if not state.combatants:
        raise NoCombatants("Cannot roll initiative with zero combatants")

    external_rolls = external_rolls or {}
    entries: List[InitiativeEntry] = []
    rolls: Dict[str, Roll] = {}

    for c in state.combatants.values():
        if c.id in external_rolls:
            roll = _external_d20(int(external_rolls[c.id]), c.initiative_modifier)
        else:
            roll = roll_d20(state.rng, c.initiative_modifier, bonus_name="initiative")
        rolls[c.id] = roll
        raw = roll.kept[0]

        entries.append(
            InitiativeEntry(
                combatant_id=c.id,
                name=c.name,
                kind=c.kind,
                roll=raw,
                modifier=c.initiative_modifier,
                total=raw + c.initiative_modifier,
            )
        )

    order = sorted(entries, key=lambda e: -e.total)

    state.phase = "initiative_rolled"
    state.initiative_order = order
    state.current_turn_index = 0
    state.round = 1
    state.phase = "active"

    return InitiativeOutcome(order=order, rolls=rolls)


def advance_turn(state: CombatState) -> TurnAdvance:
    # единственное место, где меняются current_turn_index и round
    ensure_active(state)

    previous = state.initiative_order[state.current_turn_index]
    new_round = False

    state.current_turn_index += 1
    if state.current_turn_index >= len(state.initiative_order):
        state.current_turn_index = 0
        state.round += 1
        new_round = True

    return TurnAdvance(
        previous=previous,
        current=state.initiative_order[state.current_turn_index],
        new_round=new_round,
    )


def end_combat(state: CombatState) -> None:
    ensure_not_ended(state)
    state.phase = "ended"
    # производные записи инициативы больше не нужны
    state.initiative_order = []
    state.current_turn_index = 0
