from __future__ import annotations

import logging
from typing import List, Tuple

from rpgcombat.core.engine.actions import AttackResult, MoveResult, perform_action
from rpgcombat.core.engine.commands import (
    AddCombatant,
    AdvanceTurn,
    Command,
    EndCombat,
    PerformAction,
    PlaceCombatant,
    RemoveCombatant,
    RollInitiative,
    spec_to_combatant,
)
from rpgcombat.core.engine.errors import CombatError
from rpgcombat.core.engine.events import (
    ev_action_resolved,
    ev_attack_declared,
    ev_attack_rolled,
    ev_combat_ended,
    ev_combatant_added,
    ev_combatant_downed,
    ev_combatant_placed,
    ev_combatant_removed,
    ev_command_rejected,
    ev_damage_applied,
    ev_hit_confirmed,
    ev_initiative_order_finalized,
    ev_initiative_rolled,
    ev_miss_confirmed,
    ev_movement_resolved,
    ev_round_started,
    ev_turn_advanced,
)
from rpgcombat.core.engine.rules.validator import validate_command
from rpgcombat.core.engine.state import CombatState
from rpgcombat.core.engine.turns import (
    TurnAdvance,
    advance_turn,
    end_combat,
    roll_initiative,
)

logger = logging.getLogger(__name__)


def _bump(state: CombatState) -> Tuple[int, int]:
    state.seq += 1
    state.t += 1
    return state.seq, state.t


def _actor_id(cmd: Command):
    return getattr(cmd, "attacker_id", None) or getattr(cmd, "combatant_id", None)


def _reject(
    state: CombatState, cmd: Command, code: str, message: str, meta: dict
) -> Tuple[CombatState, List[dict]]:
    logger.info("Command %s rejected: %s (%s)", cmd.type, code, message)
    seq, t = _bump(state)
    rej = ev_command_rejected(
        seq=seq,
        t=t,
        round_=state.round,
        turn_owner_id=state.turn_owner_id,
        actor_id=_actor_id(cmd),
        command=cmd.model_dump(mode="json"),
        code=code,
        message=message,
        meta=meta,
    ).model_dump(mode="json")
    return state, [rej]


def _turn_events(state: CombatState, adv: TurnAdvance) -> List[dict]:
    events: List[dict] = []
    if adv.new_round:
        seq, t = _bump(state)
        events.append(
            ev_round_started(
                seq=seq,
                t=t,
                round_=state.round,
                turn_owner_id=adv.current.combatant_id,
            ).model_dump(mode="json")
        )
    seq, t = _bump(state)
    events.append(
        ev_turn_advanced(
            seq=seq,
            t=t,
            round_=state.round,
            turn_owner_id=adv.current.combatant_id,
            previous_owner_id=adv.previous.combatant_id,
            turn_index=state.current_turn_index,
        ).model_dump(mode="json")
    )
    return events


def _apply(state: CombatState, cmd: Command) -> List[dict]:
    events: List[dict] = []

    if isinstance(cmd, AddCombatant):
        c = spec_to_combatant(cmd.combatant)
        if c.position is not None:
            state.board.place(c.id, c.position[0], c.position[1])
        state.combatants[c.id] = c

        seq, t = _bump(state)
        events.append(
            ev_combatant_added(
                seq=seq,
                t=t,
                round_=state.round,
                combatant_id=c.id,
                name=c.name,
                kind=c.kind,
            ).model_dump(mode="json")
        )
        return events

    if isinstance(cmd, PlaceCombatant):
        previous = state.relocate(cmd.combatant_id, (cmd.x, cmd.y))

        seq, t = _bump(state)
        events.append(
            ev_combatant_placed(
                seq=seq,
                t=t,
                round_=state.round,
                combatant_id=cmd.combatant_id,
                from_pos=list(previous) if previous is not None else None,
                to_pos=[cmd.x, cmd.y],
            ).model_dump(mode="json")
        )
        return events

    if isinstance(cmd, RemoveCombatant):
        state.unplace(cmd.combatant_id)
        del state.combatants[cmd.combatant_id]

        seq, t = _bump(state)
        events.append(
            ev_combatant_removed(
                seq=seq, t=t, round_=state.round, combatant_id=cmd.combatant_id
            ).model_dump(mode="json")
        )
        return events

    if isinstance(cmd, RollInitiative):
        outcome = roll_initiative(state, cmd.external_rolls)

        for cid, roll in outcome.rolls.items():
            seq, t = _bump(state)
            events.append(
                ev_initiative_rolled(
                    seq=seq,
                    t=t,
                    round_=state.round,
                    combatant_id=cid,
                    roll=roll,
                    modifier=state.combatants[cid].initiative_modifier,
                ).model_dump(mode="json")
            )

        seq, t = _bump(state)
        events.append(
            ev_initiative_order_finalized(
                seq=seq,
                t=t,
                round_=state.round,
                order=[
                    {
                        "combatant_id": e.combatant_id,
                        "name": e.name,
                        "kind": e.kind,
                        "roll": e.roll,
                        "modifier": e.modifier,
                        "total": e.total,
                    }
                    for e in outcome.order
                ],
            ).model_dump(mode="json")
        )

        seq, t = _bump(state)
        events.append(
            ev_round_started(
                seq=seq, t=t, round_=state.round, turn_owner_id=state.turn_owner_id
            ).model_dump(mode="json")
        )
        return events

    if isinstance(cmd, AdvanceTurn):
        return _turn_events(state, advance_turn(state))

    if isinstance(cmd, PerformAction):
        # владелец хода до действия: после хода игрока он сменится
        owner = state.turn_owner_id
        outcome = perform_action(
            state, cmd.attacker_id, cmd.target, cmd.action_name, cmd.external_rolls
        )
        result = outcome.result

        if isinstance(result, MoveResult):
            seq, t = _bump(state)
            events.append(
                ev_movement_resolved(
                    seq=seq,
                    t=t,
                    round_=state.round,
                    turn_owner_id=owner,
                    mover_id=result.mover_id,
                    result=result.model_dump(mode="json"),
                ).model_dump(mode="json")
            )

        if isinstance(result, AttackResult):
            events.extend(_attack_events(state, owner, result, outcome.attack_roll))

        seq, t = _bump(state)
        events.append(
            ev_action_resolved(
                seq=seq,
                t=t,
                round_=state.round,
                turn_owner_id=owner,
                actor_id=cmd.attacker_id,
                result=result.model_dump(mode="json"),
            ).model_dump(mode="json")
        )

        if outcome.turn is not None:
            events.extend(_turn_events(state, outcome.turn))
        return events

    if isinstance(cmd, EndCombat):
        end_combat(state)

        seq, t = _bump(state)
        events.append(
            ev_combat_ended(
                seq=seq, t=t, round_=state.round, reason=cmd.reason
            ).model_dump(mode="json")
        )
        return events

    return events


def _attack_events(state: CombatState, owner, r: AttackResult, roll) -> List[dict]:
    events: List[dict] = []

    seq, t = _bump(state)
    events.append(
        ev_attack_declared(
            seq=seq,
            t=t,
            round_=state.round,
            turn_owner_id=owner,
            attacker_id=r.attacker_id,
            target_id=r.target_id,
            action_name=r.action_name,
            action_kind=r.action_kind,
        ).model_dump(mode="json")
    )

    seq, t = _bump(state)
    events.append(
        ev_attack_rolled(
            seq=seq,
            t=t,
            round_=state.round,
            turn_owner_id=owner,
            attacker_id=r.attacker_id,
            target_id=r.target_id,
            attack_roll=r.attack_roll,
            natural=r.natural,
            attack_bonus=r.attack_bonus,
            target_ac=r.target_ac,
            source=r.source,
            roll=roll,
        ).model_dump(mode="json")
    )

    if not r.is_hit:
        seq, t = _bump(state)
        events.append(
            ev_miss_confirmed(
                seq=seq,
                t=t,
                round_=state.round,
                turn_owner_id=owner,
                attacker_id=r.attacker_id,
                target_id=r.target_id,
            ).model_dump(mode="json")
        )
        return events

    seq, t = _bump(state)
    events.append(
        ev_hit_confirmed(
            seq=seq,
            t=t,
            round_=state.round,
            turn_owner_id=owner,
            attacker_id=r.attacker_id,
            target_id=r.target_id,
            is_critical=r.is_critical,
        ).model_dump(mode="json")
    )

    seq, t = _bump(state)
    events.append(
        ev_damage_applied(
            seq=seq,
            t=t,
            round_=state.round,
            turn_owner_id=owner,
            attacker_id=r.attacker_id,
            target_id=r.target_id,
            amount=r.damage.total,
            rolls=r.damage.rolls,
            is_critical=r.is_critical,
            hp_before=r.target_hp_before,
            hp_after=r.target_hp,
        ).model_dump(mode="json")
    )

    if r.target_downed:
        seq, t = _bump(state)
        events.append(
            ev_combatant_downed(
                seq=seq,
                t=t,
                round_=state.round,
                turn_owner_id=owner,
                combatant_id=r.target_id,
            ).model_dump(mode="json")
        )
    return events


def apply_command(
    state: CombatState, cmd: Command
) -> Tuple[CombatState, List[dict]]:
    """
    Возвращаем (state, events_as_dicts).
    При ошибке возвращаем один CommandRejected и НЕ меняем state
    (кроме счётчиков seq/t события отказа).
    """
    vr = validate_command(state, cmd)
    if not vr.ok:
        e = vr.errors[0]
        return _reject(state, cmd, e.code, e.message, e.meta)

    try:
        events = _apply(state, cmd)
    except CombatError as e:
        # движок проверяет всё до первой мутации
        return _reject(state, cmd, e.code, e.message, e.meta)

    return state, events
