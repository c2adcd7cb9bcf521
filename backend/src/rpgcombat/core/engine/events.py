from __future__ import annotations

from typing import Any, Literal, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, ConfigDict


class RollMod(BaseModel):
    name: str
    value: int


class Roll(BaseModel):
    roll_id: UUID = Field(default_factory=uuid4)
    kind: Literal["d20", "damage", "other"]
    formula: str
    dice: list[int]
    kept: list[int]
    mods: list[RollMod] = Field(default_factory=list)
    total: int
    adv_state: Literal["normal", "advantage", "disadvantage"] = "normal"
    nat: Optional[int] = None
    is_critical: bool = False


class EventEnvelope(BaseModel):
    model_config = ConfigDict(extra="forbid")

    event_id: UUID = Field(default_factory=uuid4)
    seq: int
    t: int
    type: str

    round: int
    turn_owner_id: Optional[str] = None
    actor_id: Optional[str] = None

    payload: dict[str, Any] = Field(default_factory=dict)


def ev_command_rejected(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    actor_id: Optional[str],
    command: dict,
    code: str,
    message: str,
    meta: dict,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="CommandRejected",
        round=round_,
        turn_owner_id=turn_owner_id,
        actor_id=actor_id,
        payload={
            "command": command,
            "code": code,
            "message": message,
            "meta": meta,
        },
    )


def ev_combatant_added(
    *, seq: int, t: int, round_: int, combatant_id: str, name: str, kind: str
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="CombatantAdded",
        round=round_,
        actor_id=combatant_id,
        payload={"combatant_id": combatant_id, "name": name, "kind": kind},
    )


def ev_combatant_removed(
    *, seq: int, t: int, round_: int, combatant_id: str
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="CombatantRemoved",
        round=round_,
        actor_id=combatant_id,
        payload={"combatant_id": combatant_id},
    )


def ev_combatant_placed(
    *,
    seq: int,
    t: int,
    round_: int,
    combatant_id: str,
    from_pos,
    to_pos,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="CombatantPlaced",
        round=round_,
        actor_id=combatant_id,
        payload={"combatant_id": combatant_id, "from": from_pos, "to": to_pos},
    )


def ev_initiative_rolled(
    *,
    seq: int,
    t: int,
    round_: int,
    combatant_id: str,
    roll: Roll,
    modifier: int,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="InitiativeRolled",
        round=round_,
        actor_id=combatant_id,
        payload={
            "combatant_id": combatant_id,
            "roll": roll.model_dump(mode="json"),
            "modifier": modifier,
            "initiative": roll.total,
        },
    )


def ev_initiative_order_finalized(
    *, seq: int, t: int, round_: int, order: list[dict]
) -> EventEnvelope:
    # order: [{"combatant_id": "...", "roll": 11, "modifier": 2, "total": 13}, ...]
    return EventEnvelope(
        seq=seq,
        t=t,
        type="InitiativeOrderFinalized",
        round=round_,
        payload={"order": order},
    )


def ev_round_started(
    *, seq: int, t: int, round_: int, turn_owner_id: Optional[str]
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="RoundStarted",
        round=round_,
        turn_owner_id=turn_owner_id,
        payload={"round": round_},
    )


def ev_turn_advanced(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    previous_owner_id: Optional[str],
    turn_index: int,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="TurnAdvanced",
        round=round_,
        turn_owner_id=turn_owner_id,
        actor_id=turn_owner_id,
        payload={
            "previous_owner_id": previous_owner_id,
            "combatant_id": turn_owner_id,
            "turn_index": turn_index,
        },
    )


def ev_movement_resolved(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    mover_id: str,
    result: dict,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="MovementResolved",
        round=round_,
        turn_owner_id=turn_owner_id,
        actor_id=mover_id,
        payload=result,
    )


def ev_attack_declared(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    attacker_id: str,
    target_id: str,
    action_name: str,
    action_kind: str,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="AttackDeclared",
        round=round_,
        turn_owner_id=turn_owner_id,
        actor_id=attacker_id,
        payload={
            "attacker_id": attacker_id,
            "target_id": target_id,
            "action_name": action_name,
            "action_kind": action_kind,
        },
    )


def ev_attack_rolled(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    attacker_id: str,
    target_id: str,
    attack_roll: int,
    natural: int,
    attack_bonus: int,
    target_ac: int,
    source: Literal["generated", "external"],
    roll: Optional[Roll] = None,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="AttackRolled",
        round=round_,
        turn_owner_id=turn_owner_id,
        actor_id=attacker_id,
        payload={
            "attacker_id": attacker_id,
            "target_id": target_id,
            "attack_roll": attack_roll,
            "natural": natural,
            "attack_bonus": attack_bonus,
            "target_ac": target_ac,
            "source": source,
            "roll": roll.model_dump(mode="json") if roll is not None else None,
        },
    )


def ev_hit_confirmed(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    attacker_id: str,
    target_id: str,
    is_critical: bool,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="HitConfirmed",
        round=round_,
        turn_owner_id=turn_owner_id,
        actor_id=attacker_id,
        payload={
            "attacker_id": attacker_id,
            "target_id": target_id,
            "is_critical": is_critical,
        },
    )


def ev_miss_confirmed(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    attacker_id: str,
    target_id: str,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="MissConfirmed",
        round=round_,
        turn_owner_id=turn_owner_id,
        actor_id=attacker_id,
        payload={"attacker_id": attacker_id, "target_id": target_id},
    )


def ev_damage_applied(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    attacker_id: str,
    target_id: str,
    amount: int,
    rolls: list[int],
    is_critical: bool,
    hp_before: int,
    hp_after: int,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="DamageApplied",
        round=round_,
        turn_owner_id=turn_owner_id,
        actor_id=attacker_id,
        payload={
            "attacker_id": attacker_id,
            "target_id": target_id,
            "amount": amount,
            "rolls": rolls,
            "is_critical": is_critical,
            "hp_before": hp_before,
            "hp_after": hp_after,
        },
    )


def ev_combatant_downed(
    *, seq: int, t: int, round_: int, turn_owner_id: Optional[str], combatant_id: str
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="CombatantDowned",
        round=round_,
        turn_owner_id=turn_owner_id,
        actor_id=combatant_id,
        payload={"combatant_id": combatant_id},
    )


def ev_action_resolved(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    actor_id: str,
    result: dict,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="ActionResolved",
        round=round_,
        turn_owner_id=turn_owner_id,
        actor_id=actor_id,
        payload={"result": result},
    )


def ev_combat_ended(
    *, seq: int, t: int, round_: int, reason: str
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="CombatEnded",
        round=round_,
        payload={"reason": reason},
    )
