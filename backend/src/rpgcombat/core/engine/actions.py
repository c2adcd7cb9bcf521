from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from rpgcombat.core.engine.dice import (
    DEFAULT_DIE,
    ability_modifier,
    roll_d20,
    roll_notation,
)
from rpgcombat.core.engine.errors import (
    ActionNotFound,
    InvalidTarget,
    NotPositioned,
    TargetOutOfRange,
    UnsupportedAction,
)
from rpgcombat.core.engine.events import Roll
from rpgcombat.core.engine.grid import Pos, manhattan
from rpgcombat.core.engine.state import (
    BASIC_ATTACK,
    MOVE_ACTION,
    MOVE_PROFILE,
    PLAYER_BASIC_ACTIONS,
    RANGED_ATTACK,
    ActionKind,
    ActionProfile,
    Combatant,
    CombatState,
)
from rpgcombat.core.engine.turns import TurnAdvance, advance_turn, ensure_active


class ExternalRolls(BaseModel):
    """
    Значения с физических кубиков.
    attack: итог броска атаки (d20 + бонус); damage/critical_damage: итоги бросков урона.
    """

    model_config = ConfigDict(extra="forbid")

    attack: Optional[int] = None
    damage: Optional[int] = Field(default=None, ge=0)
    critical_damage: Optional[int] = Field(default=None, ge=0)


class MoveResult(BaseModel):
    kind: Literal["move"] = "move"
    mover_id: str
    mover_name: str
    from_pos: Tuple[int, int]
    to_pos: Tuple[int, int]
    distance: int


class DamageBreakdown(BaseModel):
    notation: str
    damage_type: Optional[str] = None
    # по одному значению на каждый бросок урона (два при крите)
    rolls: List[int]
    total: int


class AttackResult(BaseModel):
    kind: Literal["attack"] = "attack"
    attacker_id: str
    attacker_name: str
    target_id: str
    target_name: str
    action_name: str
    action_kind: str

    attack_roll: int
    natural: int
    attack_bonus: int
    target_ac: int
    source: Literal["generated", "external"]

    is_hit: bool
    is_critical: bool
    damage: Optional[DamageBreakdown] = None

    target_hp_before: int
    target_hp: int
    target_max_hp: int
    target_downed: bool = False


ActionResult = Union[MoveResult, AttackResult]

Target = Union[str, Sequence[int]]


@dataclass
class ActionOutcome:
    result: ActionResult
    attack_roll: Optional[Roll] = None
    damage_rolls: List[Roll] = field(default_factory=list)
    # автопереход хода после действия игрока
    turn: Optional[TurnAdvance] = None


def get_available_actions(combatant: Combatant) -> List[ActionProfile]:
    if combatant.is_player:
        return [MOVE_PROFILE, *PLAYER_BASIC_ACTIONS]
    return [MOVE_PROFILE, *combatant.actions.values()]


def resolve_action(combatant: Combatant, action_name: str) -> ActionProfile:
    if action_name == MOVE_ACTION:
        return MOVE_PROFILE

    for profile in get_available_actions(combatant):
        if profile.name == action_name:
            return profile

    # у монстра нет "Basic Attack"/"Ranged Attack": берём первую подходящую атаку из статблока
    if not combatant.is_player and action_name in (BASIC_ATTACK, RANGED_ATTACK):
        wanted = ActionKind.MELEE if action_name == BASIC_ATTACK else ActionKind.RANGED
        for profile in combatant.actions.values():
            if profile.kind == wanted:
                return profile

    raise ActionNotFound(
        f"{combatant.name} has no action {action_name!r}",
        combatant_id=combatant.id,
        action_name=action_name,
        available=[a.name for a in get_available_actions(combatant)],
    )


def attack_bonus_for(combatant: Combatant, profile: ActionProfile) -> int:
    if profile.attack_bonus is not None:
        return profile.attack_bonus
    scores = combatant.ability_scores
    return max(
        ability_modifier(scores.get("strength", 10)),
        ability_modifier(scores.get("dexterity", 10)),
    )


def get_valid_targets(
    state: CombatState, attacker_id: str, action_name: str
) -> Union[List[Pos], List[Combatant]]:
    """
    Move -> свободные клетки в пределах movement_range.
    Атака -> живые бойцы на поле в радиусе действия.
    """
    attacker = state.get_combatant(attacker_id)
    profile = resolve_action(attacker, action_name)

    if attacker.position is None or not attacker.is_alive:
        return []

    if profile.kind == ActionKind.MOVE:
        return state.board.valid_moves_from(attacker.position, attacker.movement_range)

    if not profile.is_attack:
        return []

    return [
        c
        for c in state.combatants.values()
        if c.id != attacker.id
        and c.is_alive
        and c.position is not None
        and manhattan(attacker.position, c.position) <= profile.range_squares
    ]


def _as_pos(target: Target) -> Pos:
    if isinstance(target, str) or len(target) != 2:
        raise InvalidTarget("Move target must be an (x, y) cell", target=target)
    return (int(target[0]), int(target[1]))


def _check_move(state: CombatState, mover: Combatant, target: Target) -> Pos:
    if mover.position is None:
        raise NotPositioned(
            f"{mover.name} is not on the grid", combatant_id=mover.id
        )
    dest = _as_pos(target)
    state.board.check_placement(mover.id, dest)

    distance = manhattan(mover.position, dest)
    if distance == 0:
        raise InvalidTarget(
            "Move must end in a different cell", position=list(dest)
        )
    if distance > mover.movement_range:
        raise TargetOutOfRange(
            f"Cell {dest} is {distance} squares away, {mover.name} can move {mover.movement_range}",
            distance=distance,
            range=mover.movement_range,
        )
    return dest


def _check_attack(
    state: CombatState, attacker: Combatant, target: Target, profile: ActionProfile
) -> Combatant:
    if not profile.is_attack:
        raise UnsupportedAction(
            f"{profile.name} cannot be resolved as an attack",
            action_name=profile.name,
            action_kind=profile.kind.value,
        )
    if not isinstance(target, str):
        raise InvalidTarget("Attack target must be a combatant id", target=list(target))

    victim = state.get_combatant(target)
    if victim.id == attacker.id:
        raise InvalidTarget("A combatant cannot attack itself", target_id=victim.id)
    if not victim.is_alive:
        raise InvalidTarget(f"{victim.name} is already down", target_id=victim.id)

    if attacker.position is None:
        raise NotPositioned(
            f"{attacker.name} is not on the grid", combatant_id=attacker.id
        )
    if victim.position is None:
        raise NotPositioned(f"{victim.name} is not on the grid", combatant_id=victim.id)

    distance = manhattan(attacker.position, victim.position)
    if distance > profile.range_squares:
        raise TargetOutOfRange(
            f"{victim.name} is out of range for {profile.name}",
            distance=distance,
            range=profile.range_squares,
        )
    return victim


def check_action(
    state: CombatState, attacker_id: str, target: Target, action_name: str
) -> ActionProfile:
    """Все проверки perform_action без изменения состояния."""
    ensure_active(state)
    attacker = state.get_combatant(attacker_id)
    if not attacker.is_alive:
        raise UnsupportedAction(
            f"{attacker.name} is down and cannot act", combatant_id=attacker.id
        )
    profile = resolve_action(attacker, action_name)
    if profile.kind == ActionKind.MOVE:
        _check_move(state, attacker, target)
    else:
        _check_attack(state, attacker, target, profile)
    return profile


def _damage_roll(
    state: CombatState, notation: str, forced: Optional[int]
) -> Tuple[int, Optional[Roll]]:
    if forced is not None:
        return forced, None
    roll = roll_notation(state.rng, notation)
    return max(0, roll.total), roll


def perform_action(
    state: CombatState,
    attacker_id: str,
    target: Target,
    action_name: str,
    external_rolls: Optional[ExternalRolls] = None,
) -> ActionOutcome:
    profile = check_action(state, attacker_id, target, action_name)
    attacker = state.get_combatant(attacker_id)
    external = external_rolls or ExternalRolls()

    if profile.kind == ActionKind.MOVE:
        dest = _as_pos(target)
        origin = attacker.position
        state.relocate(attacker.id, dest)
        outcome = ActionOutcome(
            result=MoveResult(
                mover_id=attacker.id,
                mover_name=attacker.name,
                from_pos=origin,
                to_pos=dest,
                distance=manhattan(origin, dest),
            )
        )
    else:
        victim = state.get_combatant(target)
        outcome = _resolve_attack(state, attacker, victim, profile, external)

    # ход врага завершает ведущий вручную (AdvanceTurn)
    if attacker.is_player:
        outcome.turn = advance_turn(state)
    return outcome


def _resolve_attack(
    state: CombatState,
    attacker: Combatant,
    victim: Combatant,
    profile: ActionProfile,
    external: ExternalRolls,
) -> ActionOutcome:
    bonus = attack_bonus_for(attacker, profile)
    hp_before = victim.hp

    attack_roll: Optional[Roll] = None
    if external.attack is not None:
        total = external.attack
        # натуральный d20 = итог минус бонус
        natural = total - bonus
        source = "external"
    else:
        attack_roll = roll_d20(state.rng, bonus, bonus_name="attack")
        total = attack_roll.total
        natural = attack_roll.kept[0]
        source = "generated"

    is_critical = natural == 20
    is_hit = total >= victim.armor_class

    damage: Optional[DamageBreakdown] = None
    damage_rolls: List[Roll] = []
    if is_hit:
        notation = profile.damage or DEFAULT_DIE
        amount, roll = _damage_roll(state, notation, external.damage)
        amounts = [amount]
        if roll is not None:
            damage_rolls.append(roll)
        if is_critical:
            extra, roll = _damage_roll(state, notation, external.critical_damage)
            amounts.append(extra)
            if roll is not None:
                damage_rolls.append(roll)

        damage = DamageBreakdown(
            notation=notation,
            damage_type=profile.damage_type,
            rolls=amounts,
            total=sum(amounts),
        )
        victim.hp = max(0, victim.hp - damage.total)

    result = AttackResult(
        attacker_id=attacker.id,
        attacker_name=attacker.name,
        target_id=victim.id,
        target_name=victim.name,
        action_name=profile.name,
        action_kind=profile.kind.value,
        attack_roll=total,
        natural=natural,
        attack_bonus=bonus,
        target_ac=victim.armor_class,
        source=source,
        is_hit=is_hit,
        is_critical=is_critical,
        damage=damage,
        target_hp_before=hp_before,
        target_hp=victim.hp,
        target_max_hp=victim.max_hp,
        target_downed=is_hit and not victim.is_alive,
    )
    return ActionOutcome(result=result, attack_roll=attack_roll, damage_rolls=damage_rolls)
