from __future__ import annotations

import logging
import math
import re
from typing import Dict, Optional

from rpgcombat.core.catalog.monsters import Monster, MonsterAction
from rpgcombat.core.checks.skill_checks import CharacterSheet
from rpgcombat.core.engine.dice import ability_modifier, average_notation
from rpgcombat.core.engine.errors import InvalidDiceNotation
from rpgcombat.core.engine.grid import Pos
from rpgcombat.core.engine.state import (
    FEET_PER_SQUARE,
    ActionKind,
    ActionProfile,
    Combatant,
)

logger = logging.getLogger(__name__)

# дальнобойная атака без строки range
DEFAULT_RANGED_SQUARES = 3
# если hp не разобрать
DEFAULT_HP = 10

_HP_RE = re.compile(r"^\s*(\d+)\b(?!\s*d)")
_NUMBER_RE = re.compile(r"(\d+)")
_DAMAGE_TYPE_RE = re.compile(
    r"^\s*\d+\s*d\s*\d+(?:\s*[+-]\s*\d+)?\s+([a-z]+)", re.IGNORECASE
)


def parse_hp(hp: str) -> int:
    """'7 (2d6)' -> 7; '2d6' -> среднее по формуле."""
    m = _HP_RE.match(hp or "")
    if m:
        return int(m.group(1))
    try:
        return max(1, average_notation(hp))
    except InvalidDiceNotation:
        logger.warning("Unparseable hp %r, using %d", hp, DEFAULT_HP)
        return DEFAULT_HP


def range_to_squares(range_text: Optional[str], kind: ActionKind) -> int:
    # "80/320 ft." -> первое число, 5 ft. = 1 клетка, с округлением вверх
    if range_text:
        m = _NUMBER_RE.search(range_text)
        if m:
            return max(1, math.ceil(int(m.group(1)) / FEET_PER_SQUARE))
    return DEFAULT_RANGED_SQUARES if kind == ActionKind.RANGED else 1


def _action_kind(action: MonsterAction) -> ActionKind:
    t = action.type.lower()
    if "melee" in t:
        return ActionKind.MELEE
    if "ranged" in t:
        return ActionKind.RANGED
    return ActionKind.SPECIAL


def _attack_bonus(text: Optional[str]) -> Optional[int]:
    if not text:
        return None
    try:
        return int(text.replace(" ", ""))
    except ValueError:
        logger.warning("Unparseable attack bonus %r", text)
        return None


def action_profile_from_monster(action: MonsterAction) -> ActionProfile:
    kind = _action_kind(action)
    damage_type = None
    if action.damage:
        m = _DAMAGE_TYPE_RE.match(action.damage)
        damage_type = m.group(1).lower() if m else None
    return ActionProfile(
        name=action.name,
        kind=kind,
        attack_bonus=_attack_bonus(action.attack),
        damage=action.damage,
        damage_type=damage_type,
        range_squares=range_to_squares(action.range, kind),
        description=action.type,
        save=action.save,
    )


def combatant_from_monster(
    monster: Monster, combatant_id: str, position: Optional[Pos] = None
) -> Combatant:
    hp = parse_hp(monster.hp)
    actions: Dict[str, ActionProfile] = {}
    for a in monster.actions:
        actions[a.name] = action_profile_from_monster(a)

    stats = monster.stats
    return Combatant(
        id=combatant_id,
        name=monster.name,
        kind="enemy",
        hp=hp,
        max_hp=hp,
        armor_class=monster.ac,
        initiative_modifier=ability_modifier(stats.dex),
        position=position,
        actions=actions,
        ability_scores={
            "strength": stats.str,
            "dexterity": stats.dex,
            "constitution": stats.con,
            "intelligence": stats.int_,
            "wisdom": stats.wis,
            "charisma": stats.cha,
        },
    )


def combatant_from_character(
    sheet: CharacterSheet, combatant_id: str, position: Optional[Pos] = None
) -> Combatant:
    max_hp = sheet.max_hp or sheet.hp or DEFAULT_HP
    hp = sheet.hp if sheet.hp is not None else max_hp
    return Combatant(
        id=combatant_id,
        name=sheet.name,
        kind="player",
        hp=min(hp, max_hp),
        max_hp=max_hp,
        armor_class=sheet.armor_class,
        initiative_modifier=ability_modifier(sheet.dexterity),
        position=position,
        ability_scores=sheet.ability_scores(),
    )
