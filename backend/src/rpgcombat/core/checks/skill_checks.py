from __future__ import annotations

from random import Random
from typing import List, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from rpgcombat.core.checks.tables import (
    ACTION_TYPES,
    ATTEMPT_FATIGUE_PENALTY,
    CIRCUMSTANCE_MODIFIERS,
    CLASS_PROFICIENCIES,
    DIFFICULTY_LABEL_MAX,
    DIFFICULTY_LABELS,
    FATIGUE_PENALTY_PER_TAG,
    FATIGUE_TAG_RE,
)
from rpgcombat.core.engine.dice import AdvState, ability_modifier, roll_d20
from rpgcombat.core.engine.errors import UnknownActionType

Degree = Literal[
    "critical failure",
    "great failure",
    "failure",
    "success",
    "great success",
    "critical success",
]


class CharacterSheet(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str
    level: int = Field(default=1, ge=1, le=20)
    # в JSON ключ "class"
    class_: Optional[str] = Field(default=None, alias="class")
    proficiencies: List[str] = Field(default_factory=list)

    strength: int = Field(default=10, ge=1, le=30)
    dexterity: int = Field(default=10, ge=1, le=30)
    constitution: int = Field(default=10, ge=1, le=30)
    intelligence: int = Field(default=10, ge=1, le=30)
    wisdom: int = Field(default=10, ge=1, le=30)
    charisma: int = Field(default=10, ge=1, le=30)

    # для боя (адаптер в Combatant)
    hp: Optional[int] = Field(default=None, ge=0)
    max_hp: Optional[int] = Field(default=None, gt=0)
    armor_class: int = 10

    def score(self, ability: str) -> int:
        return int(getattr(self, ability))

    def ability_scores(self) -> dict[str, int]:
        return {
            "strength": self.strength,
            "dexterity": self.dexterity,
            "constitution": self.constitution,
            "intelligence": self.intelligence,
            "wisdom": self.wisdom,
            "charisma": self.charisma,
        }


class SkillCheckResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    action_type: str
    roll: int
    dice: Tuple[int, ...]
    adv_state: AdvState = "normal"

    primary_ability: str
    primary_mod: int
    # только для информации, в бросок не входит
    secondary_ability: str
    secondary_mod: int
    proficiency_mod: int
    circumstance_bonus: int
    fatigue_modifier: int

    total_roll: int
    dc: int
    margin: int
    degree: Degree
    is_success: bool
    circumstances: Tuple[str, ...] = ()


def proficiency_bonus(level: int) -> int:
    return (level - 1) // 4 + 2


def is_proficient(character: CharacterSheet, action_type: str) -> bool:
    if action_type in character.proficiencies:
        return True
    # "fighter", "FIGHTER" -> "Fighter"
    cls = (character.class_ or "").strip().title()
    return action_type in CLASS_PROFICIENCIES.get(cls, ())


def degree_for_margin(margin: int) -> Degree:
    if margin >= 10:
        return "critical success"
    if margin >= 5:
        return "great success"
    if margin >= 0:
        return "success"
    if margin <= -10:
        return "critical failure"
    if margin <= -5:
        return "great failure"
    return "failure"


def difficulty_label(dc: int) -> str:
    for upper, label in DIFFICULTY_LABELS:
        if dc <= upper:
            return label
    return DIFFICULTY_LABEL_MAX


def circumstance_bonus(circumstances: Sequence[str]) -> int:
    # неизвестные метки дают 0
    return sum(CIRCUMSTANCE_MODIFIERS.get(c, 0) for c in circumstances)


def fatigue_modifier(circumstances: Sequence[str]) -> int:
    tags = sum(1 for c in circumstances if FATIGUE_TAG_RE.match(c))
    return -FATIGUE_PENALTY_PER_TAG * tags


def perform_check(
    character: CharacterSheet,
    action_type: str,
    circumstances: Sequence[str] = (),
    dc: Optional[int] = None,
    *,
    rng: Optional[Random] = None,
    adv_state: AdvState = "normal",
    natural: Optional[int] = None,
) -> SkillCheckResult:
    """
    Одна проверка навыка против DC.

    natural: значение d20 с физического кубика (тогда rng не используется).
    """
    info = ACTION_TYPES.get(action_type)
    if info is None:
        raise UnknownActionType(
            f"Unknown action type: {action_type}",
            action_type=action_type,
            known=list(ACTION_TYPES),
        )

    target_dc = dc if dc is not None else info.base_dc

    primary_mod = ability_modifier(character.score(info.primary_ability))
    secondary_mod = ability_modifier(character.score(info.secondary_ability))
    prof = (
        proficiency_bonus(character.level)
        if is_proficient(character, action_type)
        else 0
    )
    circ = circumstance_bonus(circumstances)
    fatigue = fatigue_modifier(circumstances)

    if natural is not None:
        raw, dice, adv_state = natural, (natural,), "normal"
    else:
        d20 = roll_d20(rng or Random(), adv_state=adv_state)
        raw, dice = d20.kept[0], tuple(d20.dice)

    total = raw + primary_mod + prof + circ + fatigue
    margin = total - target_dc

    return SkillCheckResult(
        action_type=action_type,
        roll=raw,
        dice=dice,
        adv_state=adv_state,
        primary_ability=info.primary_ability,
        primary_mod=primary_mod,
        secondary_ability=info.secondary_ability,
        secondary_mod=secondary_mod,
        proficiency_mod=prof,
        circumstance_bonus=circ,
        fatigue_modifier=fatigue,
        total_roll=total,
        dc=target_dc,
        margin=margin,
        degree=degree_for_margin(margin),
        is_success=margin >= 0,
        circumstances=tuple(circumstances),
    )


class AttemptResult(BaseModel):
    attempt_number: int
    fatigue_level: int
    fatigue_penalty: int
    check: SkillCheckResult
    adjusted_total_roll: int
    adjusted_margin: int
    adjusted_success: bool
    adjusted_degree: Degree


class AttemptStatistics(BaseModel):
    successful_attempts: int
    success_rate: float
    critical_successes: int
    critical_failures: int
    average_roll: float
    average_total_roll: float
    best_roll: int
    worst_roll: int


class MultipleChecksResult(BaseModel):
    action_type: str
    number_of_attempts: int
    results: List[AttemptResult]
    statistics: AttemptStatistics


def perform_multiple_checks(
    character: CharacterSheet,
    action_type: str,
    attempts: int,
    circumstances: Sequence[str] = (),
    dc: Optional[int] = None,
    *,
    rng: Optional[Random] = None,
) -> MultipleChecksResult:
    """Серия попыток: каждая следующая попытка получает -1 к итогу."""
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    rng = rng or Random()
    results: List[AttemptResult] = []

    for index in range(attempts):
        penalty = index * ATTEMPT_FATIGUE_PENALTY
        tags = list(circumstances)
        if index > 0:
            tags.append(f"while fatigued (attempt {index + 1})")

        check = perform_check(character, action_type, tags, dc, rng=rng)
        adjusted = check.total_roll - penalty
        margin = adjusted - check.dc
        results.append(
            AttemptResult(
                attempt_number=index + 1,
                fatigue_level=index,
                fatigue_penalty=penalty,
                check=check,
                adjusted_total_roll=adjusted,
                adjusted_margin=margin,
                adjusted_success=margin >= 0,
                adjusted_degree=degree_for_margin(margin),
            )
        )

    successes = [r for r in results if r.adjusted_success]
    totals = [r.adjusted_total_roll for r in results]

    return MultipleChecksResult(
        action_type=action_type,
        number_of_attempts=attempts,
        results=results,
        statistics=AttemptStatistics(
            successful_attempts=len(successes),
            success_rate=len(successes) / attempts * 100,
            critical_successes=sum(1 for r in successes if r.adjusted_margin >= 10),
            critical_failures=sum(1 for r in results if r.adjusted_margin <= -10),
            average_roll=sum(r.check.roll for r in results) / attempts,
            average_total_roll=sum(totals) / attempts,
            best_roll=max(totals),
            worst_roll=min(totals),
        ),
    )
