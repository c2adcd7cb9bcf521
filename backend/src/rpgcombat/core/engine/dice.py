from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from random import Random
from typing import List, Literal

from rpgcombat.core.engine.errors import InvalidDiceNotation
from rpgcombat.core.engine.events import Roll, RollMod

logger = logging.getLogger(__name__)

AdvState = Literal["normal", "advantage", "disadvantage"]

# кубик по умолчанию, если в статике битая нотация
DEFAULT_DIE = "1d6"

# "1d6+2 slashing", "2d10 + 6", "8d6", "1d4-1"
_DICE_RE = re.compile(
    r"^\s*(\d+)\s*d\s*(\d+)\s*(?:([+-])\s*(\d+))?(?:\s+[a-z][a-z ]*)?\s*$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class DiceNotation:
    count: int
    sides: int
    modifier: int = 0

    def __str__(self) -> str:
        if self.modifier:
            return f"{self.count}d{self.sides}{self.modifier:+d}"
        return f"{self.count}d{self.sides}"


def parse_notation(notation: str) -> DiceNotation:
    m = _DICE_RE.match(notation or "")
    if not m:
        raise InvalidDiceNotation(
            f"Unsupported dice notation: {notation!r}", notation=notation
        )
    count = int(m.group(1))
    sides = int(m.group(2))
    if count < 1 or sides < 1:
        raise InvalidDiceNotation(
            f"Dice count and sides must be positive: {notation!r}", notation=notation
        )
    modifier = 0
    if m.group(3):
        modifier = int(m.group(4)) * (-1 if m.group(3) == "-" else 1)
    return DiceNotation(count=count, sides=sides, modifier=modifier)


def parse_notation_or_default(notation: str) -> DiceNotation:
    """
    Битая нотация в статических данных считается дефектом данных, а не ошибкой боя:
    логируем и бросаем кубик по умолчанию.
    """
    try:
        return parse_notation(notation)
    except InvalidDiceNotation:
        logger.warning(
            "Invalid dice notation %r, falling back to %s", notation, DEFAULT_DIE
        )
        return parse_notation(DEFAULT_DIE)


def average_notation(notation: str) -> int:
    parsed = parse_notation(notation)
    return parsed.count * (parsed.sides + 1) // 2 + parsed.modifier


def roll_die(rng: Random, sides: int) -> int:
    return rng.randint(1, sides)


def roll_dice(rng: Random, count: int, sides: int) -> List[int]:
    return [roll_die(rng, sides) for _ in range(count)]


def roll_d20(
    rng: Random,
    bonus: int = 0,
    adv_state: AdvState = "normal",
    *,
    bonus_name: str = "bonus",
) -> Roll:
    mods = [RollMod(name=bonus_name, value=bonus)] if bonus else []

    if adv_state == "normal":
        nat = roll_die(rng, 20)
        return Roll(
            kind="d20",
            formula=f"1d20{bonus:+d}",
            dice=[nat],
            kept=[nat],
            mods=mods,
            total=nat + bonus,
            nat=nat,
            is_critical=(nat == 20),
            adv_state="normal",
        )

    a = roll_die(rng, 20)
    b = roll_die(rng, 20)
    kept = max(a, b) if adv_state == "advantage" else min(a, b)

    return Roll(
        kind="d20",
        formula=f"2d20{bonus:+d} ({adv_state})",
        dice=[a, b],
        kept=[kept],
        mods=mods,
        total=kept + bonus,
        nat=kept,
        is_critical=(kept == 20),
        adv_state=adv_state,
    )


def roll_notation(rng: Random, notation: str) -> Roll:
    parsed = parse_notation_or_default(notation)
    dice = roll_dice(rng, parsed.count, parsed.sides)
    mods = (
        [RollMod(name="modifier", value=parsed.modifier)] if parsed.modifier else []
    )
    return Roll(
        kind="damage",
        formula=str(parsed),
        dice=dice,
        kept=list(dice),
        mods=mods,
        total=sum(dice) + parsed.modifier,
    )


def ability_modifier(score: int) -> int:
    return (score - 10) // 2
