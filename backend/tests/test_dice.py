from random import Random

import pytest

from rpgcombat.core.engine.dice import (
    DEFAULT_DIE,
    ability_modifier,
    average_notation,
    parse_notation,
    roll_d20,
    roll_notation,
)
from rpgcombat.core.engine.errors import InvalidDiceNotation


def test_parse_notation_with_modifier_and_damage_type():
    n = parse_notation("1d6+2 slashing")
    assert (n.count, n.sides, n.modifier) == (1, 6, 2)
    assert str(n) == "1d6+2"

    assert parse_notation("2d10 + 6").modifier == 6
    assert parse_notation("1d4-1").modifier == -1
    assert str(parse_notation("8d6")) == "8d6"


@pytest.mark.parametrize("bad", ["", "d6", "abc", "0d6", "2d0", "1d6+"])
def test_parse_notation_rejects_garbage(bad):
    with pytest.raises(InvalidDiceNotation) as ei:
        parse_notation(bad)
    assert ei.value.code == "INVALID_DICE_NOTATION"


def test_average_notation():
    assert average_notation("2d6") == 7
    assert average_notation("1d8+2") == 6


def test_ability_modifier_floors():
    assert ability_modifier(10) == 0
    assert ability_modifier(11) == 0
    assert ability_modifier(18) == 4
    assert ability_modifier(8) == -1
    assert ability_modifier(7) == -2


def test_roll_d20_is_deterministic_for_seed():
    a = roll_d20(Random(42), 3)
    b = roll_d20(Random(42), 3)
    assert a.dice == b.dice
    assert a.total == a.kept[0] + 3
    assert 1 <= a.nat <= 20


def test_roll_d20_advantage_keeps_higher():
    r = roll_d20(Random(7), 0, "advantage")
    assert len(r.dice) == 2
    assert r.kept == [max(r.dice)]

    r = roll_d20(Random(7), 0, "disadvantage")
    assert r.kept == [min(r.dice)]


def test_roll_notation_sums_dice_and_modifier():
    r = roll_notation(Random(1), "3d6+2")
    assert len(r.dice) == 3
    assert all(1 <= d <= 6 for d in r.dice)
    assert r.total == sum(r.dice) + 2


def test_roll_notation_falls_back_on_bad_data(caplog):
    r = roll_notation(Random(1), "lots of fire")
    assert r.formula == DEFAULT_DIE
    assert len(r.dice) == 1
    assert "Invalid dice notation" in caplog.text
