import pytest

from rpgcombat.core.adapters import combatant_from_character, combatant_from_monster
from rpgcombat.core.adapters.mapper import parse_hp, range_to_squares
from rpgcombat.core.catalog.monsters import load_default_catalog
from rpgcombat.core.checks.skill_checks import CharacterSheet
from rpgcombat.core.engine.errors import MonsterNotFound
from rpgcombat.core.engine.state import ActionKind


@pytest.fixture(scope="module")
def catalog():
    return load_default_catalog()


def test_default_catalog_contents(catalog):
    assert len(catalog) == 5
    assert "goblin" in catalog
    assert catalog.get("dragon").name == "Young Red Dragon"
    assert catalog.get("orc").stats.int_ == 7


def test_catalog_search(catalog):
    assert [m.id for m in catalog.search("undead")] == ["skeleton"]
    assert [m.id for m in catalog.search("HUMANOID")] == ["goblin", "orc"]
    assert len(catalog.search("")) == 5


def test_unknown_monster(catalog):
    with pytest.raises(MonsterNotFound):
        catalog.get("beholder")


def test_parse_hp():
    assert parse_hp("7 (2d6)") == 7
    assert parse_hp("178 (17d10+85)") == 178
    assert parse_hp("2d6") == 7
    assert parse_hp("lots") == 10


def test_range_to_squares():
    assert range_to_squares("80/320 ft.", ActionKind.RANGED) == 16
    assert range_to_squares("30/120 ft.", ActionKind.RANGED) == 6
    assert range_to_squares("7 ft.", ActionKind.RANGED) == 2
    assert range_to_squares(None, ActionKind.MELEE) == 1
    assert range_to_squares(None, ActionKind.RANGED) == 3


def test_combatant_from_monster(catalog):
    c = combatant_from_monster(catalog.get("goblin"), "gob-1", (2, 3))
    assert c.kind == "enemy"
    assert (c.hp, c.max_hp, c.armor_class) == (7, 7, 15)
    assert c.initiative_modifier == 2
    assert c.position == (2, 3)

    scimitar = c.actions["Scimitar"]
    assert scimitar.kind == ActionKind.MELEE
    assert scimitar.attack_bonus == 4
    assert scimitar.damage == "1d6+2 slashing"
    assert scimitar.damage_type == "slashing"
    assert scimitar.range_squares == 1

    bow = c.actions["Shortbow"]
    assert bow.kind == ActionKind.RANGED
    assert bow.range_squares == 16


def test_dragon_breath_is_special(catalog):
    c = combatant_from_monster(catalog.get("dragon"), "drg")
    breath = c.actions["Fire Breath"]
    assert breath.kind == ActionKind.SPECIAL
    assert breath.attack_bonus is None
    assert breath.save == "DC 17 Dex"
    assert not breath.is_attack


def test_combatant_from_character():
    sheet = CharacterSheet(name="Ayla", dexterity=17, hp=9, max_hp=12, armor_class=16)
    c = combatant_from_character(sheet, "ayla")
    assert c.kind == "player"
    assert (c.hp, c.max_hp, c.armor_class) == (9, 12, 16)
    assert c.initiative_modifier == 3
    assert c.position is None
    assert c.ability_scores["dexterity"] == 17

    full = combatant_from_character(CharacterSheet(name="Nox", max_hp=14), "nox")
    assert full.hp == 14
