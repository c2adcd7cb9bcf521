from rpgcombat.core.checks.interpreter import (
    IMPOSSIBLE_REASON,
    InterpretationContext,
    NpcInfo,
    interpret_action,
)
from rpgcombat.core.checks.skill_checks import fatigue_modifier
from rpgcombat.core.checks.tables import MAX_ACTION_QUANTITY, TABLES_VERSION


def test_six_backflips_become_six_fatigued_intents():
    res = interpret_action("I do 6 backflips")
    assert res.possible
    assert len(res.intents) == 6
    assert {i.action_type for i in res.intents} == {"backflip"}
    assert [i.sequence_position for i in res.intents] == [1, 2, 3, 4, 5, 6]
    assert all(i.sequence_total == 6 and i.quantity == 6 for i in res.intents)

    fatigue = [fatigue_modifier(i.circumstances) for i in res.intents]
    assert fatigue == [0, -2, -4, -6, -8, -10]
    assert [i.fatigue_penalty for i in res.intents] == [0, 2, 4, 6, 8, 10]


def test_impossible_action_is_rejected():
    res = interpret_action("I fly to the moon")
    assert res.possible is False
    assert res.reason == IMPOSSIBLE_REASON
    assert res.intents == []


def test_sequence_of_two_verbs():
    res = interpret_action("I backflip and then punch the orc")
    assert [i.action_type for i in res.intents] == ["backflip", "attack"]
    assert all(i.is_sequence for i in res.intents)
    assert [i.sequence_position for i in res.intents] == [1, 2]
    assert res.intents[1].circumstances == ("while fatigued (1)",)


def test_same_verb_twice_is_not_a_sequence():
    res = interpret_action("jump and jump")
    assert [i.action_type for i in res.intents] == ["jump"]
    assert not res.intents[0].is_sequence


def test_narrative_input_has_no_intents():
    res = interpret_action("I smile at the innkeeper")
    assert res.possible
    assert res.is_narrative
    assert res.intents == []


def test_keywords_match_whole_words_only():
    res = interpret_action("I hopefully search the chest")
    assert [i.action_type for i in res.intents] == ["search"]


def test_keyword_fallback_one_intent_per_type():
    res = interpret_action("I climb and scale the cliff, then climb again")
    assert [i.action_type for i in res.intents] == ["climb"]


def test_circumstances_from_text_and_context():
    ctx = InterpretationContext(
        description="A flooded cellar",
        environmental_features=["in water"],
        npcs=[NpcInfo(name="Guard", attitude="hostile")],
    )
    res = interpret_action("I climb the shelf in darkness", ctx)
    assert len(res.intents) == 1
    assert res.intents[0].circumstances == ("in darkness", "in water")
    assert res.context_modifiers == [
        "Environmental features: in water",
        "NPCs present: Guard",
    ]


def test_result_carries_tables_version():
    assert interpret_action("I jump").tables_version == TABLES_VERSION


def test_huge_quantity_is_clamped():
    res = interpret_action("I do 8000 backflips")
    assert len(res.intents) == MAX_ACTION_QUANTITY
    assert all(i.sequence_total == MAX_ACTION_QUANTITY for i in res.intents)
    # метки усталости всё ещё растут от намерения к намерению
    counts = [len(i.circumstances) for i in res.intents]
    assert counts == list(range(MAX_ACTION_QUANTITY))


def test_many_quantity_phrases_share_one_cap():
    res = interpret_action("15 backflips, 15 punches and 15 dodges")
    assert len(res.intents) == MAX_ACTION_QUANTITY
    assert [i.action_type for i in res.intents[:15]] == ["backflip"] * 15
