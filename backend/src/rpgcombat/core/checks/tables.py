"""
Таблицы для интерпретатора действий и проверок навыков.

Это данные, а не логика: при изменении любой таблицы поднимаем TABLES_VERSION.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Tuple

TABLES_VERSION = 1


@dataclass(frozen=True)
class ActionTypeInfo:
    primary_ability: str
    secondary_ability: str
    base_dc: int
    description: str


ACTION_TYPES: Mapping[str, ActionTypeInfo] = MappingProxyType(
    {
        # бой
        "attack": ActionTypeInfo("strength", "dexterity", 10, "Physical attack roll"),
        "spell": ActionTypeInfo("intelligence", "wisdom", 12, "Spell casting check"),
        "dodge": ActionTypeInfo("dexterity", "wisdom", 15, "Dodge incoming attacks"),
        "parry": ActionTypeInfo("strength", "dexterity", 18, "Parry with weapon"),
        # акробатика
        "backflip": ActionTypeInfo("dexterity", "strength", 20, "Perform a backflip"),
        "somersault": ActionTypeInfo("dexterity", "strength", 18, "Perform a somersault"),
        "cartwheel": ActionTypeInfo("dexterity", "strength", 16, "Perform a cartwheel"),
        "wallRun": ActionTypeInfo("dexterity", "strength", 22, "Run up a wall"),
        # перемещение
        "jump": ActionTypeInfo("strength", "dexterity", 12, "Jump over obstacles"),
        "climb": ActionTypeInfo("strength", "dexterity", 15, "Climb surfaces"),
        "swim": ActionTypeInfo("strength", "constitution", 14, "Swim through water"),
        # без магии почти невозможно
        "fly": ActionTypeInfo("dexterity", "intelligence", 30, "Fly through the air"),
        # социальные
        "persuade": ActionTypeInfo("charisma", "intelligence", 15, "Persuade someone"),
        "intimidate": ActionTypeInfo("charisma", "strength", 16, "Intimidate someone"),
        "deceive": ActionTypeInfo("charisma", "intelligence", 18, "Deceive someone"),
        # восприятие
        "spot": ActionTypeInfo("wisdom", "intelligence", 12, "Spot hidden objects or creatures"),
        "listen": ActionTypeInfo("wisdom", "intelligence", 10, "Listen for sounds"),
        "search": ActionTypeInfo("intelligence", "wisdom", 14, "Search for hidden items"),
        # утилиты
        "pickLock": ActionTypeInfo("dexterity", "intelligence", 20, "Pick a lock"),
        "disarmTrap": ActionTypeInfo("dexterity", "intelligence", 22, "Disarm a trap"),
        "heal": ActionTypeInfo("wisdom", "intelligence", 16, "Provide medical aid"),
        "craft": ActionTypeInfo("intelligence", "dexterity", 18, "Craft an item"),
    }
)

# ключевые слова для финального сканирования (порядок типов = порядок ACTION_TYPES)
ACTION_KEYWORDS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "attack": ("attack", "strike", "hit", "swing", "slash", "thrust", "punch", "kick"),
        "spell": ("cast", "spell", "magic", "enchant", "charm"),
        "dodge": ("dodge", "evade", "avoid", "sidestep"),
        "parry": ("parry", "block", "deflect"),
        "backflip": ("backflip", "back flip"),
        "somersault": ("somersault", "forward roll"),
        "cartwheel": ("cartwheel",),
        "wallRun": ("wall run", "run up wall"),
        "jump": ("jump", "leap", "hop"),
        "climb": ("climb", "scale"),
        "swim": ("swim",),
        "fly": ("fly", "levitate", "float"),
        "persuade": ("persuade", "convince", "talk into"),
        "intimidate": ("intimidate", "threaten", "scare"),
        "deceive": ("deceive", "lie", "trick"),
        "spot": ("spot", "see", "notice", "observe"),
        "listen": ("listen", "hear"),
        "search": ("search", "look for", "find"),
        "pickLock": ("pick lock", "lockpick"),
        "disarmTrap": ("disarm", "trap"),
        "heal": ("heal", "cure", "treat"),
        "craft": ("craft", "make", "create", "build"),
    }
)

# отдельное слово (в т.ч. множественное число) -> тип действия
KEYWORD_TO_ACTION_TYPE: Mapping[str, str] = MappingProxyType(
    {
        "punch": "attack",
        "punches": "attack",
        "kick": "attack",
        "kicks": "attack",
        "strike": "attack",
        "strikes": "attack",
        "attack": "attack",
        "attacks": "attack",
        "swing": "attack",
        "swings": "attack",
        "slash": "attack",
        "slashes": "attack",
        "thrust": "attack",
        "thrusts": "attack",
        "backflip": "backflip",
        "backflips": "backflip",
        "somersault": "somersault",
        "somersaults": "somersault",
        "cartwheel": "cartwheel",
        "cartwheels": "cartwheel",
        "jump": "jump",
        "jumps": "jump",
        "leap": "jump",
        "leaps": "jump",
        "hop": "jump",
        "hops": "jump",
        "climb": "climb",
        "climbs": "climb",
        "scale": "climb",
        "scales": "climb",
        "swim": "swim",
        "swims": "swim",
        "dodge": "dodge",
        "dodges": "dodge",
        "evade": "dodge",
        "evades": "dodge",
        "parry": "parry",
        "parries": "parry",
        "block": "parry",
        "blocks": "parry",
        "spell": "spell",
        "spells": "spell",
        "cast": "spell",
        "casts": "spell",
        "magic spell": "spell",
        "magic spells": "spell",
        "persuade": "persuade",
        "persuades": "persuade",
        "intimidate": "intimidate",
        "intimidates": "intimidate",
        "deceive": "deceive",
        "deceives": "deceive",
        "search": "search",
        "searches": "search",
        "look": "search",
        "looks": "search",
        "examine": "search",
        "examines": "search",
    }
)

# "6 backflips", "3 punches"
QUANTITY_PATTERNS: Tuple[re.Pattern, ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\b(\d+)\s+(backflips?|somersaults?|cartwheels?|jumps?|leaps?|hops?)\b",
        r"\b(\d+)\s+(punch(?:es)?|kicks?|strikes?|attacks?|swings?|slash(?:es)?)\b",
        r"\b(\d+)\s+(magic\s+spells?|spells?|casts?)\b",
        r"\b(\d+)\s+(dodges?|evades?|parry|parries|blocks?)\b",
        r"\b(\d+)\s+(climbs?|scales?|swims?)\b",
        r"\b(\d+)\s+(search(?:es)?|looks?|examines?)\b",
        r"\b(\d+)\s+(persuades?|intimidates?|deceives?)\b",
    )
)

# "backflip and then punch", "dodge and attack", "jump then kick"
SEQUENCE_PATTERN = re.compile(
    r"\b(\w+)\s+(?:and\s+then|and|then)\s+(\w+)\b", re.IGNORECASE
)

# явно невозможные / ломающие историю действия
IMPOSSIBLE_ACTION_PATTERNS: Tuple[re.Pattern, ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\b(?:fly|levitate|float)\s+(?:to|up|over|across)\b",
        r"\b(?:jump|leap)\s+(?:to|over|across)\s+(?:the\s+)?(?:moon|sky|clouds?)\b",
        r"\b(?:teleport|blink|phase)\s+(?:to|through)\b",
        r"\b(?:time\s+travel|rewind|fast\s+forward)\b",
        r"\b(?:summon|create)\s+(?:a\s+)?(?:dragon|god|demon)\b",
        r"\b(?:become|turn\s+into)\s+(?:invisible|invincible|immortal)\b",
        r"\b(?:kill|destroy|eliminate)\s+(?:the\s+)?(?:dm|dungeon\s+master|narrator)\b",
        r"\b(?:break|destroy)\s+(?:the\s+)?(?:fourth\s+wall|game|story)\b",
        r"\b(?:skip|ignore)\s+(?:the\s+)?(?:quest|mission|story)\b",
        r"\b(?:teleport|go)\s+(?:to\s+)?(?:the\s+)?(?:end|final\s+boss|treasure)\b",
        r"\b(?:grab|take|steal)\s+(?:the\s+)?(?:quest\s+item|treasure|artifact)\s+(?:from\s+)?(?:nowhere|thin\s+air)\b",
        r"\b(?:open|unlock)\s+(?:the\s+)?(?:door|chest)\s+(?:without\s+)?(?:key|lockpick)\b",
        r"\b(?:find|locate)\s+(?:the\s+)?(?:hidden\s+)?(?:passage|door)\s+(?:without\s+)?(?:searching)\b",
    )
)

CIRCUMSTANCE_MODIFIERS: Mapping[str, int] = MappingProxyType(
    {
        # окружение
        "in darkness": -2,
        "in bright light": 1,
        "in difficult terrain": -2,
        "on slippery surface": -3,
        "in water": -2,
        "in tight space": -1,
        "with cover": 2,
        "with high ground": 1,
        "with low ground": -1,
        # снаряжение
        "with proper tools": 2,
        "with improvised tools": -1,
        "without tools": -3,
        "with magical item": 1,
        "with masterwork item": 2,
        # состояние
        "while injured": -2,
        "while exhausted": -3,
        "while hasted": 2,
        "while blessed": 1,
        "while cursed": -2,
        "while poisoned": -1,
        # время
        "under time pressure": -2,
        "with preparation": 1,
        "with careful planning": 2,
        "in a hurry": -2,
        # социальные
        "with authority": 1,
        "with evidence": 2,
        "with witnesses": -1,
        "in private": 1,
        "in public": -1,
    }
)

# каждая метка "while fatigued (n)" стоит -2 к броску
FATIGUE_TAG = "while fatigued ({n})"
FATIGUE_TAG_RE = re.compile(r"^while fatigued \(\d+\)$")
FATIGUE_PENALTY_PER_TAG = 2

# больше намерений из одного описания не разворачиваем
MAX_ACTION_QUANTITY = 20

# штраф к итогу за каждую следующую попытку в серии
ATTEMPT_FATIGUE_PENALTY = 1

CLASS_PROFICIENCIES: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "Fighter": ("attack", "dodge", "parry"),
        "Rogue": ("dodge", "pickLock", "disarmTrap", "spot", "listen"),
        "Wizard": ("spell", "search", "craft"),
        "Cleric": ("heal", "persuade", "spot"),
        "Ranger": ("spot", "listen", "climb", "swim"),
        "Paladin": ("attack", "parry", "persuade"),
        "Monk": ("attack", "dodge", "backflip", "somersault", "cartwheel"),
        "Bard": ("persuade", "deceive", "intimidate"),
        "Druid": ("heal", "spot", "listen"),
        "Sorcerer": ("spell", "persuade"),
        "Warlock": ("spell", "intimidate"),
        "Barbarian": ("attack", "intimidate", "jump", "climb"),
    }
)

# верхняя граница DC -> подпись
DIFFICULTY_LABELS: Tuple[Tuple[int, str], ...] = (
    (5, "Very Easy"),
    (10, "Easy"),
    (15, "Medium"),
    (20, "Hard"),
    (25, "Very Hard"),
)
DIFFICULTY_LABEL_MAX = "Nearly Impossible"
