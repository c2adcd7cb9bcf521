from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from rpgcombat.core.checks.tables import (
    ACTION_KEYWORDS,
    ACTION_TYPES,
    CIRCUMSTANCE_MODIFIERS,
    FATIGUE_PENALTY_PER_TAG,
    FATIGUE_TAG,
    IMPOSSIBLE_ACTION_PATTERNS,
    KEYWORD_TO_ACTION_TYPE,
    MAX_ACTION_QUANTITY,
    QUANTITY_PATTERNS,
    SEQUENCE_PATTERN,
    TABLES_VERSION,
)

logger = logging.getLogger(__name__)

IMPOSSIBLE_REASON = "This action is beyond the realm of possibility in this world."
IMPOSSIBLE_SUGGESTION = (
    "Try a more realistic approach that fits within the story "
    "and your character's abilities."
)
NARRATIVE_REASON = "Action appears to be narrative in nature."
NARRATIVE_SUGGESTION = "This will be handled through story progression."

Span = Tuple[int, int]


class NpcInfo(BaseModel):
    name: str
    attitude: Optional[str] = None


class InterpretationContext(BaseModel):
    """Контекст сцены от вызывающего (описание, окружение, NPC)."""

    model_config = ConfigDict(extra="forbid")

    description: str = ""
    environmental_features: List[str] = Field(default_factory=list)
    npcs: List[NpcInfo] = Field(default_factory=list)
    circumstances: List[str] = Field(default_factory=list)


class ActionIntent(BaseModel):
    model_config = ConfigDict(frozen=True)

    action_type: str
    keyword: str
    description: str
    quantity: int = Field(default=1, ge=1)
    sequence_position: int = Field(default=1, ge=1)
    sequence_total: int = Field(default=1, ge=1)
    is_sequence: bool = False
    circumstances: Tuple[str, ...] = ()
    # +2 к сложности за каждое предыдущее действие в описании
    fatigue_penalty: int = 0


class Interpretation(BaseModel):
    possible: bool
    reason: Optional[str] = None
    suggestion: Optional[str] = None
    intents: List[ActionIntent] = Field(default_factory=list)
    context_modifiers: List[str] = Field(default_factory=list)
    # версия таблиц, по которым получен разбор
    tables_version: int = TABLES_VERSION

    @property
    def is_narrative(self) -> bool:
        return self.possible and not self.intents


def _normalize(keyword: str) -> str:
    return " ".join(keyword.lower().split())


def _overlaps(span: Span, taken: List[Span]) -> bool:
    return any(span[0] < end and start < span[1] for start, end in taken)


def extract_circumstances(text: str) -> List[str]:
    lowered = text.lower()
    return [c for c in CIRCUMSTANCE_MODIFIERS if c in lowered]


def find_impossible(text: str) -> Optional[str]:
    for pattern in IMPOSSIBLE_ACTION_PATTERNS:
        m = pattern.search(text)
        if m:
            return m.group(0)
    return None


@dataclass
class _Draft:
    action_type: str
    keyword: str
    position: int
    total: int
    quantity: int = 1
    is_sequence: bool = False


def _quantity_drafts(text: str, taken: List[Span]) -> List[_Draft]:
    drafts: List[_Draft] = []
    for pattern in QUANTITY_PATTERNS:
        for m in pattern.finditer(text):
            quantity = int(m.group(1))
            keyword = _normalize(m.group(2))
            action_type = KEYWORD_TO_ACTION_TYPE.get(keyword)
            if action_type is None or quantity < 1:
                continue
            if quantity > MAX_ACTION_QUANTITY:
                logger.warning(
                    "Quantity %d for %r clamped to %d",
                    quantity,
                    keyword,
                    MAX_ACTION_QUANTITY,
                )
                quantity = MAX_ACTION_QUANTITY
            taken.append(m.span())
            for i in range(quantity):
                drafts.append(
                    _Draft(action_type, keyword, i + 1, quantity, quantity=quantity)
                )
    return drafts


def _sequence_drafts(text: str, taken: List[Span]) -> List[_Draft]:
    drafts: List[_Draft] = []
    pos = 0
    while True:
        m = SEQUENCE_PATTERN.search(text, pos)
        if m is None:
            break
        first = KEYWORD_TO_ACTION_TYPE.get(m.group(1).lower())
        second = KEYWORD_TO_ACTION_TYPE.get(m.group(2).lower())
        if (
            first is not None
            and second is not None
            and first != second
            and not _overlaps(m.span(), taken)
        ):
            taken.append(m.span())
            drafts.append(_Draft(first, m.group(1).lower(), 1, 2, is_sequence=True))
            drafts.append(_Draft(second, m.group(2).lower(), 2, 2, is_sequence=True))
            pos = m.end()
        else:
            # второе слово может начать следующую пару: "jump and dodge and attack"
            pos = m.start(2)
    return drafts


def _keyword_drafts(text: str, taken: List[Span], found: set) -> List[_Draft]:
    drafts: List[_Draft] = []
    for action_type, keywords in ACTION_KEYWORDS.items():
        if action_type in found:
            continue
        for keyword in keywords:
            hit = next(
                (
                    m
                    for m in re.finditer(rf"\b{re.escape(keyword)}\b", text)
                    if not _overlaps(m.span(), taken)
                ),
                None,
            )
            if hit is not None:
                drafts.append(_Draft(action_type, keyword, 1, 1))
                found.add(action_type)
                break
    return drafts


def interpret_action(
    description: str, context: Optional[InterpretationContext] = None
) -> Interpretation:
    """
    Свободный текст -> список ActionIntent.

    1. denylist: совпадение сразу даёт possible=False;
    2. "<N> <глагол>" -> N намерений;
    3. "X and then Y" для двух разных распознанных глаголов -> два намерения;
    4. оставшиеся ключевые слова -> по одному намерению на тип.
    """
    text = (description or "").lower()

    blocked = find_impossible(text)
    if blocked is not None:
        logger.info("Impossible action rejected: %r", blocked)
        return Interpretation(
            possible=False,
            reason=IMPOSSIBLE_REASON,
            suggestion=IMPOSSIBLE_SUGGESTION,
        )

    taken: List[Span] = []
    drafts = _quantity_drafts(text, taken)
    drafts += _sequence_drafts(text, taken)
    drafts += _keyword_drafts(text, taken, {d.action_type for d in drafts})
    if len(drafts) > MAX_ACTION_QUANTITY:
        logger.warning(
            "Description yields %d intents, keeping first %d",
            len(drafts),
            MAX_ACTION_QUANTITY,
        )
        drafts = drafts[:MAX_ACTION_QUANTITY]

    context = context or InterpretationContext()
    context_modifiers: List[str] = []
    if context.environmental_features:
        context_modifiers.append(
            f"Environmental features: {', '.join(context.environmental_features)}"
        )
    if context.npcs:
        context_modifiers.append(
            f"NPCs present: {', '.join(n.name for n in context.npcs)}"
        )
    if context.circumstances:
        context_modifiers.append(f"Circumstances: {', '.join(context.circumstances)}")

    if not drafts:
        return Interpretation(
            possible=True,
            reason=NARRATIVE_REASON,
            suggestion=NARRATIVE_SUGGESTION,
            context_modifiers=context_modifiers,
        )

    base: List[str] = []
    for c in [
        *extract_circumstances(text),
        *context.environmental_features,
        *context.circumstances,
    ]:
        if c not in base:
            base.append(c)

    intents: List[ActionIntent] = []
    for index, d in enumerate(drafts):
        fatigue = [FATIGUE_TAG.format(n=n) for n in range(1, index + 1)]
        intents.append(
            ActionIntent(
                action_type=d.action_type,
                keyword=d.keyword,
                description=ACTION_TYPES[d.action_type].description,
                quantity=d.quantity,
                sequence_position=d.position,
                sequence_total=d.total,
                is_sequence=d.is_sequence,
                circumstances=tuple(base + fatigue),
                fatigue_penalty=index * FATIGUE_PENALTY_PER_TAG,
            )
        )

    return Interpretation(
        possible=True, intents=intents, context_modifiers=context_modifiers
    )
