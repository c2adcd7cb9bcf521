from __future__ import annotations

from random import Random
from typing import List, Optional

from pydantic import BaseModel, Field

from rpgcombat.core.checks.interpreter import (
    ActionIntent,
    InterpretationContext,
    interpret_action,
)
from rpgcombat.core.checks.skill_checks import (
    CharacterSheet,
    SkillCheckResult,
    difficulty_label,
    perform_check,
)
from rpgcombat.core.engine.errors import ImpossibleAction

ALL_CLEAR_SUGGESTION = "All actions are within your capabilities. Proceed with confidence!"


class ActionCheck(BaseModel):
    intent: ActionIntent
    check: SkillCheckResult
    difficulty: str


class DescribedActionResult(BaseModel):
    possible: bool = True
    reason: Optional[str] = None
    actions: List[ActionCheck] = Field(default_factory=list)
    overall_success: bool = True
    has_critical_failures: bool = False
    critical_failures: List[ActionCheck] = Field(default_factory=list)
    total_actions: int = 0
    summary: str = ""
    suggestion: str = ""
    context_modifiers: List[str] = Field(default_factory=list)


def _suggestion(checks: List[ActionCheck]) -> str:
    failures = [c for c in checks if not c.check.is_success]
    if not failures:
        return ALL_CLEAR_SUGGESTION
    parts = []
    for f in failures:
        action = f.intent.action_type
        if f.check.degree == "critical failure":
            parts.append(
                f"The {action} is extremely difficult for you. "
                "Consider an alternative approach or ask for help."
            )
        else:
            parts.append(
                f"The {action} is challenging. "
                "You might want to take your time or use better equipment."
            )
    return " ".join(parts)


def _summary(checks: List[ActionCheck], context: Optional[InterpretationContext]) -> str:
    if len(checks) == 1:
        summary = f"Single action detected: {checks[0].intent.description}"
    else:
        kinds = {c.intent.action_type for c in checks}
        summary = (
            f"Multiple actions detected: {len(checks)} total actions "
            f"across {len(kinds)} different types"
        )
    if context is not None and context.description:
        text = context.description
        summary += f" | Context: {text[:50]}{'...' if len(text) > 50 else ''}"
    return summary


def resolve_described_action(
    character: CharacterSheet,
    description: str,
    context: Optional[InterpretationContext] = None,
    rng: Optional[Random] = None,
) -> DescribedActionResult:
    """
    Текст игрока -> проверки навыков по каждому распознанному действию.
    Невозможное действие -> ImpossibleAction.
    """
    interpretation = interpret_action(description, context)
    if not interpretation.possible:
        raise ImpossibleAction(
            interpretation.reason or "Impossible action",
            description=description,
            suggestion=interpretation.suggestion,
        )

    if interpretation.is_narrative:
        return DescribedActionResult(
            reason=interpretation.reason,
            summary=interpretation.reason or "",
            suggestion=interpretation.suggestion or "",
            context_modifiers=interpretation.context_modifiers,
        )

    rng = rng or Random()
    checks: List[ActionCheck] = []
    for intent in interpretation.intents:
        check = perform_check(character, intent.action_type, intent.circumstances, rng=rng)
        checks.append(
            ActionCheck(intent=intent, check=check, difficulty=difficulty_label(check.dc))
        )

    critical = [c for c in checks if c.check.degree == "critical failure"]
    return DescribedActionResult(
        actions=checks,
        overall_success=all(c.check.is_success for c in checks),
        has_critical_failures=bool(critical),
        critical_failures=critical,
        total_actions=len(checks),
        summary=_summary(checks, context),
        suggestion=_suggestion(checks),
        context_modifiers=interpretation.context_modifiers,
    )
