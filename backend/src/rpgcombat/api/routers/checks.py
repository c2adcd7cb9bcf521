from __future__ import annotations

from random import Random

from fastapi import APIRouter

from rpgcombat.api.schemas import (
    InterpretRequest,
    MultipleChecksRequest,
    ResolveActionRequest,
    SkillCheckRequest,
)
from rpgcombat.core.checks.interpreter import Interpretation, interpret_action
from rpgcombat.core.checks.skill_checks import (
    MultipleChecksResult,
    SkillCheckResult,
    perform_check,
    perform_multiple_checks,
)
from rpgcombat.core.checks.validation import DescribedActionResult, resolve_described_action

router = APIRouter(prefix="/checks", tags=["checks"])


@router.post(":interpret", response_model=Interpretation)
def interpret(req: InterpretRequest):
    return interpret_action(req.description, req.context)


@router.post(":skill", response_model=SkillCheckResult)
def skill_check(req: SkillCheckRequest):
    return perform_check(
        req.character,
        req.action_type,
        req.circumstances,
        req.dc,
        rng=Random(req.seed),
        adv_state=req.adv_state,
        natural=req.natural,
    )


@router.post(":attempts", response_model=MultipleChecksResult)
def multiple_checks(req: MultipleChecksRequest):
    return perform_multiple_checks(
        req.character,
        req.action_type,
        req.attempts,
        req.circumstances,
        req.dc,
        rng=Random(req.seed),
    )


@router.post(":resolve", response_model=DescribedActionResult)
def resolve(req: ResolveActionRequest):
    # ImpossibleAction -> 422 в обработчике приложения
    return resolve_described_action(
        req.character, req.description, req.context, rng=Random(req.seed)
    )
