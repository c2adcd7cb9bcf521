from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from rpgcombat.core.checks.interpreter import InterpretationContext
from rpgcombat.core.checks.skill_checks import CharacterSheet
from rpgcombat.core.engine.dice import AdvState
from rpgcombat.core.engine.state import MAX_GRID_SIZE, ActionKind
from rpgcombat.settings import settings


class PosDTO(BaseModel):
    x: int = 0
    y: int = 0


# ---- parties ----


class PartyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    # id персонажа -> лист персонажа
    members: Dict[str, CharacterSheet] = Field(default_factory=dict)


class PartyOut(BaseModel):
    id: str
    name: str
    members: Dict[str, CharacterSheet]
    created_at: datetime
    updated_at: datetime


# ---- combat runtime ----


class CombatInitRequest(BaseModel):
    grid_width: int = Field(default=settings.grid_width, ge=1, le=MAX_GRID_SIZE)
    grid_height: int = Field(default=settings.grid_height, ge=1, le=MAX_GRID_SIZE)
    seed: Optional[int] = None
    label: str = "init"
    reset_existing: bool = False


class CombatRuntimeResponse(BaseModel):
    party_id: str
    save_id: int
    state: Dict[str, Any]
    events_delta: List[Dict[str, Any]] = Field(default_factory=list)


class AddMonsterRequest(BaseModel):
    monster_id: str
    position: Optional[PosDTO] = None
    combatant_id: Optional[str] = None
    label: str = "add"


class AddPlayerRequest(BaseModel):
    # либо id участника партии, либо лист персонажа целиком
    member_id: Optional[str] = None
    character: Optional[CharacterSheet] = None
    position: Optional[PosDTO] = None
    combatant_id: Optional[str] = None
    label: str = "add"


class ApplyCommandRequest(BaseModel):
    command: Dict[str, Any]
    label: str = "cmd"


class ActionOut(BaseModel):
    name: str
    kind: ActionKind
    attack_bonus: Optional[int] = None
    damage: Optional[str] = None
    damage_type: Optional[str] = None
    range_squares: int
    description: str = ""
    save: Optional[str] = None


class TargetsOut(BaseModel):
    combatant_id: str
    action_name: str
    # Move -> клетки, атака -> id бойцов
    positions: List[PosDTO] = Field(default_factory=list)
    combatant_ids: List[str] = Field(default_factory=list)


# ---- checks ----

# длинные описания не разбираем
MAX_DESCRIPTION_LENGTH = 2000


class InterpretRequest(BaseModel):
    description: str = Field(max_length=MAX_DESCRIPTION_LENGTH)
    context: Optional[InterpretationContext] = None


class SkillCheckRequest(BaseModel):
    character: CharacterSheet
    action_type: str
    circumstances: List[str] = Field(default_factory=list)
    dc: Optional[int] = None
    adv_state: AdvState = "normal"
    # значение физического d20
    natural: Optional[int] = Field(default=None, ge=1, le=20)
    seed: Optional[int] = None


class MultipleChecksRequest(BaseModel):
    character: CharacterSheet
    action_type: str
    attempts: int = Field(ge=1, le=100)
    circumstances: List[str] = Field(default_factory=list)
    dc: Optional[int] = None
    seed: Optional[int] = None


class ResolveActionRequest(BaseModel):
    character: CharacterSheet
    description: str = Field(max_length=MAX_DESCRIPTION_LENGTH)
    context: Optional[InterpretationContext] = None
    seed: Optional[int] = None
