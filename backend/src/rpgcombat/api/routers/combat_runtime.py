from __future__ import annotations

import random
import uuid
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.exceptions import RequestValidationError
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from rpgcombat.api.routers.monsters import get_catalog
from rpgcombat.api.schemas import (
    ActionOut,
    AddMonsterRequest,
    AddPlayerRequest,
    ApplyCommandRequest,
    CombatInitRequest,
    CombatRuntimeResponse,
    PosDTO,
    TargetsOut,
)
from rpgcombat.core.adapters import combatant_from_character, combatant_from_monster
from rpgcombat.core.catalog.monsters import MonsterCatalog
from rpgcombat.core.checks.skill_checks import CharacterSheet
from rpgcombat.core.engine.actions import get_available_actions, get_valid_targets
from rpgcombat.core.engine.commands import AddCombatant, Command, combatant_to_spec
from rpgcombat.core.engine.grid import Pos
from rpgcombat.core.engine.state import Combatant, CombatState
from rpgcombat.core.persistence.runtime_store import (
    SqlCombatStore,
    load_latest_snapshot,
    save_snapshot,
)
from rpgcombat.core.persistence.state_codec import combat_state_to_dict
from rpgcombat.core.persistence.sync import ChangeFeed, CombatSynchronizer
from rpgcombat.db.deps import get_db
from rpgcombat.db.models import Party

router = APIRouter(prefix="/parties", tags=["combat-runtime"])

# подписки живут дольше одного запроса. Подписчики только внутри процесса
# (combat_feed.subscribe), HTTP-эндпоинта подписки нет.
combat_feed = ChangeFeed()

_command_adapter = TypeAdapter(Command)


def get_feed() -> ChangeFeed:
    return combat_feed


def _require_party(db: Session, party_id: str) -> Party:
    party = db.get(Party, party_id)
    if not party:
        raise HTTPException(status_code=404, detail="Party not found")
    return party


def _require_combat(db: Session, party_id: str) -> Tuple[int, CombatState]:
    save_id, state, _events = load_latest_snapshot(db, party_id)
    if save_id is None or state is None:
        raise HTTPException(
            status_code=409,
            detail="Combat is not initialized. Call combat:init first.",
        )
    return save_id, state


def _pos(p: Optional[PosDTO]) -> Optional[Pos]:
    return (p.x, p.y) if p is not None else None


def _run(
    db: Session, feed: ChangeFeed, party_id: str, command: Command, label: str
) -> CombatRuntimeResponse:
    _require_combat(db, party_id)
    store = SqlCombatStore(db, feed=feed, label=label)
    events = CombatSynchronizer(store).apply(party_id, command)
    save_id, state = _require_combat(db, party_id)
    return CombatRuntimeResponse(
        party_id=party_id,
        save_id=save_id,
        state=combat_state_to_dict(state),
        events_delta=events,
    )


def _add(
    db: Session, feed: ChangeFeed, party_id: str, combatant: Combatant, label: str
) -> CombatRuntimeResponse:
    resp = _run(db, feed, party_id, AddCombatant(combatant=combatant_to_spec(combatant)), label)
    first = resp.events_delta[0] if resp.events_delta else None
    if first is not None and first["type"] == "CommandRejected":
        payload = first["payload"]
        raise HTTPException(
            status_code=422,
            detail={k: payload[k] for k in ("code", "message", "meta")},
        )
    return resp


@router.post("/{party_id}/combat:init", response_model=CombatRuntimeResponse)
def init_combat(party_id: str, req: CombatInitRequest, db: Session = Depends(get_db)):
    _require_party(db, party_id)

    latest_id, latest_state, _events = load_latest_snapshot(db, party_id)
    if latest_id is not None and latest_state is not None and not req.reset_existing:
        return CombatRuntimeResponse(
            party_id=party_id,
            save_id=latest_id,
            state=combat_state_to_dict(latest_state),
            events_delta=[],
        )

    seed = req.seed if req.seed is not None else random.randrange(2**31)
    state = CombatState(grid_width=req.grid_width, grid_height=req.grid_height).with_seed(seed)
    row = save_snapshot(db, party_id=party_id, label=req.label, state=state, events_delta=[])

    return CombatRuntimeResponse(
        party_id=party_id,
        save_id=row.id,
        state=combat_state_to_dict(state),
        events_delta=[],
    )


@router.get("/{party_id}/combat", response_model=CombatRuntimeResponse)
def get_combat(party_id: str, db: Session = Depends(get_db)):
    _require_party(db, party_id)
    save_id, state, _events = load_latest_snapshot(db, party_id)
    if save_id is None or state is None:
        raise HTTPException(status_code=404, detail="No combat for party")
    return CombatRuntimeResponse(
        party_id=party_id, save_id=save_id, state=combat_state_to_dict(state)
    )


@router.post("/{party_id}/combat/monsters:add", response_model=CombatRuntimeResponse)
def add_monster(
    party_id: str,
    req: AddMonsterRequest,
    db: Session = Depends(get_db),
    catalog: MonsterCatalog = Depends(get_catalog),
    feed: ChangeFeed = Depends(get_feed),
):
    _require_party(db, party_id)
    monster = catalog.get(req.monster_id)
    combatant_id = req.combatant_id or f"{monster.id}-{uuid.uuid4().hex[:8]}"
    combatant = combatant_from_monster(monster, combatant_id, _pos(req.position))
    return _add(db, feed, party_id, combatant, req.label)


@router.post("/{party_id}/combat/players:add", response_model=CombatRuntimeResponse)
def add_player(
    party_id: str,
    req: AddPlayerRequest,
    db: Session = Depends(get_db),
    feed: ChangeFeed = Depends(get_feed),
):
    party = _require_party(db, party_id)

    if req.member_id is not None:
        raw = (party.members_json or {}).get(req.member_id)
        if raw is None:
            raise HTTPException(status_code=404, detail="Party member not found")
        sheet = CharacterSheet.model_validate(raw)
    elif req.character is not None:
        sheet = req.character
    else:
        raise HTTPException(status_code=422, detail="member_id or character is required")

    combatant_id = req.combatant_id or req.member_id or f"player-{uuid.uuid4().hex[:8]}"
    combatant = combatant_from_character(sheet, combatant_id, _pos(req.position))
    return _add(db, feed, party_id, combatant, req.label)


@router.post("/{party_id}/combat/commands:apply", response_model=CombatRuntimeResponse)
def apply_command(
    party_id: str,
    req: ApplyCommandRequest,
    db: Session = Depends(get_db),
    feed: ChangeFeed = Depends(get_feed),
):
    """Отклонённая команда -> 200 с CommandRejected, снапшот не пишется."""
    _require_party(db, party_id)
    try:
        cmd = _command_adapter.validate_python(req.command)
    except ValidationError as e:
        raise RequestValidationError(e.errors())
    return _run(db, feed, party_id, cmd, req.label)


@router.get(
    "/{party_id}/combat/combatants/{combatant_id}/actions",
    response_model=List[ActionOut],
)
def list_actions(party_id: str, combatant_id: str, db: Session = Depends(get_db)):
    _require_party(db, party_id)
    _save_id, state = _require_combat(db, party_id)
    combatant = state.get_combatant(combatant_id)
    return [
        ActionOut(
            name=a.name,
            kind=a.kind,
            attack_bonus=a.attack_bonus,
            damage=a.damage,
            damage_type=a.damage_type,
            range_squares=a.range_squares,
            description=a.description,
            save=a.save,
        )
        for a in get_available_actions(combatant)
    ]


@router.get(
    "/{party_id}/combat/combatants/{combatant_id}/targets",
    response_model=TargetsOut,
)
def list_targets(
    party_id: str,
    combatant_id: str,
    action: str = Query(...),
    db: Session = Depends(get_db),
):
    _require_party(db, party_id)
    _save_id, state = _require_combat(db, party_id)
    combatant = state.get_combatant(combatant_id)
    targets = get_valid_targets(state, combatant_id, action)

    out = TargetsOut(combatant_id=combatant.id, action_name=action)
    for t in targets:
        if isinstance(t, Combatant):
            out.combatant_ids.append(t.id)
        else:
            out.positions.append(PosDTO(x=t[0], y=t[1]))
    return out
