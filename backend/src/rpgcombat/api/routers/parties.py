from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from rpgcombat.api.schemas import PartyCreate, PartyOut
from rpgcombat.core.checks.skill_checks import CharacterSheet
from rpgcombat.db.deps import get_db
from rpgcombat.db.models import Party

router = APIRouter(prefix="/parties", tags=["parties"])


def _party_out(obj: Party) -> PartyOut:
    return PartyOut(
        id=obj.id,
        name=obj.name,
        members={
            mid: CharacterSheet.model_validate(sheet)
            for mid, sheet in (obj.members_json or {}).items()
        },
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )


@router.get("", response_model=list[PartyOut])
def list_parties(db: Session = Depends(get_db)):
    items = db.query(Party).order_by(Party.created_at.desc()).all()
    return [_party_out(p) for p in items]


@router.get("/{party_id}", response_model=PartyOut)
def get_party(party_id: str, db: Session = Depends(get_db)):
    obj = db.get(Party, party_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Party not found")
    return _party_out(obj)


@router.post("", response_model=PartyOut)
def create_party(payload: PartyCreate, db: Session = Depends(get_db)):
    obj = Party(
        name=payload.name,
        members_json={
            mid: sheet.model_dump(by_alias=True)
            for mid, sheet in payload.members.items()
        },
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return _party_out(obj)
