from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import JSON

from .base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Party(Base):
    __tablename__ = "parties"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)

    # id персонажей -> лист персонажа (CharacterSheet)
    members_json: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    snapshots: Mapped[List["CombatSnapshot"]] = relationship(
        back_populates="party", cascade="all, delete-orphan"
    )


class CombatSnapshot(Base):
    """Снапшоты боя только добавляются; актуален последний по id."""

    __tablename__ = "combat_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    party_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("parties.id"), nullable=False, index=True
    )
    label: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    state_json: Mapped[dict] = mapped_column(JSON, nullable=False)
    events_json: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    party: Mapped[Party] = relationship(back_populates="snapshots")
