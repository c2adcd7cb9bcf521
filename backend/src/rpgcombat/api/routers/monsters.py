from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends

from rpgcombat.core.catalog.monsters import Monster, MonsterCatalog, load_default_catalog

router = APIRouter(prefix="/monsters", tags=["monsters"])


@lru_cache(maxsize=1)
def get_catalog() -> MonsterCatalog:
    return load_default_catalog()


@router.get("", response_model=list[Monster])
def list_monsters(q: Optional[str] = None, catalog: MonsterCatalog = Depends(get_catalog)):
    return catalog.search(q or "")


@router.get("/{monster_id}", response_model=Monster)
def get_monster(monster_id: str, catalog: MonsterCatalog = Depends(get_catalog)):
    # MonsterNotFound -> 404 в обработчике приложения
    return catalog.get(monster_id)
