from __future__ import annotations

from rpgcombat.db import models  # noqa: F401  регистрирует таблицы в Base.metadata
from rpgcombat.db.base import Base
from rpgcombat.db.session import engine


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
