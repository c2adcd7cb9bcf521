from __future__ import annotations

import os
from dataclasses import dataclass

from rpgcombat.core.engine.state import DEFAULT_GRID_HEIGHT, DEFAULT_GRID_WIDTH


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./rpgcombat.sqlite3"
    grid_width: int = DEFAULT_GRID_WIDTH
    grid_height: int = DEFAULT_GRID_HEIGHT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.environ.get("RPGCOMBAT_DATABASE_URL", cls.database_url),
            grid_width=int(os.environ.get("RPGCOMBAT_GRID_WIDTH", cls.grid_width)),
            grid_height=int(os.environ.get("RPGCOMBAT_GRID_HEIGHT", cls.grid_height)),
            log_level=os.environ.get("RPGCOMBAT_LOG_LEVEL", cls.log_level).upper(),
        )


settings = Settings.from_env()
