from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from rpgcombat.api.routers.checks import router as checks_router
from rpgcombat.api.routers.combat_runtime import router as combat_runtime_router
from rpgcombat.api.routers.monsters import router as monsters_router
from rpgcombat.api.routers.parties import router as parties_router
from rpgcombat.core.engine.errors import CombatError, MonsterNotFound
from rpgcombat.db.init_db import init_db
from rpgcombat.logging_config import setup_logging
from rpgcombat.settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level)
    init_db()
    yield


app = FastAPI(title="RPG Combat Manager", lifespan=lifespan)


@app.exception_handler(CombatError)
async def combat_error_handler(request: Request, exc: CombatError):
    status = 404 if isinstance(exc, MonsterNotFound) else 422
    return JSONResponse(status_code=status, content={"detail": exc.to_dict()})


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(parties_router)
app.include_router(combat_runtime_router)
app.include_router(monsters_router)
app.include_router(checks_router)
