from __future__ import annotations

from typing import Any, Dict


class CombatError(Exception):
    """
    Базовая ошибка движка. code: стабильный машинный код (уходит в CommandRejected / HTTP 422).
    """

    code: str = "COMBAT_ERROR"

    def __init__(self, message: str, **meta: Any) -> None:
        super().__init__(message)
        self.message = message
        self.meta: Dict[str, Any] = meta

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "meta": self.meta}


# --- grid ---


class GridError(CombatError):
    code = "GRID_ERROR"


class OutOfBounds(GridError):
    code = "OUT_OF_BOUNDS"


class CellOccupied(GridError):
    code = "CELL_OCCUPIED"


class NotPositioned(GridError):
    code = "NOT_POSITIONED"


# --- state machine ---


class NoActiveCombat(CombatError):
    code = "NO_ACTIVE_COMBAT"


class CombatEnded(CombatError):
    code = "COMBAT_ENDED"


class CombatAlreadyStarted(CombatError):
    code = "COMBAT_ALREADY_STARTED"


class NoCombatants(CombatError):
    code = "NO_COMBATANTS"


# --- referential integrity ---


class CombatantNotFound(CombatError):
    code = "COMBATANT_NOT_FOUND"


class DuplicateCombatant(CombatError):
    code = "DUPLICATE_COMBATANT"


class ActionNotFound(CombatError):
    code = "ACTION_NOT_FOUND"


class UnsupportedAction(CombatError):
    code = "UNSUPPORTED_ACTION"


class UnknownActionType(CombatError):
    code = "UNKNOWN_ACTION_TYPE"


class MonsterNotFound(CombatError):
    code = "MONSTER_NOT_FOUND"


# --- targeting ---


class TargetOutOfRange(CombatError):
    code = "OUT_OF_RANGE"


class InvalidTarget(CombatError):
    code = "INVALID_TARGET"


# --- interpretation / data ---


class ImpossibleAction(CombatError):
    code = "IMPOSSIBLE_ACTION"


class InvalidDiceNotation(CombatError):
    code = "INVALID_DICE_NOTATION"
