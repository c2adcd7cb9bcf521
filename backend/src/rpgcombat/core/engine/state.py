from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from random import Random
from typing import Dict, List, Literal, Optional, Set, Tuple

from rpgcombat.core.engine.errors import CombatantNotFound
from rpgcombat.core.engine.grid import Grid, Pos

CombatantKind = Literal["player", "enemy"]

Phase = Literal["setup", "initiative_rolled", "active", "ended"]

# поле по умолчанию (как на доске DM-экрана)
DEFAULT_GRID_WIDTH = 12
DEFAULT_GRID_HEIGHT = 8
# верхняя граница стороны поля и дальности Move
MAX_GRID_SIZE = 100

# 5 ft. = 1 клетка
FEET_PER_SQUARE = 5


class ActionKind(str, Enum):
    MOVE = "move"
    MELEE = "melee"
    RANGED = "ranged"
    # без броска атаки (дыхание, аура и т.п.), движком пока не исполняется
    SPECIAL = "special"


# имена действий живут только на границе сериализации
MOVE_ACTION = "Move"
BASIC_ATTACK = "Basic Attack"
RANGED_ATTACK = "Ranged Attack"


@dataclass(frozen=True)
class ActionProfile:
    name: str
    kind: ActionKind
    attack_bonus: Optional[int] = None
    damage: Optional[str] = None
    damage_type: Optional[str] = None
    range_squares: int = 1
    description: str = ""
    save: Optional[str] = None

    @property
    def is_attack(self) -> bool:
        return self.kind in (ActionKind.MELEE, ActionKind.RANGED)


MOVE_PROFILE = ActionProfile(
    name=MOVE_ACTION,
    kind=ActionKind.MOVE,
    description="Move to a new position on the grid",
)

# базовый набор игрока: урон 1d6, бонус считается из STR/DEX
PLAYER_BASIC_ACTIONS: Tuple[ActionProfile, ...] = (
    ActionProfile(
        name=BASIC_ATTACK,
        kind=ActionKind.MELEE,
        damage="1d6",
        range_squares=1,
        description="Melee weapon attack against an adjacent target",
    ),
    ActionProfile(
        name=RANGED_ATTACK,
        kind=ActionKind.RANGED,
        damage="1d6",
        range_squares=3,
        description="Ranged weapon attack up to 3 squares away",
    ),
)


@dataclass
class Combatant:
    id: str
    name: str
    kind: CombatantKind
    hp: int
    max_hp: int
    armor_class: int = 10
    initiative_modifier: int = 0

    position: Optional[Pos] = None

    # каталог действий (у врагов из статблока монстра)
    actions: Dict[str, ActionProfile] = field(default_factory=dict)

    # "strength"/"dexterity"/...; нужны игроку для бонуса атаки
    ability_scores: Dict[str, int] = field(default_factory=dict)

    status_effects: Set[str] = field(default_factory=set)

    # сколько клеток за одно действие Move
    movement_range: int = 1

    def __post_init__(self) -> None:
        if self.max_hp <= 0:
            raise ValueError(f"max_hp must be positive for {self.id!r}")
        if not 0 <= self.hp <= self.max_hp:
            raise ValueError(
                f"hp must be within [0, {self.max_hp}] for {self.id!r}, got {self.hp}"
            )
        if self.position is not None:
            self.position = (int(self.position[0]), int(self.position[1]))

    @property
    def is_alive(self) -> bool:
        return self.hp > 0

    @property
    def is_player(self) -> bool:
        return self.kind == "player"


@dataclass
class InitiativeEntry:
    combatant_id: str
    name: str
    kind: CombatantKind
    roll: int
    modifier: int
    total: int


@dataclass
class CombatState:
    phase: Phase = "setup"

    grid_width: int = DEFAULT_GRID_WIDTH
    grid_height: int = DEFAULT_GRID_HEIGHT

    combatants: Dict[str, Combatant] = field(default_factory=dict)

    initiative_order: List[InitiativeEntry] = field(default_factory=list)
    current_turn_index: int = 0
    round: int = 1

    seq: int = 0
    t: int = 0

    rng_seed: int = 0
    rng: Random = field(default_factory=Random)

    # занятость клеток; восстанавливается из позиций бойцов
    grid: Optional[Grid] = None

    def __post_init__(self) -> None:
        if self.grid is None:
            self.grid = Grid.from_positions(
                self.grid_width,
                self.grid_height,
                {cid: c.position for cid, c in self.combatants.items()},
            )

    @property
    def board(self) -> Grid:
        assert self.grid is not None
        return self.grid

    def with_seed(self, seed: int) -> "CombatState":
        self.rng_seed = seed
        self.rng = Random(seed)
        return self

    def get_combatant(self, combatant_id: str) -> Combatant:
        c = self.combatants.get(combatant_id)
        if c is None:
            raise CombatantNotFound(
                f"Combatant {combatant_id!r} not found", combatant_id=combatant_id
            )
        return c

    def current_entry(self) -> Optional[InitiativeEntry]:
        if self.phase != "active" or not self.initiative_order:
            return None
        return self.initiative_order[self.current_turn_index]

    @property
    def turn_owner_id(self) -> Optional[str]:
        entry = self.current_entry()
        return entry.combatant_id if entry is not None else None

    def relocate(self, combatant_id: str, pos: Pos) -> Optional[Pos]:
        """Единственное место, где меняется Combatant.position (вместе с сеткой)."""
        c = self.get_combatant(combatant_id)
        previous = self.board.place(combatant_id, pos[0], pos[1])
        c.position = (int(pos[0]), int(pos[1]))
        return previous

    def unplace(self, combatant_id: str) -> Optional[Pos]:
        c = self.get_combatant(combatant_id)
        previous = self.board.remove(combatant_id)
        c.position = None
        return previous
