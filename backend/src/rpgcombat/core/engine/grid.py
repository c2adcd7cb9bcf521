from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from rpgcombat.core.engine.errors import CellOccupied, OutOfBounds

Pos = Tuple[int, int]


def manhattan(a: Pos, b: Pos) -> int:
    # без диагоналей: шаг только по ортогонали
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


@dataclass
class Grid:
    width: int
    height: int

    # клетка -> id бойца (в клетке не больше одного)
    occupants: Dict[Pos, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Grid size must be positive, got {self.width}x{self.height}"
            )

    @classmethod
    def from_positions(
        cls, width: int, height: int, positions: Mapping[str, Optional[Pos]]
    ) -> "Grid":
        grid = cls(width=width, height=height)
        for cid, pos in positions.items():
            if pos is not None:
                grid.place(cid, pos[0], pos[1])
        return grid

    def in_bounds(self, pos: Pos) -> bool:
        x, y = pos
        return 0 <= x < self.width and 0 <= y < self.height

    def occupant_at(self, pos: Pos) -> Optional[str]:
        return self.occupants.get((int(pos[0]), int(pos[1])))

    def position_of(self, combatant_id: str) -> Optional[Pos]:
        for pos, cid in self.occupants.items():
            if cid == combatant_id:
                return pos
        return None

    def is_occupied(self, pos: Pos) -> bool:
        return self.occupant_at(pos) is not None

    def check_placement(self, combatant_id: str, pos: Pos) -> None:
        if not self.in_bounds(pos):
            raise OutOfBounds(
                f"Cell {tuple(pos)} is outside the {self.width}x{self.height} grid",
                position=list(pos),
                width=self.width,
                height=self.height,
            )
        occupant = self.occupant_at(pos)
        if occupant is not None and occupant != combatant_id:
            raise CellOccupied(
                f"Cell {tuple(pos)} is occupied by {occupant}",
                position=list(pos),
                occupant_id=occupant,
            )

    def place(self, combatant_id: str, x: int, y: int) -> Optional[Pos]:
        """
        Ставит бойца в (x, y), освобождая его прежнюю клетку.
        Возвращает прежнюю позицию (или None, если боец не стоял на поле).
        """
        pos = (int(x), int(y))
        self.check_placement(combatant_id, pos)

        previous = self.position_of(combatant_id)
        if previous is not None:
            del self.occupants[previous]
        self.occupants[pos] = combatant_id
        return previous

    def remove(self, combatant_id: str) -> Optional[Pos]:
        previous = self.position_of(combatant_id)
        if previous is not None:
            del self.occupants[previous]
        return previous

    def cells_within(self, origin: Pos, range_: int) -> Iterable[Pos]:
        # только клетки поля: обход не больше width*height
        ox, oy = origin
        for x in range(max(0, ox - range_), min(self.width, ox + range_ + 1)):
            for y in range(max(0, oy - range_), min(self.height, oy + range_ + 1)):
                d = abs(x - ox) + abs(y - oy)
                if d == 0 or d > range_:
                    continue
                yield (x, y)

    def valid_moves_from(self, pos: Pos, range_: int = 1) -> List[Pos]:
        return [
            cell
            for cell in self.cells_within(pos, range_)
            if self.in_bounds(cell) and not self.is_occupied(cell)
        ]
