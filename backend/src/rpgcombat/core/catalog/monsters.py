from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from rpgcombat.core.engine.errors import MonsterNotFound


class MonsterStats(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    str: int = Field(ge=1, le=30)
    dex: int = Field(ge=1, le=30)
    con: int = Field(ge=1, le=30)

    # в JSON ключ "int"
    int_: int = Field(ge=1, le=30, alias="int")

    wis: int = Field(ge=1, le=30)
    cha: int = Field(ge=1, le=30)


class MonsterAction(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    # "Melee Weapon Attack" / "Ranged Weapon Attack" / "Cone" ...
    type: str
    attack: Optional[str] = None
    damage: Optional[str] = None
    range: Optional[str] = None
    save: Optional[str] = None


class Monster(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    name: str
    type: str
    cr: str
    # "7 (2d6)": среднее и формула
    hp: str
    ac: int
    speed: str
    stats: MonsterStats
    actions: tuple[MonsterAction, ...] = ()
    description: str = ""


class MonsterCatalog:
    """Неизменяемая таблица монстров; создаётся один раз и передаётся явно."""

    def __init__(self, monsters: Iterable[Monster]):
        by_id: Dict[str, Monster] = {}
        for m in monsters:
            if m.id in by_id:
                raise ValueError(f"Duplicate monster id {m.id!r}")
            by_id[m.id] = m
        self._by_id: Mapping[str, Monster] = MappingProxyType(by_id)

    def __iter__(self) -> Iterator[Monster]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, monster_id: object) -> bool:
        return monster_id in self._by_id

    def get(self, monster_id: str) -> Monster:
        m = self._by_id.get(monster_id)
        if m is None:
            raise MonsterNotFound(
                f"Monster {monster_id!r} not found", monster_id=monster_id
            )
        return m

    def search(self, query: str) -> List[Monster]:
        term = (query or "").strip().lower()
        if not term:
            return list(self)
        return [
            m
            for m in self
            if term in m.name.lower()
            or term in m.type.lower()
            or term in m.description.lower()
        ]


_DEFAULT_MONSTERS: List[dict] = [
    {
        "id": "goblin",
        "name": "Goblin",
        "type": "Humanoid",
        "cr": "1/4",
        "hp": "7 (2d6)",
        "ac": 15,
        "speed": "30 ft.",
        "stats": {"str": 8, "dex": 14, "con": 10, "int": 10, "wis": 8, "cha": 8},
        "actions": [
            {
                "name": "Scimitar",
                "type": "Melee Weapon Attack",
                "attack": "+4",
                "damage": "1d6+2 slashing",
            },
            {
                "name": "Shortbow",
                "type": "Ranged Weapon Attack",
                "attack": "+4",
                "damage": "1d6+2 piercing",
                "range": "80/320 ft.",
            },
        ],
        "description": "Small, green-skinned humanoids that live in caves and ruins.",
    },
    {
        "id": "orc",
        "name": "Orc",
        "type": "Humanoid",
        "cr": "1/2",
        "hp": "15 (2d8+6)",
        "ac": 13,
        "speed": "30 ft.",
        "stats": {"str": 16, "dex": 12, "con": 16, "int": 7, "wis": 11, "cha": 10},
        "actions": [
            {
                "name": "Greataxe",
                "type": "Melee Weapon Attack",
                "attack": "+5",
                "damage": "1d12+3 slashing",
            },
            {
                "name": "Javelin",
                "type": "Ranged Weapon Attack",
                "attack": "+5",
                "damage": "1d6+3 piercing",
                "range": "30/120 ft.",
            },
        ],
        "description": "Large, muscular humanoids with tusks and greenish skin.",
    },
    {
        "id": "dragon",
        "name": "Young Red Dragon",
        "type": "Dragon",
        "cr": "10",
        "hp": "178 (17d10+85)",
        "ac": 18,
        "speed": "40 ft., fly 80 ft.",
        "stats": {"str": 23, "dex": 14, "con": 21, "int": 14, "wis": 11, "cha": 19},
        "actions": [
            {
                "name": "Bite",
                "type": "Melee Weapon Attack",
                "attack": "+10",
                "damage": "2d10+6 piercing",
            },
            {
                "name": "Claw",
                "type": "Melee Weapon Attack",
                "attack": "+10",
                "damage": "2d6+6 slashing",
            },
            {
                "name": "Fire Breath",
                "type": "Cone",
                "damage": "7d6 fire",
                "save": "DC 17 Dex",
            },
        ],
        "description": "A young red dragon with scales the color of molten rock.",
    },
    {
        "id": "skeleton",
        "name": "Skeleton",
        "type": "Undead",
        "cr": "1/4",
        "hp": "13 (2d8+4)",
        "ac": 13,
        "speed": "30 ft.",
        "stats": {"str": 10, "dex": 14, "con": 15, "int": 6, "wis": 8, "cha": 5},
        "actions": [
            {
                "name": "Shortsword",
                "type": "Melee Weapon Attack",
                "attack": "+4",
                "damage": "1d6+2 piercing",
            },
            {
                "name": "Shortbow",
                "type": "Ranged Weapon Attack",
                "attack": "+4",
                "damage": "1d6+2 piercing",
                "range": "80/320 ft.",
            },
        ],
        "description": "Animated bones that serve dark masters.",
    },
    {
        "id": "wolf",
        "name": "Wolf",
        "type": "Beast",
        "cr": "1/4",
        "hp": "11 (2d8+2)",
        "ac": 13,
        "speed": "40 ft.",
        "stats": {"str": 12, "dex": 15, "con": 12, "int": 3, "wis": 12, "cha": 6},
        "actions": [
            {
                "name": "Bite",
                "type": "Melee Weapon Attack",
                "attack": "+4",
                "damage": "1d6+1 piercing",
            }
        ],
        "description": "A fierce wolf with sharp teeth and keen senses.",
    },
]


def load_default_catalog() -> MonsterCatalog:
    return MonsterCatalog(Monster.model_validate(m) for m in _DEFAULT_MONSTERS)
