from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from rpgcombat.core.engine.actions import ExternalRolls
from rpgcombat.core.engine.state import (
    MAX_GRID_SIZE,
    ActionKind,
    ActionProfile,
    Combatant,
)


class CommandBase(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: str


class ActionSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    kind: ActionKind
    attack_bonus: Optional[int] = None
    damage: Optional[str] = None
    damage_type: Optional[str] = None
    range_squares: int = Field(default=1, ge=1)
    description: str = ""
    save: Optional[str] = None


class CombatantSpec(BaseModel):
    """Боец в том виде, в каком он приходит в команду AddCombatant."""

    model_config = ConfigDict(extra="forbid")

    id: str
    name: str
    kind: Literal["player", "enemy"]
    hp: int = Field(ge=0)
    max_hp: int = Field(gt=0)
    armor_class: int = 10
    initiative_modifier: int = 0
    position: Optional[Tuple[int, int]] = None
    movement_range: int = Field(default=1, ge=1, le=MAX_GRID_SIZE)
    ability_scores: Dict[str, int] = Field(default_factory=dict)
    actions: List[ActionSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def _hp_within_max(self) -> "CombatantSpec":
        if self.hp > self.max_hp:
            raise ValueError("hp cannot exceed max_hp")
        return self


class AddCombatant(CommandBase):
    type: Literal["AddCombatant"] = "AddCombatant"
    combatant: CombatantSpec


class PlaceCombatant(CommandBase):
    type: Literal["PlaceCombatant"] = "PlaceCombatant"
    combatant_id: str
    x: int
    y: int


class RemoveCombatant(CommandBase):
    type: Literal["RemoveCombatant"] = "RemoveCombatant"
    combatant_id: str


class RollInitiative(CommandBase):
    type: Literal["RollInitiative"] = "RollInitiative"
    # combatant_id -> натуральный d20 с физического кубика
    external_rolls: Dict[str, int] = Field(default_factory=dict)


class AdvanceTurn(CommandBase):
    type: Literal["AdvanceTurn"] = "AdvanceTurn"


class PerformAction(CommandBase):
    type: Literal["PerformAction"] = "PerformAction"
    attacker_id: str
    action_name: str
    target_id: Optional[str] = None
    # для Move
    target_position: Optional[Tuple[int, int]] = None
    external_rolls: Optional[ExternalRolls] = None

    @property
    def target(self):
        if self.target_position is not None:
            return self.target_position
        return self.target_id


class EndCombat(CommandBase):
    type: Literal["EndCombat"] = "EndCombat"
    reason: str = "ended_by_dm"


Command = Annotated[
    Union[
        AddCombatant,
        PlaceCombatant,
        RemoveCombatant,
        RollInitiative,
        AdvanceTurn,
        PerformAction,
        EndCombat,
    ],
    Field(discriminator="type"),
]


def action_to_spec(profile: ActionProfile) -> ActionSpec:
    return ActionSpec(
        name=profile.name,
        kind=profile.kind,
        attack_bonus=profile.attack_bonus,
        damage=profile.damage,
        damage_type=profile.damage_type,
        range_squares=profile.range_squares,
        description=profile.description,
        save=profile.save,
    )


def combatant_to_spec(c: Combatant) -> CombatantSpec:
    return CombatantSpec(
        id=c.id,
        name=c.name,
        kind=c.kind,
        hp=c.hp,
        max_hp=c.max_hp,
        armor_class=c.armor_class,
        initiative_modifier=c.initiative_modifier,
        position=c.position,
        movement_range=c.movement_range,
        ability_scores=dict(c.ability_scores),
        actions=[action_to_spec(a) for a in c.actions.values()],
    )


def spec_to_combatant(spec: CombatantSpec) -> Combatant:
    return Combatant(
        id=spec.id,
        name=spec.name,
        kind=spec.kind,
        hp=spec.hp,
        max_hp=spec.max_hp,
        armor_class=spec.armor_class,
        initiative_modifier=spec.initiative_modifier,
        position=spec.position,
        actions={
            a.name: ActionProfile(
                name=a.name,
                kind=a.kind,
                attack_bonus=a.attack_bonus,
                damage=a.damage,
                damage_type=a.damage_type,
                range_squares=a.range_squares,
                description=a.description,
                save=a.save,
            )
            for a in spec.actions
        },
        ability_scores=dict(spec.ability_scores),
        movement_range=spec.movement_range,
    )
