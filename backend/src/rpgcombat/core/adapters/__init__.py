from .mapper import (
    action_profile_from_monster,
    combatant_from_character,
    combatant_from_monster,
)

__all__ = [
    "action_profile_from_monster",
    "combatant_from_character",
    "combatant_from_monster",
]
