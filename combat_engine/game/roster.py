"""Builders that turn character sheets and stat blocks into participants.

Party members arrive from the character data layer as CharacterSheet
records; enemies come from the ENEMY_STATS bestiary. Both are converted to
ParticipantSpec, with initiative rolled once at conversion time.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import BaseModel, Field

from combat_engine.game.models import AbilityScores, ParticipantSpec
from combat_engine.tools.dice import DiceEngine

logger = logging.getLogger(__name__)


# Enemy stat blocks (SRD values)
ENEMY_STATS: dict[str, dict[str, Any]] = {
    "goblin": {
        "name": "Goblin",
        "hp": 7,
        "ac": 15,
        "abilities": {"str": 8, "dex": 14, "con": 10, "int": 10, "wis": 8, "cha": 8},
        "weapon": "scimitar",
    },
    "bugbear": {
        "name": "Bugbear",
        "hp": 27,
        "ac": 16,
        "abilities": {"str": 15, "dex": 14, "con": 13, "int": 8, "wis": 11, "cha": 9},
        "weapon": "morningstar",
    },
    "wolf": {
        "name": "Wolf",
        "hp": 11,
        "ac": 13,
        "abilities": {"str": 12, "dex": 15, "con": 12, "int": 3, "wis": 12, "cha": 6},
        "weapon": "spear",
    },
    "bandit": {
        "name": "Bandit",
        "hp": 11,
        "ac": 12,
        "abilities": {"str": 11, "dex": 12, "con": 12, "int": 10, "wis": 10, "cha": 10},
        "weapon": "scimitar",
    },
    "skeleton": {
        "name": "Skeleton",
        "hp": 13,
        "ac": 13,
        "abilities": {"str": 10, "dex": 14, "con": 15, "int": 6, "wis": 8, "cha": 5},
        "weapon": "shortsword",
    },
}


class CharacterSheet(BaseModel):
    """Player character data as supplied by the character layer."""

    id: str = Field(min_length=1, description="Character identifier")
    name: str = Field(description="Character's display name")
    character_class: str = Field(default="", description="D&D class (Fighter, Rogue, Cleric, etc.)")
    race: str = Field(default="Human")
    level: int = Field(default=1, ge=1, le=20)
    hp: Optional[int] = Field(default=None, ge=0, description="Current hit points")
    max_hp: int = Field(default=10, ge=1, description="Maximum hit points")
    ac: Optional[int] = Field(default=None, ge=0, description="Armor class, derived from DEX if unset")
    stats: Optional[AbilityScores] = None
    equipped_weapon: Optional[str] = None


def roll_initiative(dice: DiceEngine, scores: AbilityScores | None) -> int:
    """Roll d20 + DEX modifier."""
    dex_mod = scores.get_modifier("dex") if scores is not None else 0
    return dice.roll_check(20, dex_mod).total


def participant_from_character(sheet: CharacterSheet, dice: DiceEngine) -> ParticipantSpec:
    """Convert a player character into a combat participant spec.

    Args:
        sheet: Character data from the character layer
        dice: Dice engine used for the initiative roll

    Returns:
        ParticipantSpec keyed by the character's own id
    """
    dex_mod = sheet.stats.get_modifier("dex") if sheet.stats is not None else 0
    ac = sheet.ac if sheet.ac is not None else 10 + dex_mod
    hp = sheet.hp if sheet.hp is not None else sheet.max_hp
    initiative = roll_initiative(dice, sheet.stats)

    logger.info(f"{sheet.name} rolls initiative {initiative}")
    return ParticipantSpec(
        id=sheet.id,
        name=sheet.name,
        is_enemy=False,
        initiative=initiative,
        hp=min(hp, sheet.max_hp),
        max_hp=sheet.max_hp,
        ac=ac,
        ability_scores=sheet.stats,
        level=sheet.level,
        equipped_weapon=sheet.equipped_weapon,
    )


def enemy_from_stat_block(
    kind: str,
    dice: DiceEngine,
    enemy_id: str | None = None,
    name: str | None = None,
) -> ParticipantSpec:
    """Build an enemy participant spec from the bestiary.

    Args:
        kind: Key in ENEMY_STATS ("goblin", "wolf", ...)
        dice: Dice engine used for the initiative roll
        enemy_id: Optional id; the controller assigns one if omitted
        name: Optional display name; defaults to the stat block's name

    Raises:
        KeyError: If kind is not in the bestiary
    """
    template = ENEMY_STATS.get(kind.lower())
    if template is None:
        raise KeyError(f"Unknown enemy type: {kind}")

    scores = AbilityScores(**template["abilities"])
    initiative = roll_initiative(dice, scores)

    logger.info(f"{name or template['name']} rolls initiative {initiative}")
    return ParticipantSpec(
        id=enemy_id,
        name=name or template["name"],
        is_enemy=True,
        initiative=initiative,
        max_hp=template["hp"],
        ac=template["ac"],
        ability_scores=scores,
        equipped_weapon=template["weapon"],
    )
