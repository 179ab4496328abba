"""Canonical weapon and spell damage table.

This is the only place damage dice, damage types and attack abilities are
defined. Attack and damage resolution both read from WEAPONS/SPELLS through
get_profile(), so there is a single answer for "what does a longsword do".

Spells listed here are the attack-roll spells; save-for-half and area
spells are not modeled.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from combat_engine.tools.dice import parse_dice_notation

AbilityName = Literal[
    "strength", "dexterity", "constitution", "intelligence", "wisdom", "charisma"
]

# Character levels at which cantrips gain another set of damage dice
CANTRIP_SCALING_LEVELS: tuple[int, ...] = (5, 11, 17)


class DamageProfile(BaseModel):
    """Damage and ability data for one weapon or spell."""

    name: str = Field(description="Display name")
    kind: Literal["weapon", "spell"] = Field(default="weapon")
    damage: str = Field(description="Damage dice expression, e.g. '1d8' or '1d4+1'")
    damage_type: str = Field(description="slashing, piercing, fire, ...")
    ability: AbilityName = Field(description="Ability used for attack and damage")
    properties: list[str] = Field(default_factory=list, description="finesse, light, ...")
    spell_level: int = Field(default=0, ge=0, le=9, description="0 for cantrips and weapons")
    upcast_dice: str | None = Field(
        default=None, description="Extra dice per slot level above spell_level"
    )

    @property
    def is_spell(self) -> bool:
        return self.kind == "spell"

    @property
    def is_finesse(self) -> bool:
        return "finesse" in self.properties

    def scaled_dice(self, character_level: int = 1, slot_level: int | None = None) -> tuple[int, int, int]:
        """Return (num_dice, die_size, flat_bonus) after spell scaling.

        Cantrips multiply their dice at CANTRIP_SCALING_LEVELS. Leveled spells
        add upcast_dice for every slot level above their own.
        """
        num_dice, die_size, flat = parse_dice_notation(self.damage)
        if not self.is_spell:
            return num_dice, die_size, flat

        if self.spell_level == 0:
            tiers = sum(1 for level in CANTRIP_SCALING_LEVELS if character_level >= level)
            return num_dice * (tiers + 1), die_size, flat

        if self.upcast_dice and slot_level is not None and slot_level > self.spell_level:
            extra_dice, _, _ = parse_dice_notation(self.upcast_dice)
            num_dice += extra_dice * (slot_level - self.spell_level)
        return num_dice, die_size, flat


def _weapon(name: str, damage: str, damage_type: str, ability: AbilityName, *properties: str) -> DamageProfile:
    return DamageProfile(
        name=name,
        damage=damage,
        damage_type=damage_type,
        ability=ability,
        properties=list(properties),
    )


def _spell(
    name: str,
    damage: str,
    damage_type: str,
    ability: AbilityName,
    level: int = 0,
    upcast: str | None = None,
) -> DamageProfile:
    return DamageProfile(
        name=name,
        kind="spell",
        damage=damage,
        damage_type=damage_type,
        ability=ability,
        spell_level=level,
        upcast_dice=upcast,
    )


WEAPONS: dict[str, DamageProfile] = {
    # Simple melee
    "unarmed strike": _weapon("Unarmed Strike", "1d1", "bludgeoning", "strength"),
    "club": _weapon("Club", "1d4", "bludgeoning", "strength", "light"),
    "dagger": _weapon("Dagger", "1d4", "piercing", "dexterity", "finesse", "light", "thrown"),
    "handaxe": _weapon("Handaxe", "1d6", "slashing", "strength", "light", "thrown"),
    "mace": _weapon("Mace", "1d6", "bludgeoning", "strength"),
    "quarterstaff": _weapon("Quarterstaff", "1d6", "bludgeoning", "strength", "versatile"),
    "spear": _weapon("Spear", "1d6", "piercing", "strength", "thrown", "versatile"),
    # Simple ranged
    "shortbow": _weapon("Shortbow", "1d6", "piercing", "dexterity", "ammunition", "two-handed"),
    "light crossbow": _weapon(
        "Light Crossbow", "1d8", "piercing", "dexterity", "ammunition", "loading", "two-handed"
    ),
    # Martial melee
    "battleaxe": _weapon("Battleaxe", "1d8", "slashing", "strength", "versatile"),
    "greataxe": _weapon("Greataxe", "1d12", "slashing", "strength", "heavy", "two-handed"),
    "greatsword": _weapon("Greatsword", "2d6", "slashing", "strength", "heavy", "two-handed"),
    "longsword": _weapon("Longsword", "1d8", "slashing", "strength", "versatile"),
    "morningstar": _weapon("Morningstar", "1d8", "piercing", "strength"),
    "rapier": _weapon("Rapier", "1d8", "piercing", "dexterity", "finesse"),
    "scimitar": _weapon("Scimitar", "1d6", "slashing", "dexterity", "finesse", "light"),
    "shortsword": _weapon("Shortsword", "1d6", "piercing", "dexterity", "finesse", "light"),
    "warhammer": _weapon("Warhammer", "1d8", "bludgeoning", "strength", "versatile"),
    # Martial ranged
    "longbow": _weapon("Longbow", "1d8", "piercing", "dexterity", "ammunition", "heavy", "two-handed"),
    "heavy crossbow": _weapon(
        "Heavy Crossbow", "1d10", "piercing", "dexterity", "ammunition", "heavy", "loading", "two-handed"
    ),
}

SPELLS: dict[str, DamageProfile] = {
    "fire bolt": _spell("Fire Bolt", "1d10", "fire", "intelligence"),
    "ray of frost": _spell("Ray of Frost", "1d8", "cold", "intelligence"),
    "chill touch": _spell("Chill Touch", "1d8", "necrotic", "intelligence"),
    "eldritch blast": _spell("Eldritch Blast", "1d10", "force", "charisma"),
    "guiding bolt": _spell("Guiding Bolt", "4d6", "radiant", "wisdom", level=1, upcast="1d6"),
    "inflict wounds": _spell("Inflict Wounds", "3d10", "necrotic", "wisdom", level=1, upcast="1d10"),
}

UNARMED_STRIKE = "unarmed strike"


def normalize_key(name: str) -> str:
    """Normalize a weapon/spell name for lookup ("Light_Crossbow" -> "light crossbow")."""
    return " ".join(name.lower().replace("_", " ").replace("-", " ").split())


def has_profile(name: str) -> bool:
    """Check if a weapon or spell exists in the table."""
    key = normalize_key(name)
    return key in WEAPONS or key in SPELLS


def get_profile(name: str) -> DamageProfile:
    """Look up a weapon or spell by name.

    Raises:
        KeyError: If the name is not in the canonical table
    """
    key = normalize_key(name)
    if key in WEAPONS:
        return WEAPONS[key]
    if key in SPELLS:
        return SPELLS[key]
    raise KeyError(f"Unknown weapon or spell: {name}")
