"""Pydantic models for combat state.

These models define the schema for participants, their rolls, and the
combat session that owns them. Invariants (hit point bounds, known weapons)
are enforced by validators, so an invalid participant can never be built.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from combat_engine.game.tables import has_profile, normalize_key


class CombatStatus(str, Enum):
    """States of the combat state machine."""

    IDLE = "idle"
    IN_COMBAT = "in_combat"


class RollPurpose(str, Enum):
    """What a participant roll is for."""

    ATTACK = "attack"
    SAVE = "save"
    DAMAGE = "damage"
    INITIATIVE = "initiative"


def ability_modifier(score: int) -> int:
    """Ability modifier for a score: floor((score - 10) / 2)."""
    return (score - 10) // 2


ABILITY_ABBREVIATIONS: dict[str, str] = {
    "str": "strength",
    "dex": "dexterity",
    "con": "constitution",
    "int": "intelligence",
    "wis": "wisdom",
    "cha": "charisma",
}


class AbilityScores(BaseModel):
    """D&D 5e ability scores.

    Uses full names internally to avoid Python keyword conflicts,
    but accepts abbreviated names (str, int) when loading from dicts.
    """

    strength: int = Field(default=10, ge=1, le=30, alias="str")
    dexterity: int = Field(default=10, ge=1, le=30, alias="dex")
    constitution: int = Field(default=10, ge=1, le=30, alias="con")
    intelligence: int = Field(default=10, ge=1, le=30, alias="int")
    wisdom: int = Field(default=10, ge=1, le=30, alias="wis")
    charisma: int = Field(default=10, ge=1, le=30, alias="cha")

    model_config = ConfigDict(populate_by_name=True)

    def get_score(self, ability: str) -> int:
        """Get a score by full name or abbreviation."""
        full_name = ABILITY_ABBREVIATIONS.get(ability.lower(), ability.lower())
        if full_name not in ABILITY_ABBREVIATIONS.values():
            raise ValueError(f"Unknown ability: {ability}")
        return getattr(self, full_name)

    def get_modifier(self, ability: str) -> int:
        """Calculate the ability modifier for a named ability."""
        return ability_modifier(self.get_score(ability))


class LastRoll(BaseModel):
    """Record of the most recent roll made for a participant."""

    purpose: RollPurpose
    raw: int = Field(description="Natural die result (sum of dice for damage)")
    modifier: int = Field(default=0, description="All flat bonuses added to raw")
    total: int
    ability: Optional[str] = Field(default=None, description="Ability the modifier came from")
    critical: bool = False
    fumble: bool = False

    # Derived damage fields, only filled for attacks that can land
    damage_dice: list[int] = Field(default_factory=list)
    damage_bonus: Optional[int] = None
    damage_total: Optional[int] = None
    damage_type: Optional[str] = None


class _ParticipantFields(BaseModel):
    """Fields shared by participant specs and live participants."""

    name: str = Field(min_length=1, description="Display name")
    is_enemy: bool = Field(default=False, description="True for the hostile team")
    initiative: int = Field(default=0, description="Turn order value, highest acts first")
    max_hp: int = Field(ge=1, description="Maximum hit points")
    ac: Optional[int] = Field(default=None, ge=0, description="Armor class, None if unknown")
    conditions: set[str] = Field(default_factory=set, description="Opaque status labels")
    ability_scores: Optional[AbilityScores] = None
    level: Optional[int] = Field(default=None, ge=1, le=20)
    equipped_weapon: Optional[str] = Field(default=None, description="Key into the damage table")

    @field_validator("equipped_weapon")
    @classmethod
    def validate_weapon(cls, v: Optional[str]) -> Optional[str]:
        """Only weapons and spells from the canonical table may be equipped."""
        if v is None:
            return v
        if not has_profile(v):
            raise ValueError(f"Unknown weapon or spell: {v}")
        return normalize_key(v)

    @field_validator("conditions")
    @classmethod
    def strip_conditions(cls, v: set[str]) -> set[str]:
        return {c.strip() for c in v if c.strip()}


class ParticipantSpec(_ParticipantFields):
    """Input used to add a participant to combat.

    ``id`` is assigned by the controller when omitted and ``hp`` defaults
    to ``max_hp``.
    """

    id: Optional[str] = Field(default=None, min_length=1)
    hp: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_hp(self) -> "ParticipantSpec":
        if self.hp is not None and self.hp > self.max_hp:
            raise ValueError(f"hp {self.hp} exceeds max_hp {self.max_hp}")
        return self


class CombatParticipant(_ParticipantFields):
    """A combatant inside a running session."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(min_length=1)
    hp: int = Field(ge=0, description="Current hit points")
    last_roll: Optional[LastRoll] = None

    @model_validator(mode="after")
    def check_hp(self) -> "CombatParticipant":
        if self.hp > self.max_hp:
            raise ValueError(f"hp {self.hp} exceeds max_hp {self.max_hp}")
        return self

    @property
    def is_alive(self) -> bool:
        """Check if participant still has hit points."""
        return self.hp > 0

    @classmethod
    def from_spec(cls, spec: ParticipantSpec, participant_id: str) -> "CombatParticipant":
        """Build a live participant from a spec and its assigned id."""
        data = spec.model_dump(exclude={"id", "hp"})
        hp = spec.max_hp if spec.hp is None else spec.hp
        return cls(id=participant_id, hp=hp, **data)


class CombatSession(BaseModel):
    """State of a running combat encounter.

    Participants are stored by id; turn order is derived from them on demand.
    """

    participants: dict[str, CombatParticipant] = Field(default_factory=dict)
    round: int = Field(default=1, ge=1, description="Current round number")
    turn: int = Field(default=0, ge=0, description="Turns advanced since combat began")
    active_participant_id: Optional[str] = None


class CombatSnapshot(BaseModel):
    """Read-only view of the combat state returned by get_state()."""

    in_combat: bool = False
    round: int = Field(default=0, description="Current round number (0 = not in combat)")
    turn: int = 0
    active_participant_id: Optional[str] = None
    participants: list[CombatParticipant] = Field(
        default_factory=list, description="Participants in turn order"
    )

    @property
    def turn_order(self) -> list[str]:
        return [p.id for p in self.participants]

    def get(self, participant_id: str) -> Optional[CombatParticipant]:
        for participant in self.participants:
            if participant.id == participant_id:
                return participant
        return None
