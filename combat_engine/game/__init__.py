"""Combat mechanics for D&D 5e style encounters."""

from combat_engine.game.actions import (
    ActionResolver,
    AttackResolution,
    AttackRoll,
    DamageRoll,
    proficiency_bonus,
)
from combat_engine.game.combat import (
    CombatController,
    CombatEndResult,
    CombatStartResult,
    HitPointChange,
)
from combat_engine.game.conditions import add_condition, remove_condition
from combat_engine.game.initiative import TurnAdvanceResult, next_turn, turn_order
from combat_engine.game.models import (
    AbilityScores,
    CombatParticipant,
    CombatSession,
    CombatSnapshot,
    CombatStatus,
    LastRoll,
    ParticipantSpec,
    RollPurpose,
    ability_modifier,
)
from combat_engine.game.roster import (
    ENEMY_STATS,
    CharacterSheet,
    enemy_from_stat_block,
    participant_from_character,
)
from combat_engine.game.tables import SPELLS, WEAPONS, DamageProfile, get_profile

__all__ = [
    # Actions
    "ActionResolver",
    "AttackResolution",
    "AttackRoll",
    "DamageRoll",
    "proficiency_bonus",
    # Controller
    "CombatController",
    "CombatEndResult",
    "CombatStartResult",
    "HitPointChange",
    # Conditions
    "add_condition",
    "remove_condition",
    # Initiative
    "TurnAdvanceResult",
    "next_turn",
    "turn_order",
    # Models
    "AbilityScores",
    "CombatParticipant",
    "CombatSession",
    "CombatSnapshot",
    "CombatStatus",
    "LastRoll",
    "ParticipantSpec",
    "RollPurpose",
    "ability_modifier",
    # Roster
    "ENEMY_STATS",
    "CharacterSheet",
    "enemy_from_stat_block",
    "participant_from_character",
    # Tables
    "SPELLS",
    "WEAPONS",
    "DamageProfile",
    "get_profile",
]
