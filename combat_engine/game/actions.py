"""Attack and damage resolution for D&D 5e style combat.

This module provides:
- Proficiency bonus math and attack ability selection
- Attack rolls against Armor Class (natural 20 hits, natural 1 misses)
- Damage rolls from the canonical weapon/spell table, with critical hits
  doubling the number of dice rolled but never the flat bonus

Resolution is pure computation. resolve_attack() reports what would happen;
hit points only change when the controller applies the damage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from combat_engine.config import Settings, get_settings
from combat_engine.errors import InvalidTargetError
from combat_engine.game.models import AbilityScores, CombatParticipant
from combat_engine.game.tables import UNARMED_STRIKE, DamageProfile, get_profile
from combat_engine.tools.dice import DiceEngine

logger = logging.getLogger(__name__)

CRITICAL_HIT_ROLL = 20
AUTOMATIC_MISS_ROLL = 1


def proficiency_bonus(level: int | None) -> int:
    """Proficiency bonus for a character level: 2 + floor((level - 1) / 4).

    Levels below 1 (or a missing level) count as level 1.
    """
    effective = max(level or 1, 1)
    return 2 + (effective - 1) // 4


def best_physical_ability(scores: AbilityScores) -> str:
    """Return "strength" or "dexterity", whichever has the higher modifier.

    Strength wins ties.
    """
    if scores.get_modifier("dexterity") > scores.get_modifier("strength"):
        return "dexterity"
    return "strength"


@dataclass
class AttackRoll:
    """A d20 attack roll with its modifiers."""

    attacker_id: str
    raw: int
    ability: str | None
    ability_modifier: int
    proficiency_bonus: int
    total: int
    weapon: str | None = None

    @property
    def critical(self) -> bool:
        return self.raw == CRITICAL_HIT_ROLL

    @property
    def fumble(self) -> bool:
        return self.raw == AUTOMATIC_MISS_ROLL

    @property
    def modifier(self) -> int:
        """All flat bonuses added to the die."""
        return self.ability_modifier + self.proficiency_bonus


@dataclass
class DamageRoll:
    """A damage roll for one weapon or spell."""

    dice_results: list[int]
    bonus: int
    damage_type: str
    total: int
    is_critical: bool
    base_dice_count: int
    die_size: int
    weapon: str = ""
    ability: str | None = None

    @property
    def dice_total(self) -> int:
        return sum(self.dice_results)


@dataclass
class AttackResolution:
    """Outcome of an attack, computed without touching any hit points."""

    attacker_id: str
    target_id: str
    weapon: str
    attack: AttackRoll
    target_ac: int
    hit: bool
    damage: DamageRoll | None = None
    narrative: str = ""

    @property
    def critical(self) -> bool:
        return self.hit and self.attack.critical

    @property
    def total_damage(self) -> int:
        return self.damage.total if self.damage else 0


class ActionResolver:
    """Computes attack and damage rolls for participants.

    Example:
        >>> resolver = ActionResolver(DiceEngine(seed=1))
        >>> result = resolver.resolve_attack(fighter, goblin, "longsword")
        >>> if result.hit:
        ...     controller.apply_damage(goblin.id, result.total_damage)
    """

    def __init__(self, dice: DiceEngine, settings: Settings | None = None):
        self.dice = dice
        self.settings = settings or get_settings()

    def weapon_for(self, attacker: CombatParticipant, weapon: str | None = None) -> DamageProfile:
        """Resolve the profile used for an attack: explicit, equipped, or unarmed."""
        return get_profile(weapon or attacker.equipped_weapon or UNARMED_STRIKE)

    def attack_ability(self, attacker: CombatParticipant, profile: DamageProfile | None) -> str | None:
        """Pick the ability that drives an attack.

        Spells use their spellcasting ability. Weapons use the better of
        STR/DEX unless settings ask for per-weapon abilities, in which case
        only finesse weapons get that choice.

        Returns:
            Ability name, or None when the attacker has no ability scores
        """
        scores = attacker.ability_scores
        if scores is None:
            return None
        if profile is not None and profile.is_spell:
            return profile.ability
        if profile is None or not self.settings.uses_weapon_ability() or profile.is_finesse:
            return best_physical_ability(scores)
        return profile.ability

    def _modifier_for(self, attacker: CombatParticipant, ability: str | None) -> int:
        if ability is None or attacker.ability_scores is None:
            return 0
        return attacker.ability_scores.get_modifier(ability)

    def compute_attack_roll(self, attacker: CombatParticipant, weapon: str | None = None) -> AttackRoll:
        """Roll a d20 attack for a participant.

        Args:
            attacker: The attacking participant
            weapon: Weapon/spell name; defaults to the equipped weapon

        Returns:
            AttackRoll; enemies never add a proficiency bonus
        """
        profile = self.weapon_for(attacker, weapon)
        ability = self.attack_ability(attacker, profile)
        modifier = self._modifier_for(attacker, ability)
        proficiency = 0 if attacker.is_enemy else proficiency_bonus(attacker.level)

        check = self.dice.roll_check(20, modifier, proficiency)
        roll = AttackRoll(
            attacker_id=attacker.id,
            raw=check.raw,
            ability=ability,
            ability_modifier=modifier,
            proficiency_bonus=proficiency,
            total=check.total,
            weapon=profile.name,
        )
        logger.info(
            f"Attack roll for {attacker.name}: [{roll.raw}] + {roll.modifier} = {roll.total}"
            + (" CRITICAL HIT!" if roll.critical else " FUMBLE!" if roll.fumble else "")
        )
        return roll

    def compute_damage_roll(
        self,
        attacker: CombatParticipant,
        weapon: str | None = None,
        is_critical: bool = False,
        slot_level: int | None = None,
    ) -> DamageRoll:
        """Roll damage for a weapon or spell.

        A critical hit doubles the number of dice rolled. Weapons add the
        ability modifier (plus any flat bonus in the dice expression) once and
        are floored at settings.minimum_damage. Spells add only the flat bonus
        and have no floor.

        Args:
            attacker: The participant dealing damage
            weapon: Weapon/spell name; defaults to the equipped weapon
            is_critical: Whether the attack was a natural 20
            slot_level: Spell slot used for a leveled spell

        Returns:
            DamageRoll with the individual dice, bonus and total
        """
        profile = self.weapon_for(attacker, weapon)
        num_dice, die_size, flat_bonus = profile.scaled_dice(attacker.level or 1, slot_level)

        ability = self.attack_ability(attacker, profile)
        if profile.is_spell:
            bonus = flat_bonus
        else:
            bonus = self._modifier_for(attacker, ability) + flat_bonus

        rolled_dice = num_dice * 2 if is_critical else num_dice
        dice_results = self.dice.roll_dice(rolled_dice, die_size)
        total = sum(dice_results) + bonus
        if not profile.is_spell:
            total = max(self.settings.minimum_damage, total)

        damage = DamageRoll(
            dice_results=dice_results,
            bonus=bonus,
            damage_type=profile.damage_type,
            total=total,
            is_critical=is_critical,
            base_dice_count=num_dice,
            die_size=die_size,
            weapon=profile.name,
            ability=ability,
        )
        logger.info(
            f"{profile.damage_type.capitalize()} damage for {attacker.name}: "
            f"{dice_results} + {bonus} = {total}" + (" (critical)" if is_critical else "")
        )
        return damage

    def resolve_attack(
        self,
        attacker: CombatParticipant,
        target: CombatParticipant,
        weapon: str | None = None,
        slot_level: int | None = None,
    ) -> AttackResolution:
        """Resolve an attack without changing either participant.

        Args:
            attacker: The attacking participant
            target: The participant being attacked (must have an AC)
            weapon: Weapon/spell name; defaults to the equipped weapon
            slot_level: Spell slot used for a leveled spell

        Returns:
            AttackResolution; damage is only rolled on a hit

        Raises:
            InvalidTargetError: If the target has no armor class
        """
        if target.ac is None:
            logger.warning(f"Attack on {target.name} rejected: target has no AC")
            raise InvalidTargetError(
                "Cannot resolve an attack against a target without an armor class",
                target_id=target.id,
            )

        profile = self.weapon_for(attacker, weapon)
        attack = self.compute_attack_roll(attacker, profile.name)

        if attack.fumble:
            hit = False
        elif attack.critical:
            hit = True
        else:
            hit = attack.total >= target.ac

        damage = None
        if hit:
            damage = self.compute_damage_roll(attacker, profile.name, attack.critical, slot_level)

        if attack.fumble:
            narrative = f"{attacker.name} swings wildly and misses! (Fumble: {attack.raw})"
        elif attack.critical:
            narrative = (
                f"CRITICAL HIT! {attacker.name} strikes {target.name} with a {profile.name} "
                f"for {damage.total} {damage.damage_type} damage!"
            )
        elif hit:
            narrative = (
                f"{attacker.name} hits {target.name} ({attack.total} vs AC {target.ac}) "
                f"for {damage.total} {damage.damage_type} damage."
            )
        else:
            narrative = f"{attacker.name} attacks {target.name} but misses ({attack.total} vs AC {target.ac})."

        return AttackResolution(
            attacker_id=attacker.id,
            target_id=target.id,
            weapon=profile.name,
            attack=attack,
            target_ac=target.ac,
            hit=hit,
            damage=damage,
            narrative=narrative,
        )
