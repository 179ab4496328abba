"""Combat controller for D&D 5e style encounters.

This module provides the top-level combat state machine:
- Starting and ending combat (IDLE <-> IN_COMBAT)
- Adding and removing participants mid-fight
- Turn and round advancement through the initiative scheduler
- Damage and healing with hit point clamping
- Conditions, participant rolls and attack resolution

Every public operation validates first and mutates second, so a raised
error always leaves the session exactly as it was. Nothing here sleeps,
schedules or persists; callers decide when to call and what to render.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass

from combat_engine.config import Settings, get_settings
from combat_engine.errors import (
    DuplicateParticipantError,
    InvalidAmountError,
    InvalidStateError,
    NotFoundError,
)
from combat_engine.game import conditions
from combat_engine.game.actions import ActionResolver, AttackResolution
from combat_engine.game.initiative import (
    TurnAdvanceResult,
    next_turn,
    successor_on_removal,
    turn_order,
    turn_order_ids,
)
from combat_engine.game.models import (
    AbilityScores,
    CombatParticipant,
    CombatSession,
    CombatSnapshot,
    CombatStatus,
    LastRoll,
    ParticipantSpec,
    RollPurpose,
)
from combat_engine.tools.dice import DiceEngine

logger = logging.getLogger(__name__)

# Used to validate ability names for participants without scores
_DEFAULT_SCORES = AbilityScores()


@dataclass
class CombatStartResult:
    """Result of starting combat."""

    turn_order: list[CombatParticipant]
    active_participant_id: str | None
    announcement: str


@dataclass
class HitPointChange:
    """Result of applying damage or healing."""

    participant_id: str
    amount: int
    hp_before: int
    hp_after: int
    max_hp: int

    @property
    def defeated(self) -> bool:
        """True if this change dropped the participant to 0 HP."""
        return self.hp_before > 0 and self.hp_after == 0


@dataclass
class CombatEndResult:
    """Result of combat ending (or of a check that says it should)."""

    reason: str  # "enemies_defeated", "party_defeated", "ended"
    narrative: str
    rounds: int = 0


def _is_positive_int(amount: object) -> bool:
    return isinstance(amount, int) and not isinstance(amount, bool) and amount > 0


class CombatController:
    """Owns one combat session and every mutation applied to it.

    Example:
        >>> controller = CombatController(dice=DiceEngine(seed=3))
        >>> controller.start_combat([fighter_spec, goblin_spec])
        >>> result = controller.resolve_attack("thokk", "goblin_1")
        >>> if result.hit:
        ...     controller.apply_damage("goblin_1", result.total_damage)
        >>> controller.next_turn()
    """

    def __init__(self, dice: DiceEngine | None = None, settings: Settings | None = None):
        """Initialize an idle controller.

        Args:
            dice: Dice engine to roll with; built from settings.dice_seed if omitted
            settings: Engine settings; defaults to get_settings()
        """
        self.settings = settings or get_settings()
        self.dice = dice or DiceEngine(seed=self.settings.dice_seed)
        self.resolver = ActionResolver(self.dice, self.settings)
        self._session: CombatSession | None = None

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    @property
    def status(self) -> CombatStatus:
        return CombatStatus.IDLE if self._session is None else CombatStatus.IN_COMBAT

    @property
    def in_combat(self) -> bool:
        return self._session is not None

    def _require_combat(self, operation: str) -> CombatSession:
        if self._session is None:
            logger.warning(f"{operation} rejected: not in combat")
            raise InvalidStateError(
                f"Cannot {operation} while not in combat",
                state=self.status.value,
                operation=operation,
            )
        return self._session

    def _require_participant(self, participant_id: str, operation: str) -> CombatParticipant:
        session = self._require_combat(operation)
        participant = session.participants.get(participant_id)
        if participant is None:
            logger.warning(f"{operation} rejected: unknown participant {participant_id}")
            raise NotFoundError(
                f"No participant with id {participant_id!r} in combat",
                participant_id=participant_id,
            )
        return participant

    def _require_amount(self, amount: int, operation: str) -> None:
        if not _is_positive_int(amount):
            logger.warning(f"{operation} rejected: invalid amount {amount!r}")
            raise InvalidAmountError(f"{operation} amount must be a positive integer", amount=amount)

    @staticmethod
    def _new_id() -> str:
        return uuid.uuid4().hex

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_combat(self, participants: Iterable[ParticipantSpec] = ()) -> CombatStartResult:
        """Start a combat encounter.

        Args:
            participants: Specs for everyone in the fight; missing ids are assigned

        Returns:
            CombatStartResult with turn order and announcement

        Raises:
            InvalidStateError: If combat is already running
            DuplicateParticipantError: If two specs share an id
        """
        if self._session is not None:
            logger.warning("start_combat rejected: combat already in progress")
            raise InvalidStateError(
                "Combat is already in progress",
                state=self.status.value,
                operation="start_combat",
            )

        roster: dict[str, CombatParticipant] = {}
        for spec in participants:
            participant_id = spec.id or self._new_id()
            if participant_id in roster:
                raise DuplicateParticipantError(
                    f"Participant id {participant_id!r} appears more than once",
                    participant_id=participant_id,
                )
            roster[participant_id] = CombatParticipant.from_spec(spec, participant_id)

        ordered = turn_order(roster.values())
        active_id = ordered[0].id if ordered else None
        self._session = CombatSession(participants=roster, round=1, turn=0, active_participant_id=active_id)

        for participant in ordered:
            logger.info(f"Added {participant.name} ({participant.id}) with initiative {participant.initiative}")
        logger.info(f"Combat started with {len(ordered)} participants")

        turn_order_text = "\n".join(
            f"  {i + 1}. {p.name} (Initiative: {p.initiative})" for i, p in enumerate(ordered)
        )
        if ordered:
            opener = f"Round 1 - {ordered[0].name}'s turn!"
        else:
            opener = "Round 1 - waiting for combatants."
        announcement = f"=== COMBAT BEGINS ===\n\nTURN ORDER:\n{turn_order_text}\n\n{opener}"

        return CombatStartResult(
            turn_order=[p.model_copy(deep=True) for p in ordered],
            active_participant_id=active_id,
            announcement=announcement,
        )

    def end_combat(self, reason: str = "ended") -> CombatEndResult | None:
        """End combat and discard the session.

        Ending while idle is a no-op returning None, unless
        settings.strict_end_combat is set.

        Raises:
            InvalidStateError: If idle and strict_end_combat is enabled
        """
        if self._session is None:
            if self.settings.strict_end_combat:
                self._require_combat("end_combat")
            logger.debug("end_combat called while idle; nothing to do")
            return None

        rounds = self._session.round
        self._session = None
        logger.info(f"Combat ended after {rounds} round(s): {reason}")

        if reason == "enemies_defeated":
            narrative = "=== COMBAT ENDS ===\n\nThe enemies lie defeated."
        elif reason == "party_defeated":
            narrative = "=== COMBAT ENDS ===\n\nDarkness closes in..."
        elif reason == "fled":
            narrative = "=== COMBAT ENDS ===\n\nYou flee from the battle."
        else:
            narrative = "=== COMBAT ENDS ==="
        return CombatEndResult(reason=reason, narrative=narrative, rounds=rounds)

    # ------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------

    def add_participant(self, spec: ParticipantSpec) -> CombatParticipant:
        """Add a participant to the running combat.

        The participant is slotted into turn order by initiative; whose turn
        it is does not change, except that the first participant to join an
        empty fight becomes active.

        Returns:
            Copy of the new participant, including its assigned id
        """
        session = self._require_combat("add_participant")
        participant_id = spec.id or self._new_id()
        if participant_id in session.participants:
            logger.warning(f"add_participant rejected: duplicate id {participant_id}")
            raise DuplicateParticipantError(
                f"Participant id {participant_id!r} is already in combat",
                participant_id=participant_id,
            )

        participant = CombatParticipant.from_spec(spec, participant_id)
        session.participants[participant_id] = participant
        if session.active_participant_id is None:
            session.active_participant_id = participant_id

        logger.info(f"Added {participant.name} ({participant_id}) with initiative {participant.initiative}")
        return participant.model_copy(deep=True)

    def remove_participant(self, participant_id: str) -> CombatParticipant:
        """Remove a participant from combat.

        If it was their turn, the next participant in order takes over
        without the round advancing.

        Returns:
            The removed participant
        """
        session = self._require_combat("remove_participant")
        participant = self._require_participant(participant_id, "remove_participant")

        if session.active_participant_id == participant_id:
            session.active_participant_id = successor_on_removal(turn_order_ids(session), participant_id)
        del session.participants[participant_id]

        logger.info(f"Removed {participant.name} ({participant_id}) from combat")
        return participant

    def get_participant(self, participant_id: str) -> CombatParticipant:
        """Get a copy of a participant."""
        return self._require_participant(participant_id, "get_participant").model_copy(deep=True)

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    def next_turn(self) -> TurnAdvanceResult:
        """Advance to the next participant's turn.

        Raises:
            InvalidStateError: If not in combat or nobody is fighting
        """
        session = self._require_combat("next_turn")
        if not session.participants:
            logger.warning("next_turn rejected: no participants")
            raise InvalidStateError(
                "Cannot advance turns with no participants",
                state=self.status.value,
                operation="next_turn",
            )
        return next_turn(session)

    def get_current_combatant(self) -> str | None:
        """Get the id of the participant whose turn it is."""
        if self._session is None:
            return None
        return self._session.active_participant_id

    # ------------------------------------------------------------------
    # Hit points and conditions
    # ------------------------------------------------------------------

    def apply_damage(self, participant_id: str, amount: int) -> HitPointChange:
        """Reduce a participant's hit points, never below 0."""
        participant = self._require_participant(participant_id, "apply_damage")
        self._require_amount(amount, "Damage")

        hp_before = participant.hp
        participant.hp = max(0, hp_before - amount)
        logger.info(f"{participant.name} takes {amount} damage ({hp_before} -> {participant.hp} HP)")
        return HitPointChange(participant_id, amount, hp_before, participant.hp, participant.max_hp)

    def apply_healing(self, participant_id: str, amount: int) -> HitPointChange:
        """Restore a participant's hit points, never above max_hp."""
        participant = self._require_participant(participant_id, "apply_healing")
        self._require_amount(amount, "Healing")

        hp_before = participant.hp
        participant.hp = min(participant.max_hp, hp_before + amount)
        logger.info(f"{participant.name} heals {amount} ({hp_before} -> {participant.hp} HP)")
        return HitPointChange(participant_id, amount, hp_before, participant.hp, participant.max_hp)

    def add_condition(self, participant_id: str, condition: str) -> bool:
        """Add a condition label; returns False if it was already present."""
        participant = self._require_participant(participant_id, "add_condition")
        return conditions.add_condition(participant, condition)

    def remove_condition(self, participant_id: str, condition: str) -> bool:
        """Remove a condition label; returns False if it was not present."""
        participant = self._require_participant(participant_id, "remove_condition")
        return conditions.remove_condition(participant, condition)

    # ------------------------------------------------------------------
    # Rolls and attacks
    # ------------------------------------------------------------------

    def roll_for_participant(
        self,
        participant_id: str,
        purpose: RollPurpose | str,
        ability: str | None = None,
    ) -> LastRoll:
        """Roll for a participant and store the result as their last roll.

        Args:
            participant_id: Who is rolling
            purpose: attack, save, damage or initiative
            ability: Ability for a saving throw (e.g. "dex"); ignored otherwise

        Returns:
            The LastRoll stored on the participant

        Raises:
            ValueError: If purpose or ability is not recognized
        """
        participant = self._require_participant(participant_id, "roll_for_participant")
        purpose = RollPurpose(purpose)
        scores = participant.ability_scores
        if ability is not None:
            # Validate up front so a bad ability cannot leave a half-made roll
            (scores or _DEFAULT_SCORES).get_score(ability)

        if purpose is RollPurpose.ATTACK:
            last_roll = self._roll_attack(participant)
        elif purpose is RollPurpose.DAMAGE:
            damage = self.resolver.compute_damage_roll(participant)
            last_roll = LastRoll(
                purpose=purpose,
                raw=damage.dice_total,
                modifier=damage.bonus,
                total=damage.total,
                ability=damage.ability,
                damage_dice=damage.dice_results,
                damage_bonus=damage.bonus,
                damage_total=damage.total,
                damage_type=damage.damage_type,
            )
        else:
            if purpose is RollPurpose.INITIATIVE:
                ability = "dexterity"
            modifier = scores.get_modifier(ability) if scores is not None and ability else 0
            check = self.dice.roll_check(20, modifier)
            last_roll = LastRoll(
                purpose=purpose,
                raw=check.raw,
                modifier=check.modifier,
                total=check.total,
                ability=ability,
                critical=check.raw == 20,
                fumble=check.raw == 1,
            )

        participant.last_roll = last_roll
        logger.info(f"{participant.name} rolls {purpose.value}: [{last_roll.raw}] + {last_roll.modifier} = {last_roll.total}")
        return last_roll.model_copy(deep=True)

    def _roll_attack(self, participant: CombatParticipant) -> LastRoll:
        profile = self.resolver.weapon_for(participant)
        attack = self.resolver.compute_attack_roll(participant, profile.name)
        last_roll = LastRoll(
            purpose=RollPurpose.ATTACK,
            raw=attack.raw,
            modifier=attack.modifier,
            total=attack.total,
            ability=attack.ability,
            critical=attack.critical,
            fumble=attack.fumble,
        )
        if not attack.fumble:
            damage = self.resolver.compute_damage_roll(participant, profile.name, attack.critical)
            last_roll.damage_dice = damage.dice_results
            last_roll.damage_bonus = damage.bonus
            last_roll.damage_total = damage.total
            last_roll.damage_type = damage.damage_type
        return last_roll

    def resolve_attack(
        self,
        attacker_id: str,
        target_id: str,
        weapon: str | None = None,
        slot_level: int | None = None,
    ) -> AttackResolution:
        """Resolve an attack between two participants without applying damage.

        Args:
            attacker_id: The attacker's id
            target_id: The target's id
            weapon: Weapon/spell name; defaults to the attacker's equipped weapon
            slot_level: Spell slot used for a leveled spell

        Raises:
            NotFoundError: If either participant is unknown
            InvalidTargetError: If the target has no armor class
        """
        attacker = self._require_participant(attacker_id, "resolve_attack")
        target = self._require_participant(target_id, "resolve_attack")
        return self.resolver.resolve_attack(attacker, target, weapon, slot_level)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_state(self) -> CombatSnapshot:
        """Get a read-only snapshot of the combat state."""
        if self._session is None:
            return CombatSnapshot()
        session = self._session
        return CombatSnapshot(
            in_combat=True,
            round=session.round,
            turn=session.turn,
            active_participant_id=session.active_participant_id,
            participants=[p.model_copy(deep=True) for p in turn_order(session.participants.values())],
        )

    def check_combat_end(self) -> CombatEndResult | None:
        """Check whether one side has been beaten.

        Only reports; ending combat is left to the caller.

        Returns:
            CombatEndResult if a side is down, None otherwise
        """
        if self._session is None:
            return None

        participants = list(self._session.participants.values())
        enemies = [p for p in participants if p.is_enemy]
        party = [p for p in participants if not p.is_enemy]

        if enemies and not any(e.is_alive for e in enemies):
            return CombatEndResult(
                reason="enemies_defeated",
                narrative="All enemies have been defeated! Victory!",
                rounds=self._session.round,
            )
        if party and not any(c.is_alive for c in party):
            return CombatEndResult(
                reason="party_defeated",
                narrative="The party has fallen...",
                rounds=self._session.round,
            )
        return None

    def get_combat_status(self) -> str:
        """Get a formatted status of the current combat."""
        state = self.get_state()
        if not state.in_combat:
            return "Not in combat."

        lines = [f"=== COMBAT STATUS (Round {state.round}) ===\n"]
        for title, is_enemy in (("PARTY", False), ("ENEMIES", True)):
            if is_enemy:
                lines.append("")
            lines.append(f"{title}:")
            members = [p for p in state.participants if p.is_enemy == is_enemy]
            for p in members:
                marker = ">>>" if p.id == state.active_participant_id else "   "
                status = "ALIVE" if p.is_alive else ("DEAD" if is_enemy else "DOWN")
                conds = f" ({', '.join(sorted(p.conditions))})" if p.conditions else ""
                lines.append(f"{marker} {p.name}: {p.hp}/{p.max_hp} HP [{status}]{conds}")
            if not members:
                lines.append("   (none)")

        return "\n".join(lines)
