"""Tests for the combat controller."""

import random

import pytest

from combat_engine.errors import (
    DuplicateParticipantError,
    InvalidAmountError,
    InvalidConditionError,
    InvalidStateError,
    InvalidTargetError,
    NotFoundError,
)
from combat_engine.game.combat import CombatController
from combat_engine.game.models import AbilityScores, CombatStatus, ParticipantSpec


def spec(pid: str, initiative: int, **kwargs) -> ParticipantSpec:
    kwargs.setdefault("max_hp", 10)
    kwargs.setdefault("name", pid.capitalize())
    return ParticipantSpec(id=pid, initiative=initiative, **kwargs)


@pytest.fixture
def duel_specs():
    """Attacker A (STR 16, longsword) and defender B."""
    a = spec(
        "a",
        18,
        is_enemy=True,
        max_hp=20,
        ac=14,
        ability_scores=AbilityScores(strength=16),
        equipped_weapon="longsword",
    )
    b = spec("b", 12, max_hp=10, ac=12)
    return [a, b]


class TestLifecycle:
    """Tests for starting and ending combat."""

    def test_starts_idle(self, make_controller):
        """New controllers are idle."""
        controller, _ = make_controller()
        assert controller.status is CombatStatus.IDLE
        assert not controller.in_combat
        assert controller.get_current_combatant() is None

    def test_start_combat(self, make_controller, fighter_spec, goblin_spec):
        """Starting combat orders participants and activates the first."""
        controller, _ = make_controller()
        result = controller.start_combat([goblin_spec, fighter_spec])

        assert controller.status is CombatStatus.IN_COMBAT
        assert [p.id for p in result.turn_order] == ["thokk", "goblin_1"]
        assert result.active_participant_id == "thokk"
        assert "=== COMBAT BEGINS ===" in result.announcement
        assert "TURN ORDER:" in result.announcement
        assert "Round 1" in result.announcement

        state = controller.get_state()
        assert state.round == 1
        assert state.turn == 0
        assert state.active_participant_id == "thokk"

    def test_start_empty(self, make_controller):
        """Combat can start with nobody in it."""
        controller, _ = make_controller()
        result = controller.start_combat()
        assert result.active_participant_id is None
        assert controller.in_combat

    def test_hp_defaults_to_max(self, make_controller, fighter_spec):
        """Participants start at full health unless told otherwise."""
        controller, _ = make_controller()
        controller.start_combat([fighter_spec, spec("hurt", 3, max_hp=10, hp=4)])
        assert controller.get_participant("thokk").hp == 28
        assert controller.get_participant("hurt").hp == 4

    def test_start_twice_rejected(self, make_controller, fighter_spec, goblin_spec):
        """Starting while in combat raises and keeps the session."""
        controller, _ = make_controller()
        controller.start_combat([fighter_spec])
        with pytest.raises(InvalidStateError):
            controller.start_combat([goblin_spec])
        assert controller.get_state().turn_order == ["thokk"]

    def test_duplicate_ids_rejected(self, make_controller, fighter_spec):
        """Two specs with the same id cannot start a fight."""
        controller, _ = make_controller()
        with pytest.raises(DuplicateParticipantError):
            controller.start_combat([fighter_spec, fighter_spec])
        assert controller.status is CombatStatus.IDLE

    def test_ids_assigned_when_missing(self, make_controller):
        """Specs without ids get unique generated ids."""
        controller, _ = make_controller()
        result = controller.start_combat([ParticipantSpec(name="Anon", max_hp=5), ParticipantSpec(name="Anon", max_hp=5)])
        ids = [p.id for p in result.turn_order]
        assert len(set(ids)) == 2
        assert all(ids)

    def test_end_combat(self, make_controller, fighter_spec):
        """Ending combat returns to idle and reports rounds."""
        controller, _ = make_controller()
        controller.start_combat([fighter_spec])
        result = controller.end_combat("fled")

        assert result.reason == "fled"
        assert result.rounds == 1
        assert "COMBAT ENDS" in result.narrative
        assert controller.status is CombatStatus.IDLE
        assert controller.get_state().in_combat is False

    def test_end_while_idle_is_noop(self, make_controller):
        """Ending while idle does nothing by default."""
        controller, _ = make_controller()
        assert controller.end_combat() is None
        assert controller.status is CombatStatus.IDLE

    def test_end_while_idle_strict(self, make_controller):
        """Strict mode rejects ending while idle."""
        controller, _ = make_controller(strict_end_combat=True)
        with pytest.raises(InvalidStateError):
            controller.end_combat()

    def test_operations_require_combat(self, make_controller, fighter_spec):
        """Mutations while idle are rejected."""
        controller, _ = make_controller()
        with pytest.raises(InvalidStateError):
            controller.next_turn()
        with pytest.raises(InvalidStateError):
            controller.add_participant(fighter_spec)
        with pytest.raises(InvalidStateError):
            controller.apply_damage("thokk", 3)


class TestDuelScenario:
    """A two-participant fight played out step by step."""

    def test_attack_damage_and_turns(self, make_controller, duel_specs):
        """Attack hits, damage is applied separately, rounds advance on wrap."""
        controller, _ = make_controller([15, 6])
        controller.start_combat(duel_specs)
        assert controller.get_current_combatant() == "a"

        result = controller.resolve_attack("a", "b")
        assert result.attack.raw == 15
        assert result.attack.modifier == 3
        assert result.attack.total == 18
        assert result.hit
        assert result.total_damage == 9
        # resolving never changes hit points
        assert controller.get_participant("b").hp == 10

        change = controller.apply_damage("b", result.total_damage)
        assert change.hp_after == 1
        assert controller.get_participant("b").hp == 1

        turn = controller.next_turn()
        assert turn.combatant_id == "b"
        assert controller.get_state().round == 1

        turn = controller.next_turn()
        assert turn.combatant_id == "a"
        assert turn.is_new_round
        assert controller.get_state().round == 2

    def test_attack_target_without_ac(self, make_controller, duel_specs):
        """Targets without armor class cannot be attacked."""
        controller, _ = make_controller()
        controller.start_combat(duel_specs + [spec("ghost", 1)])
        with pytest.raises(InvalidTargetError):
            controller.resolve_attack("a", "ghost")

    def test_attack_unknown_participant(self, make_controller, duel_specs):
        """Unknown ids are rejected."""
        controller, _ = make_controller()
        controller.start_combat(duel_specs)
        with pytest.raises(NotFoundError):
            controller.resolve_attack("a", "nobody")


class TestTurns:
    """Tests for turn and round advancement through the controller."""

    def test_ties_broken_by_id(self, make_controller):
        """Equal initiatives act in id order."""
        controller, _ = make_controller()
        controller.start_combat([spec("c", 10), spec("a", 10), spec("b", 10)])
        assert controller.get_state().turn_order == ["a", "b", "c"]

    def test_full_cycle_advances_one_round(self, make_controller):
        """N advances with N participants add exactly one round."""
        controller, _ = make_controller()
        controller.start_combat([spec("a", 20), spec("b", 15), spec("c", 15), spec("d", 2)])
        for _ in range(4):
            controller.next_turn()
        state = controller.get_state()
        assert state.round == 2
        assert state.turn == 4
        assert state.active_participant_id == "a"

    def test_next_turn_with_nobody(self, make_controller):
        """Advancing an empty fight is rejected."""
        controller, _ = make_controller()
        controller.start_combat()
        with pytest.raises(InvalidStateError):
            controller.next_turn()


class TestParticipants:
    """Tests for adding and removing participants mid-fight."""

    def test_add_keeps_active(self, make_controller):
        """A newcomer with higher initiative does not take the turn."""
        controller, _ = make_controller()
        controller.start_combat([spec("a", 10), spec("b", 5)])
        controller.next_turn()

        controller.add_participant(spec("fast", 25))
        state = controller.get_state()
        assert state.active_participant_id == "b"
        assert state.turn_order == ["fast", "a", "b"]

    def test_add_to_empty_fight_activates(self, make_controller):
        """The first participant in an empty fight becomes active."""
        controller, _ = make_controller()
        controller.start_combat()
        added = controller.add_participant(spec("solo", 4))
        assert added.id == "solo"
        assert controller.get_current_combatant() == "solo"

    def test_add_duplicate_rejected(self, make_controller):
        """Ids already in combat cannot be added again."""
        controller, _ = make_controller()
        controller.start_combat([spec("a", 10)])
        with pytest.raises(DuplicateParticipantError):
            controller.add_participant(spec("a", 3))

    def test_remove_inactive(self, make_controller):
        """Removing someone else keeps the active participant."""
        controller, _ = make_controller()
        controller.start_combat([spec("a", 10), spec("b", 5), spec("c", 1)])
        removed = controller.remove_participant("c")
        assert removed.id == "c"
        assert controller.get_current_combatant() == "a"
        assert controller.get_state().turn_order == ["a", "b"]

    def test_remove_active_hands_over(self, make_controller):
        """Removing the active participant passes the turn to the next one."""
        controller, _ = make_controller()
        controller.start_combat([spec("a", 10), spec("b", 5), spec("c", 1)])
        controller.next_turn()
        controller.remove_participant("b")
        assert controller.get_current_combatant() == "c"
        assert controller.get_state().round == 1

    def test_remove_active_last_wraps_without_new_round(self, make_controller):
        """Removing the last active participant wraps but keeps the round."""
        controller, _ = make_controller()
        controller.start_combat([spec("a", 10), spec("b", 5)])
        controller.next_turn()
        controller.remove_participant("b")
        state = controller.get_state()
        assert state.active_participant_id == "a"
        assert state.round == 1

    def test_remove_only_participant(self, make_controller):
        """Removing everyone leaves nobody active."""
        controller, _ = make_controller()
        controller.start_combat([spec("a", 10)])
        controller.remove_participant("a")
        assert controller.get_current_combatant() is None

    def test_remove_unknown(self, make_controller):
        """Unknown ids cannot be removed."""
        controller, _ = make_controller()
        controller.start_combat([spec("a", 10)])
        with pytest.raises(NotFoundError):
            controller.remove_participant("zzz")


class TestHitPoints:
    """Tests for damage and healing."""

    @pytest.fixture
    def controller(self, make_controller):
        controller, _ = make_controller()
        controller.start_combat([spec("a", 10, max_hp=10)])
        return controller

    def test_damage_reduces_hp(self, controller):
        """Damage lowers hit points."""
        change = controller.apply_damage("a", 4)
        assert (change.hp_before, change.hp_after) == (10, 6)
        assert not change.defeated

    def test_damage_clamps_at_zero(self, controller):
        """Overkill damage stops at 0."""
        change = controller.apply_damage("a", 50)
        assert change.hp_after == 0
        assert change.defeated
        assert not controller.get_participant("a").is_alive

    def test_healing_clamps_at_max(self, controller):
        """Healing never exceeds max hit points."""
        controller.apply_damage("a", 3)
        change = controller.apply_healing("a", 100)
        assert change.hp_after == 10

    @pytest.mark.parametrize("amount", [-5, 0, True, 2.5])
    def test_invalid_amounts_rejected(self, controller, amount):
        """Non-positive or non-integer amounts leave hit points untouched."""
        with pytest.raises(InvalidAmountError):
            controller.apply_damage("a", amount)
        with pytest.raises(InvalidAmountError):
            controller.apply_healing("a", amount)
        assert controller.get_participant("a").hp == 10

    def test_invalid_amount_is_value_error(self, controller):
        """Amount errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            controller.apply_damage("a", -1)

    def test_unknown_participant(self, controller):
        """Damage to an unknown id is rejected."""
        with pytest.raises(NotFoundError):
            controller.apply_damage("ghost", 3)

    def test_hp_stays_in_bounds(self, controller):
        """Any sequence of damage and healing keeps 0 <= hp <= max_hp."""
        rng = random.Random(7)
        for _ in range(300):
            amount = rng.randint(1, 15)
            if rng.random() < 0.5:
                controller.apply_damage("a", amount)
            else:
                controller.apply_healing("a", amount)
            hp = controller.get_participant("a").hp
            assert 0 <= hp <= 10


class TestConditionsThroughController:
    """Tests for condition management via the controller."""

    def test_add_and_remove(self, make_controller):
        """Conditions can be added and removed by id."""
        controller, _ = make_controller()
        controller.start_combat([spec("a", 10)])
        assert controller.add_condition("a", "poisoned")
        assert controller.get_participant("a").conditions == {"poisoned"}
        assert controller.remove_condition("a", "poisoned")
        assert not controller.remove_condition("a", "poisoned")

    def test_blank_condition(self, make_controller):
        """Blank condition names are rejected."""
        controller, _ = make_controller()
        controller.start_combat([spec("a", 10)])
        with pytest.raises(InvalidConditionError):
            controller.add_condition("a", "")


class TestRollForParticipant:
    """Tests for participant rolls stored as last_roll."""

    @pytest.fixture
    def setup(self, make_controller, fighter_spec, goblin_spec):
        controller, rand = make_controller()
        controller.start_combat([fighter_spec, goblin_spec])
        return controller, rand

    def test_attack_roll(self, setup):
        """Attack rolls include damage for the equipped weapon."""
        controller, rand = setup
        rand.push(14, 5)
        roll = controller.roll_for_participant("thokk", "attack")

        # STR +3, proficiency +2 at level 3
        assert roll.raw == 14
        assert roll.modifier == 5
        assert roll.total == 19
        assert roll.damage_dice == [5]
        assert roll.damage_total == 8
        assert roll.damage_type == "slashing"
        assert controller.get_participant("thokk").last_roll == roll

    def test_attack_fumble_has_no_damage(self, setup):
        """A natural 1 records no damage."""
        controller, rand = setup
        rand.push(1)
        roll = controller.roll_for_participant("thokk", "attack")
        assert roll.fumble
        assert roll.damage_total is None
        assert roll.damage_dice == []

    def test_attack_critical_doubles_dice(self, setup):
        """A natural 20 rolls twice the damage dice."""
        controller, rand = setup
        rand.push(20, 4, 6)
        roll = controller.roll_for_participant("thokk", "attack")
        assert roll.critical
        assert roll.damage_dice == [4, 6]
        assert roll.damage_total == 13

    def test_damage_roll(self, setup):
        """Damage rolls record dice total and bonus."""
        controller, rand = setup
        rand.push(3)
        roll = controller.roll_for_participant("goblin_1", "damage")
        # scimitar 1d6, DEX +2 beats STR -1
        assert roll.raw == 3
        assert roll.modifier == 2
        assert roll.total == 5
        assert roll.ability == "dexterity"

    def test_save_roll(self, setup):
        """Saves add the named ability modifier only."""
        controller, rand = setup
        rand.push(10)
        roll = controller.roll_for_participant("goblin_1", "save", ability="dex")
        assert roll.total == 12
        assert roll.ability == "dex"

    def test_initiative_roll_keeps_order(self, setup):
        """Initiative rolls use DEX and do not reorder turns."""
        controller, rand = setup
        rand.push(20)
        roll = controller.roll_for_participant("goblin_1", "initiative")
        assert roll.total == 22
        assert roll.ability == "dexterity"
        assert controller.get_participant("goblin_1").initiative == 12
        assert controller.get_state().turn_order == ["thokk", "goblin_1"]

    def test_invalid_purpose(self, setup):
        """Unknown purposes are rejected without rolling."""
        controller, rand = setup
        with pytest.raises(ValueError):
            controller.roll_for_participant("thokk", "dance")
        assert rand.calls == []
        assert controller.get_participant("thokk").last_roll is None

    def test_invalid_ability(self, setup):
        """Unknown abilities are rejected without rolling."""
        controller, rand = setup
        with pytest.raises(ValueError):
            controller.roll_for_participant("thokk", "save", ability="luck")
        assert rand.calls == []

    def test_returned_roll_is_a_copy(self, setup):
        """Editing the returned roll does not touch the participant."""
        controller, rand = setup
        rand.push(8)
        roll = controller.roll_for_participant("thokk", "save", ability="con")
        roll.total = 99
        assert controller.get_participant("thokk").last_roll.total != 99


class TestQueries:
    """Tests for snapshots, end checks and status text."""

    def test_idle_snapshot(self, make_controller):
        """Idle state reports no combat."""
        controller, _ = make_controller()
        state = controller.get_state()
        assert not state.in_combat
        assert state.round == 0
        assert state.participants == []

    def test_snapshot_is_detached(self, make_controller, fighter_spec):
        """Mutating a snapshot leaves the session alone."""
        controller, _ = make_controller()
        controller.start_combat([fighter_spec])
        state = controller.get_state()
        state.participants[0].hp = 1
        state.participants[0].conditions.add("hexed")

        fresh = controller.get_state()
        assert fresh.get("thokk").hp == 28
        assert fresh.get("thokk").conditions == set()

    def test_snapshot_is_stable(self, make_controller, fighter_spec, goblin_spec):
        """Two snapshots without mutations in between are equal."""
        controller, _ = make_controller()
        controller.start_combat([fighter_spec, goblin_spec])
        assert controller.get_state() == controller.get_state()

    def test_check_combat_end_victory(self, make_controller, fighter_spec, goblin_spec):
        """All enemies down reports victory without ending combat."""
        controller, _ = make_controller()
        controller.start_combat([fighter_spec, goblin_spec])
        assert controller.check_combat_end() is None

        controller.apply_damage("goblin_1", 7)
        result = controller.check_combat_end()
        assert result.reason == "enemies_defeated"
        assert "Victory" in result.narrative
        assert controller.in_combat

    def test_check_combat_end_defeat(self, make_controller, fighter_spec, goblin_spec):
        """All party members down reports defeat."""
        controller, _ = make_controller()
        controller.start_combat([fighter_spec, goblin_spec])
        controller.apply_damage("thokk", 28)
        assert controller.check_combat_end().reason == "party_defeated"

    def test_check_combat_end_idle(self, make_controller):
        """Idle controllers have nothing to report."""
        controller, _ = make_controller()
        assert controller.check_combat_end() is None

    def test_status_text(self, make_controller, fighter_spec, goblin_spec):
        """Status lists both sides and marks the active participant."""
        controller, _ = make_controller()
        assert controller.get_combat_status() == "Not in combat."

        controller.start_combat([fighter_spec, goblin_spec])
        controller.add_condition("goblin_1", "frightened")
        controller.apply_damage("goblin_1", 7)
        status = controller.get_combat_status()

        assert "=== COMBAT STATUS (Round 1) ===" in status
        assert ">>> Thokk: 28/28 HP [ALIVE]" in status
        assert "Goblin: 0/7 HP [DEAD] (frightened)" in status

    def test_status_empty_side(self, make_controller, fighter_spec):
        """A side with nobody on it says so."""
        controller, _ = make_controller()
        controller.start_combat([fighter_spec])
        assert "(none)" in controller.get_combat_status()
