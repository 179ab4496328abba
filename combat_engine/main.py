"""Command line entry point for the combat engine.

Runs a short scripted skirmish (the party against a band of goblins) so the
engine can be exercised without any UI. Useful for eyeballing the log output
and for checking configuration.
"""

import argparse
import logging
import sys

from combat_engine.config import get_settings
from combat_engine.errors import CombatEngineError
from combat_engine.game.combat import CombatController
from combat_engine.game.models import AbilityScores
from combat_engine.game.roster import CharacterSheet, enemy_from_stat_block, participant_from_character
from combat_engine.tools.dice import DiceEngine

DEMO_PARTY = [
    CharacterSheet(
        id="thokk",
        name="Thokk",
        character_class="Fighter",
        race="Half-Orc",
        level=3,
        max_hp=28,
        ac=16,
        stats=AbilityScores(strength=16, dexterity=12, constitution=15),
        equipped_weapon="greataxe",
    ),
    CharacterSheet(
        id="lira",
        name="Lira",
        character_class="Cleric",
        race="Human",
        level=3,
        max_hp=21,
        ac=18,
        stats=AbilityScores(strength=12, dexterity=10, wisdom=16),
        equipped_weapon="guiding bolt",
    ),
]


def print_banner() -> None:
    """Print the application banner."""
    banner = """
    ========================================
     Combat Engine
     Turn-based D&D 5e combat resolution
    ========================================
    """
    print(banner)


def check_configuration() -> bool:
    """Print the active settings.

    Returns:
        True if settings loaded, False otherwise.
    """
    try:
        settings = get_settings()
    except ValueError as e:
        print(f"[ERROR] Invalid configuration: {e}")
        return False

    for key, value in settings.model_dump().items():
        print(f"  {key} = {value!r}")
    print("[OK] Configuration loaded")
    return True


def run_demo(seed: int | None, max_rounds: int = 10) -> str:
    """Fight the demo party against goblins until one side falls.

    Args:
        seed: Dice seed for a reproducible fight
        max_rounds: Stop after this many rounds regardless of outcome

    Returns:
        The end-of-combat reason
    """
    dice = DiceEngine(seed=seed)
    controller = CombatController(dice=dice)

    specs = [participant_from_character(sheet, dice) for sheet in DEMO_PARTY]
    specs += [enemy_from_stat_block("goblin", dice, enemy_id=f"goblin_{i}", name=f"Goblin {i}") for i in (1, 2, 3)]

    start = controller.start_combat(specs)
    print(start.announcement)

    while controller.get_state().round <= max_rounds:
        ending = controller.check_combat_end()
        if ending:
            print(f"\n{ending.narrative}")
            break

        state = controller.get_state()
        actor = state.get(state.active_participant_id)
        if actor.is_alive:
            targets = [p for p in state.participants if p.is_enemy != actor.is_enemy and p.is_alive]
            target = min(targets, key=lambda p: (p.hp, p.id))
            result = controller.resolve_attack(actor.id, target.id)
            print(result.narrative)
            if result.hit:
                change = controller.apply_damage(target.id, result.total_damage)
                if change.defeated:
                    controller.add_condition(target.id, "unconscious")
                    print(f"{target.name} goes down!")

        turn = controller.next_turn()
        if turn.is_new_round:
            print(f"\n{turn.announcement.splitlines()[0]}")

    ending = controller.check_combat_end()
    reason = ending.reason if ending else "time_limit"
    print()
    print(controller.get_combat_status())
    print(controller.end_combat(reason).narrative)
    return reason


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Combat Engine - D&D 5e turn-based combat resolution",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m combat_engine.main --check          # Show configuration
  python -m combat_engine.main --demo           # Run a demo skirmish
  python -m combat_engine.main --demo --seed 7  # Reproducible demo skirmish
        """,
    )

    parser.add_argument("--check", action="store_true", help="Show configuration and exit")
    parser.add_argument("--demo", action="store_true", help="Run a scripted demo skirmish")
    parser.add_argument("--seed", type=int, default=None, help="Dice seed for the demo")
    parser.add_argument("--rounds", type=int, default=10, help="Round limit for the demo")

    args = parser.parse_args()

    print_banner()

    if args.check:
        success = check_configuration()
        sys.exit(0 if success else 1)

    if args.demo:
        settings = get_settings()
        logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
        seed = args.seed if args.seed is not None else settings.dice_seed
        try:
            run_demo(seed, max_rounds=args.rounds)
        except CombatEngineError as e:
            print(f"[ERROR] Combat failed: {e}")
            sys.exit(1)
        sys.exit(0)

    parser.print_help()


if __name__ == "__main__":
    main()
