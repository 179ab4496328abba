"""Testing utilities for the combat engine.

This package provides:
- FixedDice: Scripted random source for deterministic DiceEngine rolls
"""

from combat_engine.testing.fixed_dice import FixedDice

__all__ = [
    "FixedDice",
]
