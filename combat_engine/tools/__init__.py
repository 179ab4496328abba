"""Dice tools for the combat engine."""

from combat_engine.tools.dice import (
    DiceEngine,
    RandomFunc,
    RollCheck,
    parse_dice_notation,
)

__all__ = [
    "DiceEngine",
    "RandomFunc",
    "RollCheck",
    "parse_dice_notation",
]
