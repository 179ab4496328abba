"""Dice rolling for the combat engine.

This module provides:
- Uniform single-die rolls and multi-die pools
- Checks that compose a raw die with a modifier and proficiency bonus
- Parsing of standard D&D notation (1d20, 2d6+3, etc.)

All randomness flows through a DiceEngine, which accepts an injectable
random function so tests can script exact results.
"""

import logging
import random
import re
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

# Type alias for random function (allows scripting in tests)
RandomFunc = Callable[[int, int], int]

_NOTATION_PATTERN = re.compile(r"^(\d+)d(\d+)([+-]\d+)?$")


@dataclass(frozen=True)
class RollCheck:
    """A single die composed with flat bonuses."""

    raw: int  # Natural die result
    modifier: int  # Ability modifier
    total: int  # raw + modifier + proficiency_bonus
    proficiency_bonus: int = 0
    sides: int = 20

    @property
    def is_natural_max(self) -> bool:
        """Check if the die landed on its highest face."""
        return self.raw == self.sides

    @property
    def is_natural_one(self) -> bool:
        """Check if the die landed on 1."""
        return self.raw == 1


def parse_dice_notation(notation: str) -> tuple[int, int, int]:
    """Parse dice notation into (num_dice, die_size, modifier).

    Args:
        notation: Standard D&D dice notation like "1d20", "2d6+3", "1d8-1"

    Returns:
        Tuple of (number_of_dice, die_size, modifier)

    Raises:
        ValueError: If notation is invalid

    Examples:
        >>> parse_dice_notation("2d6+3")
        (2, 6, 3)
        >>> parse_dice_notation("1d4+1")
        (1, 4, 1)
    """
    match = _NOTATION_PATTERN.match(notation.lower().strip())

    if not match:
        raise ValueError(f"Invalid dice notation: {notation}")

    num_dice = int(match.group(1))
    die_size = int(match.group(2))
    modifier = int(match.group(3)) if match.group(3) else 0

    if num_dice < 1:
        raise ValueError(f"Number of dice must be at least 1: {notation}")
    if die_size < 1:
        raise ValueError(f"Die size must be at least 1: {notation}")

    return num_dice, die_size, modifier


class DiceEngine:
    """Source of every die roll in a combat session.

    Example:
        >>> dice = DiceEngine(seed=7)
        >>> check = dice.roll_check(20, modifier=3, proficiency_bonus=2)
        >>> check.total == check.raw + 5
        True
    """

    def __init__(self, rand_func: RandomFunc | None = None, seed: int | None = None):
        """Initialize the engine.

        Args:
            rand_func: Optional custom random function with randint semantics
            seed: Seed for the private generator when no rand_func is given
        """
        self._rng = random.Random(seed)
        self._rand_func = rand_func or self._rng.randint

    def roll_die(self, sides: int) -> int:
        """Roll a single die.

        Args:
            sides: Number of sides on the die

        Returns:
            The roll result (1 to sides inclusive)
        """
        if sides < 1:
            raise ValueError(f"Die size must be at least 1: {sides}")
        result = self._rand_func(1, sides)
        if not 1 <= result <= sides:
            raise ValueError(f"Random source returned {result} for a d{sides}")
        return result

    def roll_dice(self, count: int, sides: int) -> list[int]:
        """Roll a pool of identical dice."""
        if count < 0:
            raise ValueError(f"Number of dice cannot be negative: {count}")
        return [self.roll_die(sides) for _ in range(count)]

    def roll_check(self, sides: int, modifier: int, proficiency_bonus: int = 0) -> RollCheck:
        """Roll one die and add flat bonuses.

        Args:
            sides: Die size (20 for attacks, saves and initiative)
            modifier: Ability modifier
            proficiency_bonus: Proficiency bonus, 0 if not proficient

        Returns:
            RollCheck with raw, modifier and total
        """
        raw = self.roll_die(sides)
        check = RollCheck(
            raw=raw,
            modifier=modifier,
            proficiency_bonus=proficiency_bonus,
            total=raw + modifier + proficiency_bonus,
            sides=sides,
        )
        logger.debug(f"Check d{sides}: {raw} + {modifier} + {proficiency_bonus} = {check.total}")
        return check
