"""Condition labels on combat participants.

Conditions ("poisoned", "prone", "blessed", ...) are opaque labels. The
engine stores them and nothing more: no condition changes rolls, damage or
turn order.
"""

import logging

from combat_engine.errors import InvalidConditionError
from combat_engine.game.models import CombatParticipant

logger = logging.getLogger(__name__)


def normalize_condition(name: str) -> str:
    """Strip a condition label and reject blank ones.

    Raises:
        InvalidConditionError: If the label is empty after stripping
    """
    label = name.strip() if isinstance(name, str) else ""
    if not label:
        raise InvalidConditionError("Condition name must be a non-empty string", details={"name": name})
    return label


def add_condition(participant: CombatParticipant, name: str) -> bool:
    """Add a condition if it is not already present.

    Returns:
        True if the condition was added, False if it was already there
    """
    label = normalize_condition(name)
    if label in participant.conditions:
        return False
    participant.conditions.add(label)
    logger.info(f"{participant.name} gains condition '{label}'")
    return True


def remove_condition(participant: CombatParticipant, name: str) -> bool:
    """Remove a condition if present.

    Returns:
        True if the condition was removed, False if it was not there
    """
    label = normalize_condition(name)
    if label not in participant.conditions:
        return False
    participant.conditions.discard(label)
    logger.info(f"{participant.name} loses condition '{label}'")
    return True
