"""Initiative ordering and turn advancement.

Turn order is always derived from the participants themselves: highest
initiative first, ties broken by ascending id. Nothing here stores an index
into the order, so adding or removing participants can never leave a stale
pointer behind; the active participant is tracked by id only.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from combat_engine.game.models import CombatParticipant, CombatSession

logger = logging.getLogger(__name__)


@dataclass
class TurnAdvanceResult:
    """Result of advancing to the next turn."""

    combatant_id: str
    combatant_name: str
    round_number: int
    is_new_round: bool
    announcement: str


def turn_order(participants: Iterable[CombatParticipant]) -> list[CombatParticipant]:
    """Sort participants into turn order.

    Args:
        participants: Any iterable of participants

    Returns:
        New list, initiative descending, ties by id ascending
    """
    return sorted(participants, key=lambda p: (-p.initiative, p.id))


def turn_order_ids(session: CombatSession) -> list[str]:
    """Ids of the session's participants in turn order."""
    return [p.id for p in turn_order(session.participants.values())]


def next_in_order(order_ids: Sequence[str], current_id: str | None) -> tuple[str, bool]:
    """Find who acts after ``current_id``.

    Args:
        order_ids: Participant ids in turn order (must not be empty)
        current_id: Id of the participant whose turn is ending

    Returns:
        Tuple of (next_id, wrapped); wrapped is True when the order rolled
        over from the last participant back to the first
    """
    if not order_ids:
        raise ValueError("Cannot advance an empty turn order")
    if current_id is None or current_id not in order_ids:
        return order_ids[0], False

    index = order_ids.index(current_id)
    if index + 1 >= len(order_ids):
        return order_ids[0], True
    return order_ids[index + 1], False


def successor_on_removal(order_ids: Sequence[str], removed_id: str) -> str | None:
    """Pick who becomes active when the active participant leaves combat.

    The next participant in order takes over. If the removed participant was
    last, the first participant takes over; callers must not count that as a
    new round.

    Returns:
        Id of the new active participant, or None if nobody is left
    """
    remaining = [pid for pid in order_ids if pid != removed_id]
    if not remaining:
        return None
    if removed_id not in order_ids:
        return remaining[0]

    index = order_ids.index(removed_id)
    # ids after the removed one keep their position in ``remaining`` shifted by one
    if index < len(remaining):
        return remaining[index]
    return remaining[0]


def next_turn(session: CombatSession) -> TurnAdvanceResult:
    """Advance the session to the next participant's turn.

    Increments the round exactly once when the last participant in order
    hands over to the first.

    Args:
        session: The running session (mutated in place)

    Returns:
        TurnAdvanceResult describing the new active participant
    """
    order = turn_order_ids(session)
    next_id, wrapped = next_in_order(order, session.active_participant_id)

    if wrapped:
        session.round += 1
    session.turn += 1
    session.active_participant_id = next_id

    combatant = session.participants[next_id]
    if wrapped:
        announcement = f"=== ROUND {session.round} ===\n\n{combatant.name}'s turn!"
    else:
        announcement = f"{combatant.name}'s turn!"

    logger.info(f"Round {session.round}, turn {session.turn}: {combatant.name} ({next_id}) is up")

    return TurnAdvanceResult(
        combatant_id=next_id,
        combatant_name=combatant.name,
        round_number=session.round,
        is_new_round=wrapped,
        announcement=announcement,
    )
