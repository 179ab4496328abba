"""Exception hierarchy for the combat engine.

Every error raised by the engine inherits from CombatEngineError, so callers
can catch one type at the boundary while still seeing which rule rejected
the operation. Errors are raised before any state is touched, so a caught
error always means the combat session is unchanged.

Example:
    >>> raise NotFoundError("No such participant", participant_id="goblin_1")
"""

from __future__ import annotations

from typing import Any


class CombatEngineError(Exception):
    """Base exception for all combat engine errors.

    Attributes:
        message: Human-readable error description.
        details: Additional error context (ids, amounts, states).
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


class NotFoundError(CombatEngineError):
    """Raised when a participant id is not part of the current session."""

    def __init__(
        self,
        message: str,
        *,
        participant_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if participant_id is not None:
            combined_details["participant_id"] = participant_id
        super().__init__(message, details=combined_details)
        self.participant_id = participant_id


class InvalidStateError(CombatEngineError):
    """Raised when an operation is not valid for the current combat state.

    For example, starting combat twice or adding a participant while idle.
    """

    def __init__(
        self,
        message: str,
        *,
        state: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if state is not None:
            combined_details["state"] = state
        if operation is not None:
            combined_details["operation"] = operation
        super().__init__(message, details=combined_details)
        self.state = state
        self.operation = operation


class InvalidAmountError(CombatEngineError, ValueError):
    """Raised when a damage or healing amount is not a positive integer."""

    def __init__(
        self,
        message: str,
        *,
        amount: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        combined_details["amount"] = amount
        super().__init__(message, details=combined_details)
        self.amount = amount


class InvalidTargetError(CombatEngineError):
    """Raised when an attack is resolved against a target without an AC."""

    def __init__(
        self,
        message: str,
        *,
        target_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if target_id is not None:
            combined_details["target_id"] = target_id
        super().__init__(message, details=combined_details)
        self.target_id = target_id


class DuplicateParticipantError(CombatEngineError):
    """Raised when a participant id is already present in the session."""

    def __init__(
        self,
        message: str,
        *,
        participant_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if participant_id is not None:
            combined_details["participant_id"] = participant_id
        super().__init__(message, details=combined_details)
        self.participant_id = participant_id


class InvalidConditionError(CombatEngineError, ValueError):
    """Raised when a condition label is blank."""
