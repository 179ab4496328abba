"""Tests for the exception hierarchy."""

import pytest

from combat_engine.errors import (
    CombatEngineError,
    DuplicateParticipantError,
    InvalidAmountError,
    InvalidConditionError,
    InvalidStateError,
    InvalidTargetError,
    NotFoundError,
)


class TestCombatEngineError:
    """Tests for the base error."""

    def test_message_only(self):
        """Without details the message is used as is."""
        error = CombatEngineError("Something broke")
        assert str(error) == "Something broke"
        assert error.details == {}

    def test_details_in_message(self):
        """Details are appended to the string form."""
        error = CombatEngineError("Something broke", details={"round": 3})
        assert str(error) == "Something broke [round=3]"

    def test_repr(self):
        """repr shows class, message and details."""
        error = CombatEngineError("x", details={"a": 1})
        assert repr(error) == "CombatEngineError(message='x', details={'a': 1})"


class TestSubclasses:
    """Tests for the specific errors."""

    @pytest.mark.parametrize(
        "error_cls",
        [
            NotFoundError,
            InvalidStateError,
            InvalidAmountError,
            InvalidTargetError,
            DuplicateParticipantError,
            InvalidConditionError,
        ],
    )
    def test_all_inherit_from_base(self, error_cls):
        """Every engine error can be caught as CombatEngineError."""
        assert issubclass(error_cls, CombatEngineError)

    def test_not_found_details(self):
        """Participant ids end up in details."""
        error = NotFoundError("missing", participant_id="goblin_1")
        assert error.participant_id == "goblin_1"
        assert error.details == {"participant_id": "goblin_1"}

    def test_invalid_state_details(self):
        """State and operation end up in details."""
        error = InvalidStateError("nope", state="idle", operation="next_turn")
        assert error.details == {"state": "idle", "operation": "next_turn"}

    def test_amount_errors_are_value_errors(self):
        """Amount and condition errors double as ValueError."""
        assert isinstance(InvalidAmountError("bad", amount=-1), ValueError)
        assert isinstance(InvalidConditionError("blank"), ValueError)

    def test_amount_kept(self):
        """The rejected amount is recorded."""
        error = InvalidAmountError("bad", amount=2.5)
        assert error.amount == 2.5
        assert "amount=2.5" in str(error)

    def test_target_and_duplicate_details(self):
        """Ids are recorded on target and duplicate errors."""
        assert InvalidTargetError("no ac", target_id="b").target_id == "b"
        assert DuplicateParticipantError("dupe", participant_id="a").details == {"participant_id": "a"}
