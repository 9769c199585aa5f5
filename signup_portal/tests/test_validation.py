"""Tests for sign-up form validation."""

from unittest.mock import MagicMock

import pytest

from signup_portal.models.exceptions import ArityMismatchError
from signup_portal.services.reactive import Command, Signal, Subject
from signup_portal.services.validation import (
    MAX_NAME_LENGTH,
    SignupValidator,
    form_issue_signal,
    form_valid_signal,
)


@pytest.fixture
def validator() -> SignupValidator:
    return SignupValidator()


@pytest.fixture
def fields():
    """The four text signals of the form."""
    return [Subject() for _ in range(4)]


def send_all(fields, values):
    for field, value in zip(fields, values):
        field.send_next(value)


class TestSignupValidator:
    """Tests for SignupValidator."""

    def test_valid_form(self, validator):
        """Filled fields with matching emails are valid."""
        result = validator.validate_form("Ada", "Lovelace", "ada@example.com", "ada@example.com")
        assert result.is_valid
        assert result.errors == []
        assert result.first_issue is None

    def test_empty_fields(self, validator):
        """Every empty field is reported."""
        result = validator.validate_form("", "", "", "")
        assert not result.is_valid
        assert result.first_error == "first name cannot be empty"
        assert len(result.errors) == 4

    def test_mismatched_emails(self, validator):
        """The two email entries must match."""
        result = validator.validate_form("J", "D", "a@b.com", "a@b.co")
        assert not result.is_valid
        assert result.errors == ["emails do not match"]

    def test_too_long(self, validator):
        """Overlong names are rejected."""
        result = validator.validate_form("x" * (MAX_NAME_LENGTH + 1), "D", "a@b.com", "a@b.com")
        assert not result.is_valid
        assert "too long" in result.first_error

    def test_missing_at_is_only_a_warning(self, validator):
        """Addresses without '@' still pass."""
        result = validator.validate_form("J", "D", "jd", "jd")
        assert result.is_valid
        assert result.first_error is None
        assert result.first_issue == "email has no '@'"

    def test_is_valid_reducer(self, validator):
        """is_valid takes the four field values."""
        assert validator.is_valid("J", "D", "a@b.com", "a@b.com")
        assert not validator.is_valid("J", "", "a@b.com", "a@b.com")


class TestFormSignals:
    """Tests for the derived form signals."""

    def test_validity_end_to_end(self, fields):
        """Validity is false for blank fields and true once filled and matching."""
        seen = []
        form_valid_signal(*fields).subscribe_next(seen.append)

        send_all(fields, ["", "", "", ""])
        send_all(fields, ["J", "D", "a@b.com", "a@b.com"])

        # One evaluation per field update once all four have a value
        assert seen == [False, False, False, False, True]
        assert seen[0] is False
        assert seen[-1] is True

    def test_validity_follows_edits(self, fields):
        """Changing one field re-evaluates with the others' latest values."""
        seen = []
        form_valid_signal(*fields).subscribe_next(seen.append)

        send_all(fields, ["J", "D", "a@b.com", "a@b.com"])
        fields[3].send_next("x@b.com")

        assert seen == [True, False]

    def test_issue_signal(self, fields):
        """The hint shows the first issue, or nothing."""
        seen = []
        form_issue_signal(*fields).subscribe_next(seen.append)

        send_all(fields, ["J", "D", "a@b.com", "a@b.org"])
        fields[3].send_next("a@b.com")

        assert seen == ["emails do not match", ""]

    def test_reducer_arity_is_checked(self, fields):
        """A validity reducer with the wrong arity fails up front."""
        with pytest.raises(ArityMismatchError):
            Signal.reduce_latest(*fields, reduce=lambda first, last, email: True)


class TestSubmitCommand:
    """Tests for the submit command gated by form validity."""

    def test_invalid_form_blocks_submission(self, fields):
        """With an invalid form execute() does nothing."""
        action = MagicMock(return_value=Signal.return_(True))
        command = Command(form_valid_signal(*fields))
        command.add_action(action)
        executing = []
        command.executing_signal.subscribe_next(executing.append)

        send_all(fields, ["", "", "", ""])
        command.execute("press")

        action.assert_not_called()
        assert executing == [False]

    def test_valid_form_submits(self, fields):
        """Once the form is valid the action runs."""
        action = MagicMock(return_value=Signal.return_(True))
        command = Command(form_valid_signal(*fields))
        command.add_action(action)

        send_all(fields, ["J", "D", "a@b.com", "a@b.com"])
        command.execute("press")

        action.assert_called_once_with("press")
