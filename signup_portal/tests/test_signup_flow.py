"""Tests for the status label signals of the sign-up form."""

from signup_portal.screens.signup import (
    status_color,
    status_text,
    status_visible,
    submission_count,
)
from signup_portal.services.config import SignupConfig
from signup_portal.services.reactive import Command, Subject, ValueSignal
from signup_portal.styles.base import FAILURE_COLOR, SUCCESS_COLOR


class TestStatusVisibility:
    """Tests for submission counting and status visibility."""

    def test_hidden_before_any_submission(self):
        """Nothing pressed means the status stays hidden."""
        visible = []
        status_visible(Subject(), ValueSignal.of(False)).subscribe_next(visible.append)
        assert visible == [False]

    def test_shown_once_execution_stops(self):
        """A press followed by executing True then False reveals the status."""
        presses, executing = Subject(), ValueSignal.of(False)
        visible = []
        status_visible(presses, executing).subscribe_next(visible.append)

        executing.set(True)
        presses.send_next("press")
        assert visible == [False]

        executing.set(False)
        assert visible == [False, True]

    def test_counts_each_finished_submission(self):
        """Every press that ends in an idle command counts once."""
        presses, executing = Subject(), ValueSignal.of(False)
        counts = []
        submission_count(presses, executing).subscribe_next(counts.append)

        for _ in range(2):
            executing.set(True)
            presses.send_next("press")
            executing.set(False)

        assert counts == [1, 2]

    def test_executing_changes_without_press_are_ignored(self):
        """Executing toggling on its own does not count as a submission."""
        presses, executing = Subject(), ValueSignal.of(False)
        counts = []
        submission_count(presses, executing).subscribe_next(counts.append)

        executing.set(True)
        executing.set(False)

        assert counts == []

    def test_follows_command_execution(self):
        """Driven by a real command, the status shows after the action completes."""
        command = Command()
        pending = Subject()
        command.add_action(lambda sender: pending)
        presses = Subject()
        presses.subscribe_next(command.execute)
        visible = []
        status_visible(presses, command.executing_signal).subscribe_next(visible.append)

        presses.send_next("create")
        assert command.executing is True
        assert visible == [False]

        pending.send_completed()
        assert command.executing is False
        assert visible == [False, True]


class TestStatusAppearance:
    """Tests for status text and color."""

    def test_text_follows_results(self):
        """Success and failure pick the configured messages."""
        config = SignupConfig(success_message="yay", failure_message="nope")
        results = Subject()
        texts = []
        status_text(results, config).subscribe_next(texts.append)

        results.send_next(True)
        results.send_next(False)

        assert texts == ["yay", "nope"]

    def test_color_follows_results(self):
        """Success is drawn in the success color, failure in the failure color."""
        results = Subject()
        colors = []
        status_color(results).subscribe_next(colors.append)

        results.send_next(False)
        results.send_next(True)

        assert colors == [FAILURE_COLOR, SUCCESS_COLOR]
