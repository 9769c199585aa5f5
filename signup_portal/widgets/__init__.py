"""Widgets for Signup Portal."""

from signup_portal.widgets.submit_button import SubmitButton

__all__ = ["SubmitButton"]
