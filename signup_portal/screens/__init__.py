"""Screens for Signup Portal."""

from signup_portal.screens.signup import SignupScreen

__all__ = ["SignupScreen"]
