"""Signup Portal: reactive bindings for a sign-up form."""

__version__ = "0.1.0"
