"""Styles for Signup Portal."""

from signup_portal.styles.base import BASE_CSS

__all__ = ["BASE_CSS"]
