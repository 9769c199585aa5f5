"""Data models for Signup Portal."""

from .exceptions import (
    SignupError,
    ReactiveError,
    ArityMismatchError,
    CapabilityError,
    UpstreamFailure,
    KeyPathError,
    ConfigError,
)

__all__ = [
    "SignupError",
    "ReactiveError",
    "ArityMismatchError",
    "CapabilityError",
    "UpstreamFailure",
    "KeyPathError",
    "ConfigError",
]
