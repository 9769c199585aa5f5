"""Services for Signup Portal."""

from signup_portal.services.config import ConfigManager, SignupConfig
from signup_portal.services.network import NetworkSimulator
from signup_portal.services.validation import (
    SignupValidator,
    ValidationResult,
    form_issue_signal,
    form_valid_signal,
)

__all__ = [
    "ConfigManager",
    "SignupConfig",
    "NetworkSimulator",
    "SignupValidator",
    "ValidationResult",
    "form_valid_signal",
    "form_issue_signal",
]
