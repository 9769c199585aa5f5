"""Input validation for the sign-up form.

Business rules live here, separated from the screen for testability:
every field must be filled in and the two email entries must match.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .reactive import Signal

MAX_NAME_LENGTH = 64


@dataclass
class ValidationResult:
    """Result of a validation check.

    Supports errors (blocking) and warnings (advisory).
    """

    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def first_error(self) -> str | None:
        """Get the first error message, if any."""
        return self.errors[0] if self.errors else None

    @property
    def first_issue(self) -> str | None:
        """Get the first issue (error or warning)."""
        if self.errors:
            return self.errors[0]
        return self.warnings[0] if self.warnings else None


class SignupValidator:
    """Validates sign-up form inputs."""

    def validate_form(
        self,
        first_name: str,
        last_name: str,
        email: str,
        re_email: str,
    ) -> ValidationResult:
        """Validate all four fields together.

        Returns:
            ValidationResult with errors/warnings
        """
        errors: list[str] = []
        warnings: list[str] = []

        for label, value in (
            ("first name", first_name),
            ("last name", last_name),
            ("email", email),
            ("repeated email", re_email),
        ):
            if not value:
                errors.append(f"{label} cannot be empty")
            elif len(value) > MAX_NAME_LENGTH:
                errors.append(f"{label} too long (max {MAX_NAME_LENGTH} chars)")

        if email and re_email and email != re_email:
            errors.append("emails do not match")

        # Advisory only; any address is accepted
        if email and "@" not in email:
            warnings.append("email has no '@'")

        return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

    def is_valid(self, first_name: str, last_name: str, email: str, re_email: str) -> bool:
        """Four-argument reducer for ``Signal.reduce_latest``."""
        return self.validate_form(first_name, last_name, email, re_email).is_valid


def form_valid_signal(
    first_name: Signal[str],
    last_name: Signal[str],
    email: Signal[str],
    re_email: Signal[str],
    validator: SignupValidator | None = None,
) -> Signal[bool]:
    """Derive form validity from the four text signals."""
    validator = validator or SignupValidator()
    return Signal.reduce_latest(first_name, last_name, email, re_email, reduce=validator.is_valid)


def form_issue_signal(
    first_name: Signal[str],
    last_name: Signal[str],
    email: Signal[str],
    re_email: Signal[str],
    validator: SignupValidator | None = None,
) -> Signal[str]:
    """First validation issue for the form, or an empty string."""
    validator = validator or SignupValidator()

    def first_issue(*values: str) -> str:
        return validator.validate_form(*values).first_issue or ""

    return Signal.reduce_latest(first_name, last_name, email, re_email, reduce=first_issue)
