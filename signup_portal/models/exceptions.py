"""Exception hierarchy for Signup Portal.

Construction-time mistakes (wrong reducer arity, unsupported lifted
operation) raise synchronously. Failures while values flow are delivered
as error events instead.
"""


class SignupError(Exception):
    """Base exception for all Signup Portal errors.

    All domain-specific exceptions inherit from this base class,
    enabling consistent error handling across the application.
    """

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message} ({self.suggestion})"
        return self.message


class ReactiveError(SignupError):
    """Reactive engine misuse or failure."""

    pass


class ArityMismatchError(ReactiveError):
    """Reducer parameter count differs from the number of input signals."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Reducer must take {expected} arguments to match the number of signals, "
            f"but it takes {actual}",
        )
        self.expected = expected
        self.actual = actual


class CapabilityError(ReactiveError):
    """Lifted-call target does not support the requested operation."""

    def __init__(self, target: object, key_path: str, operation: str) -> None:
        super().__init__(
            f"{target!r} (via key path '{key_path}') does not respond to `{operation}`",
        )
        self.target = target
        self.key_path = key_path
        self.operation = operation


class UpstreamFailure(ReactiveError):
    """A combinator's function raised while processing a value.

    The original exception is available as ``__cause__``.
    """

    pass


class KeyPathError(ReactiveError):
    """Key path could not be resolved or the agent was misused."""

    pass


class ConfigError(SignupError):
    """Configuration is invalid or unreadable."""

    pass
