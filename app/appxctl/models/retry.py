"""Retry state for the install reconciliation loop."""

from dataclasses import dataclass, replace

DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_SETTLE_DELAY_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class RetryState:
    """Bounded retry counter for install reconciliation.

    Immutable: each iteration receives its own value and advance() returns
    an incremented copy.

    Attributes:
        attempt: Current attempt number, 1-based.
        max_attempts: Upper bound on attempts.
        settle_delay_seconds: Wait before trusting a post-install query.
    """

    attempt: int = 1
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    settle_delay_seconds: float = DEFAULT_SETTLE_DELAY_SECONDS

    def __post_init__(self) -> None:
        """Validate retry bounds after initialization."""
        if self.max_attempts < 1:
            msg = f"max_attempts must be at least 1, got {self.max_attempts}"
            raise ValueError(msg)
        if not 1 <= self.attempt <= self.max_attempts:
            msg = f"attempt must be between 1 and {self.max_attempts}, got {self.attempt}"
            raise ValueError(msg)
        if self.settle_delay_seconds < 0:
            msg = f"settle_delay_seconds cannot be negative, got {self.settle_delay_seconds}"
            raise ValueError(msg)

    @property
    def is_first(self) -> bool:
        """Check if this is the first attempt."""
        return self.attempt == 1

    @property
    def exhausted(self) -> bool:
        """Check if no further attempt is allowed after this one."""
        return self.attempt >= self.max_attempts

    def advance(self) -> "RetryState":
        """Return the state for the next attempt.

        Raises:
            ValueError: If the attempt limit is exhausted.
        """
        if self.exhausted:
            msg = f"Attempt limit of {self.max_attempts} exhausted"
            raise ValueError(msg)
        return replace(self, attempt=self.attempt + 1)
