"""
Per-operation retry state.

A RetryContext lives only as long as the RetryPolicy.execute call that owns
it and is never persisted.
"""

from dataclasses import dataclass, field
import time


@dataclass
class RetryContext:
    """
    Attempt counter and backoff parameters for one guarded operation.

    Attributes:
        max_attempts: Ceiling on operation invocations (>= 1, 1 = no retry)
        base_delay_ms: Delay before the second attempt
        max_delay_ms: Cap applied to every computed delay
        attempt: 1-based number of the attempt currently running
        started_at: time.monotonic() at creation, for elapsed-time reporting
    """

    max_attempts: int
    base_delay_ms: float
    max_delay_ms: float
    attempt: int = 1
    started_at: float = field(default_factory=time.monotonic)

    def __post_init__(self) -> None:
        """Validate context invariants."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        if self.attempt < 1:
            raise ValueError("attempt is 1-based and must be >= 1")

        if self.base_delay_ms < 0 or self.max_delay_ms < 0:
            raise ValueError("delays must be >= 0")

    @property
    def has_remaining(self) -> bool:
        return self.attempt < self.max_attempts

    def delay_ms(self, attempt: int | None = None) -> float:
        """
        Delay to wait after `attempt` fails, before the next one starts.

        base_delay_ms * 2^(attempt-1), capped at max_delay_ms. Non-decreasing
        in `attempt`.
        """
        attempt = self.attempt if attempt is None else attempt
        return min(self.base_delay_ms * (2 ** (attempt - 1)), self.max_delay_ms)

    def elapsed_ms(self, now: float | None = None) -> float:
        now = time.monotonic() if now is None else now
        return max(0.0, (now - self.started_at) * 1000)
