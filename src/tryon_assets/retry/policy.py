"""
Retry policy with bounded exponential backoff.

Every network call in the package (task submission, status polls, asset
downloads) goes through a RetryPolicy. The policy:

1. Runs the operation (optionally under a per-attempt timeout)
2. Classifies a failure as RETRYABLE or TERMINAL
3. On RETRYABLE with attempts left, waits base * 2^(attempt-1) ms (capped)
   and tries again
4. On TERMINAL, or once max_attempts is used up, re-raises the last error

Each attempt is reported to the telemetry sink. Telemetry is observational
only and never changes what the policy does.

Usage:
    policy = RetryPolicy(max_attempts=3, base_delay_ms=1000, component="asset.fetch")
    payload = await policy.execute(lambda: fetcher.fetch(url))
"""

import asyncio
import inspect
import time
from typing import Any, Awaitable, Callable, TypeVar

import structlog

from tryon_assets.config import Settings
from tryon_assets.exceptions import TransportTimeoutError, error_kind_of
from tryon_assets.models.enums import RetryDecision
from tryon_assets.retry.classification import Classifier, classify_error
from tryon_assets.retry.context import RetryContext
from tryon_assets.telemetry.sinks import TelemetrySink, record_event

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[T] | T]
SleepFunc = Callable[[float], Awaitable[Any]]


class RetryPolicy:
    """
    Bounded retry with exponential backoff for a single call site.

    Attributes:
        max_attempts: Ceiling on invocations per execute() call (>= 1)
        base_delay_ms: Backoff base
        max_delay_ms: Backoff cap
        attempt_timeout: Per-attempt timeout in seconds (None = transport's own)
        component: Name reported to telemetry (e.g. "generation.poll")
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay_ms: float = 1000,
        max_delay_ms: float = 30000,
        attempt_timeout: float | None = None,
        component: str = "retry",
        telemetry: TelemetrySink | None = None,
        classify: Classifier = classify_error,
        sleep: SleepFunc = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize retry policy.

        Args:
            max_attempts: Maximum invocations of the operation (1 = no retry)
            base_delay_ms: Delay before the second attempt
            max_delay_ms: Upper bound for any single delay
            attempt_timeout: Seconds allowed per attempt, None for no extra limit
            component: Telemetry component name
            telemetry: Sink receiving one event per attempt
            classify: Default classifier when execute() is given none
            sleep: Awaitable sleep, injectable so tests need not wait
            clock: Monotonic clock used for elapsed time

        Raises:
            ValueError: If max_attempts < 1 or a delay/timeout is negative
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        if base_delay_ms < 0 or max_delay_ms < 0:
            raise ValueError("backoff delays must be >= 0")
        if attempt_timeout is not None and attempt_timeout <= 0:
            raise ValueError("attempt_timeout must be > 0 when set")

        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.attempt_timeout = attempt_timeout
        self.component = component
        self.telemetry = telemetry
        self.classify = classify
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        component: str,
        max_attempts: int,
        telemetry: TelemetrySink | None = None,
        **kwargs: Any,
    ) -> "RetryPolicy":
        """Build a policy using the shared backoff settings and a call-site ceiling."""
        return cls(
            max_attempts=max_attempts,
            base_delay_ms=settings.RETRY_BASE_DELAY_MS,
            max_delay_ms=settings.RETRY_MAX_DELAY_MS,
            attempt_timeout=settings.RETRY_ATTEMPT_TIMEOUT_SECONDS,
            component=component,
            telemetry=telemetry,
            **kwargs,
        )

    def new_context(self) -> RetryContext:
        return RetryContext(
            max_attempts=self.max_attempts,
            base_delay_ms=self.base_delay_ms,
            max_delay_ms=self.max_delay_ms,
            started_at=self._clock(),
        )

    def compute_delay_ms(self, attempt: int) -> float:
        """Delay waited after `attempt` fails (1-based)."""
        if attempt < 1:
            raise ValueError("attempt is 1-based")
        return min(self.base_delay_ms * (2 ** (attempt - 1)), self.max_delay_ms)

    async def execute(
        self,
        operation: Operation,
        classify: Classifier | None = None,
        context: RetryContext | None = None,
        **telemetry_fields: Any,
    ) -> T:
        """
        Run `operation` until it succeeds, fails terminally, or attempts run out.

        Args:
            operation: Zero-argument callable returning a value or awaitable;
                may be called up to max_attempts times
            classify: Classifier for this call (defaults to the policy's)
            context: Pre-built RetryContext to override the attempt ceiling
            **telemetry_fields: Extra TelemetryEvent fields (reference, task_id)

        Returns:
            The operation's result

        Raises:
            Exception: The last error, unchanged, on terminal classification
                or exhaustion
        """
        ctx = context or self.new_context()
        classify = classify or self.classify

        while True:
            try:
                result = await self._run_attempt(operation)
            except Exception as e:
                kind = error_kind_of(e)
                elapsed_ms = ctx.elapsed_ms(self._clock())
                decision = self._safe_classify(classify, e)

                if decision == RetryDecision.RETRYABLE and ctx.has_remaining:
                    delay_ms = ctx.delay_ms()
                    self._emit("retry", ctx.attempt, kind, elapsed_ms, telemetry_fields)
                    logger.info(
                        "Retryable failure, backing off",
                        component=self.component,
                        attempt=ctx.attempt,
                        max_attempts=ctx.max_attempts,
                        delay_ms=delay_ms,
                        error_kind=kind.value,
                        error=str(e),
                    )
                    await self._sleep(delay_ms / 1000.0)
                    ctx.attempt += 1
                    continue

                self._emit("failure", ctx.attempt, kind, elapsed_ms, telemetry_fields)
                logger.warning(
                    "Operation failed" if decision == RetryDecision.TERMINAL else "Retries exhausted",
                    component=self.component,
                    attempt=ctx.attempt,
                    max_attempts=ctx.max_attempts,
                    decision=decision.value,
                    error_kind=kind.value,
                    error=str(e),
                )
                raise

            self._emit("success", ctx.attempt, None, ctx.elapsed_ms(self._clock()), telemetry_fields)
            if ctx.attempt > 1:
                logger.info(
                    "Operation succeeded after retry",
                    component=self.component,
                    attempt=ctx.attempt,
                )
            return result

    async def _run_attempt(self, operation: Operation) -> Any:
        if self.attempt_timeout is None:
            result = operation()
            if inspect.isawaitable(result):
                result = await result
            return result

        result = operation()
        if not inspect.isawaitable(result):
            return result
        try:
            return await asyncio.wait_for(result, timeout=self.attempt_timeout)
        except asyncio.TimeoutError as e:
            raise TransportTimeoutError(
                f"Attempt exceeded {self.attempt_timeout}s",
                details={"timeout": self.attempt_timeout, "component": self.component},
            ) from e

    def _safe_classify(self, classify: Classifier, error: Exception) -> RetryDecision:
        try:
            return classify(error)
        except Exception:
            logger.exception("Classifier raised, treating error as terminal", component=self.component)
            return RetryDecision.TERMINAL

    def _emit(
        self,
        outcome: str,
        attempt: int,
        kind: Any,
        elapsed_ms: float,
        extra: dict[str, Any],
    ) -> None:
        record_event(
            self.telemetry,
            **{
                **extra,
                "component": self.component,
                "outcome": outcome,
                "attempt": attempt,
                "error_kind": kind,
                "duration_ms": elapsed_ms,
            },
        )
