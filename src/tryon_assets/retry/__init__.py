"""
Retry policy shared by every network call.

Main Components:
    - RetryPolicy: bounded exponential backoff around one operation
    - RetryContext: per-operation attempt counter and backoff parameters
    - classify_error: default RETRYABLE/TERMINAL classifier

Usage:
    >>> from tryon_assets.retry import RetryPolicy
    >>> policy = RetryPolicy(max_attempts=3, base_delay_ms=500, component="asset.fetch")
    >>> payload = await policy.execute(lambda: fetcher.fetch(url))
"""

from tryon_assets.retry.classification import (
    Classifier,
    classify_error,
    never_retry,
    retry_on,
)
from tryon_assets.retry.context import RetryContext
from tryon_assets.retry.policy import RetryPolicy

__all__ = [
    "Classifier",
    "RetryContext",
    "RetryPolicy",
    "classify_error",
    "never_retry",
    "retry_on",
]
