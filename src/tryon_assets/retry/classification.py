"""
Error classification for the retry policy.

A classifier maps an exception to RETRYABLE or TERMINAL. The default treats
transport failures (connection refused/reset, timeouts, 5xx) as retryable and
everything else, authorization and capability errors included, as terminal.
"""

from typing import Callable

from tryon_assets.exceptions import AssetLayerError, error_kind_of
from tryon_assets.models.enums import ErrorKind, RetryDecision

Classifier = Callable[[BaseException], RetryDecision]


def classify_error(error: BaseException) -> RetryDecision:
    """Default classifier."""
    if isinstance(error, AssetLayerError):
        return RetryDecision.RETRYABLE if error.retryable else RetryDecision.TERMINAL

    if error_kind_of(error) == ErrorKind.TRANSPORT:
        return RetryDecision.RETRYABLE

    return RetryDecision.TERMINAL


def retry_on(*error_types: type[BaseException]) -> Classifier:
    """Classifier that retries only the given exception types."""

    def _classify(error: BaseException) -> RetryDecision:
        if isinstance(error, error_types):
            return RetryDecision.RETRYABLE
        return RetryDecision.TERMINAL

    return _classify


def never_retry(error: BaseException) -> RetryDecision:
    """Classifier for call sites that must not repeat a request."""
    return RetryDecision.TERMINAL
