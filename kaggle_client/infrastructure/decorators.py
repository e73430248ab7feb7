"""
Infrastructure-specific decorators, providing cross-cutting concerns like
retry logic for network operations.
"""

import logging

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from ..application.exceptions import RateLimitError, TransportError

logger = logging.getLogger(__name__)

# --- Defaults for Retry Logic ---
# A single attempt unless settings.toml asks for more.
DEFAULT_RETRY_ATTEMPTS = 1
DEFAULT_RETRY_MIN_WAIT_SECONDS = 1
DEFAULT_RETRY_MAX_WAIT_SECONDS = 10

RETRYABLE_ERRORS = (TransportError, RateLimitError)


def _log_before_retry(retry_state):
    """Log the retry attempt with details about the exception and wait time."""
    exception = retry_state.outcome.exception()
    next_attempt_in = retry_state.next_action.sleep
    logger.warning(
        f"Retrying {retry_state.fn.__name__} in {next_attempt_in:.2f}s due to "
        f"{type(exception).__name__} (attempt {retry_state.attempt_number})..."
    )


def retry_on_network_error(
    attempts: int = DEFAULT_RETRY_ATTEMPTS,
    min_wait: float = DEFAULT_RETRY_MIN_WAIT_SECONDS,
    max_wait: float = DEFAULT_RETRY_MAX_WAIT_SECONDS,
):
    """
    Builds a retry decorator for async network operations.

    Only transport failures and rate limiting are retried. The last error is
    re-raised as-is once the attempts are exhausted.
    """
    return retry(
        stop=stop_after_attempt(max(1, int(attempts))),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        before_sleep=_log_before_retry,
        reraise=True,
    )
