import logging
import time

from services.errors import RetriesExhaustedError, TransientStorageConflictError

logger = logging.getLogger(__name__)


def is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, TransientStorageConflictError)


def run_with_retries(
    operation,
    failure_message: str,
    max_attempts: int = 3,
    backoff_seconds: float = 0.1,
    is_transient=is_retryable,
    sleep=time.sleep,
):
    """
    Run operation() up to max_attempts times.

    Only errors for which is_transient(exc) is true are retried, with a linear
    backoff of backoff_seconds * attempt. Anything else propagates untouched.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except Exception as exc:
            if not is_transient(exc):
                raise
            if attempt == max_attempts:
                logger.error("%s: giving up after %d attempts (%s)", failure_message, attempt, exc)
                raise RetriesExhaustedError(failure_message) from exc

            delay = backoff_seconds * attempt
            logger.warning("Transient storage conflict (attempt %d/%d), retrying in %.2fs", attempt, max_attempts, delay)
            sleep(delay)
