"""Retry policy and error translation for Firestore calls.

Transient transport errors are retried with exponential backoff through
``google.api_core.retry.Retry``. Whatever still fails is translated into the
tooling's own exception hierarchy so callers can tell a permissions problem
(fix credentials, do not retry) from an outage (try again later).
"""

import logging
from typing import Any, Callable, TypeVar

from google.api_core import exceptions as gcloud_exceptions
from google.api_core import retry as gcloud_retry

from interview_admin.exceptions import StorageError, StoreAccessError, TransientStorageError
from interview_admin.settings import RetrySettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_STORE_ERRORS = (
    gcloud_exceptions.ServiceUnavailable,
    gcloud_exceptions.DeadlineExceeded,
    gcloud_exceptions.Aborted,
    gcloud_exceptions.InternalServerError,
    gcloud_exceptions.TooManyRequests,
)

ACCESS_ERRORS = (
    gcloud_exceptions.PermissionDenied,
    gcloud_exceptions.Unauthenticated,
    gcloud_exceptions.Forbidden,
)


def _log_retry(exc: Exception) -> None:
    logger.warning("Transient Firestore error, retrying: %s", exc)


def build_store_retry(settings: RetrySettings) -> gcloud_retry.Retry:
    """Build the backoff policy used for every store call."""
    return gcloud_retry.Retry(
        predicate=gcloud_retry.if_exception_type(*TRANSIENT_STORE_ERRORS),
        initial=settings.initial,
        maximum=settings.maximum,
        multiplier=settings.multiplier,
        timeout=settings.deadline,
        on_error=_log_retry,
    )


def translate_store_error(exc: Exception, operation: str) -> StorageError:
    """
    Map a Google API exception to a StorageError subclass.

    Args:
        exc: Exception raised by the Firestore client
        operation: Human-readable description of what was attempted

    Returns:
        StoreAccessError for auth failures, TransientStorageError for
        exhausted retries or transient errors, StorageError otherwise.
    """
    if isinstance(exc, ACCESS_ERRORS):
        return StoreAccessError(
            f"Permission denied while trying to {operation}: {exc}", operation=operation
        )
    if isinstance(exc, gcloud_exceptions.RetryError):
        return TransientStorageError(
            f"Gave up retrying {operation}: {exc.cause or exc}", operation=operation
        )
    if isinstance(exc, TRANSIENT_STORE_ERRORS):
        return TransientStorageError(
            f"Firestore temporarily unavailable while trying to {operation}: {exc}",
            operation=operation,
        )
    return StorageError(f"Failed to {operation}: {exc}", operation=operation)


def call_with_retry(
    retry: gcloud_retry.Retry,
    operation: str,
    func: Callable[..., T],
    *args: Any,
    **kwargs: Any,
) -> T:
    """
    Run ``func`` under the retry policy, translating Google API errors.

    Errors that are not Google API errors (including the tooling's own
    exceptions raised from inside a transaction) propagate unchanged.
    """
    try:
        return retry(func)(*args, **kwargs)
    except (gcloud_exceptions.GoogleAPICallError, gcloud_exceptions.RetryError) as e:
        raise translate_store_error(e, operation) from e
