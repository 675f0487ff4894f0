"""Custom exceptions for the interview admin tooling.

This module defines domain-specific exceptions that provide clearer error
handling and better context than generic Python exceptions.
"""

from typing import Optional


class InterviewAdminError(Exception):
    """Base exception for all interview admin errors.

    All custom exceptions in this module inherit from this base class,
    making it easy to catch all tooling-specific errors at the CLI boundary.
    """

    pass


class ConfigurationError(InterviewAdminError):
    """Raised when there's an error in configuration.

    Examples:
    - Missing service account credentials
    - Unreadable YAML overlay file
    - Invalid numeric setting
    """

    pass


class InitializationError(InterviewAdminError):
    """Raised when a component fails to initialize properly.

    Examples:
    - Firebase Admin SDK failed to initialize
    - Firestore client could not be created
    """

    pass


class StorageError(InterviewAdminError):
    """Raised when document store operations fail.

    Examples:
    - Failed to read a collection
    - Failed to commit a transaction
    - Unexpected API error from Firestore
    """

    def __init__(self, message: str, operation: Optional[str] = None):
        self.operation = operation
        super().__init__(message)


class TransientStorageError(StorageError):
    """Raised when a retryable store error persisted past the retry deadline.

    Examples:
    - Firestore unavailable
    - Deadline exceeded on a long query
    - Transaction aborted under contention too many times
    """

    pass


class StoreAccessError(StorageError):
    """Raised when the store rejects the caller's credentials or permissions.

    These are never retried: the credentials or IAM bindings must be fixed.
    """

    pass


class DepartmentMergeError(InterviewAdminError):
    """Raised when a duplicate department cannot be merged safely.

    The merge stops at the offending record. Because every step is an
    atomic transaction, fixing the data and re-running converges.

    Attributes:
        institution_id: Institution being merged
        department_id: Duplicate department being drained
        child_id: Teacher/student record involved, if any
    """

    def __init__(
        self,
        message: str,
        institution_id: str,
        department_id: str,
        child_id: Optional[str] = None,
    ):
        self.institution_id = institution_id
        self.department_id = department_id
        self.child_id = child_id
        super().__init__(message)


class AIProviderError(InterviewAdminError):
    """Raised when AI provider operations fail.

    Examples:
    - API key not configured
    - API request failed
    - Model not available
    """

    pass


class TransientError(AIProviderError):
    """Raised when an AI request failed for a temporary reason (timeout, connection)."""

    def __init__(self, message: str, provider: str = "unknown"):
        self.provider = provider
        super().__init__(message)


class QuotaExhaustedError(AIProviderError):
    """Raised when an AI provider's quota or rate limit is exhausted.

    Attributes:
        provider: The AI provider that hit the quota limit
        reset_info: Optional info about when quota resets
    """

    def __init__(self, message: str, provider: str = "unknown", reset_info: Optional[str] = None):
        self.provider = provider
        self.reset_info = reset_info
        super().__init__(message)


class NoAgentsAvailableError(AIProviderError):
    """Raised when every upstream model behind the proxy is unavailable.

    Attributes:
        task_type: The task type that had no available model
        tried_agents: Model names that were attempted
    """

    def __init__(self, message: str, task_type: str = "unknown", tried_agents: Optional[list] = None):
        self.task_type = task_type
        self.tried_agents = tried_agents or []
        super().__init__(message)
