"""
Error taxonomy for the Azure NetApp Files replication sample.

Observation failures are expected while polling and are absorbed by the poller;
only a terminal WaitTimeoutError leaves it. Mutation failures come straight from
the create/delete calls and are never polled.
"""

from typing import Any, Optional

from azure.core.exceptions import ResourceNotFoundError


class AnfSampleError(Exception):
    """Base class for every error raised by the sample."""


class ConfigurationError(AnfSampleError):
    """Raised when settings are missing or invalid."""


class PreflightError(AnfSampleError):
    """Raised when a prerequisite resource (e.g. the delegated subnet) is missing."""


class OperationCancelledError(AnfSampleError):
    """Raised when the caller's cancellation event is set while waiting."""


class ObservationError(AnfSampleError):
    """A single failed observation of a remote resource."""

    def __init__(self, resource_id: str, cause: Exception):
        self.resource_id = resource_id
        self.cause = cause
        super().__init__(f"Observation of {resource_id} failed: {cause}")


class WaitTimeoutError(AnfSampleError, TimeoutError):
    """
    Raised when a poll exhausts its attempts without reaching the target state.

    Attributes:
        resource_id: The polled resource
        attempts: Number of observations performed
        last_state: Last state observed (None if never observed)
        last_error: Last observation error (None if the last attempt succeeded)
    """

    def __init__(
        self,
        message: str,
        resource_id: str,
        attempts: int,
        last_state: Any = None,
        last_error: Optional[Exception] = None,
    ):
        self.resource_id = resource_id
        self.attempts = attempts
        self.last_state = last_state
        self.last_error = last_error
        super().__init__(message)


class MutationError(AnfSampleError):
    """Raised when a create, update or delete call fails."""

    REPLICATION_MISSING_CODE = "VolumeReplicationMissing"

    def __init__(self, operation: str, resource_name: str, cause: Exception):
        self.operation = operation
        self.resource_name = resource_name
        self.cause = cause
        super().__init__(f"cannot {operation} {resource_name}: {cause}")

    @property
    def is_replication_missing(self) -> bool:
        if isinstance(self.cause, ResourceNotFoundError):
            return True
        error = getattr(self.cause, "error", None)
        code = getattr(error, "code", None)
        if code == self.REPLICATION_MISSING_CODE:
            return True
        return self.REPLICATION_MISSING_CODE in str(self.cause)
