# ==============================================
# Errors
# ==============================================
#
# PURPOSE:
#   The error kinds the pipeline distinguishes. Storage and
#   notification backends translate their driver exceptions into
#   TransientIOError so the retry envelope can treat them uniformly.
#   ExhaustedRetriesError is the only error the request boundary
#   ever sees from the pipeline.
#
# ==============================================

from typing import Optional


class FormIntakeError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(FormIntakeError, ValueError):
    """Raised when configuration values are missing or out of range."""


class TransientIOError(FormIntakeError):
    """A storage or notification call failed and may succeed if repeated."""


class ValidationError(FormIntakeError):
    """
    A request could not be interpreted as a submission at all.

    The core never raises this for odd submission shapes; those are
    flattened as-is. Only the transport uses it, for bodies that are
    not key/value mappings.
    """


class ExhaustedRetriesError(FormIntakeError):
    """Every attempt of a retried operation failed."""

    def __init__(self, message: str, attempts: int, last_error: Optional[BaseException] = None):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error
