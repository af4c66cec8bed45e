"""Exception taxonomy shared by the orchestration layers.

Failure classes:
    - `InputValidationError`: rejected before any provider call, never retried.
    - `ConfigurationError`: missing credential or unusable setting, fatal for the call.
    - `ProviderError`: outbound call failure carrying a retryability flag that the
      general-purpose fallback chain inspects.

Interaction surface:
    Raised across the package and mapped to HTTP statuses by
    `sahayak.api.http_api`.
"""


class SahayakError(Exception):
    """Base class for all errors raised by the orchestration core."""


class InputValidationError(SahayakError):
    """User input failed preprocessing, validation, or pattern screening."""

    def __init__(self, reason: str, details: list[str] | None = None):
        super().__init__(reason)
        self.reason = reason
        self.details = list(details or [])


class ConfigurationError(SahayakError):
    """A required credential or setting is missing."""


class ProviderError(SahayakError):
    """An outbound provider call failed.

    Attributes:
        provider: Provider identifier (`dhenu` or `gemini`).
        status_code: HTTP status when the provider answered, else `None`.
        retryable: Whether the fallback chain may try the next model.
        model: Model identifier for general-purpose calls.
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
        retryable: bool = False,
        model: str | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.retryable = retryable
        self.model = model
