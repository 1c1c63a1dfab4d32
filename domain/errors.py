from __future__ import annotations


class StoreError(Exception):
    """Raised by repositories when the backing store cannot be read or written."""


class DuplicateRecordError(StoreError):
    """An insert collided with an existing row (unique or primary key)."""


class IdentityLookupError(Exception):
    """The identity platform could not resolve a display name."""


class AgentRuntimeError(Exception):
    """The external agent runtime failed to produce an answer."""


class DiscordApiError(Exception):
    """A call to the Discord REST API failed."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.retry_after = retry_after

    @property
    def retryable(self) -> bool:
        # Network errors have no status; 429 and 5xx are transient.
        return self.status is None or self.status == 429 or self.status >= 500
