"""Exception types shared across the fan-out runner and provider senders"""

from typing import Any, Optional


class InvalidInput(ValueError):
    """Raised when a run request is malformed. Nothing is sent when this is raised."""


class RequestFailure(Exception):
    """A single target's request failed. Captured into that target's result."""


class RequestTimeout(RequestFailure):
    """A single target's request did not settle within the per-request timeout"""

    def __str__(self) -> str:
        return "timeout"


class ProviderError(RequestFailure):
    """Provider returned a non-success status, a malformed body, or is not configured"""

    def __init__(self, message: str, provider_id: str, status: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.provider_id = provider_id
        self.status = status
        self.details = details
