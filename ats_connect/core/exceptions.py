"""
Exception hierarchy for the integration engine.

Record-level errors are contained by the sync orchestrator and the webhook
ingestor; transport and configuration errors become failure summaries.
"""

from typing import Optional


class AtsConnectError(Exception):
    """Base class for all integration engine errors."""


class ConfigurationError(AtsConnectError):
    """A connection, mapping or encryption setting is missing or unusable."""


class TransportError(AtsConnectError):
    """A provider call failed: network error, timeout, non-2xx or undecodable body."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RecordError(AtsConnectError):
    """A single external record could not be mapped or stored."""


class RecordValidationError(RecordError):
    """A mapped record is missing a field it cannot be stored without."""


class OrphanApplicationError(RecordError):
    """An application references a job or candidate not yet mirrored locally."""


class RateLimitedError(AtsConnectError):
    """The connection has used its hourly sync budget."""


class NotFoundError(AtsConnectError):
    """A requested connection or record does not exist."""
