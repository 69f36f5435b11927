"""Error taxonomy for the relay."""

from __future__ import annotations


class RelayError(Exception):
    """Base class for every error raised by inbox-relay."""


class TransportError(RelayError):
    """A storage or conversion-service call failed or returned a malformed payload."""

    def __init__(
        self, service: str, operation: str, cause: Exception, retryable: bool = False
    ) -> None:
        self.service = service
        self.operation = operation
        self.retryable = retryable
        super().__init__(f"{service} {operation} failed: {cause}")
        self.__cause__ = cause


class CapabilityNotFoundError(RelayError):
    """The conversion service cannot reach the target format from the source."""

    def __init__(self, source_extension: str, target_extension: str) -> None:
        self.source_extension = source_extension
        self.target_extension = target_extension
        super().__init__(
            f"Target format {target_extension!r} not reachable from {source_extension!r}"
        )


class ConversionFailedError(RelayError):
    """The remote job reached the terminal ``failed`` status."""

    def __init__(self, job_id: int) -> None:
        self.job_id = job_id
        super().__init__(f"Conversion job {job_id} failed")


class PollTimeoutError(RelayError):
    """The remote job did not reach a terminal status within the wait bound."""

    def __init__(self, job_id: int, waited: float, last_status: str) -> None:
        self.job_id = job_id
        self.waited = waited
        self.last_status = last_status
        super().__init__(
            f"Conversion job {job_id} still {last_status!r} after {waited:.1f}s"
        )


class ConfigurationError(RelayError, ValueError):
    """Missing or invalid configuration. Fatal at startup."""


class AuthenticationError(RelayError):
    """The storage backend rejected the configured credentials."""
