"""Failure taxonomy and user-facing status mapping.

Provider failures split into two families:

- transport failures (``TimeoutFailure``, ``ConnectionFailure``) which are
  retried locally before surfacing
- application failures (``UpstreamFailure``, ``MalformedResponse``) which
  surface immediately

``MappingAbsent`` is not a failure of the system: it is the terminal state
"this page has no counterpart data" and is reported as such.
"""

from dataclasses import dataclass
from enum import Enum


class ProviderFailure(Exception):
    """Base class for failed data provider lookups."""

    retryable: bool = False

    def __init__(self, message: str, *, endpoint: str | None = None) -> None:
        super().__init__(message)
        self.endpoint = endpoint


class TimeoutFailure(ProviderFailure):
    """The lookup was abandoned after its timeout expired."""

    retryable = True


class ConnectionFailure(ProviderFailure):
    """The transport could not reach the provider."""

    retryable = True


class UpstreamFailure(ProviderFailure):
    """The provider answered with a non-2xx status."""

    def __init__(self, message: str, *, status_code: int, endpoint: str | None = None) -> None:
        super().__init__(message, endpoint=endpoint)
        self.status_code = status_code


class MalformedResponse(ProviderFailure):
    """The provider payload did not have the expected shape."""


class MappingAbsent(LookupError):
    """No counterpart data exists for the requested vendor."""

    def __init__(self, platform: str, vendor_code: str) -> None:
        super().__init__(f"No mapping for {platform} vendor {vendor_code}")
        self.platform = platform
        self.vendor_code = vendor_code


class InvalidRequest(ValueError):
    """A comparison request is missing its platform or vendor code."""


class StatusKind(str, Enum):
    """User-visible outcome classes."""

    OK = "ok"
    WARNING = "warning"
    SERVER_UNREACHABLE = "server_unreachable"
    NO_DATA = "no_data"
    UNEXPECTED_ERROR = "unexpected_error"


@dataclass(frozen=True)
class StatusReport:
    """A single human-readable status line."""

    kind: StatusKind
    message: str

    @property
    def is_failure(self) -> bool:
        return self.kind not in (StatusKind.OK, StatusKind.WARNING)


def describe_failure(error: BaseException) -> StatusReport:
    """Map a failure to the status shown to the user.

    Args:
        error: The exception raised by a comparison or list request

    Returns:
        StatusReport distinguishing unreachable server, missing data and
        unexpected errors
    """
    if isinstance(error, (TimeoutFailure, ConnectionFailure)):
        return StatusReport(
            StatusKind.SERVER_UNREACHABLE,
            "Price server is unreachable. Make sure the API server is running.",
        )
    if isinstance(error, MappingAbsent):
        return StatusReport(StatusKind.NO_DATA, "No comparison data for this page.")
    if isinstance(error, UpstreamFailure) and error.status_code == 404:
        return StatusReport(StatusKind.NO_DATA, "No comparison data for this page.")
    return StatusReport(StatusKind.UNEXPECTED_ERROR, f"Unexpected error: {error}")
