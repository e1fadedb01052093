"""
Error taxonomy and fetch results.

The fetcher raises these internally and converts them into a FetchResult at
its boundary, so nothing above the fetcher sees a raw exception.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from matchfeed.models import ResourcePayload


class FailureReason(Enum):
    """Why a fetch failed."""
    HTTP_STATUS = "http_status"  # Non-2xx response
    API_ERROR = "api_error"      # Well-formed envelope with success=false
    NETWORK = "network"          # Transport failure or unreadable body


# ============================================================================
# Custom Exceptions
# ============================================================================

class MatchfeedError(Exception):
    """Base class for fetch failures."""
    reason = FailureReason.NETWORK

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class TransportError(MatchfeedError):
    """Raised on connection failures and non-2xx responses."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message, status=status)
        self.reason = FailureReason.HTTP_STATUS if status is not None else FailureReason.NETWORK


class ApiError(MatchfeedError):
    """Raised when the response envelope reports success=false."""
    reason = FailureReason.API_ERROR


class ParseError(MatchfeedError):
    """Raised when the response body is not a JSON envelope."""
    reason = FailureReason.NETWORK


# ============================================================================
# Fetch results
# ============================================================================

@dataclass
class Ok:
    """Successful fetch."""
    payload: ResourcePayload
    source_timestamp: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        return True


@dataclass
class Err:
    """Failed fetch."""
    reason: FailureReason
    message: str
    status: Optional[int] = None

    @property
    def ok(self) -> bool:
        return False

    @classmethod
    def from_exception(cls, exc: MatchfeedError) -> "Err":
        return cls(reason=exc.reason, message=exc.message, status=exc.status)


FetchResult = Union[Ok, Err]


@dataclass
class ErrorInfo:
    """
    Error surfaced to the rendering layer.

    degraded=True means possibly-outdated data is being shown (soft warning);
    degraded=False means there is no data at all (hard failure).
    """
    reason: FailureReason
    message: str
    degraded: bool = False
    status: Optional[int] = None

    @property
    def display_message(self) -> str:
        if self.degraded:
            return f"Using cached data - {self.message}"
        return self.message

    @classmethod
    def from_err(cls, err: Err, degraded: bool = False) -> "ErrorInfo":
        return cls(
            reason=err.reason,
            message=err.message,
            degraded=degraded,
            status=err.status,
        )
