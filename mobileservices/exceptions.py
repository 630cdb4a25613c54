"""
Mobile service error hierarchy.

Every failure surfaced by the request pipeline is a `MobileServiceError`. Errors
that originate from an executed request keep a reference to the response so
callers can branch on status and body without parsing the message.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .http.pipeline import ServiceFilterResponse


class MobileServiceError(Exception):
    """Base class for all errors raised by the SDK."""

    def __init__(self, message: str, *, response: ServiceFilterResponse | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.response = response

    def __str__(self) -> str:
        return self.message


class MobileServiceInvalidArgumentError(MobileServiceError, ValueError):
    """A precondition was violated before anything was sent."""


class MobileServiceHttpError(MobileServiceError):
    """The service answered with a status code outside of 2xx."""

    def __init__(self, message: str, *, response: ServiceFilterResponse) -> None:
        super().__init__(message, response=response)
        self.status_code = response.status_code
        self.body = response.content


class MobileServiceTransportError(MobileServiceError):
    """The request could not be executed (network / IO failure)."""


class EntityParseError(MobileServiceError):
    """A response body could not be converted into the requested entity type."""


def get_service_response(error: BaseException | None) -> ServiceFilterResponse | None:
    """Return the response attached to `error`, if any."""
    if isinstance(error, MobileServiceError):
        return error.response
    return None
