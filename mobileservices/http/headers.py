"""
Protocol headers attached to every mobile service request.
"""

from __future__ import annotations

import platform
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import lru_cache

from .._version import __version__
from ..authentication import ClientContext
from .pipeline import ServiceFilterRequest

JSON_CONTENT_TYPE = "application/json"
GZIP_CONTENT_ENCODING = "gzip"

X_ZUMO_AUTH_HEADER = "X-ZUMO-AUTH"
X_ZUMO_VERSION_HEADER = "X-ZUMO-VERSION"
X_ZUMO_INSTALLATION_ID_HEADER = "X-ZUMO-INSTALLATION-ID"
ZUMO_API_VERSION_HEADER = "ZUMO-API-VERSION"
USER_AGENT_HEADER = "User-Agent"
ACCEPT_HEADER = "Accept"
ACCEPT_ENCODING_HEADER = "Accept-Encoding"

SDK_VERSION = __version__
API_VERSION = "2.0.0"


def _safe(fn: Callable[[], str]) -> str:
    try:
        value = fn()
    except Exception:
        return "unknown"
    return value or "unknown"


@lru_cache(maxsize=None)
def _detected_platform() -> tuple[str, str, str]:
    return _safe(platform.system), _safe(platform.release), _safe(platform.machine)


def _default_os_name() -> str:
    return _detected_platform()[0]


def _default_os_version() -> str:
    return _detected_platform()[1]


def _default_arch() -> str:
    return _detected_platform()[2]


@dataclass(frozen=True, slots=True)
class SdkInfo:
    """Fixed protocol metadata advertised to the service."""

    sdk_version: str = SDK_VERSION
    api_version: str = API_VERSION
    lang: str = "Python"
    os_name: str = field(default_factory=_default_os_name)
    os_version: str = field(default_factory=_default_os_version)
    arch: str = field(default_factory=_default_arch)

    @property
    def user_agent(self) -> str:
        return (
            f"ZUMO/1.0 (lang={self.lang}; os={self.os_name}; os_version={self.os_version}; "
            f"arch={self.arch}; version={self.sdk_version})"
        )


class HeaderComposer:
    """
    Applies authentication, version, and negotiation headers to a request.

    Auth, version, user-agent and installation-id headers are always overwritten.
    `Accept` and `Accept-Encoding` are only filled in when the caller left them unset.
    """

    def __init__(self, sdk_info: SdkInfo | None = None):
        self.sdk_info = sdk_info or SdkInfo()

    def compose(
        self, request: ServiceFilterRequest, context: ClientContext
    ) -> ServiceFilterRequest:
        user = context.current_user
        if user is not None and user.authentication_token:
            request.add_header(X_ZUMO_AUTH_HEADER, user.authentication_token)

        if self.sdk_info.sdk_version:
            request.add_header(X_ZUMO_VERSION_HEADER, self.sdk_info.sdk_version)

        request.add_header(USER_AGENT_HEADER, self.sdk_info.user_agent)
        request.add_header(ZUMO_API_VERSION_HEADER, self.sdk_info.api_version)
        request.add_header(X_ZUMO_INSTALLATION_ID_HEADER, context.installation_id)

        if not request.contains_header(ACCEPT_HEADER):
            request.add_header(ACCEPT_HEADER, JSON_CONTENT_TYPE)

        if not request.contains_header(ACCEPT_ENCODING_HEADER):
            request.add_header(ACCEPT_ENCODING_HEADER, GZIP_CONTENT_ENCODING)

        return request
