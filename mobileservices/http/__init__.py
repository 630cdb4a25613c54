"""
HTTP layer: request/response models, service filters, and connections.
"""

from __future__ import annotations

from .connection import (
    AsyncConnection,
    Connection,
    ServiceFilterResponseCallback,
    classify_response,
)
from .filters import AsyncLoggingFilter, LoggingFilter
from .headers import HeaderComposer, SdkInfo
from .pipeline import (
    AsyncNextServiceFilter,
    AsyncServiceFilter,
    NextServiceFilter,
    ServiceFilter,
    ServiceFilterRequest,
    ServiceFilterResponse,
    compose,
    compose_async,
)

__all__ = [
    "AsyncConnection",
    "AsyncLoggingFilter",
    "AsyncNextServiceFilter",
    "AsyncServiceFilter",
    "Connection",
    "HeaderComposer",
    "LoggingFilter",
    "NextServiceFilter",
    "SdkInfo",
    "ServiceFilter",
    "ServiceFilterRequest",
    "ServiceFilterResponse",
    "ServiceFilterResponseCallback",
    "classify_response",
    "compose",
    "compose_async",
]
