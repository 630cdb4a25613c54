"""
Python client for mobile service backends.

Requests pass through a chain of service filters before reaching the network;
table results are normalized onto the caller's entity types.
"""

from __future__ import annotations

from ._version import __version__
from .authentication import ClientContext, MobileServiceUser
from .client import AsyncMobileServiceClient, ClientConfig, MobileServiceClient
from .entities import (
    EntityTypeDescriptor,
    EntityTypeRegistry,
    IdentifierField,
    describe,
    parse_results,
    register_entity_type,
    serialize_entity,
)
from .exceptions import (
    EntityParseError,
    MobileServiceError,
    MobileServiceHttpError,
    MobileServiceInvalidArgumentError,
    MobileServiceTransportError,
    get_service_response,
)
from .http import (
    AsyncConnection,
    AsyncServiceFilter,
    Connection,
    HeaderComposer,
    SdkInfo,
    ServiceFilter,
    ServiceFilterRequest,
    ServiceFilterResponse,
)
from .installation import InstallationIdStore
from .table import AsyncMobileServiceTable, MobileServiceTable

__all__ = [
    "__version__",
    # Clients
    "MobileServiceClient",
    "AsyncMobileServiceClient",
    "ClientConfig",
    "MobileServiceTable",
    "AsyncMobileServiceTable",
    # Context
    "ClientContext",
    "MobileServiceUser",
    "InstallationIdStore",
    # HTTP
    "Connection",
    "AsyncConnection",
    "HeaderComposer",
    "SdkInfo",
    "ServiceFilter",
    "AsyncServiceFilter",
    "ServiceFilterRequest",
    "ServiceFilterResponse",
    # Entities
    "EntityTypeDescriptor",
    "EntityTypeRegistry",
    "IdentifierField",
    "describe",
    "parse_results",
    "register_entity_type",
    "serialize_entity",
    # Errors
    "MobileServiceError",
    "MobileServiceInvalidArgumentError",
    "MobileServiceHttpError",
    "MobileServiceTransportError",
    "EntityParseError",
    "get_service_response",
]
