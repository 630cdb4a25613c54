"""
Session identity consumed when composing request headers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(slots=True)
class MobileServiceUser:
    """An authenticated mobile service user."""

    user_id: str
    authentication_token: str = ""


class ClientContext(Protocol):
    """Read-only view of the client state a connection needs."""

    @property
    def current_user(self) -> MobileServiceUser | None: ...

    @property
    def installation_id(self) -> str: ...
