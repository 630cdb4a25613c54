"""
Installation identifier persistence.

Each installation of an application reports a stable identifier in the
`X-ZUMO-INSTALLATION-ID` header. It is generated once and stored on disk.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

from platformdirs import user_data_dir

logger = logging.getLogger(__name__)

APP_NAME = "mobileservices"
INSTALLATION_ID_FILENAME = "installation_id"


def default_installation_id_path() -> Path:
    return Path(user_data_dir(APP_NAME)) / INSTALLATION_ID_FILENAME


class InstallationIdStore:
    """Reads the persisted installation id, creating one on first use."""

    def __init__(self, path: Path | None = None):
        self.path = path or default_installation_id_path()
        self._installation_id: str | None = None

    def get(self) -> str:
        if self._installation_id is None:
            self._installation_id = self._load() or self._create()
        return self._installation_id

    def _load(self) -> str | None:
        if not self.path.exists():
            return None
        value = self.path.read_text(encoding="utf-8").strip()
        return value or None

    def _create(self) -> str:
        value = str(uuid.uuid4())
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(value + "\n", encoding="utf-8")
        logger.debug("Created installation id at %s", self.path)
        return value
