"""
Fingerprint trust file persistence.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path  # noqa: TC003

from mgmtapi.common.exceptions import FingerprintStoreError

logger = logging.getLogger(__name__)


class FingerprintStore:
    """Loads and saves the ``{"<server>": "<fingerprint>"}`` trust file.

    Reads and read-modify-write saves are serialized per store instance.
    """

    def __init__(self, file_path: Path):
        self.file_path = file_path
        self._lock = threading.RLock()

    def _create_empty_file(self) -> None:
        """Create the trust file holding an empty JSON object if it is missing."""
        if self.file_path.exists():
            return
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with self.file_path.open("w") as f:
                f.write("{}")
        except OSError as e:
            msg = f"Cannot create fingerprint file {self.file_path}: {e}"
            raise FingerprintStoreError(msg) from e

    def load(self) -> dict[str, str]:
        """Load the whole server -> fingerprint mapping."""
        with self._lock:
            self._create_empty_file()
            try:
                with self.file_path.open() as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                msg = f"Cannot read fingerprint file {self.file_path}: {e}"
                raise FingerprintStoreError(msg) from e

        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()
        ):
            msg = f"Fingerprint file {self.file_path} must hold a JSON object of strings"
            raise FingerprintStoreError(msg)
        return data

    def get(self, server: str) -> str | None:
        """Return the trusted fingerprint recorded for a server, if any."""
        return self.load().get(server)

    def save(self, server: str, fingerprint: str) -> bool:
        """Record a server fingerprint.

        Returns False when the stored value is already identical and
        nothing was written.
        """
        with self._lock:
            fingerprints = self.load()
            if fingerprints.get(server) == fingerprint:
                return False

            fingerprints[server] = fingerprint
            try:
                with self.file_path.open("w") as f:
                    json.dump(fingerprints, f)
            except OSError as e:
                msg = f"Cannot write fingerprint file {self.file_path}: {e}"
                raise FingerprintStoreError(msg) from e
        logger.debug("Stored fingerprint for %s", server)
        return True
