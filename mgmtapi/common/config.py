"""
Configuration settings for the management API client.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path


class Config:
    """Central configuration class for all client settings."""

    def __init__(self) -> None:
        # Connection defaults
        self.DEFAULT_PORT: int = 443
        self.DEFAULT_PROXY_HOST: str = ""
        self.DEFAULT_PROXY_PORT: int = -1
        self.TIMEOUT: float = 10  # Seconds per HTTP request
        self.SLEEP_TIME: float = 2  # Seconds between show-task polls
        self.USER_AGENT: str = os.getenv("MGMTAPI_USER_AGENT", "python-api-wrapper")

        # API contexts served by the management server
        self.WEB_CONTEXT: str = "web_api"
        self.GAIA_CONTEXT: str = "gaia_api"
        self.CONTEXTS: tuple[str, ...] = (self.WEB_CONTEXT, self.GAIA_CONTEXT)

        # Protocol constants
        self.ALLOWED_METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "DELETE")
        self.QUERY_LIMIT: int = 50  # Objects per page for paginated queries
        self.TASK_POLL_RETRIES: int = 5  # Failed show-task attempts before giving up
        self.AUTO_PUBLISH_WAIT_INTERVAL: float = 1.0  # Seconds between admission checks

        # File paths
        self.FINGERPRINT_FILE_PATH: Path = Path(
            os.getenv("MGMTAPI_FINGERPRINT_FILE", "fingerprints.json")
        )

        # Logging
        self.LOG_LEVEL: int = logging.getLevelName(
            os.getenv("MGMTAPI_LOG_LEVEL", "INFO").upper()
        )
        if not isinstance(self.LOG_LEVEL, int):
            self.LOG_LEVEL = logging.INFO
