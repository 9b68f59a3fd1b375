"""Infrastructure layer: Resolving client options against configured defaults.
"""

from __future__ import annotations

import logging
from pathlib import Path

from mgmtapi.common import setup_logger
from mgmtapi.common.config import Config
from mgmtapi.common.models import ClientConfig, TrustDecision


class ConfigLoader:
    """Turns a ``ClientConfig`` into the effective settings of one client."""

    def __init__(self, client_config: ClientConfig):
        self.config: Config = Config()

        self.server: str = client_config.server or ""
        self.fingerprint: str = client_config.fingerprint or ""
        self.sid: str = client_config.sid or ""
        self.api_version: str = client_config.api_version or ""
        self.cloud_mgmt_id: str = client_config.cloud_mgmt_id or ""

        # -1 and the default port both mean "default"
        if client_config.port is None or client_config.port in (-1, self.config.DEFAULT_PORT):
            self.port: int = self.config.DEFAULT_PORT
            self.is_port_default: bool = True
        else:
            self.port = client_config.port
            self.is_port_default = False

        self.proxy_host: str = client_config.proxy_host or self.config.DEFAULT_PROXY_HOST
        self.proxy_port: int = (
            client_config.proxy_port
            if client_config.proxy_port is not None
            else self.config.DEFAULT_PROXY_PORT
        )
        self.is_proxy_used: bool = (
            self.proxy_host != self.config.DEFAULT_PROXY_HOST
            and self.proxy_port != self.config.DEFAULT_PROXY_PORT
        )

        self.context: str = client_config.context or self.config.WEB_CONTEXT
        self.timeout: float = (
            client_config.timeout
            if client_config.timeout is not None and client_config.timeout != -1
            else self.config.TIMEOUT
        )
        self.sleep: float = (
            client_config.sleep
            if client_config.sleep is not None and client_config.sleep != -1
            else self.config.SLEEP_TIME
        )
        self.user_agent: str = client_config.user_agent or self.config.USER_AGENT
        self.auto_publish_batch_size: int = (
            client_config.auto_publish_batch_size
            if client_config.auto_publish_batch_size is not None
            else -1
        )

        self.ignore_server_certificate: bool = client_config.ignore_server_certificate
        self.accept_server_certificate: bool = client_config.accept_server_certificate
        self.trust_decision: TrustDecision | None = client_config.trust_decision
        self.fingerprint_file: Path = (
            client_config.fingerprint_file or self.config.FINGERPRINT_FILE_PATH
        )

        self.debug_file: Path | None = client_config.debug_file
        self.http_debug_level: str = client_config.http_debug_level or ""

        self.log_level: int = (
            client_config.log_level
            if client_config.log_level is not None
            else self.config.LOG_LEVEL
        )

        # Setup logging
        self.logger = logging.getLogger("mgmtapi")
        setup_logger(self.logger, self.log_level)
