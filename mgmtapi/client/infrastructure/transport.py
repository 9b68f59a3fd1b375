"""
HTTP transport with certificate fingerprint pinning.

Management servers usually present self-signed certificates, so the chain is
not validated. Instead every connection (direct or tunnelled through a proxy)
is checked against the trusted fingerprint during the TLS handshake. A
mismatch raises before any request bytes are sent.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import requests
import urllib3
from requests.adapters import HTTPAdapter

from mgmtapi.common.crypto import CryptoUtils
from mgmtapi.common.exceptions import TransportError
from mgmtapi.common.logging_config import setup_debug_logging
from mgmtapi.common.logging_utils import parse_level

logger = logging.getLogger(__name__)

_LOG_PREVIEW = 2000
_REDACT_KEYS = {"password", "api-key", "sid", "x-chkp-sid"}

urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)


def _redact(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {
            k: "***REDACTED***" if str(k).lower() in _REDACT_KEYS else _redact(v)
            for k, v in obj.items()
        }
    if isinstance(obj, list):
        return [_redact(x) for x in obj]
    return obj


def _preview(body: str) -> str:
    try:
        body = json.dumps(_redact(json.loads(body)))
    except ValueError:
        pass
    return body[:_LOG_PREVIEW]


class FingerprintPinningAdapter(HTTPAdapter):
    """HTTPAdapter whose connection pools assert the peer certificate fingerprint."""

    def __init__(self, fingerprint: str | None = None, **kwargs: Any):
        # init_poolmanager runs inside HTTPAdapter.__init__
        self.fingerprint = CryptoUtils.normalize_fingerprint(fingerprint).lower()
        super().__init__(**kwargs)

    def init_poolmanager(self, *args: Any, **kwargs: Any) -> None:
        if self.fingerprint:
            kwargs["assert_fingerprint"] = self.fingerprint
        super().init_poolmanager(*args, **kwargs)

    def proxy_manager_for(self, proxy: str, **proxy_kwargs: Any) -> Any:
        if self.fingerprint:
            proxy_kwargs["assert_fingerprint"] = self.fingerprint
        return super().proxy_manager_for(proxy, **proxy_kwargs)


class Transport:
    """One configured HTTP client handle for a management server."""

    def __init__(
        self,
        server: str,
        sid: str,
        timeout: float,
        fingerprint: str | None = None,
        proxy_url: str | None = None,
    ):
        self.server = server
        self.sid = sid
        self.timeout = timeout
        self.fingerprint = fingerprint
        self.debug_level = logging.WARNING

        self.session = requests.Session()
        self.session.trust_env = False
        self.session.verify = False
        if proxy_url:
            self.session.proxies = {"http": proxy_url, "https": proxy_url}
        self.session.mount("https://", FingerprintPinningAdapter(fingerprint))

    def set_debug_level(self, level: str | int | None, debug_file: str | Path | None = None) -> None:
        """Set how much of each request/response is logged."""
        self.debug_level = parse_level(level)
        if level:
            logger.setLevel(self.debug_level)
        if debug_file:
            setup_debug_logging(logger, debug_file, self.debug_level)

    def send(self, method: str, url: str, body: bytes, headers: dict[str, str]) -> requests.Response:
        """Issue one request. Never retries.

        Raises:
            TransportError: On connection, TLS, fingerprint or timeout failures.
        """
        if self.debug_level <= logging.DEBUG:
            logger.debug("%s %s %s", method, url, _preview(body.decode("utf-8", "replace")))
        elif self.debug_level <= logging.INFO:
            logger.info("%s %s", method, url)

        try:
            response = self.session.request(
                method, url, data=body, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error("HTTP %s %s failed: %s", method, url, e)
            raise TransportError(str(e), url=url) from e

        if self.debug_level <= logging.DEBUG:
            logger.debug("%s <- %s %s", url, response.status_code, _preview(response.text))
        elif self.debug_level <= logging.INFO:
            logger.info("%s <- %s", url, response.status_code)
        return response

    def close(self) -> None:
        self.session.close()


def create_client(
    server: str,
    sid: str,
    timeout: float,
    fingerprint: str | None = None,
    proxy_host: str | None = None,
    proxy_port: int | None = None,
) -> Transport:
    """Build a transport, routed through ``proxy_host:proxy_port`` when given."""
    proxy_url = None
    if proxy_host and proxy_port is not None and proxy_port > 0:
        proxy_url = f"http://{proxy_host}:{proxy_port}"
    return Transport(server, sid, timeout, fingerprint=fingerprint, proxy_url=proxy_url)
