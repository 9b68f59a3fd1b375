"""
Management server API client.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from mgmtapi.client.application.auto_publish import AutoPublishCoordinator
from mgmtapi.client.application.fingerprint_verifier import FingerprintVerifier
from mgmtapi.client.application.pagination import DEFAULT_CONTAINER_KEY, Paginator
from mgmtapi.client.application.task_poller import SHOW_TASK, TaskPoller
from mgmtapi.client.domain.entities import CallAccounting, SessionState
from mgmtapi.client.infrastructure.config_loader import ConfigLoader
from mgmtapi.client.infrastructure.fingerprint_store import FingerprintStore
from mgmtapi.client.infrastructure.transport import create_client
from mgmtapi.client.session_handler import SessionHandler
from mgmtapi.common.crypto import CryptoUtils
from mgmtapi.common.exceptions import InvalidMethodError, UntrustedCertificateError
from mgmtapi.common.models import APIResponse, ClientConfig, TrustDecision

logger = logging.getLogger(__name__)


class APIClient:
    """Client for a management server (web API or Gaia API).

    One instance may be shared by several threads. Setters are not
    synchronized and must not be used while calls are running.
    """

    def __init__(
        self,
        server: str | None = None,
        port: int | None = None,
        fingerprint: str | None = None,
        sid: str | None = None,
        api_version: str | None = None,
        proxy_host: str | None = None,
        proxy_port: int | None = None,
        context: str | None = None,
        ignore_server_certificate: bool = False,
        accept_server_certificate: bool = False,
        debug_file: Path | None = None,
        http_debug_level: str | None = None,
        timeout: float | None = None,
        sleep: float | None = None,
        user_agent: str | None = None,
        cloud_mgmt_id: str | None = None,
        auto_publish_batch_size: int | None = None,
        fingerprint_file: Path | None = None,
        log_level: int | None = None,
        trust_decision: TrustDecision | None = None,
    ):
        client_config = ClientConfig(
            server=server,
            port=port,
            fingerprint=fingerprint,
            sid=sid,
            api_version=api_version,
            proxy_host=proxy_host,
            proxy_port=proxy_port,
            context=context,
            ignore_server_certificate=ignore_server_certificate,
            accept_server_certificate=accept_server_certificate,
            debug_file=debug_file,
            http_debug_level=http_debug_level,
            timeout=timeout,
            sleep=sleep,
            user_agent=user_agent,
            cloud_mgmt_id=cloud_mgmt_id,
            auto_publish_batch_size=auto_publish_batch_size,
            fingerprint_file=fingerprint_file,
            log_level=log_level,
            trust_decision=trust_decision,
        )
        self._setup(client_config)

    @classmethod
    def from_config(cls, client_config: ClientConfig) -> APIClient:
        """Create a client from an already validated ``ClientConfig``."""
        return cls(**dict(client_config))

    def _setup(self, client_config: ClientConfig) -> None:
        self.config_loader = ConfigLoader(client_config)
        loader = self.config_loader
        self.config = loader.config

        self.server = loader.server
        self._port = loader.port
        self._is_port_default = loader.is_port_default
        self.proxy_host = loader.proxy_host
        self.proxy_port = loader.proxy_port
        self._is_proxy_used = loader.is_proxy_used
        self._context = loader.context
        self.timeout = loader.timeout
        self.sleep = loader.sleep
        self.user_agent = loader.user_agent
        self.cloud_mgmt_id = loader.cloud_mgmt_id
        self.ignore_server_certificate = loader.ignore_server_certificate
        self.http_debug_level = loader.http_debug_level
        self.debug_file = loader.debug_file
        self._auto_publish_batch_size = loader.auto_publish_batch_size

        self.session = SessionState(sid=loader.sid, api_version=loader.api_version)
        self.accounting = CallAccounting()

        self.fingerprint_store = FingerprintStore(loader.fingerprint_file)
        self._verifier = FingerprintVerifier(
            self.fingerprint_store,
            loader.fingerprint,
            ignore_server_certificate=loader.ignore_server_certificate,
            accept_server_certificate=loader.accept_server_certificate,
            trust_decision=loader.trust_decision,
        )
        self._session_handler = SessionHandler(
            self._login_call, self.session, self._context, self.config.WEB_CONTEXT
        )
        self._task_poller = TaskPoller(
            self._internal_call, lambda: self.sleep, self.config.TASK_POLL_RETRIES
        )
        self._paginator = Paginator(self._internal_call, self.config.QUERY_LIMIT)
        self._auto_publish = AutoPublishCoordinator(
            self.accounting,
            self._publish_call,
            lambda: self._auto_publish_batch_size,
            self.config.AUTO_PUBLISH_WAIT_INTERVAL,
        )

    # Accessors

    @property
    def port(self) -> int:
        return self._port

    @property
    def context(self) -> str:
        return self._context

    @property
    def session_id(self) -> str:
        return self.session.sid

    @property
    def domain(self) -> str:
        return self.session.domain

    @property
    def api_version(self) -> str:
        return self.session.api_version

    @property
    def fingerprint(self) -> str:
        return self._verifier.fingerprint

    @property
    def is_port_default(self) -> bool:
        return self._is_port_default

    @property
    def is_proxy_used(self) -> bool:
        return self._is_proxy_used

    @property
    def auto_publish_batch_size(self) -> int:
        return self._auto_publish_batch_size

    def set_port(self, port: int) -> None:
        self._is_port_default = port == self.config.DEFAULT_PORT
        self._port = port

    def set_sleep_time(self, sleep: float) -> None:
        self.sleep = sleep

    def set_timeout(self, timeout: float) -> None:
        self.timeout = timeout

    def set_auto_publish_batch_size(self, batch_size: int) -> None:
        self._auto_publish_batch_size = batch_size

    def reset_total_calls_counter(self) -> None:
        self._auto_publish.reset()

    def disable_auto_publish(self) -> None:
        self._auto_publish_batch_size = -1
        self._auto_publish.reset()

    # Login

    def login(
        self,
        username: str,
        password: str,
        continue_last_session: bool = False,
        domain: str = "",
        read_only: bool = False,
        payload: dict[str, Any] | None = None,
    ) -> APIResponse:
        """Log in with an administrator name and password.

        Args:
            username: Administrator name
            password: Administrator password
            continue_last_session: Continue the last session instead of a new one
            domain: Name, UID or IP address of the domain to log in to
            read_only: Log in with read-only permissions
            payload: Extra login arguments

        Returns:
            The login response. On success the session id, domain and server
            API version are kept for the following calls.
        """
        credentials = {"user": username, "password": password}
        return self._session_handler.login(
            credentials, continue_last_session, domain, read_only, payload
        )

    def login_with_api_key(
        self,
        api_key: str,
        continue_last_session: bool = False,
        domain: str = "",
        read_only: bool = False,
        payload: dict[str, Any] | None = None,
    ) -> APIResponse:
        """Log in with an API key. See ``login`` for the other arguments."""
        credentials = {"api-key": api_key}
        return self._session_handler.login(
            credentials, continue_last_session, domain, read_only, payload
        )

    # Calls

    def api_call(
        self,
        command: str,
        payload: dict[str, Any] | None = None,
        sid: str = "",
        wait_for_task: bool = True,
        use_proxy: bool | None = None,
        method: str = "POST",
    ) -> APIResponse:
        """Run one API command.

        Args:
            command: Command name, placed last in the URL
            payload: Command arguments
            sid: Session id to use instead of the logged in one
            wait_for_task: Follow a returned ``task-id`` / ``tasks`` until done
            use_proxy: Route through the configured proxy (default: if set)
            method: One of GET, POST, PUT, DELETE

        Raises:
            InvalidMethodError: For any other method, before any I/O.
            UntrustedCertificateError: If the server fingerprint is refused.
            TransportError: If the server cannot be reached.
        """
        return self._api_call(command, payload, sid, wait_for_task, use_proxy, False, method)

    def api_call_simple(self, command: str, payload: dict[str, Any] | None = None) -> APIResponse:
        return self._api_call(command, payload)

    def api_query(
        self,
        command: str,
        details_level: str = "standard",
        container_key: str = DEFAULT_CONTAINER_KEY,
        include_container_key: bool = False,
        payload: dict[str, Any] | None = None,
    ) -> APIResponse:
        """Fetch the full list of objects of a listing command (show-hosts, ...)."""
        return self._paginator.query_objects(
            command, details_level, container_key, include_container_key, payload
        )

    def gen_api_query(
        self,
        command: str,
        details_level: str = "standard",
        container_keys: list[str] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> list[APIResponse]:
        """Fetch every page of a listing command; one response per round."""
        return self._paginator.query_all(command, details_level, container_keys, payload)

    def check_fingerprint(self) -> bool:
        """Probe the server certificate and check it against the trust file."""
        if self.ignore_server_certificate:
            return True
        presented = CryptoUtils.probe_fingerprint(self.server, self._port, self.timeout)
        return self._verifier.verify(self.server, presented)

    def _api_call(
        self,
        command: str,
        payload: dict[str, Any] | None = None,
        sid: str = "",
        wait_for_task: bool = True,
        use_proxy: bool | None = None,
        internal: bool = False,
        method: str = "POST",
    ) -> APIResponse:
        if method not in self.config.ALLOWED_METHODS:
            raise InvalidMethodError(method)

        fingerprint = None
        if not self.ignore_server_certificate:
            fingerprint = CryptoUtils.probe_fingerprint(self.server, self._port, self.timeout)
            if not self._verifier.verify(self.server, fingerprint):
                raise UntrustedCertificateError(self.server, fingerprint)

        body = json.dumps(payload or {}).encode()
        sid = sid or self.session.sid
        if use_proxy is None:
            use_proxy = self._is_proxy_used

        transport = create_client(
            self.server,
            sid,
            self.timeout,
            fingerprint=fingerprint,
            proxy_host=self.proxy_host if use_proxy else None,
            proxy_port=self.proxy_port if use_proxy else None,
        )
        transport.set_debug_level(self.http_debug_level, self.debug_file)

        headers = {
            "Content-Type": "application/json",
            "User-Agent": self.user_agent,
            "Accept": "*/*",
        }
        if command != "login":
            headers["X-chkp-sid"] = sid

        try:
            with self._auto_publish.track(internal=internal):
                response = transport.send(method, self._build_url(command), body, headers)
                res = APIResponse.from_http_response(response)

                if wait_for_task and res.success and command != SHOW_TASK:
                    tasks = res.data.get("tasks")
                    if "task-id" in res.data:
                        res = self._task_poller.await_task(str(res.data["task-id"]))
                    elif isinstance(tasks, list) and tasks:
                        res = self._task_poller.await_tasks(tasks, res)
        finally:
            transport.close()

        return res

    def _build_url(self, command: str) -> str:
        url = f"https://{self.server}:{self._port}"
        if self.cloud_mgmt_id:
            url += f"/{self.cloud_mgmt_id}"
        url += f"/{self._context}"
        if self.session.api_version:
            url += f"/v{self.session.api_version}"
        return f"{url}/{command}"

    def _internal_call(self, command: str, payload: dict[str, Any]) -> APIResponse:
        return self._api_call(command, payload, self.session.sid, wait_for_task=False, internal=True)

    def _login_call(self, command: str, payload: dict[str, Any]) -> APIResponse:
        return self._api_call(command, payload, "", wait_for_task=True, internal=True)

    def _publish_call(self) -> APIResponse:
        return self._api_call("publish", {}, self.session.sid, wait_for_task=True, internal=True)
