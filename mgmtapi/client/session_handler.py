"""
Session handling for the management API client.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from mgmtapi.client.domain.entities import SessionState
    from mgmtapi.common.interfaces import ICommandCaller
    from mgmtapi.common.models import APIResponse

logger = logging.getLogger(__name__)


class SessionHandler:
    """Handles login and keeps the session id, domain and API version."""

    def __init__(
        self,
        call: ICommandCaller,
        session_state: SessionState,
        context: str,
        web_context: str,
    ):
        self.call = call
        self.session_state = session_state
        self.context = context
        self.web_context = web_context

    def login(
        self,
        credentials: dict[str, Any],
        continue_last_session: bool = False,
        domain: str = "",
        read_only: bool = False,
        payload: dict[str, Any] | None = None,
    ) -> APIResponse:
        """Log in and, on success, remember the returned session.

        ``continue-last-session`` and ``read-only`` only exist in the web API
        context and are not sent to Gaia.
        """
        login_payload = dict(credentials)
        if self.context == self.web_context:
            login_payload["continue-last-session"] = continue_last_session
            login_payload["read-only"] = read_only
        if domain:
            login_payload["domain"] = domain
        if payload:
            login_payload.update(payload)

        login_res = self.call("login", login_payload)
        if not login_res.success:
            logger.error("Login failed: %s", login_res.error_message)
            return login_res

        sid = login_res.data.get("sid")
        self.session_state.sid = sid if isinstance(sid, str) else ""
        self.session_state.domain = domain
        if not self.session_state.api_version:
            version = login_res.data.get("api-server-version")
            if version is not None:
                self.session_state.api_version = str(version)

        logger.info("Logged in to domain %r, API version %s",
                    domain or "default", self.session_state.api_version or "unknown")
        return login_res
