"""
Pydantic models for client configuration and API responses.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Literal, Optional

from pydantic import BaseModel, Field, JsonValue, field_validator

if TYPE_CHECKING:
    import requests

JsonObject = dict[str, JsonValue]

TrustDecision = Callable[[str, Optional[str], str], bool]


class APIResponse(BaseModel):
    """Outcome of one call to the management server.

    ``data`` holds the decoded JSON body. A non-2xx status or a body that is
    not a JSON object leaves ``success`` False and fills ``error_message``.
    """

    success: bool = False
    status_code: int | None = None
    data: JsonObject = Field(default_factory=dict)
    raw_body: str = ""
    error_message: str = ""

    @classmethod
    def from_http_response(
        cls, response: requests.Response, err_message: str = ""
    ) -> APIResponse:
        """Normalize a ``requests`` response into an ``APIResponse``."""
        raw_body = response.text or ""
        data: Any = {}
        decoded = True
        try:
            data = json.loads(raw_body)
        except ValueError:
            decoded = False
        if not isinstance(data, dict):
            data = {}
            decoded = False

        res = cls(
            success=decoded and 200 <= response.status_code < 300,
            status_code=response.status_code,
            data=data,
            raw_body=raw_body,
        )
        if not res.success:
            res.error_message = err_message or res.build_generic_err_msg()
        return res

    def build_generic_err_msg(self) -> str:
        """Compose an error message from the status code and payload fields."""
        parts = ["Error:"]
        if self.status_code is not None:
            parts.append(f"Code: {self.status_code}.")
        message = self.data.get("message")
        if message:
            parts.append(f"Message: {message}.")
        for key, label in (
            ("errors", "Errors"),
            ("blocking-errors", "Blocking errors"),
            ("warnings", "Warnings"),
        ):
            items = self.data.get(key)
            if not isinstance(items, list) or not items:
                continue
            texts = [
                str(item.get("message", item)) if isinstance(item, dict) else str(item)
                for item in items
            ]
            parts.append(f"{label}: {'; '.join(texts)}.")
        if len(parts) == 1 and self.raw_body and not self.data:
            parts.append(self.raw_body[:200])
        return " ".join(parts)

    def mark_failed(self) -> None:
        """Downgrade the response to a failure while keeping its payload."""
        self.success = False
        self.status_code = None
        self.error_message = self.build_generic_err_msg()


class ClientConfig(BaseModel):
    server: str | None = None
    port: int | None = None
    fingerprint: str | None = None
    sid: str | None = None
    api_version: str | None = None
    proxy_host: str | None = None
    proxy_port: int | None = None
    context: Literal["web_api", "gaia_api"] | None = None
    ignore_server_certificate: bool = False
    accept_server_certificate: bool = False
    debug_file: Path | None = None
    http_debug_level: str | None = None
    timeout: float | None = None
    sleep: float | None = None
    user_agent: str | None = None
    cloud_mgmt_id: str | None = None
    auto_publish_batch_size: int | None = None
    fingerprint_file: Path | None = None
    log_level: int | None = None
    trust_decision: TrustDecision | None = None

    @field_validator("context", mode="before")
    @classmethod
    def _empty_context(cls, value: Any) -> Any:
        return value or None
