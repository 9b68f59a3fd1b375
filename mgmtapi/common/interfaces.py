"""
Interfaces and protocols for dependency injection.
"""

from __future__ import annotations

from typing import Any, Protocol

from mgmtapi.common.models import APIResponse


class IFingerprintStore(Protocol):
    """Protocol for the persisted server -> fingerprint mapping."""

    def load(self) -> dict[str, str]: ...

    def get(self, server: str) -> str | None: ...

    def save(self, server: str, fingerprint: str) -> bool: ...


class ICommandCaller(Protocol):
    """Protocol for issuing internal, non-batched API calls."""

    def __call__(self, command: str, payload: dict[str, Any]) -> APIResponse: ...
