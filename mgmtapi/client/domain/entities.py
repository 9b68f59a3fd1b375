"""Domain layer: Core client entities and rules.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

IN_PROGRESS = "in progress"
FAILED = "failed"
PARTIALLY_SUCCEEDED = "partially succeeded"
FAILED_STATUSES = frozenset({FAILED, PARTIALLY_SUCCEEDED})


@dataclass
class SessionState:
    """Domain entity representing the authenticated session."""

    sid: str = ""
    domain: str = ""
    api_version: str = ""


@dataclass
class CallAccounting:
    """Counters shared by every thread calling through one client.

    Only touched while holding the auto-publish condition lock.
    """

    total_calls: int = 0
    active_calls: int = 0
    during_publish: bool = False


@dataclass
class TaskSnapshot:
    """Domain entity for the sub-tasks reported by one show-task response."""

    statuses: list[str | None]

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> TaskSnapshot:
        tasks = data.get("tasks")
        if not isinstance(tasks, list):
            tasks = []
        statuses: list[str | None] = []
        for task in tasks:
            status = task.get("status") if isinstance(task, dict) else None
            statuses.append(status if isinstance(status, str) else None)
        return cls(statuses=statuses)

    @property
    def is_complete(self) -> bool:
        """True once every sub-task has a status other than in progress."""
        return all(status is not None and status != IN_PROGRESS for status in self.statuses)

    @property
    def has_failures(self) -> bool:
        return any(status in FAILED_STATUSES for status in self.statuses)
