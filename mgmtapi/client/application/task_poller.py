"""
Application layer: Waiting for asynchronous server tasks.

Long running commands (publish, install-policy, run-script, ...) answer with
a ``task-id`` or a list of ``tasks``. The poller calls ``show-task`` until no
sub-task is "in progress" any more.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Callable

from mgmtapi.client.domain.entities import TaskSnapshot
from mgmtapi.common.exceptions import TransportError

if TYPE_CHECKING:
    from mgmtapi.common.interfaces import ICommandCaller
    from mgmtapi.common.models import APIResponse

logger = logging.getLogger(__name__)

SHOW_TASK = "show-task"


def check_tasks_status(task_result: APIResponse) -> None:
    """Mark the response failed if any sub-task failed or partially succeeded."""
    if TaskSnapshot.from_data(task_result.data).has_failures:
        task_result.mark_failed()


class TaskPoller:
    """Polls ``show-task`` through an internal caller."""

    def __init__(
        self,
        call: ICommandCaller,
        sleep_time: Callable[[], float],
        max_attempts: int = 5,
    ):
        self.call = call
        self.sleep_time = sleep_time
        self.max_attempts = max_attempts

    def _show_task(self, task_id: str | list[str]) -> APIResponse:
        payload: dict[str, Any] = {"task-id": task_id, "details-level": "full"}
        return self.call(SHOW_TASK, payload)

    def _poll(self, task_id: str) -> APIResponse:
        """Run one show-task, retrying up to ``max_attempts`` times while it fails.

        Both unsuccessful responses and transport errors count as failed
        attempts. Returns the first successful response, else the last
        unsuccessful one.

        Raises:
            TransportError: If no attempt got a response from the server.
        """
        last_res: APIResponse | None = None
        last_error: TransportError | None = None

        for attempt in range(self.max_attempts + 1):
            if attempt:
                time.sleep(self.sleep_time())
            try:
                task_result = self._show_task(task_id)
            except TransportError as e:
                logger.warning("Polling task %s failed: %s", task_id, e)
                last_error = e
                continue
            if task_result.success:
                return task_result
            last_res = task_result

        logger.error(
            "Failed to handle asynchronous task %s as synchronous, task result is undefined: %s",
            task_id,
            last_res.error_message if last_res is not None else last_error,
        )
        if last_res is not None:
            return last_res
        raise TransportError(f"Could not poll task {task_id}: {last_error}") from last_error

    def await_task(self, task_id: str) -> APIResponse:
        """Block until the task and all its sub-tasks leave "in progress".

        A failing show-task call is retried up to ``max_attempts`` times; after
        that the last unsuccessful response is returned as is.

        Raises:
            TransportError: If every attempt of one poll failed to reach the server.
        """
        while True:
            task_result = self._poll(task_id)
            if not task_result.success:
                return task_result
            if TaskSnapshot.from_data(task_result.data).is_complete:
                break
            time.sleep(self.sleep_time())

        check_tasks_status(task_result)
        return task_result

    def await_tasks(self, task_objects: list[Any], original: APIResponse) -> APIResponse:
        """Wait for every task, then fetch them together in one show-task.

        If the combined show-task cannot be sent, ``original`` is returned.
        """
        task_ids: list[str] = []
        for task_obj in task_objects:
            task_id = task_obj.get("task-id") if isinstance(task_obj, dict) else None
            if not isinstance(task_id, str):
                continue
            task_ids.append(task_id)
            self.await_task(task_id)

        try:
            task_result = self._show_task(task_ids)
        except TransportError:
            logger.warning("Problem showing tasks %s, try again", ", ".join(task_ids))
            return original

        check_tasks_status(task_result)
        return task_result
