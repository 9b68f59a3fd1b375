"""
Application layer: Automatic publish after every N mutating calls.

Every external call is admitted only while the batch has room and no
publish is running. The call that completes the batch waits for the other
in-flight calls to drain, publishes, and opens the next batch.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, Iterator

from mgmtapi.common.exceptions import MgmtApiError

if TYPE_CHECKING:
    from mgmtapi.client.domain.entities import CallAccounting
    from mgmtapi.common.models import APIResponse

logger = logging.getLogger(__name__)


class AutoPublishCoordinator:
    """Gate shared by all threads calling through one client."""

    def __init__(
        self,
        accounting: CallAccounting,
        publish: Callable[[], APIResponse],
        batch_size: Callable[[], int],
        wait_interval: float = 1.0,
    ):
        self.accounting = accounting
        self.publish = publish
        self.batch_size = batch_size
        self.wait_interval = wait_interval
        self._cond = threading.Condition()

    @property
    def enabled(self) -> bool:
        return self.batch_size() > 0

    def admit(self) -> None:
        """Block until the call fits in the current batch, then count it."""
        with self._cond:
            while not self._has_room():
                self._cond.wait(self.wait_interval)
            self.accounting.total_calls += 1
            self.accounting.active_calls += 1

    def release(self) -> None:
        """Mark one call finished and publish if it completed the batch."""
        with self._cond:
            self.accounting.active_calls = max(self.accounting.active_calls - 1, 0)
            start_publish = self._batch_full() and not self.accounting.during_publish
            if start_publish:
                self.accounting.during_publish = True
            self._cond.notify_all()

        if start_publish:
            self._publish_cycle()

    @contextmanager
    def track(self, *, internal: bool = False) -> Iterator[None]:
        """Wrap one call. Internal calls and a disabled gate pass straight through."""
        if internal or not self.enabled:
            yield
            return

        self.admit()
        try:
            yield
        finally:
            self.release()

    def reset(self) -> None:
        with self._cond:
            self.accounting.total_calls = 0
            self._cond.notify_all()

    def _has_room(self) -> bool:
        batch_size = self.batch_size()
        if batch_size <= 0:
            return True
        return (
            self.accounting.total_calls + 1 <= batch_size
            and not self.accounting.during_publish
        )

    def _batch_full(self) -> bool:
        batch_size = self.batch_size()
        total = self.accounting.total_calls
        return batch_size > 0 and total > 0 and total % batch_size == 0

    def _publish_cycle(self) -> None:
        try:
            with self._cond:
                while self.accounting.active_calls > 0:
                    logger.info(
                        "Waiting to start auto publish (Active calls %d)",
                        self.accounting.active_calls,
                    )
                    self._cond.wait(self.wait_interval)

            logger.info("Start auto publish...")
            try:
                publish_res = self.publish()
            except MgmtApiError as e:
                logger.error("Auto publish failed. Message: %s", e)
            else:
                if publish_res.success:
                    logger.info("Auto publish finished successfully")
                else:
                    logger.error("Auto publish failed. Message: %s", publish_res.error_message)
        finally:
            with self._cond:
                self.accounting.total_calls = 0
                self.accounting.during_publish = False
                self._cond.notify_all()
