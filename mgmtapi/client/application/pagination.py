"""
Application layer: Paginated queries.

Listing commands (show-hosts, show-networks, ...) return at most ``limit``
objects per call. The paginator keeps asking with a growing offset until the
server reports that ``to`` reached ``total``, and hands back every round with
the objects accumulated so far.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from mgmtapi.common.interfaces import ICommandCaller
    from mgmtapi.common.models import APIResponse

logger = logging.getLogger(__name__)

DEFAULT_CONTAINER_KEY = "objects"


class Paginator:
    """Runs a listing command page by page through an internal caller."""

    def __init__(self, call: ICommandCaller, limit: int = 50):
        self.call = call
        self.limit = limit

    def _page(
        self, command: str, payload: dict[str, Any], details_level: str, iteration: int
    ) -> APIResponse:
        payload["limit"] = self.limit
        payload["offset"] = iteration * self.limit
        payload["details-level"] = details_level
        return self.call(command, payload)

    def query_all(
        self,
        command: str,
        details_level: str = "standard",
        container_keys: list[str] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> list[APIResponse]:
        """Fetch every page of ``command``.

        Each returned response carries, under every container key, all the
        objects received up to and including its round, in server order.
        A failed round ends the sequence and is its last element.

        Raises:
            TransportError: If any round cannot reach the server.
        """
        container_keys = list(container_keys or [DEFAULT_CONTAINER_KEY])
        payload = dict(payload or {})
        all_objects: dict[str, list[Any]] = {key: [] for key in container_keys}

        iteration = 0
        api_res = self._page(command, payload, details_level, iteration)
        server_responses: list[APIResponse] = []

        if any(key not in api_res.data for key in container_keys):
            return [api_res]

        while True:
            if not api_res.success:
                logger.error("Query %s failed at offset %d: %s",
                             command, iteration * self.limit, api_res.error_message)
                server_responses.append(api_res)
                break

            total_objects = api_res.data.get("total")
            received_objects = api_res.data.get("to")
            if received_objects is None:
                received_objects = 0

            for key in container_keys:
                page = api_res.data.get(key)
                if isinstance(page, list):
                    all_objects[key].extend(page)
                api_res.data[key] = list(all_objects[key])

            server_responses.append(api_res)
            logger.debug("Received %s/%s objects of %s", received_objects, total_objects, command)

            if total_objects is None or total_objects == received_objects:
                break

            iteration += 1
            api_res = self._page(command, payload, details_level, iteration)

        return server_responses

    def query_objects(
        self,
        command: str,
        details_level: str = "standard",
        container_key: str = DEFAULT_CONTAINER_KEY,
        include_container_key: bool = False,
        payload: dict[str, Any] | None = None,
    ) -> APIResponse:
        """Fetch every page and return the last, fully accumulated round.

        Without ``include_container_key`` the data becomes an index -> object
        mapping (``{"0": {...}, "1": {...}}``); otherwise it keeps the server's
        ``{container_key: [...], "total": n}`` shape.
        """
        container_key = container_key or DEFAULT_CONTAINER_KEY
        server_responses = self.query_all(command, details_level, [container_key], payload)

        api_res = server_responses[-1]
        objects = api_res.data.get(container_key)
        if api_res.success and not include_container_key and isinstance(objects, list):
            api_res.data = {str(index): obj for index, obj in enumerate(objects)}
        return api_res
