"""
Threaded usage example of APIClient.

Several threads add hosts through one client. With auto publish enabled the
client publishes the session every ``auto_publish_batch_size`` calls.
"""

import logging
import os
import sys
import threading
from pathlib import Path

# Add the project root to the path to import mgmtapi
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from mgmtapi import APIClient, MgmtApiError


def add_hosts(client: APIClient, worker: int, count: int) -> None:
    logger = logging.getLogger(__name__)
    for i in range(count):
        try:
            res = client.api_call("add-host", {"name": f"host-{worker}-{i}", "ip-address": f"10.{worker}.0.{i + 1}"})
        except MgmtApiError as e:
            logger.error("Worker %d: %s", worker, e)
            return
        if not res.success:
            logger.warning("Worker %d: %s", worker, res.error_message)


def main() -> None:
    # Configure logging
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    client = APIClient(
        server=os.environ.get("MGMT_SERVER", "192.0.2.10"),
        auto_publish_batch_size=20,
    )
    login_res = client.login(os.environ.get("MGMT_USER", "admin"), os.environ.get("MGMT_PASSWORD", ""))
    if not login_res.success:
        logger.error("Login failed: %s", login_res.error_message)
        sys.exit(1)

    threads = [threading.Thread(target=add_hosts, args=(client, n, 25)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    # Publish what is left of the last batch
    client.disable_auto_publish()
    publish_res = client.api_call("publish")
    logger.info("Final publish: %s", publish_res.success or publish_res.error_message)


if __name__ == "__main__":
    main()
