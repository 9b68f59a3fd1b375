"""
Basic usage example of APIClient.

This example logs in to a management server, lists all host objects and
publishes a new host.
"""

import logging
import os
import sys
from pathlib import Path

# Add the project root to the path to import mgmtapi
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from mgmtapi import APIClient, MgmtApiError


def main() -> None:
    # Configure logging
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    try:
        client = APIClient(server=os.environ.get("MGMT_SERVER", "192.0.2.10"))

        login_res = client.login(os.environ.get("MGMT_USER", "admin"), os.environ.get("MGMT_PASSWORD", ""))
        if not login_res.success:
            logger.error("Login failed: %s", login_res.error_message)
            sys.exit(1)
        logger.info("Logged in, API version %s", client.api_version)

        # All pages of show-hosts, indexed by position
        hosts = client.api_query("show-hosts", details_level="standard")
        logger.info("Found %d hosts", len(hosts.data))

        add_res = client.api_call("add-host", {"name": "example-host", "ip-address": "192.0.2.55"})
        logger.info("add-host: %s", add_res.success or add_res.error_message)

        # Waits for the publish task to finish
        publish_res = client.api_call("publish")
        logger.info("publish: %s", publish_res.success or publish_res.error_message)

        client.api_call("logout")
    except MgmtApiError:
        logger.exception("Error")
        sys.exit(1)


if __name__ == "__main__":
    main()
