# Management API client
from mgmtapi.client.client import APIClient as APIClient

__all__ = ["APIClient"]
