# Management server API client

from mgmtapi.client.application.trust import (
    accept_all,
    prompt_trust_decision,
    reject_all,
)
from mgmtapi.client.client import APIClient
from mgmtapi.common.exceptions import (
    FingerprintProbeError,
    FingerprintStoreError,
    InvalidMethodError,
    MgmtApiError,
    TransportError,
    UntrustedCertificateError,
)
from mgmtapi.common.models import APIResponse, ClientConfig

__all__ = [
    "APIClient",
    "APIResponse",
    "ClientConfig",
    "FingerprintProbeError",
    "FingerprintStoreError",
    "InvalidMethodError",
    "MgmtApiError",
    "TransportError",
    "UntrustedCertificateError",
    "accept_all",
    "prompt_trust_decision",
    "reject_all",
]
