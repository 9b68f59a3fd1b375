"""
Custom exceptions for the management API client.
"""

from __future__ import annotations


class MgmtApiError(Exception):
    """Base exception for client failures that are not server responses."""


class TransportError(MgmtApiError):
    """Exception for connection, TLS and timeout failures."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class FingerprintProbeError(TransportError):
    """Exception raised when the server certificate cannot be fetched."""


class UntrustedCertificateError(MgmtApiError):
    """Exception raised when the server fingerprint is not trusted."""

    def __init__(self, server: str, fingerprint: str | None = None) -> None:
        super().__init__(
            f"Fingerprint of {server} doesn't match, "
            "someone might be trying to steal your information"
        )
        self.server = server
        self.fingerprint = fingerprint


class FingerprintStoreError(MgmtApiError):
    """Exception for unreadable or unwritable fingerprint files."""


class InvalidMethodError(MgmtApiError, ValueError):
    """Exception for HTTP methods outside the allow-list."""

    def __init__(self, method: str) -> None:
        super().__init__(f"invalid HTTP method: {method}")
        self.method = method
