"""Certificate fingerprint utilities.
"""

import ssl

from cryptography import x509
from cryptography.hazmat.primitives import hashes

from mgmtapi.common.exceptions import FingerprintProbeError


class CryptoUtils:
    """Utility class for certificate fingerprint operations."""

    @staticmethod
    def normalize_fingerprint(fingerprint: str | None) -> str:
        """Strip colon separators and case so fingerprints compare equal."""
        if not fingerprint:
            return ""
        return fingerprint.replace(":", "").strip().upper()

    @staticmethod
    def fingerprints_match(first: str | None, second: str | None) -> bool:
        """Check two fingerprints for equality, ignoring separators and case."""
        first_norm = CryptoUtils.normalize_fingerprint(first)
        return bool(first_norm) and first_norm == CryptoUtils.normalize_fingerprint(second)

    @staticmethod
    def fingerprint_from_pem(pem: str | bytes) -> str:
        """Calculate the colon-delimited SHA-1 fingerprint of a PEM certificate."""
        if isinstance(pem, str):
            pem = pem.encode()
        cert = x509.load_pem_x509_certificate(pem)
        digest = cert.fingerprint(hashes.SHA1())
        return ":".join(f"{b:02X}" for b in digest)

    @staticmethod
    def probe_fingerprint(server: str, port: int, timeout: float | None = None) -> str:
        """Fetch the certificate the server presents and return its fingerprint."""
        try:
            pem = ssl.get_server_certificate((server, port), timeout=timeout)
        except (OSError, ValueError) as e:
            msg = f"Could not fetch certificate from {server}:{port}: {e}"
            raise FingerprintProbeError(msg) from e
        return CryptoUtils.fingerprint_from_pem(pem)
