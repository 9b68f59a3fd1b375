"""
Application layer: Server fingerprint verification against the trust file.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import click

from mgmtapi.client.application.trust import prompt_trust_decision
from mgmtapi.common.crypto import CryptoUtils
from mgmtapi.common.exceptions import FingerprintStoreError

if TYPE_CHECKING:
    from mgmtapi.common.interfaces import IFingerprintStore
    from mgmtapi.common.models import TrustDecision

logger = logging.getLogger(__name__)


class FingerprintVerifier:
    """Decides whether a presented server fingerprint may be trusted.

    ``fingerprint`` is the in-memory value: the one supplied at construction,
    then whatever was last verified.
    """

    def __init__(
        self,
        store: IFingerprintStore,
        fingerprint: str | None = None,
        *,
        ignore_server_certificate: bool = False,
        accept_server_certificate: bool = False,
        trust_decision: TrustDecision | None = None,
    ):
        self.store = store
        self.fingerprint = fingerprint or ""
        self.ignore_server_certificate = ignore_server_certificate
        self.accept_server_certificate = accept_server_certificate
        self.trust_decision = trust_decision or prompt_trust_decision

    def verify(self, server: str, presented: str) -> bool:
        """Return True if ``presented`` is trusted for ``server``.

        Raises:
            FingerprintStoreError: If the trust file cannot be read or written.
        """
        if self.ignore_server_certificate:
            return True
        if not presented:
            return False

        stored = self.store.get(server)

        if CryptoUtils.fingerprints_match(self.fingerprint, presented):
            if stored is None:
                self.store.save(server, presented)
            return self._trusted(presented)

        if stored is None and not self.fingerprint:
            logger.info("Recording fingerprint of %s on first contact", server)
            self.store.save(server, presented)
            return self._trusted(presented)

        if stored is not None and CryptoUtils.fingerprints_match(stored, presented):
            return self._trusted(presented)

        if self.accept_server_certificate:
            logger.warning("Accepting new fingerprint of %s: %s", server, presented)
            self.store.save(server, presented)
            return self._trusted(presented)

        if not self.trust_decision(server, stored, presented):
            logger.error("Fingerprint of %s was not accepted", server)
            return False

        try:
            self.store.save(server, presented)
            click.echo("Fingerprint saved.", err=True)
        except FingerprintStoreError:
            click.echo("Could not save fingerprint to file. Continuing anyway.", err=True)
        return self._trusted(presented)

    def _trusted(self, presented: str) -> bool:
        self.fingerprint = presented
        return True
