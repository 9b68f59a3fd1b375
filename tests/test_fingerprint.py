import datetime
import json
import threading
from pathlib import Path
from typing import Any
from unittest.mock import Mock, patch

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from mgmtapi.client.application.fingerprint_verifier import FingerprintVerifier
from mgmtapi.client.application.trust import accept_all, prompt_trust_decision, reject_all
from mgmtapi.client.infrastructure.fingerprint_store import FingerprintStore
from mgmtapi.common.crypto import CryptoUtils
from mgmtapi.common.exceptions import FingerprintProbeError, FingerprintStoreError

OLD_FP = "11:22:33:44:55:66:77:88:99:00:11:22:33:44:55:66:77:88:99:00"
NEW_FP = "AA:BB:CC:DD:EE:FF:00:11:22:33:44:55:66:77:88:99:AA:BB:CC:DD"


class CountingStore(FingerprintStore):
    """FingerprintStore that counts actual file writes."""

    def __init__(self, file_path: Path):
        super().__init__(file_path)
        self.writes = 0

    def save(self, server: str, fingerprint: str) -> bool:
        written = super().save(server, fingerprint)
        self.writes += int(written)
        return written


@pytest.fixture
def store(fingerprint_file: Path) -> CountingStore:
    return CountingStore(fingerprint_file)


def _self_signed_pem() -> tuple[bytes, x509.Certificate]:
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "mgmt.example.com")])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(days=1))
        .sign(key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.PEM), cert


# Store


def test_store_creates_empty_file(fingerprint_file: Path) -> None:
    store = FingerprintStore(fingerprint_file)
    assert store.load() == {}
    assert json.loads(fingerprint_file.read_text()) == {}


def test_store_round_trip(fingerprint_file: Path) -> None:
    FingerprintStore(fingerprint_file).save("server-x", NEW_FP)

    reloaded = FingerprintStore(fingerprint_file)
    assert reloaded.get("server-x") == NEW_FP
    assert reloaded.get("server-y") is None


def test_store_keeps_other_servers(fingerprint_file: Path) -> None:
    fingerprint_file.write_text(json.dumps({"server-y": OLD_FP}))
    FingerprintStore(fingerprint_file).save("server-x", NEW_FP)
    assert json.loads(fingerprint_file.read_text()) == {"server-y": OLD_FP, "server-x": NEW_FP}


def test_store_identical_fingerprint_not_rewritten(store: CountingStore) -> None:
    assert store.save("server-x", NEW_FP)
    assert not store.save("server-x", NEW_FP)
    assert store.writes == 1


@pytest.mark.parametrize("content", ["not json", "[1, 2]", '{"server-x": 5}'])
def test_store_rejects_malformed_file(fingerprint_file: Path, content: str) -> None:
    fingerprint_file.write_text(content)
    with pytest.raises(FingerprintStoreError):
        FingerprintStore(fingerprint_file).load()


def test_store_concurrent_saves_keep_every_server(fingerprint_file: Path) -> None:
    store = FingerprintStore(fingerprint_file)

    def record(worker: int) -> None:
        for i in range(10):
            store.save(f"gw-{worker}-{i}.example.com", NEW_FP)

    threads = [threading.Thread(target=record, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(10)

    assert len(json.loads(fingerprint_file.read_text())) == 80  # noqa: PLR2004


# Crypto helpers


def test_normalize_and_match() -> None:
    assert CryptoUtils.normalize_fingerprint("aa:bb:cc") == "AABBCC"
    assert CryptoUtils.fingerprints_match("aa:bb:cc", "AABBCC")
    assert not CryptoUtils.fingerprints_match("", "")
    assert not CryptoUtils.fingerprints_match(None, "AABBCC")


def test_fingerprint_from_pem() -> None:
    pem, cert = _self_signed_pem()
    expected = cert.fingerprint(hashes.SHA1()).hex().upper()
    fingerprint = CryptoUtils.fingerprint_from_pem(pem)
    assert fingerprint.replace(":", "") == expected
    assert len(fingerprint.split(":")) == 20  # noqa: PLR2004


def test_probe_fingerprint_uses_server_certificate() -> None:
    pem, cert = _self_signed_pem()
    with patch("mgmtapi.common.crypto.ssl.get_server_certificate", return_value=pem.decode()) as get_cert:
        fingerprint = CryptoUtils.probe_fingerprint("mgmt.example.com", 443, timeout=5)
    get_cert.assert_called_once_with(("mgmt.example.com", 443), timeout=5)
    assert CryptoUtils.fingerprints_match(fingerprint, cert.fingerprint(hashes.SHA1()).hex())


def test_probe_fingerprint_connection_failure() -> None:
    with patch(
        "mgmtapi.common.crypto.ssl.get_server_certificate",
        side_effect=ConnectionRefusedError("refused"),
    ), pytest.raises(FingerprintProbeError):
        CryptoUtils.probe_fingerprint("mgmt.example.com", 443)


# Verification


def test_ignore_server_certificate_always_trusted(store: CountingStore) -> None:
    verifier = FingerprintVerifier(store, ignore_server_certificate=True, trust_decision=reject_all)
    assert verifier.verify("server-x", "")
    assert verifier.verify("server-x", NEW_FP)
    assert store.writes == 0


def test_missing_presented_fingerprint_untrusted(store: CountingStore) -> None:
    verifier = FingerprintVerifier(store, trust_decision=accept_all)
    assert not verifier.verify("server-x", "")


def test_first_contact_records_fingerprint(store: CountingStore) -> None:
    decision = Mock(return_value=False)
    verifier = FingerprintVerifier(store, trust_decision=decision)

    assert verifier.verify("server-x", NEW_FP)
    assert store.get("server-x") == NEW_FP
    assert verifier.fingerprint == NEW_FP
    decision.assert_not_called()


def test_verify_is_idempotent(store: CountingStore) -> None:
    verifier = FingerprintVerifier(store, trust_decision=reject_all)
    first = verifier.verify("server-x", NEW_FP)
    writes_after_first = store.writes
    second = verifier.verify("server-x", NEW_FP)

    assert first == second is True
    assert store.writes == writes_after_first == 1


def test_stored_fingerprint_compared_without_separators(store: CountingStore) -> None:
    store.save("server-x", NEW_FP.replace(":", "").lower())
    verifier = FingerprintVerifier(store, trust_decision=reject_all)
    assert verifier.verify("server-x", NEW_FP)
    assert store.writes == 1


def test_mismatch_auto_accept_stores_new_fingerprint(store: CountingStore) -> None:
    store.save("server-x", OLD_FP)
    decision = Mock(return_value=False)
    verifier = FingerprintVerifier(store, accept_server_certificate=True, trust_decision=decision)

    assert verifier.verify("server-x", NEW_FP)
    assert store.get("server-x") == NEW_FP
    decision.assert_not_called()


def test_mismatch_refused(store: CountingStore) -> None:
    store.save("server-x", OLD_FP)
    decision = Mock(return_value=False)
    verifier = FingerprintVerifier(store, trust_decision=decision)

    assert not verifier.verify("server-x", NEW_FP)
    decision.assert_called_once_with("server-x", OLD_FP, NEW_FP)
    assert store.get("server-x") == OLD_FP
    assert verifier.fingerprint == ""


def test_mismatch_accepted_by_decision(store: CountingStore) -> None:
    store.save("server-x", OLD_FP)
    verifier = FingerprintVerifier(store, trust_decision=accept_all)

    assert verifier.verify("server-x", NEW_FP)
    assert store.get("server-x") == NEW_FP
    assert verifier.fingerprint == NEW_FP


def test_accepted_but_unsaved_fingerprint_still_trusted(store: CountingStore, capsys: Any) -> None:
    store.save("server-x", OLD_FP)
    verifier = FingerprintVerifier(store, trust_decision=accept_all)

    with patch.object(CountingStore, "save", side_effect=FingerprintStoreError("read-only")):
        assert verifier.verify("server-x", NEW_FP)
    assert "Could not save fingerprint to file" in capsys.readouterr().err


def test_configured_fingerprint_checked_first(store: CountingStore) -> None:
    verifier = FingerprintVerifier(store, NEW_FP.lower(), trust_decision=reject_all)
    assert verifier.verify("server-x", NEW_FP)
    assert store.get("server-x") == NEW_FP


def test_configured_fingerprint_mismatch_asks(store: CountingStore) -> None:
    decision = Mock(return_value=False)
    verifier = FingerprintVerifier(store, OLD_FP, trust_decision=decision)

    assert not verifier.verify("server-x", NEW_FP)
    decision.assert_called_once_with("server-x", None, NEW_FP)
    assert store.get("server-x") is None


# Interactive prompt


@pytest.mark.parametrize("answer", [True, False])
def test_prompt_trust_decision_writes_to_stderr(answer: bool, capsys: Any) -> None:
    with patch("mgmtapi.client.application.trust.click.confirm", return_value=answer) as confirm:
        assert prompt_trust_decision("server-x", OLD_FP, NEW_FP) is answer
    err = capsys.readouterr().err
    assert "different from your local record" in err
    assert NEW_FP in err
    assert confirm.call_args.kwargs["err"] is True


def test_prompt_trust_decision_unknown_server(capsys: Any) -> None:
    with patch("mgmtapi.client.application.trust.click.confirm", return_value=True):
        prompt_trust_decision("server-x", None, NEW_FP)
    assert "do not have a record" in capsys.readouterr().err
