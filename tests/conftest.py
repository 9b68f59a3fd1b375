import json
import threading
from collections import defaultdict, deque
from pathlib import Path
from typing import Any, Callable
from unittest.mock import patch

import pytest

from mgmtapi.client.client import APIClient

SERVER = "mgmt.example.com"
FINGERPRINT = "AB:CD:EF:01:23:45:67:89:AB:CD:EF:01:23:45:67:89:AB:CD:EF:01"


class MockResponse:
    def __init__(self, status_code: int, json_data: Any = None, text: str | None = None):
        self.status_code = status_code
        self._json = json_data
        self.text = text if text is not None else json.dumps(json_data)

    def json(self) -> Any:
        return self._json


class FakeServer:
    """Scripted management server.

    Replies are queued per command; a command with an empty queue gets its
    default handler (or an empty 200 object).
    """

    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []
        self.replies: dict[str, deque] = defaultdict(deque)
        self.handlers: dict[str, Callable[[dict[str, Any]], MockResponse]] = {}
        self.lock = threading.Lock()

    def reply(self, command: str, status_code: int = 200, data: Any = None) -> None:
        self.replies[command].append(MockResponse(status_code, data if data is not None else {}))

    def commands(self) -> list[str]:
        return [r["command"] for r in self.requests]

    def handle(self, method: str, url: str, body: bytes, headers: dict[str, str]) -> MockResponse:
        command = url.rsplit("/", 1)[-1]
        payload = json.loads(body.decode())
        with self.lock:
            self.requests.append(
                {"method": method, "url": url, "command": command,
                 "payload": payload, "headers": dict(headers)}
            )
            if self.replies[command]:
                reply = self.replies[command].popleft()
                if isinstance(reply, Exception):
                    raise reply
                return reply
        if command in self.handlers:
            return self.handlers[command](payload)
        return MockResponse(200, {})


class FakeTransport:
    def __init__(self, fake: FakeServer, **kwargs: Any):
        self.fake = fake
        self.kwargs = kwargs
        self.debug_level = None

    def set_debug_level(self, level: Any, debug_file: Any = None) -> None:
        self.debug_level = level

    def send(self, method: str, url: str, body: bytes, headers: dict[str, str]) -> MockResponse:
        return self.fake.handle(method, url, body, headers)

    def close(self) -> None:
        pass


@pytest.fixture
def fingerprint_file(tmp_path: Path) -> Path:
    return tmp_path / "fingerprints.json"


@pytest.fixture
def fake_server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def transports(fake_server: FakeServer):
    """Patch probing and transport creation; yields the created transports."""
    created: list[FakeTransport] = []

    def _create_client(server: str, sid: str, timeout: float, **kwargs: Any) -> FakeTransport:
        transport = FakeTransport(fake_server, server=server, sid=sid, timeout=timeout, **kwargs)
        created.append(transport)
        return transport

    with patch("mgmtapi.client.client.create_client", side_effect=_create_client), patch(
        "mgmtapi.common.crypto.CryptoUtils.probe_fingerprint", return_value=FINGERPRINT
    ) as probe:
        yield created, probe


@pytest.fixture
def make_client(fingerprint_file: Path, transports) -> Callable[..., APIClient]:
    def _make(**kwargs: Any) -> APIClient:
        kwargs.setdefault("server", SERVER)
        kwargs.setdefault("fingerprint_file", fingerprint_file)
        kwargs.setdefault("sleep", 0)
        return APIClient(**kwargs)

    return _make


@pytest.fixture
def client(make_client: Callable[..., APIClient]) -> APIClient:
    return make_client()
