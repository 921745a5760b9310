import io
import json
import socket
import threading

import pytest
import requests

from synthient.client import SynthientClient


class TrackingResponse(requests.Response):
    """Response whose close() calls are observable from tests."""

    def __init__(self) -> None:
        super().__init__()
        self.close_calls = 0
        self.close_error: Exception | None = None

    def close(self) -> None:
        self.close_calls += 1
        super().close()
        if self.close_error is not None:
            raise self.close_error


class StubSession:
    """Stands in for requests.Session; returns queued responses in order."""

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.calls: list[dict] = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        result.url = url
        return result

    def close(self) -> None:
        self.closed = True


def build_response(status_code: int = 200, body=b"", raw=None) -> TrackingResponse:
    response = TrackingResponse()
    response.status_code = status_code
    if isinstance(body, (dict, list)):
        body = json.dumps(body).encode("utf-8")
    response.raw = raw if raw is not None else io.BytesIO(body)
    return response


@pytest.fixture
def make_client():
    def _make(*responses, token: str = "test-token", **kwargs) -> SynthientClient:
        return SynthientClient(token=token, session=StubSession(*responses), **kwargs)

    return _make


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    for key in (
        "SYNTHIENT_API_KEY",
        "SYNTHIENT_API_URL",
        "SYNTHIENT_FEEDS_URL",
        "SYNTHIENT_TIMEOUT_SECONDS",
        "SYNTHIENT_DEBUG",
    ):
        monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def make_response():
    return build_response


class StalledServer:
    """Local HTTP server that sends ``reply`` and then keeps the connection open."""

    def __init__(self, reply: bytes = b"") -> None:
        self.reply = reply
        self._stop = threading.Event()
        self._listener = socket.create_server(("127.0.0.1", 0))
        self._connections: list[socket.socket] = []
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    @property
    def url(self) -> str:
        host, port = self._listener.getsockname()
        return f"http://{host}:{port}"

    def _serve(self) -> None:
        self._listener.settimeout(0.1)
        while not self._stop.is_set():
            try:
                connection, _ = self._listener.accept()
            except OSError:
                continue
            self._connections.append(connection)
            connection.recv(65536)
            if self.reply:
                connection.sendall(self.reply)

    def close(self) -> None:
        self._stop.set()
        self._thread.join(timeout=2)
        for connection in self._connections:
            connection.close()
        self._listener.close()


@pytest.fixture
def stalled_server():
    servers: list[StalledServer] = []

    def _start(reply: bytes = b"") -> StalledServer:
        server = StalledServer(reply)
        servers.append(server)
        return server

    yield _start
    for server in servers:
        server.close()
