"""Authenticated request pipeline shared by every Synthient endpoint."""

from __future__ import annotations

import contextlib
import io
import json
import socket
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterator, NoReturn, TypeVar

import requests

from .errors import (
    STATUS_ERRORS,
    DecodeError,
    NoTokenError,
    RequestCancelledError,
    RequestFailedError,
    SynthientError,
    SynthientIOError,
    UnexpectedStatusCodeError,
    attach_close_error,
)
from .log_utils import log_debug

if TYPE_CHECKING:
    from .client import SynthientClient

T = TypeVar("T")

CHUNK_SIZE = 64 * 1024
PEEK_SIZE = 8 * 1024
ERROR_BODY_LIMIT = 64 * 1024
CANCEL_POLL_SECONDS = 0.05


@dataclass(frozen=True)
class RequestOptions:
    """Per-call overrides.

    ``timeout`` is a deadline in seconds for connecting and for each read.
    ``cancel_event`` aborts the call once set: while waiting for the response
    headers and while reading the body, even when the server has stalled.
    """

    timeout: float | None = None
    cancel_event: threading.Event | None = None

    def check_cancelled(self, url: str) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise RequestCancelledError(f"request to {url} was cancelled")


class ResponseStream(io.RawIOBase):
    """Readable byte stream over a successful response body.

    The caller owns the stream and must close it. When the options carry a
    ``cancel_event``, a watcher thread shuts the socket down once the event is
    set so that a read blocked on a stalled server returns immediately.
    """

    def __init__(
        self,
        response: requests.Response,
        options: RequestOptions | None = None,
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        super().__init__()
        self._response = response
        self._options = options or RequestOptions()
        self._chunks: Iterator[bytes] = response.iter_content(chunk_size=chunk_size)
        self._pending = b""
        self._offset = 0
        self._cancelled = threading.Event()
        self._finished = threading.Event()
        if self._options.cancel_event is not None:
            threading.Thread(
                target=self._watch, name="synthient-cancel-watcher", daemon=True
            ).start()

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> Any:
        return self._response.headers

    @property
    def url(self) -> str:
        return self._response.url

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        if not self._fill():
            return 0
        size = min(len(buffer), len(self._pending) - self._offset)
        buffer[:size] = self._pending[self._offset:self._offset + size]
        self._offset += size
        return size

    def peek(self, size: int = 0) -> bytes:
        # readline() and line iteration use peek() to find the next newline
        # instead of reading one byte at a time.
        if not self._fill():
            return b""
        end = self._offset + max(size, PEEK_SIZE)
        return self._pending[self._offset:end]

    def close(self) -> None:
        if self.closed:
            return
        self._finished.set()
        try:
            self._response.close()
        finally:
            super().close()

    def _fill(self) -> bool:
        if self.closed:
            raise ValueError("I/O operation on closed stream")
        if self._offset >= len(self._pending):
            self._pending = self._next_chunk()
            self._offset = 0
        return bool(self._pending)

    def _next_chunk(self) -> bytes:
        # iter_content never yields empty chunks, so b"" marks the end of the body.
        self._options.check_cancelled(self.url)
        try:
            chunk = next(self._chunks, b"")
        except requests.RequestException as exc:
            if self._cancelled.is_set():
                raise RequestCancelledError(
                    f"reading response from {self.url} was cancelled"
                ) from exc
            if _is_timeout(exc):
                raise RequestCancelledError(
                    f"deadline exceeded reading response from {self.url}"
                ) from exc
            raise SynthientIOError(f"reading response from {self.url}: {exc}") from exc
        if self._cancelled.is_set():
            raise RequestCancelledError(f"reading response from {self.url} was cancelled")
        return chunk

    def _watch(self) -> None:
        cancel_event = self._options.cancel_event
        while not self._finished.is_set():
            if cancel_event.wait(CANCEL_POLL_SECONDS):
                if not self._finished.is_set():
                    self._cancelled.set()
                    _shutdown_socket(self._response)
                return


def request(
    client: "SynthientClient",
    method: str,
    url: str,
    expected_status: int,
    options: RequestOptions | None = None,
    params: dict[str, str] | None = None,
) -> ResponseStream:
    """Send an authenticated request and map error statuses to exceptions.

    IMPORTANT: make sure to close the returned stream.
    """
    if not client.token or not client.token.strip():
        raise NoTokenError()
    options = options or RequestOptions()
    options.check_cancelled(url)
    timeout = options.timeout if options.timeout is not None else client.timeout_seconds

    log_debug(client.debug, "synthient request", method=method, url=url, params=params or {})
    try:
        response = _send(
            client,
            options,
            method,
            url,
            params=params,
            headers={"Authorization": client.token},
            timeout=timeout,
            stream=True,
        )
    except requests.Timeout as exc:
        log_debug(client.debug, "synthient deadline exceeded", url=url)
        raise RequestCancelledError(f"deadline exceeded performing request to {url}") from exc
    except requests.RequestException as exc:
        log_debug(client.debug, "synthient transport error", url=url, exc=exc)
        raise RequestFailedError(url, str(exc)) from exc

    status = response.status_code
    log_debug(client.debug, "synthient response", url=url, status=status)
    error_type = STATUS_ERRORS.get(status)
    if error_type is not None:
        _fail(response, error_type(url, status, _error_message(response)))
    if status != expected_status:
        _fail(
            response,
            UnexpectedStatusCodeError(url, status, expected_status, _error_message(response)),
        )
    return ResponseStream(response, options)


def request_json(
    client: "SynthientClient",
    method: str,
    url: str,
    expected_status: int,
    decode: Callable[[Any], T],
    options: RequestOptions | None = None,
    params: dict[str, str] | None = None,
) -> T:
    """Like :func:`request`, but reads the body, decodes it and closes it."""
    stream = request(client, method, url, expected_status, options=options, params=params)
    error: SynthientError | None = None
    try:
        body = stream.read()
        try:
            return decode(json.loads(body))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise DecodeError(f"parsing json from {url}: {exc}") from exc
        except (TypeError, ValueError) as exc:
            raise DecodeError(f"unexpected json shape from {url}: {exc}") from exc
    except SynthientError as exc:
        error = exc
        raise
    finally:
        release(stream, error)


def release(resource: Any, error: SynthientError | None) -> None:
    """Close ``resource`` without hiding ``error`` or the close failure."""
    try:
        resource.close()
    except Exception as exc:
        if error is not None:
            attach_close_error(error, exc)
            return
        raise SynthientIOError(f"closing {_describe(resource)}: {exc}") from exc


def _fail(response: requests.Response, error: SynthientError) -> NoReturn:
    release(response, error)
    raise error


def _send(
    client: "SynthientClient",
    options: RequestOptions,
    method: str,
    url: str,
    **kwargs: Any,
) -> requests.Response:
    """Run ``session.request`` so that setting the cancel event unblocks the caller.

    Without a cancel event the request runs on the calling thread. With one, it
    runs on a worker thread while the caller waits on the event; an abandoned
    worker closes its response as soon as it arrives.
    """
    if options.cancel_event is None:
        return client.session.request(method, url, **kwargs)

    outcome: dict[str, Any] = {}
    done = threading.Event()
    lock = threading.Lock()

    def worker() -> None:
        try:
            outcome["response"] = client.session.request(method, url, **kwargs)
        except BaseException as exc:
            outcome["error"] = exc
        with lock:
            done.set()
            if outcome.get("abandoned") and "response" in outcome:
                outcome["response"].close()

    threading.Thread(target=worker, name="synthient-request", daemon=True).start()
    while not done.wait(CANCEL_POLL_SECONDS):
        if options.cancel_event.is_set():
            with lock:
                if not done.is_set():
                    outcome["abandoned"] = True
                    raise RequestCancelledError(f"request to {url} was cancelled")
    if "error" in outcome:
        raise outcome["error"]
    return outcome["response"]


def _shutdown_socket(response: requests.Response) -> None:
    """Shut the response's socket down so a blocked read returns at once."""
    raw = response.raw
    connection = getattr(raw, "connection", None) or getattr(raw, "_connection", None)
    sock = getattr(connection, "sock", None)
    if sock is None:
        fp = getattr(getattr(raw, "_fp", None), "fp", None)
        sock = getattr(getattr(fp, "raw", None), "_sock", None)
    if sock is None:
        return
    # the socket may already be closed by the reading thread
    with contextlib.suppress(OSError):
        sock.shutdown(socket.SHUT_RDWR)


def _error_message(response: requests.Response) -> str | None:
    """Pull the vendor message out of an ``{"error": "..."}`` body, if any.

    Only the first ``ERROR_BODY_LIMIT`` bytes are read.
    """
    try:
        head = next(response.iter_content(chunk_size=ERROR_BODY_LIMIT), b"")
        payload = json.loads(head)
    except (requests.RequestException, ValueError, RuntimeError):
        return None
    if isinstance(payload, dict):
        message = payload.get("error")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return None


def _is_timeout(exc: BaseException) -> bool:
    if isinstance(exc, requests.Timeout):
        return True
    reason = exc.args[0] if exc.args else None
    return "timed out" in str(reason).lower() or "timeout" in type(reason).__name__.lower()


def _describe(resource: Any) -> str:
    name = getattr(resource, "name", None)
    if isinstance(name, str):
        return f"file {name}"
    return "response body"
