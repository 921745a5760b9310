"""Synthient API client (IP lookups and anonymizer feeds)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import requests

from .errors import FeedFileExistsError, SynthientError, SynthientIOError
from .log_utils import log_debug
from .models import AnonymizersQuery, IpRecord
from .transport import CHUNK_SIZE, RequestOptions, ResponseStream, release, request, request_json

if TYPE_CHECKING:
    from .config import SynthientConfig

DEFAULT_API_BASE_URL = "https://v3api.synthient.com/api/v3"
DEFAULT_FEEDS_BASE_URL = "https://feeds.synthient.com/v3"


@dataclass
class SynthientClient:
    """Holds the token, the HTTP session and the base URLs for both services.

    The session is owned by the client; pass your own to control pooling,
    proxies or adapters. The client itself keeps no per-request state, but
    ``requests.Session`` is not documented as thread-safe: to share one client
    between threads, supply a session you know is safe for concurrent use, or
    give each thread its own client.
    """

    token: str
    session: Any = field(default=None, repr=False)
    api_base_url: str = DEFAULT_API_BASE_URL
    feeds_base_url: str = DEFAULT_FEEDS_BASE_URL
    timeout_seconds: float | None = None
    debug: bool = False

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = requests.Session()

    @classmethod
    def from_config(
        cls, config: "SynthientConfig", session: requests.Session | None = None
    ) -> "SynthientClient":
        return cls(
            token=config.api_key or "",
            session=session,
            api_base_url=config.api_base_url,
            feeds_base_url=config.feeds_base_url,
            timeout_seconds=config.timeout_seconds,
            debug=config.debug,
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "SynthientClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def lookup_ip(self, ip: str, options: RequestOptions | None = None) -> IpRecord:
        """Look up enrichment details for a single IPv4/IPv6 address.

        Sends ``GET {api_base_url}/lookup/ip/{ip}``. The address is not
        validated locally; the API rejects malformed input with a 400.
        """
        url = _join(self.api_base_url, "lookup", "ip", quote(ip, safe=":"))
        return request_json(self, "GET", url, 200, IpRecord.from_dict, options=options)

    def stream_anonymizers_feed(
        self,
        query: AnonymizersQuery | None = None,
        options: RequestOptions | None = None,
    ) -> ResponseStream:
        """Start streaming the anonymizers feed.

        Returns the raw payload (CSV when ``query.format`` is ``"CSV"``) as a
        binary stream. Callers MUST close it; use it as a context manager and
        consume it incrementally rather than reading it all into memory::

            with client.stream_anonymizers_feed(AnonymizersQuery(country_code="US")) as stream:
                shutil.copyfileobj(stream, sys.stdout.buffer)
        """
        query = query or AnonymizersQuery()
        url = _join(self.feeds_base_url, "feeds", "anonymizers")
        return request(self, "GET", url, 200, options=options, params=query.to_params())

    def download_anonymizers_feed(
        self,
        query: AnonymizersQuery | None,
        path: str | os.PathLike[str],
        options: RequestOptions | None = None,
    ) -> int:
        """Download the anonymizers feed to ``path`` and return the bytes written.

        ``path`` must not exist yet; otherwise ``FeedFileExistsError`` is raised
        before any request is made. The body is copied in chunks, then flushed
        and fsynced. A partially written file is removed on failure.
        """
        path = os.fspath(path)
        if os.path.lexists(path):
            raise FeedFileExistsError(path)

        stream = self.stream_anonymizers_feed(query, options)
        error: SynthientError | None = None
        try:
            try:
                handle = open(path, "xb")
            except FileExistsError as exc:
                raise FeedFileExistsError(path) from exc
            except OSError as exc:
                raise SynthientIOError(f"creating output file (path: {path}): {exc}") from exc
            try:
                written = _copy(stream, handle, path)
                _sync(handle, path)
            except SynthientError as exc:
                error = exc
                raise
            finally:
                try:
                    release(handle, error)
                except SynthientError as exc:
                    error = exc
                    raise
                finally:
                    if error is not None:
                        _remove_partial(path, error)
        except SynthientError as exc:
            error = exc
            raise
        finally:
            release(stream, error)

        log_debug(self.debug, "synthient feed downloaded", path=path, bytes=written)
        return written


def _copy(stream: ResponseStream, handle: Any, path: str) -> int:
    written = 0
    while True:
        chunk = stream.read(CHUNK_SIZE)
        if not chunk:
            return written
        try:
            handle.write(chunk)
        except OSError as exc:
            raise SynthientIOError(f"streaming response to file {path}: {exc}") from exc
        written += len(chunk)


def _sync(handle: Any, path: str) -> None:
    try:
        handle.flush()
        os.fsync(handle.fileno())
    except OSError as exc:
        raise SynthientIOError(f"syncing output to file {path}: {exc}") from exc


def _remove_partial(path: str, error: SynthientError) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        return
    except OSError as exc:
        error.add_note(f"could not remove partial file {path}: {exc!r}")


def _join(base: str, *segments: str) -> str:
    return "/".join([base.rstrip("/"), *(segment.strip("/") for segment in segments)])
