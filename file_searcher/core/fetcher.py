"""
Range-bounded fetch clients.

Two interchangeable transports implement :class:`Fetcher`:

* :class:`RequestsFetcher` – ``requests`` / urllib3 (general purpose)
* :class:`CurlFetcher` – ``curl_cffi`` / libcurl (higher throughput)

Both issue a single GET per URL with a ``Range`` header, read at most
``max_content_read`` bytes, never follow redirects, and report the true
total size from ``Content-Range`` / ``Content-Length`` when available.
Transport failures are returned in :attr:`FetchResult.error`, never raised.
"""

import time
from dataclasses import dataclass
from typing import Iterator

import requests
import urllib3
from curl_cffi import CurlError

from file_searcher.config import READ_CHUNK_SIZE, ScanConfig
from file_searcher.session import build_cf_session, build_session, request_headers


@dataclass
class FetchResult:
    """Outcome of one request.  Consumed exactly once by the classifier."""
    url: str
    content: bytes = b""
    total_size: int = 0
    status_code: int = 0
    content_type: str = ""
    error: str | None = None

    def release(self) -> None:
        """Drop the body buffer so it can be reclaimed promptly."""
        self.content = b""


def parse_total_size(headers, bytes_read: int) -> int:
    """Resolve the full resource size.

    ``Content-Range: bytes 0-99/1234`` wins, then ``Content-Length``, then
    the number of bytes actually read.  An unknown total (``*``) or a
    malformed header falls back to *bytes_read*.
    """
    content_range = headers.get("Content-Range")
    if content_range:
        _, _, total = content_range.rpartition("/")
        try:
            return int(total.strip())
        except ValueError:
            return bytes_read
    content_length = headers.get("Content-Length")
    if content_length:
        try:
            return int(content_length.strip())
        except ValueError:
            return bytes_read
    return bytes_read


class FetchTimeout(Exception):
    """The per-request deadline passed while reading the body."""


class Fetcher:
    """Base class: one bounded GET per URL.

    Subclasses provide :meth:`_send` (returning a streamed response with
    ``status_code``, ``headers``, ``iter_content`` and ``close``) and the
    tuple of transport exceptions in :attr:`transport_errors`.
    """

    transport_errors: tuple[type[BaseException], ...] = ()

    def __init__(self, config: ScanConfig) -> None:
        self.config = config

    def _send(self, url: str, headers: dict[str, str]):
        raise NotImplementedError

    def close(self) -> None:
        pass

    def fetch(self, url: str) -> FetchResult:
        cfg = self.config
        deadline = time.monotonic() + cfg.timeout
        headers = request_headers(url, cfg.max_content_read, cfg.extra_headers)
        try:
            resp = self._send(url, headers)
        except self.transport_errors as exc:
            return FetchResult(url=url, error=f"error fetching: {exc}")

        try:
            content = self._read_body(resp, cfg.max_content_read, deadline)
        except FetchTimeout:
            return FetchResult(url=url, error=f"error reading body: timed out after {cfg.timeout:g}s")
        except self.transport_errors as exc:
            return FetchResult(url=url, error=f"error reading body: {exc}")
        finally:
            resp.close()

        return FetchResult(
            url=url,
            content=content,
            total_size=parse_total_size(resp.headers, len(content)),
            status_code=resp.status_code,
            content_type=resp.headers.get("Content-Type") or "",
        )

    def _chunks(self, resp, deadline: float) -> Iterator[bytes]:
        return resp.iter_content(chunk_size=READ_CHUNK_SIZE)

    def _read_body(self, resp, limit: int, deadline: float) -> bytes:
        """Read at most *limit* bytes, even if the server ignored ``Range``."""
        buf = bytearray()
        if limit <= 0:
            return b""
        for chunk in self._chunks(resp, deadline):
            if not chunk:
                continue
            buf += chunk[:limit - len(buf)]
            if len(buf) >= limit:
                break
            if time.monotonic() > deadline:
                raise FetchTimeout()
        return bytes(buf)


class RequestsFetcher(Fetcher):
    """General-purpose transport built on a shared ``requests.Session``."""

    transport_errors = (requests.RequestException, urllib3.exceptions.HTTPError, OSError)

    def __init__(self, config: ScanConfig, session: requests.Session | None = None) -> None:
        super().__init__(config)
        self.session = session or build_session(config.concurrency, config.proxy)

    def _send(self, url: str, headers: dict[str, str]):
        return self.session.get(
            url,
            headers=headers,
            timeout=self.config.timeout,
            allow_redirects=False,
            stream=True,
        )

    def _chunks(self, resp, deadline: float) -> Iterator[bytes]:
        """Stream the raw body so that no single read outlives *deadline*.

        ``read1`` returns after at most one socket read, and the socket
        timeout is narrowed to the time left before every call.
        """
        raw = resp.raw
        sock = getattr(getattr(raw, "connection", None), "sock", None)
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise FetchTimeout()
                if sock is not None:
                    sock.settimeout(remaining)
                try:
                    chunk = raw.read1(READ_CHUNK_SIZE, decode_content=True)
                except urllib3.exceptions.ReadTimeoutError:
                    raise FetchTimeout() from None
                if not chunk:
                    return
                yield chunk
        finally:
            # Pooled connections are reused with the session timeout
            if sock is not None and sock.fileno() != -1:
                sock.settimeout(self.config.timeout)

    def close(self) -> None:
        self.session.close()


class CurlFetcher(Fetcher):
    """Higher-throughput transport built on a ``curl_cffi`` session."""

    transport_errors = (CurlError, OSError)

    def __init__(self, config: ScanConfig, session=None) -> None:
        super().__init__(config)
        self.session = session or build_cf_session(config.proxy)

    def _send(self, url: str, headers: dict[str, str]):
        return self.session.get(
            url,
            headers=headers,
            timeout=self.config.timeout,
            allow_redirects=False,
            stream=True,
        )

    def close(self) -> None:
        self.session.close()


def build_fetcher(config: ScanConfig) -> Fetcher:
    """Select the transport once at startup."""
    if config.fast_http:
        return CurlFetcher(config)
    return RequestsFetcher(config)
