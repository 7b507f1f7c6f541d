"""
Tests for the range-bounded fetch clients.
"""

import socket
import threading
import time
import unittest
from dataclasses import replace
from unittest.mock import MagicMock, patch

import requests
import urllib3
from curl_cffi import CurlError
from requests.structures import CaseInsensitiveDict

from file_searcher.config import ScanConfig
from file_searcher.core.fetcher import (
    CurlFetcher,
    RequestsFetcher,
    build_fetcher,
    parse_total_size,
)


class FakeRaw:
    """Stand-in for the urllib3 response behind ``requests``."""

    connection = None

    def __init__(self, body, fail_after):
        self._body = body
        self._fail_after = fail_after
        self._pos = 0

    def read1(self, amt, decode_content=None):
        if self._fail_after is not None and self._pos >= self._fail_after:
            raise urllib3.exceptions.ProtocolError("connection reset")
        chunk = self._body[self._pos:self._pos + amt]
        self._pos += len(chunk)
        return chunk


class FakeResponse:
    def __init__(self, body=b"", status=200, headers=None, fail_after=None):
        self.status_code = status
        self.headers = CaseInsensitiveDict(headers or {})
        self.raw = FakeRaw(body, fail_after)
        self._body = body
        self._fail_after = fail_after
        self.closed = False

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self._body), chunk_size):
            if self._fail_after is not None and i >= self._fail_after:
                raise CurlError("connection reset")
            yield self._body[i:i + chunk_size]

    def close(self):
        self.closed = True


class SlowServer:
    """One-shot HTTP server that sends its body one byte per *interval*."""

    def __init__(self, body, interval):
        self.body = body
        self.interval = interval
        self._stop = threading.Event()
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(1)
        self.url = f"http://127.0.0.1:{self._sock.getsockname()[1]}/env"
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self):
        conn, _ = self._sock.accept()
        with conn:
            conn.recv(65536)
            conn.sendall(
                b"HTTP/1.1 200 OK\r\nContent-Type: text/plain\r\n"
                b"Content-Length: %d\r\nConnection: close\r\n\r\n" % len(self.body)
            )
            for i in range(len(self.body)):
                if self.interval and self._stop.wait(self.interval):
                    return
                try:
                    conn.sendall(self.body[i:i + 1])
                except OSError:
                    return

    def close(self):
        self._stop.set()
        self._sock.close()
        self._thread.join(timeout=5)


def make_fetcher(response=None, side_effect=None, **overrides):
    cfg = replace(ScanConfig(), **overrides)
    session = MagicMock()
    session.get.return_value = response
    if side_effect is not None:
        session.get.side_effect = side_effect
    return RequestsFetcher(cfg, session=session), session


class TestRequestsFetcher(unittest.TestCase):
    URL = "https://a.example.com/env"

    def test_request_shape(self):
        fetcher, session = make_fetcher(FakeResponse(b"ok"), max_content_read=1000, timeout=5)
        fetcher.fetch(self.URL)
        args, kwargs = session.get.call_args
        self.assertEqual(args[0], self.URL)
        self.assertEqual(kwargs["headers"]["Range"], "bytes=0-999")
        self.assertFalse(kwargs["allow_redirects"])
        self.assertTrue(kwargs["stream"])
        self.assertEqual(kwargs["timeout"], 5)

    def test_referer_and_origin_mirror_url(self):
        fetcher, session = make_fetcher(FakeResponse(b"ok"))
        fetcher.fetch(self.URL)
        headers = session.get.call_args.kwargs["headers"]
        self.assertEqual(headers["Referer"], self.URL)
        self.assertEqual(headers["Origin"], self.URL)

    def test_extra_headers_override(self):
        fetcher, session = make_fetcher(
            FakeResponse(b"ok"),
            extra_headers={"User-Agent": "scanner/1.0", "Authorization": "Bearer t"},
        )
        fetcher.fetch(self.URL)
        headers = session.get.call_args.kwargs["headers"]
        self.assertEqual(headers["User-Agent"], "scanner/1.0")
        self.assertEqual(headers["Authorization"], "Bearer t")

    def test_total_size_from_content_range(self):
        resp = FakeResponse(b"x" * 100, status=206, headers={
            "Content-Range": "bytes 0-99/123456",
            "Content-Type": "application/octet-stream",
        })
        fetcher, _ = make_fetcher(resp)
        result = fetcher.fetch(self.URL)
        self.assertIsNone(result.error)
        self.assertEqual(result.status_code, 206)
        self.assertEqual(result.total_size, 123456)
        self.assertEqual(result.content_type, "application/octet-stream")
        self.assertEqual(len(result.content), 100)
        self.assertTrue(resp.closed)

    def test_total_size_from_content_length(self):
        fetcher, _ = make_fetcher(FakeResponse(b"x" * 10, headers={"Content-Length": "10"}))
        self.assertEqual(fetcher.fetch(self.URL).total_size, 10)

    def test_total_size_falls_back_to_bytes_read(self):
        fetcher, _ = make_fetcher(FakeResponse(b"x" * 42))
        result = fetcher.fetch(self.URL)
        self.assertEqual(result.total_size, 42)
        self.assertEqual(result.content_type, "")

    def test_body_capped_when_range_ignored(self):
        resp = FakeResponse(b"x" * 100000, headers={"Content-Length": "100000"})
        fetcher, _ = make_fetcher(resp, max_content_read=1000)
        result = fetcher.fetch(self.URL)
        self.assertEqual(len(result.content), 1000)
        self.assertEqual(result.total_size, 100000)

    def test_connection_error(self):
        fetcher, _ = make_fetcher(side_effect=requests.ConnectionError("refused"))
        result = fetcher.fetch(self.URL)
        self.assertTrue(result.error.startswith("error fetching:"))
        self.assertEqual(result.content, b"")
        self.assertEqual(result.url, self.URL)

    def test_read_error(self):
        resp = FakeResponse(b"x" * 200000, fail_after=32 * 1024)
        fetcher, _ = make_fetcher(resp)
        result = fetcher.fetch(self.URL)
        self.assertTrue(result.error.startswith("error reading body:"))
        self.assertEqual(result.content, b"")
        self.assertTrue(resp.closed)

    def test_read_deadline(self):
        resp = FakeResponse(b"x" * 200000)
        fetcher, _ = make_fetcher(resp, timeout=1)
        with patch("file_searcher.core.fetcher.time") as mock_time:
            mock_time.monotonic.side_effect = [0.0, 5.0, 5.0]
            result = fetcher.fetch(self.URL)
        self.assertIn("timed out", result.error)

    def test_close_closes_session(self):
        fetcher, session = make_fetcher(FakeResponse())
        fetcher.close()
        session.close.assert_called_once()


class TestHardDeadline(unittest.TestCase):
    """Real sockets against a local server."""

    def _fetch(self, server, timeout):
        fetcher = RequestsFetcher(replace(ScanConfig(), timeout=timeout))
        fetcher.session.trust_env = False
        try:
            t0 = time.monotonic()
            result = fetcher.fetch(server.url)
            return result, time.monotonic() - t0
        finally:
            fetcher.close()
            server.close()

    def test_slow_drip_body_stops_at_timeout(self):
        server = SlowServer(b"x" * 20, interval=0.3)
        result, elapsed = self._fetch(server, timeout=1.0)
        self.assertIn("timed out", result.error)
        self.assertLess(elapsed, 2.0)

    def test_fast_body_read_in_full(self):
        server = SlowServer(b"activeProfiles: prod", interval=0)
        result, _ = self._fetch(server, timeout=5.0)
        self.assertIsNone(result.error)
        self.assertEqual(result.content, b"activeProfiles: prod")
        self.assertEqual(result.total_size, 20)
        self.assertEqual(result.content_type, "text/plain")


class TestCurlFetcher(unittest.TestCase):
    def test_curl_error_becomes_error_result(self):
        session = MagicMock()
        session.get.side_effect = CurlError("boom")
        fetcher = CurlFetcher(ScanConfig(), session=session)
        result = fetcher.fetch("https://a.example.com/x")
        self.assertTrue(result.error.startswith("error fetching:"))
        self.assertIn("boom", result.error)

    def test_success(self):
        session = MagicMock()
        session.get.return_value = FakeResponse(b"hello", headers={"Content-Type": "text/plain"})
        fetcher = CurlFetcher(ScanConfig(), session=session)
        result = fetcher.fetch("https://a.example.com/x")
        self.assertEqual(result.content, b"hello")
        self.assertEqual(result.total_size, 5)
        self.assertFalse(session.get.call_args.kwargs["allow_redirects"])

    def test_read_error(self):
        session = MagicMock()
        resp = FakeResponse(b"x" * 200000, fail_after=32 * 1024)
        session.get.return_value = resp
        fetcher = CurlFetcher(ScanConfig(), session=session)
        result = fetcher.fetch("https://a.example.com/x")
        self.assertTrue(result.error.startswith("error reading body:"))
        self.assertTrue(resp.closed)


class TestBuildFetcher(unittest.TestCase):
    def test_default_is_requests(self):
        self.assertIsInstance(build_fetcher(ScanConfig()), RequestsFetcher)

    def test_fast_http_selects_curl(self):
        with patch("file_searcher.core.fetcher.build_cf_session") as mock_build:
            fetcher = build_fetcher(replace(ScanConfig(), fast_http=True, proxy="http://p:8080"))
        self.assertIsInstance(fetcher, CurlFetcher)
        mock_build.assert_called_once_with("http://p:8080")


class TestParseTotalSize(unittest.TestCase):
    def test_unknown_total(self):
        self.assertEqual(parse_total_size({"Content-Range": "bytes 0-9/*"}, 10), 10)

    def test_malformed_length(self):
        self.assertEqual(parse_total_size({"Content-Length": "abc"}, 7), 7)

    def test_range_beats_length(self):
        headers = {"Content-Range": "bytes 0-9/500", "Content-Length": "10"}
        self.assertEqual(parse_total_size(headers, 10), 500)


if __name__ == "__main__":
    unittest.main()
