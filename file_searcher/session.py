"""
HTTP session creation for the file searcher.

Provides:
* ``requests`` sessions with a pooled adapter sized to the concurrency
* ``curl_cffi`` sessions for the high-throughput transport
* Per-request header randomisation (User-Agent, Accept-Language,
  Referer/Origin, DNT, Upgrade-Insecure-Requests)
"""

import random

import requests
import urllib3
from curl_cffi import requests as cf_requests
from requests.adapters import HTTPAdapter

from file_searcher.config import (
    ACCEPT_LANGUAGES,
    DNT_PROBABILITY,
    UPGRADE_INSECURE_PROBABILITY,
    USER_AGENTS,
)

# Targets are arbitrary internal hosts, often with self-signed certificates
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)


def _proxies(proxy: str | None) -> dict[str, str]:
    if not proxy:
        return {}
    return {"http": proxy, "https": proxy}


def build_session(concurrency: int = 10, proxy: str | None = None) -> requests.Session:
    """Return a ``requests.Session`` with keep-alive, a connection pool
    sized for *concurrency* workers and TLS verification disabled.

    No retries: a failed request is recorded as an error result, not replayed.
    """
    session = requests.Session()
    adapter = HTTPAdapter(
        max_retries=0,
        pool_connections=max(10, concurrency),
        pool_maxsize=max(10, concurrency * 2),
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.verify = False
    session.headers["Accept-Encoding"] = "identity"
    session.trust_env = proxy is None
    session.proxies.update(_proxies(proxy))
    return session


def build_cf_session(proxy: str | None = None) -> cf_requests.Session:
    """Return a ``curl_cffi`` session (libcurl) for the high-throughput
    transport, TLS verification disabled."""
    session = cf_requests.Session(verify=False, proxies=_proxies(proxy) or None)
    return session


def random_user_agent() -> str:
    """Pick a User-Agent from the pool and randomise the patch component
    of every ``product/x.y.z`` version token."""
    parts = random.choice(USER_AGENTS).split(" ")
    for i, part in enumerate(parts):
        if "/" not in part:
            continue
        product, _, version = part.partition("/")
        if "/" in version:
            continue
        numbers = version.split(".")
        if len(numbers) > 2:
            numbers[2] = str(random.randint(0, 99))
            parts[i] = f"{product}/{'.'.join(numbers)}"
    return " ".join(parts)


def random_headers(url: str) -> dict[str, str]:
    """Return randomised browser-like headers for a request to *url*.
    Referer and Origin mirror the request URL."""
    headers: dict[str, str] = {
        "User-Agent": random_user_agent(),
        "Accept-Language": random.choice(ACCEPT_LANGUAGES),
        "Accept": "*/*",
        "Referer": url,
        "Origin": url,
    }
    if random.random() < DNT_PROBABILITY:
        headers["DNT"] = "1"
    if random.random() < UPGRADE_INSECURE_PROBABILITY:
        headers["Upgrade-Insecure-Requests"] = "1"
    return headers


def request_headers(
    url: str, max_content_read: int, extra: dict[str, str] | None = None,
) -> dict[str, str]:
    """Full header set for one request: randomised headers, a byte-range
    capped at *max_content_read*, then *extra* headers, which override
    anything set before them."""
    headers = random_headers(url)
    headers["Range"] = f"bytes=0-{max(0, max_content_read - 1)}"
    if extra:
        headers.update(extra)
    return headers
