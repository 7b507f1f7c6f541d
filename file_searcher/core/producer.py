"""
Streaming URL producer.

Combines hosts, paths, base paths and generated words into candidate URLs
and feeds them into a bounded queue.  Every ``put`` blocks when the queue
is full, which is what keeps memory flat when the combinations explode.
A :class:`MemoryGovernor` is consulted periodically as a second, advisory
brake based on the process resident set size.
"""

import gc
import queue
import threading
import time
from typing import Iterable, Iterator

import psutil

from file_searcher.config import GOVERNOR_CHECK_EVERY, GOVERNOR_PAUSE, ScanConfig
from file_searcher.core.pool import END_OF_STREAM
from file_searcher.core.words import WordGenerator
from file_searcher.utils.log import log

COMMENT_PREFIX = "##"


class MemoryGovernor:
    """Pauses the producer while the process is above a memory ceiling."""

    def __init__(self, ceiling_mb: float, pause: float = GOVERNOR_PAUSE) -> None:
        self.ceiling_mb = ceiling_mb
        self.pause = pause
        self.throttled = 0
        self._process = psutil.Process()

    def memory_mb(self) -> float:
        return self._process.memory_info().rss / (1024 * 1024)

    def throttle(self) -> bool:
        """Collect garbage and sleep briefly if over the ceiling.

        Returns ``True`` when a pause happened.
        """
        if self.ceiling_mb <= 0:
            return False
        current = self.memory_mb()
        if current < self.ceiling_mb:
            return False
        self.throttled += 1
        log.debug("[MEM] %.0f MB >= %.0f MB ceiling – pausing producer",
                  current, self.ceiling_mb)
        gc.collect()
        time.sleep(self.pause)
        return True


class NullGovernor(MemoryGovernor):
    """Governor that never pauses."""

    def __init__(self) -> None:
        self.ceiling_mb = 0
        self.pause = 0.0
        self.throttled = 0

    def memory_mb(self) -> float:
        return 0.0

    def throttle(self) -> bool:
        return False


def strip_scheme(host: str) -> str:
    for prefix in ("https://", "http://"):
        if host.startswith(prefix):
            host = host[len(prefix):]
            break
    return host.rstrip("/")


class UrlProducer:
    """Generates every candidate URL for a host list."""

    def __init__(
        self,
        config: ScanConfig,
        words: WordGenerator | None = None,
        governor: MemoryGovernor | None = None,
    ) -> None:
        self.config = config
        self.words = words or WordGenerator()
        self.governor = governor or NullGovernor()
        self.emitted = 0
        self._lock = threading.Lock()

    def urls_for_host(self, host: str, paths: Iterable[str]) -> Iterator[str]:
        """Yield the candidate URLs for one host in generation order."""
        cfg = self.config
        proto = cfg.protocol
        h = strip_scheme(host)
        root = f"{proto}://{h}"
        base_sep = "" if cfg.ignore_base_path_slash else "/"

        for path in paths:
            if path.startswith(COMMENT_PREFIX):
                continue
            if not cfg.skip_root:
                yield f"{root}/{path}"
            for base in cfg.base_paths:
                yield f"{root}{base_sep}{base}/{path}"
            if cfg.dont_generate_paths:
                continue
            for word in self.words.generate(h, cfg):
                if not cfg.base_paths:
                    yield f"{root}/{word}/{path}"
                else:
                    for base in cfg.base_paths:
                        yield f"{root}/{base}/{word}/{path}"

    def urls(self, hosts: Iterable[str], paths: list[str]) -> Iterator[str]:
        for host in hosts:
            yield from self.urls_for_host(host, paths)

    def stream(
        self,
        hosts: Iterable[str],
        paths: list[str],
        out: queue.Queue,
        sentinels: int = 1,
    ) -> None:
        """Put every URL on *out* (blocking when full), then *sentinels*
        end-of-stream markers."""
        try:
            for host in hosts:
                self.governor.throttle()
                for url in self.urls_for_host(host, paths):
                    out.put(url)
                    with self._lock:
                        self.emitted += 1
                        n = self.emitted
                    if n % GOVERNOR_CHECK_EVERY == 0:
                        self.governor.throttle()
        finally:
            for _ in range(sentinels):
                out.put(END_OF_STREAM)
