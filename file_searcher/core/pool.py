"""
Fetch worker pool.

N long-lived threads share one bounded URL queue and one bounded result
queue.  Each request holds a semaphore slot (in-flight cap) and a rate-limiter
token (requests/second cap).  Results are handed on with a blocking
``put``: a full result queue stalls the worker, it never drops a result.
"""

import threading
import time
import queue

from file_searcher.core.fetcher import FetchResult, Fetcher
from file_searcher.utils.log import log

# Put on the URL queue once per worker to end it, and on the result queue
# once all workers have exited.
END_OF_STREAM = None


class RateLimiter:
    """Thread-safe token bucket.

    *rate* tokens are added per second up to *burst*; :meth:`acquire`
    blocks until a token is available.  A non-positive rate disables
    limiting.
    """

    def __init__(self, rate: float, burst: int | None = None) -> None:
        self.rate = float(rate)
        self.burst = float(burst if burst is not None else max(1, int(rate)))
        self._tokens = self.burst
        self._last = time.monotonic()
        self._lock = threading.Lock()

    def acquire(self) -> None:
        if self.rate <= 0:
            return
        while True:
            with self._lock:
                now = time.monotonic()
                self._tokens = min(self.burst, self._tokens + (now - self._last) * self.rate)
                self._last = now
                if self._tokens >= 1:
                    self._tokens -= 1
                    return
                wait = (1 - self._tokens) / self.rate
            time.sleep(wait)


class WorkerPool:
    """Runs :meth:`Fetcher.fetch` for every URL on the input queue."""

    def __init__(
        self,
        fetcher: Fetcher,
        concurrency: int,
        limiter: RateLimiter | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.concurrency = max(1, concurrency)
        self.limiter = limiter or RateLimiter(self.concurrency, self.concurrency)
        self._semaphore = threading.BoundedSemaphore(self.concurrency)
        self._threads: list[threading.Thread] = []
        self._lock = threading.Lock()
        self.processed = 0
        self.errors = 0
        # Stays 0: results are handed on with a blocking put.  Reported in
        # the run summary so a non-zero value would be visible.
        self.dropped = 0

    def start(self, url_queue: queue.Queue, result_queue: queue.Queue) -> None:
        for i in range(self.concurrency):
            t = threading.Thread(
                target=self._worker,
                args=(url_queue, result_queue),
                name=f"worker-{i}",
                daemon=True,
            )
            t.start()
            self._threads.append(t)

    def join(self) -> None:
        for t in self._threads:
            t.join()

    def _fetch(self, url: str) -> FetchResult:
        with self._semaphore:
            self.limiter.acquire()
            try:
                return self.fetcher.fetch(url)
            except Exception as exc:
                log.error("[ERR] Unexpected failure fetching %s: %s", url, exc)
                return FetchResult(url=url, error=f"unexpected error: {exc}")

    def _worker(self, url_queue: queue.Queue, result_queue: queue.Queue) -> None:
        while True:
            url = url_queue.get()
            if url is END_OF_STREAM:
                break
            result = self._fetch(url)
            with self._lock:
                self.processed += 1
                if result.error is not None:
                    self.errors += 1
            result_queue.put(result)
            result = None
