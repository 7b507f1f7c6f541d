"""
Scan pipeline.

    producer thread ──► URL queue ──► N worker threads ──► result queue ──► consumer
                        (bounded)                          (bounded)        (calling thread)

The producer puts one end-of-stream marker per worker.  When every worker
has exited, a closer thread puts a single marker on the result queue, so
the consumer drains every result before it stops and no worker can be
left blocked on a full result queue.
"""

import gc
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from file_searcher.config import (
    GC_EVERY_RESULTS,
    RESULT_QUEUE_FACTOR,
    RESULT_QUEUE_MIN,
    URL_QUEUE_SIZE,
    ScanConfig,
)
from file_searcher.core.classifier import Classifier, Finding, log_finding
from file_searcher.core.dedup import ResponseTracker
from file_searcher.core.fetcher import Fetcher, build_fetcher
from file_searcher.core.pool import END_OF_STREAM, RateLimiter, WorkerPool
from file_searcher.core.producer import MemoryGovernor, NullGovernor, UrlProducer
from file_searcher.core.words import WordGenerator
from file_searcher.utils.log import log
from file_searcher.utils.monitor import ProgressMonitor


class InputError(ValueError):
    """Raised before any thread starts when the host or path list is empty."""


@dataclass
class ScanStats:
    total: int = 0
    processed: int = 0
    matches: int = 0
    duplicates: int = 0
    filtered: int = 0
    errors: int = 0
    dropped: int = 0
    elapsed: float = 0.0
    producer_error: str | None = None
    findings: list[Finding] = field(default_factory=list)

    @property
    def error_rate(self) -> float:
        return self.errors / self.processed * 100 if self.processed else 0.0

    @property
    def drop_rate(self) -> float:
        return self.dropped / self.total * 100 if self.total else 0.0

    @property
    def success_rate(self) -> float:
        return 100.0 - self.error_rate if self.processed else 0.0

    def log_summary(self) -> None:
        log.info(
            "[STATS] urls=%d  processed=%d  matches=%d  dup=%d  filtered=%d  err=%d  "
            "dropped=%d  elapsed=%.1fs",
            self.total, self.processed, self.matches, self.duplicates,
            self.filtered, self.errors, self.dropped, self.elapsed,
        )
        log.info(
            "[STATS] success rate %.2f%%  error rate %.2f%%  drop rate %.2f%%",
            self.success_rate, self.error_rate, self.drop_rate,
        )
        if self.producer_error:
            log.error("[ERR] URL generation stopped early, totals cover only the URLs "
                      "produced before: %s", self.producer_error)


def validate_input(hosts: list[str], paths: list[str], markers: list[str]) -> None:
    if not hosts:
        raise InputError("The domain list is empty. Please provide at least one domain.")
    if not any(p and not p.startswith("##") for p in paths):
        raise InputError("The path list is empty. Please provide at least one path.")
    if not markers:
        log.warning("The marker list is empty. The scan will only use the "
                    "rule filters, which might not be very useful.")


class Scanner:
    """Wires producer, worker pool, classifier and progress monitor."""

    def __init__(
        self,
        config: ScanConfig,
        hosts: list[str],
        paths: list[str],
        markers: list[str] | None = None,
        fetcher: Fetcher | None = None,
        governor: MemoryGovernor | None = None,
        on_finding: Callable[[Finding], None] | None = log_finding,
        show_progress: bool = True,
    ) -> None:
        self.config = config
        self.hosts = list(hosts)
        self.paths = list(paths)
        self.markers = list(markers or [])
        validate_input(self.hosts, self.paths, self.markers)

        self.fetcher = fetcher or build_fetcher(config)
        if governor is None:
            governor = (MemoryGovernor(config.memory_ceiling_mb)
                        if config.memory_ceiling_mb > 0 else NullGovernor())
        self.producer = UrlProducer(config, WordGenerator(), governor)
        self.pool = WorkerPool(
            self.fetcher,
            config.concurrency,
            RateLimiter(config.effective_rate, max(1, config.concurrency)),
        )
        self.classifier = Classifier(config, self.markers, ResponseTracker())
        self.on_finding = on_finding
        self.show_progress = show_progress
        self.producer_error: str | None = None

    def log_plan(self) -> None:
        cfg = self.config
        log.info("Scanning %d domains with %d paths", len(self.hosts), len(self.paths))
        log.info("Transport                : %s", type(self.fetcher).__name__)
        log.info("Concurrency / rate       : %d / %.1f req/s", cfg.concurrency, cfg.effective_rate)
        log.info("Minimum file size        : %d bytes", cfg.min_content_size)
        if cfg.status_codes:
            log.info("Filtering status codes   : %s",
                     ",".join(str(c) for c in sorted(cfg.status_codes)))
        for key, value in cfg.extra_headers.items():
            log.info("Extra header             : %s: %s", key, value)

    def run(self) -> ScanStats:
        cfg = self.config
        url_queue: queue.Queue = queue.Queue(maxsize=URL_QUEUE_SIZE)
        result_queue: queue.Queue = queue.Queue(
            maxsize=max(cfg.concurrency * RESULT_QUEUE_FACTOR, RESULT_QUEUE_MIN)
        )
        self.log_plan()
        t0 = time.monotonic()
        self.producer_error = None

        def _produce(*args) -> None:
            try:
                self.producer.stream(*args)
            except Exception as exc:
                self.producer_error = f"{type(exc).__name__}: {exc}"
                log.error("[ERR] URL producer stopped early: %s", self.producer_error)

        producer = threading.Thread(
            target=_produce,
            args=(self.hosts, self.paths, url_queue, self.pool.concurrency),
            name="producer",
            daemon=True,
        )
        producer.start()
        self.pool.start(url_queue, result_queue)

        def _close_results() -> None:
            self.pool.join()
            result_queue.put(END_OF_STREAM)

        closer = threading.Thread(target=_close_results, name="closer", daemon=True)
        closer.start()

        monitor = ProgressMonitor(
            processed_fn=lambda: self.pool.processed,
            total_fn=lambda: self.producer.emitted,
            use_bar=self.show_progress,
        )
        monitor.start()

        stats = ScanStats()
        try:
            self._consume(result_queue, stats)
        finally:
            monitor.stop()
        producer.join()
        closer.join()
        self.fetcher.close()

        stats.total = self.producer.emitted
        stats.processed = self.pool.processed
        stats.errors = self.pool.errors
        stats.dropped = self.pool.dropped
        stats.matches = self.classifier.stats["matches"]
        stats.duplicates = self.classifier.stats["duplicates"]
        stats.filtered = self.classifier.stats["filtered"]
        stats.elapsed = time.monotonic() - t0
        stats.producer_error = self.producer_error
        stats.log_summary()
        return stats

    def _consume(self, result_queue: queue.Queue, stats: ScanStats) -> None:
        count = 0
        while True:
            result = result_queue.get()
            if result is END_OF_STREAM:
                break
            finding = self.classifier.classify(result)
            result.release()
            if finding is not None:
                stats.findings.append(finding)
                if self.on_finding is not None:
                    self.on_finding(finding)
            count += 1
            if count % GC_EVERY_RESULTS == 0:
                gc.collect()
