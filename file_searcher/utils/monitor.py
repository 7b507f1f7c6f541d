"""
Periodic progress / resource reporting.

Runs on its own thread and never touches the decision path: it only reads
the processed / emitted counters it is given.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable

import psutil

from file_searcher.utils.log import log

try:
    from tqdm import tqdm as _tqdm
    _TQDM_AVAILABLE = True
except ImportError:
    _TQDM_AVAILABLE = False


@dataclass
class ProgressSnapshot:
    processed: int
    total: int
    rps: float
    memory_mb: float
    elapsed: float
    eta: float | None

    @property
    def percent(self) -> float:
        return (self.processed / self.total * 100) if self.total else 0.0

    def format(self) -> str:
        if self.total:
            eta = f"{self.eta:.0f}s" if self.eta is not None else "?"
            return (f"Progress: {self.percent:.2f}% ({self.processed}/{self.total}) | "
                    f"RPS: {self.rps:.2f} | Mem: {self.memory_mb:.0f}MB | "
                    f"Elapsed: {self.elapsed:.0f}s | ETA: {eta}")
        return (f"Processed: {self.processed} | RPS: {self.rps:.2f} | "
                f"Mem: {self.memory_mb:.0f}MB | Elapsed: {self.elapsed:.0f}s")


class ProgressMonitor:
    """Ticks every *interval* seconds and reports a :class:`ProgressSnapshot`.

    *processed_fn* and *total_fn* return the current counters.  The total
    is only an estimate while the producer is still running.  With
    ``use_bar`` and ``tqdm`` installed a live bar is drawn; otherwise a
    ``[PROGRESS]`` log line is written every *log_every* ticks.
    """

    def __init__(
        self,
        processed_fn: Callable[[], int],
        total_fn: Callable[[], int],
        interval: float = 1.0,
        use_bar: bool = True,
        log_every: int = 10,
    ) -> None:
        self.processed_fn = processed_fn
        self.total_fn = total_fn
        self.interval = interval
        self.use_bar = use_bar and _TQDM_AVAILABLE
        self.log_every = max(1, log_every)
        self.last: ProgressSnapshot | None = None
        self._process = psutil.Process()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._bar = None
        self._start = time.monotonic()
        self._last_time = self._start
        self._last_processed = 0

    def snapshot(self) -> ProgressSnapshot:
        now = time.monotonic()
        processed = self.processed_fn()
        total = self.total_fn()
        interval = now - self._last_time
        rps = (processed - self._last_processed) / interval if interval > 0 else 0.0
        elapsed = now - self._start
        eta = None
        if total and processed:
            eta = max(0.0, elapsed * total / processed - elapsed)
        self._last_time = now
        self._last_processed = processed
        self.last = ProgressSnapshot(
            processed=processed,
            total=total,
            rps=rps,
            memory_mb=self._process.memory_info().rss / (1024 * 1024),
            elapsed=elapsed,
            eta=eta,
        )
        return self.last

    def start(self) -> None:
        self._start = self._last_time = time.monotonic()
        if self.use_bar:
            self._bar = _tqdm(desc="Scanning", unit="URL", dynamic_ncols=True)
        self._thread = threading.Thread(target=self._run, name="progress", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
        self._render(self.snapshot(), final=True)
        if self._bar is not None:
            self._bar.close()

    def _run(self) -> None:
        ticks = 0
        while not self._stop.wait(self.interval):
            ticks += 1
            snap = self.snapshot()
            if self._bar is not None or ticks % self.log_every == 0:
                self._render(snap)

    def _render(self, snap: ProgressSnapshot, final: bool = False) -> None:
        if self._bar is not None:
            self._bar.total = snap.total or None
            self._bar.n = snap.processed
            self._bar.set_postfix(rps=f"{snap.rps:.1f}", mem=f"{snap.memory_mb:.0f}MB",
                                  refresh=False)
            self._bar.refresh()
        elif not final:
            log.info("[PROGRESS] %s", snap.format())
