"""Core scan pipeline – word generation, URL production, fetching,
classification and duplicate suppression."""

from file_searcher.core.classifier import Classifier, Finding
from file_searcher.core.dedup import ResponseTracker
from file_searcher.core.fetcher import CurlFetcher, FetchResult, RequestsFetcher, build_fetcher
from file_searcher.core.pool import RateLimiter, WorkerPool
from file_searcher.core.producer import MemoryGovernor, NullGovernor, UrlProducer
from file_searcher.core.scanner import InputError, Scanner, ScanStats
from file_searcher.core.words import WordGenerator, remove_tld

__all__ = [
    "Classifier",
    "Finding",
    "ResponseTracker",
    "CurlFetcher",
    "FetchResult",
    "RequestsFetcher",
    "build_fetcher",
    "RateLimiter",
    "WorkerPool",
    "MemoryGovernor",
    "NullGovernor",
    "UrlProducer",
    "InputError",
    "Scanner",
    "ScanStats",
    "WordGenerator",
    "remove_tld",
]
