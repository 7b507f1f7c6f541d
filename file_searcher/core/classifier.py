"""
Response classification.

Checks run cheapest and most exclusionary first:

1. transport error                      -> skip
2. disallowed Content-Type substring    -> skip
3. disallowed body substring            -> skip
4. markers configured: a marker must hit (rules are not consulted)
5. otherwise rules configured: every configured rule must pass
6. nothing configured                   -> every response matches
7. duplicate ``(host, total size)``     -> suppressed

Only the capped body is inspected.  Bodies above ``LARGE_BODY_THRESHOLD``
are searched in fixed-size windows so that case folding never copies more
than one window at a time.
"""

import re
import urllib.parse
from dataclasses import dataclass

from file_searcher.config import (
    LARGE_BODY_THRESHOLD,
    PREVIEW_LENGTH,
    SCAN_CHUNK_SIZE,
    ScanConfig,
)
from file_searcher.core.dedup import ResponseTracker
from file_searcher.core.fetcher import FetchResult
from file_searcher.utils.log import log

REGEX_PREFIX = "regex:"


@dataclass(frozen=True)
class Marker:
    raw: str
    pattern: re.Pattern | None = None

    def search(self, text: str) -> bool:
        if self.pattern is not None:
            return self.pattern.search(text) is not None
        return contains(text, self.raw)


@dataclass
class Finding:
    """A response worth reporting."""
    url: str
    status_code: int
    total_size: int
    content_type: str
    preview: str
    marker: str = ""

    @property
    def rule_summary(self) -> str:
        return f"S: {self.status_code}, FS: {self.total_size}, CT: {self.content_type}"

    def to_dict(self) -> dict:
        d = {
            "url": self.url,
            "status_code": self.status_code,
            "total_size": self.total_size,
            "content_type": self.content_type,
            "preview": self.preview,
        }
        if self.marker:
            d["marker"] = self.marker
        return d


def contains(text: str, needle: str, fold: bool = False) -> bool:
    """Substring test that windows over large *text*.

    Consecutive windows overlap by ``len(needle) - 1`` characters so a
    match straddling a window boundary is still found.
    """
    if not needle:
        return False
    if fold:
        needle = needle.lower()
    if len(text) <= LARGE_BODY_THRESHOLD:
        return needle in (text.lower() if fold else text)
    overlap = len(needle) - 1
    for start in range(0, len(text), SCAN_CHUNK_SIZE):
        window = text[start:start + SCAN_CHUNK_SIZE + overlap]
        if fold:
            window = window.lower()
        if needle in window:
            return True
    return False


def compile_markers(raw_markers: list[str]) -> list[Marker]:
    """Build :class:`Marker` objects; invalid ``regex:`` patterns are
    logged and dropped."""
    markers: list[Marker] = []
    for raw in raw_markers:
        if not raw:
            continue
        if raw.startswith(REGEX_PREFIX):
            try:
                pattern = re.compile(raw[len(REGEX_PREFIX):])
            except re.error as exc:
                log.warning("[SKIP] Ignoring invalid regex marker %r: %s", raw, exc)
                continue
            markers.append(Marker(raw, pattern))
        else:
            markers.append(Marker(raw))
    return markers


def host_of(url: str) -> str:
    try:
        return urllib.parse.urlsplit(url).netloc or url
    except ValueError:
        return url


def make_preview(text: str, length: int = PREVIEW_LENGTH) -> str:
    """First *length* characters of *text* with CR and LF removed."""
    parts: list[str] = []
    collected = 0
    for start in range(0, len(text), length * 2):
        piece = text[start:start + length * 2].replace("\r", "").replace("\n", "")
        parts.append(piece)
        collected += len(piece)
        if collected >= length:
            break
    return "".join(parts)[:length]


class Classifier:
    """Decides which fetch results become findings."""

    def __init__(
        self,
        config: ScanConfig,
        markers: list[str] | None = None,
        tracker: ResponseTracker | None = None,
    ) -> None:
        self.config = config
        self.markers = compile_markers(markers or [])
        self.tracker = tracker if tracker is not None else ResponseTracker()
        self.content_types = tuple(c.lower() for c in config.content_types)
        self.disallowed_types = tuple(d.lower() for d in config.disallowed_content_types)
        self.stats = {"errors": 0, "filtered": 0, "duplicates": 0, "matches": 0}

    # ------------------------------------------------------------------
    # Individual checks
    # ------------------------------------------------------------------

    def is_disallowed_content_type(self, content_type: str) -> bool:
        ct = content_type.lower()
        return any(d in ct for d in self.disallowed_types)

    def find_disallowed_string(self, text: str) -> str | None:
        for needle in self.config.disallowed_content_strings:
            if contains(text, needle, fold=True):
                return needle
        return None

    def find_marker(self, text: str) -> Marker | None:
        for marker in self.markers:
            if marker.search(text):
                return marker
        return None

    def rules_pass(self, result: FetchResult) -> bool:
        cfg = self.config
        if cfg.status_codes and result.status_code not in cfg.status_codes:
            return False
        if cfg.min_content_size > 0 and result.total_size < cfg.min_content_size:
            return False
        if self.content_types:
            ct = result.content_type.lower()
            if not any(allowed in ct for allowed in self.content_types):
                return False
        return True

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------

    def classify(self, result: FetchResult) -> Finding | None:
        """Return a :class:`Finding` for a reportable *result*, else ``None``."""
        if result.error is not None:
            self.stats["errors"] += 1
            log.debug("[ERR] %s: %s", result.url, result.error)
            return None

        if self.is_disallowed_content_type(result.content_type):
            return self._skip(result, f"disallowed content type {result.content_type!r}")

        text = result.content.decode("utf-8", errors="replace")

        needle = self.find_disallowed_string(text)
        if needle is not None:
            return self._skip(result, f"disallowed content {needle!r}")

        marker = None
        if self.markers:
            marker = self.find_marker(text)
            if marker is None:
                return self._skip(result, "no marker found")
        elif self.config.has_rules and not self.rules_pass(result):
            return self._skip(
                result,
                f"rules failed (S: {result.status_code}, FS: {result.total_size})",
            )

        if not self.config.disable_duplicate_check:
            host = host_of(result.url)
            if not self.tracker.is_new(host, result.total_size):
                self.stats["duplicates"] += 1
                log.debug("[DUP] Skipped duplicate response size %d for host %s",
                          result.total_size, host)
                return None

        self.stats["matches"] += 1
        return Finding(
            url=result.url,
            status_code=result.status_code,
            total_size=result.total_size,
            content_type=result.content_type,
            preview=make_preview(text),
            marker=marker.raw if marker else "",
        )

    def _skip(self, result: FetchResult, reason: str) -> None:
        self.stats["filtered"] += 1
        log.debug("[SKIP] %s: %s", result.url, reason)
        return None


def log_finding(finding: Finding) -> None:
    """Report *finding* on the console log."""
    log.warning("[MATCH] Match found in %s", finding.url)
    if finding.marker:
        log.warning("        Markers check: passed (%s)", finding.marker)
    log.warning("        Rules check: passed (%s)", finding.rule_summary)
    log.info("[BODY] %s", finding.preview)
