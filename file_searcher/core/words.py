"""
Host-to-word generator.

Decomposes a hostname into candidate path segments ("words") that are
likely to exist as directories on the host itself, e.g.::

    vendorgo.abc.targetdomain.com  ->  vendorgo, vend, abc, targetdomain, ...
                                       vendorgo-qa, vendorgo_prod, vendorgo/dev, ...

Words are produced lazily by a generator so that a large host list never
materialises its full candidate set.  The emission order is significant:
``max_words_per_host`` is a hard cap applied in that order, so it decides
*which* words survive, not only how many.
"""

import ipaddress
import re
from dataclasses import dataclass
from typing import Iterator

from file_searcher.config import (
    BYPASS_SUFFIXES,
    CLOUD_REGIONS,
    COMMON_TLDS,
    ENV_SUFFIX_WORDS,
    ScanConfig,
)

_IP_PART_RE = re.compile(r"\d{1,3}[-.]\d{1,3}[-.]\d{1,3}[-.]\d{1,3}")
_HASH_RE = re.compile(r"(?<![0-9a-f])[0-9a-f]{32}(?![0-9a-f])", re.IGNORECASE)
_ONLY_ALPHA_RE = re.compile(r"^[a-z]+$")
_NUMERIC_RE = re.compile(r"^\d+$")
_TRAILING_DIGITS_RE = re.compile(r"\d+$")
_SUB_LABEL_RE = re.compile(r"[-_]")


@dataclass(frozen=True)
class WordTables:
    """Immutable lookup tables used by :class:`WordGenerator`."""
    tlds: frozenset[str]
    region_re: re.Pattern
    env_suffix_re: re.Pattern
    bypass_suffixes: tuple[str, ...]

    @classmethod
    def default(cls) -> "WordTables":
        regions = sorted(CLOUD_REGIONS, key=len, reverse=True)
        return cls(
            tlds=COMMON_TLDS,
            region_re=re.compile("|".join(re.escape(r) for r in regions)),
            env_suffix_re=re.compile(
                "(" + "|".join(re.escape(e) for e in ENV_SUFFIX_WORDS) + ")$"
            ),
            bypass_suffixes=BYPASS_SUFFIXES,
        )


def remove_tld(host: str, tlds: frozenset[str] = COMMON_TLDS) -> str:
    """Strip the longest known TLD suffix from *host*.

    Joins the labels from each position to the end and returns everything
    before the first joined suffix found in *tlds*; the earliest position
    is the longest suffix.  The result is lower-cased.

    >>> remove_tld("foo.co.uk")
    'foo'
    """
    host = host.lower()
    parts = host.split(".")
    for i in range(len(parts)):
        if ".".join(parts[i:]) in tlds:
            return ".".join(parts[:i])
    return host


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return False
    return True


def _strip_host(host: str) -> str | None:
    """Drop scheme, path and port; ``None`` for bare IP literals."""
    for prefix in ("http://", "https://"):
        if host.startswith(prefix):
            host = host[len(prefix):]
    host = host.split("/", 1)[0]
    if host.startswith("["):
        return None
    if _is_ip_literal(host):
        return None
    if host.count(":") == 1:
        host = host.split(":", 1)[0]
    if _is_ip_literal(host):
        return None
    return host


class WordGenerator:
    """Turns a host into a deterministic, deduplicated stream of words."""

    def __init__(self, tables: WordTables | None = None) -> None:
        self.tables = tables or WordTables.default()

    def host_labels(self, host: str, host_depth: int = 0) -> list[str] | None:
        """Normalise *host* and split it into the labels words are built from.

        Returns ``None`` when the host is an IP literal.
        """
        stripped = _strip_host(host)
        if stripped is None:
            return None
        stripped = _IP_PART_RE.sub("", stripped)
        stripped = _HASH_RE.sub("", stripped)
        stripped = remove_tld(stripped, self.tables.tlds)
        stripped = self.tables.region_re.sub("", stripped)
        stripped = (stripped.replace("--", "-")
                            .replace("..", ".")
                            .replace("__", "_"))

        labels = stripped.split(".")
        if labels and labels[0] == "www":
            labels = labels[1:]
        if host_depth > 0:
            labels = labels[:host_depth]
        return labels

    def generate(self, host: str, config: ScanConfig) -> Iterator[str]:
        """Yield the words for *host*.

        Every call returns a fresh generator, so the sequence can be
        restarted; callers may stop consuming at any point.
        """
        labels = self.host_labels(host, config.host_depth)
        if labels is None:
            return
        limit = config.max_words_per_host
        seen: set[str] = set()
        base: list[str] = []
        count = 0

        for phase, candidate in self._candidates(labels, base, config):
            if not candidate or len(candidate) <= 1 or candidate in seen:
                continue
            if _NUMERIC_RE.match(candidate):
                continue
            seen.add(candidate)
            if phase == "base":
                base.append(candidate)
            yield candidate
            count += 1
            if limit > 0 and count >= limit:
                return

    def _candidates(
        self, labels: list[str], base: list[str], config: ScanConfig,
    ) -> Iterator[tuple[str, str]]:
        """Raw candidate stream, repeats included.

        *base* is filled by :meth:`generate` with the accepted label-derived
        words; the later phases iterate over it, which is safe because the
        generator only resumes after the consumer has recorded the previous
        candidate.
        """
        env_re = self.tables.env_suffix_re
        for label in labels:
            if _NUMERIC_RE.match(label) or len(label) <= 1:
                continue
            yield "base", label
            for sub in _SUB_LABEL_RE.split(label):
                if len(sub) > 1:
                    yield "base", sub

            m = env_re.search(label)
            if m:
                yield "base", label[:m.start()]
            m = _TRAILING_DIGITS_RE.search(label)
            if m:
                yield "base", label[:m.start()]
            if len(label) >= 3:
                yield "base", label[:3]
            if len(label) >= 4:
                yield "base", label[:4]

        words = list(base)
        envs = config.env_list

        if not config.no_env_appending:
            for word in words:
                if not _ONLY_ALPHA_RE.match(word):
                    continue
                if any(word.endswith(env) for env in envs):
                    continue
                for env in envs:
                    if env in word:
                        continue
                    yield "env", word + env
                    yield "env", f"{word}-{env}"
                    yield "env", f"{word}_{env}"
                    yield "env", f"{word}/{env}"

        if config.env_removing:
            for word in words:
                if not _ONLY_ALPHA_RE.match(word):
                    continue
                for env in envs:
                    if word.endswith(env):
                        yield "strip", word[:-len(env)]
                        break

        if config.append_bypasses:
            for word in words:
                for bypass in self.tables.bypass_suffixes:
                    yield "bypass", word + bypass
