"""
Configuration constants and run configuration for the file searcher.
"""

import re
from dataclasses import dataclass, field

from file_searcher.utils.log import log

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_CONCURRENCY = 10
DEFAULT_TIMEOUT = 12.0                     # seconds per request
DEFAULT_MAX_CONTENT_READ = 5 * 1024 * 1024  # bytes requested / read per response
DEFAULT_MEMORY_CEILING_MB = 900
DEFAULT_ENV_LIST = ("prod", "qa", "dev", "test", "uat", "stg", "stage", "sit", "api")

# ---------------------------------------------------------------------------
# Pipeline tuning
# ---------------------------------------------------------------------------
URL_QUEUE_SIZE = 250
RESULT_QUEUE_MIN = 120
RESULT_QUEUE_FACTOR = 3        # result queue = concurrency * factor (min RESULT_QUEUE_MIN)
READ_CHUNK_SIZE = 32 * 1024    # body read granularity of the transports
GC_EVERY_RESULTS = 100         # consumer forces a collection every N results
GOVERNOR_CHECK_EVERY = 1000    # producer consults the memory governor every N URLs
GOVERNOR_PAUSE = 0.1           # seconds slept when over the memory ceiling

# Response classification
LARGE_BODY_THRESHOLD = 1024 * 1024   # bodies above this are scanned in chunks
SCAN_CHUNK_SIZE = 64 * 1024
PREVIEW_LENGTH = 150

# Duplicate suppression
DEDUP_CAPACITY = 10000
DEDUP_SHARDS = 256

# ---------------------------------------------------------------------------
# Word generation tables
# ---------------------------------------------------------------------------
COMMON_TLDS = frozenset({
    # Multi-part TLDs
    "co.uk", "co.jp", "co.nz", "co.za", "com.au", "com.br", "com.cn", "com.mx", "com.tr", "com.tw",
    "edu.au", "edu.cn", "edu.hk", "edu.sg", "gov.uk", "net.au", "net.cn", "org.au", "org.uk",
    "ac.uk", "ac.nz", "ac.jp", "ac.kr", "ne.jp", "or.jp", "org.nz", "govt.nz", "sch.uk", "nhs.uk",
    # Generic TLDs
    "com", "org", "net", "edu", "gov", "int", "mil", "aero", "biz", "cat", "coop", "info", "jobs",
    "mobi", "museum", "name", "pro", "tel", "travel", "xxx", "asia", "arpa",
    # New gTLDs
    "app", "dev", "io", "ai", "cloud", "digital", "online", "store", "tech", "site", "website",
    "blog", "shop", "agency", "expert", "software", "studio", "design", "education", "healthcare",
    # Country code TLDs
    "ac", "ad", "ae", "af", "ag", "al", "am", "an", "ao", "aq", "ar", "as", "at", "au", "aw",
    "ax", "az", "ba", "bb", "bd", "be", "bf", "bg", "bh", "bi", "bj", "bm", "bn", "bo", "br", "bs",
    "bt", "bv", "bw", "by", "bz", "ca", "cc", "cd", "cf", "cg", "ch", "ci", "ck", "cl", "cm", "cn",
    "co", "cr", "cu", "cv", "cx", "cy", "cz", "de", "dj", "dk", "dm", "do", "dz", "ec", "ee", "eg",
    "er", "es", "et", "eu", "fi", "fj", "fk", "fm", "fo", "fr", "ga", "gb", "gd", "ge", "gf", "gg",
    "gh", "gi", "gl", "gm", "gn", "gp", "gq", "gr", "gs", "gt", "gu", "gw", "gy", "hk", "hm", "hn",
    "hr", "ht", "hu", "id", "ie", "il", "im", "in", "iq", "ir", "is", "it", "je", "jm", "jo",
    "jp", "ke", "kg", "kh", "ki", "km", "kn", "kp", "kr", "kw", "ky", "kz", "la", "lb", "lc", "li",
    "lk", "lr", "ls", "lt", "lu", "lv", "ly", "ma", "mc", "md", "me", "mg", "mh", "mk", "ml", "mm",
    "mn", "mo", "mp", "mq", "mr", "ms", "mt", "mu", "mv", "mw", "mx", "my", "mz", "na", "nc", "ne",
    "nf", "ng", "ni", "nl", "no", "np", "nr", "nu", "nz", "om", "pa", "pe", "pf", "pg", "ph", "pk",
    "pl", "pm", "pn", "pr", "ps", "pt", "pw", "py", "qa", "re", "ro", "rs", "ru", "rw", "sa", "sb",
    "sc", "sd", "se", "sg", "sh", "si", "sj", "sk", "sl", "sm", "sn", "so", "sr", "st", "su", "sv",
    "sy", "sz", "tc", "td", "tf", "tg", "th", "tj", "tk", "tl", "tm", "tn", "to", "tp", "tr", "tt",
    "tv", "tw", "tz", "ua", "ug", "uk", "us", "uy", "uz", "va", "vc", "ve", "vg", "vi", "vn", "vu",
    "wf", "ws", "ye", "yt", "za", "zm", "zw",
})

# Longer codes first so that "us-east-1" is removed whole, not as "us-east" + "-1"
CLOUD_REGIONS = (
    "ap-northeast-1", "ap-northeast-2", "ap-northeast-3", "ap-southeast-1",
    "ap-southeast-2", "ap-southeast-3", "ca-central-1", "eu-central-1",
    "us-east-1", "us-east-2", "us-west-1", "us-west-2", "af-south-1", "ap-east-1",
    "ap-south-1", "eu-west-1", "eu-west-2", "eu-west-3", "eu-north-1", "eu-south-1",
    "me-south-1", "sa-east-1",
    "ap-northeast", "ap-southeast", "ca-central", "us-east", "us-west", "af-south",
    "ap-east", "ap-south", "eu-west", "eu-north", "eu-south", "me-south", "sa-east",
    "apnortheast1", "apnortheast2", "apnortheast3", "apsoutheast1", "apsoutheast2",
    "apsoutheast3", "cacentral1", "eucentral1", "useast1", "useast2", "uswest1",
    "uswest2", "afsouth1", "apeast1", "apsouth1", "euwest1", "euwest2", "euwest3",
    "eunorth1", "eusouth1", "mesouth1", "saeast1",
)

# Environment words recognised at the end of a host label, independent of
# the configurable ``env_list``.
ENV_SUFFIX_WORDS = (
    "prod", "qa", "dev", "testing", "test", "uat", "stg", "stage", "staging",
    "developement", "production",
)

# Appended to words to test path-normalisation filter bypasses
BYPASS_SUFFIXES = (";", "..;")

# ---------------------------------------------------------------------------
# Request header randomisation pools
# ---------------------------------------------------------------------------
USER_AGENTS = [
    # Chrome (Windows)
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.6778.86 Safari/537.36",
    # Firefox (Windows)
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:133.0) Gecko/20100101 Firefox/133.0.3",
    # Safari (macOS)
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.6.1 Safari/605.1.15",
    # Edge (Windows)
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.6778.86 Safari/537.36 Edg/131.0.2903.70",
    # Chrome (Linux)
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.6778.86 Safari/537.36",
]

ACCEPT_LANGUAGES = [
    "en-US,en;q=0.9",
    "en-GB,en;q=0.8",
    "es-ES,es;q=0.9",
    "fr-FR,fr;q=0.9",
    "de-DE,de;q=0.8",
    "it-IT,it;q=0.9",
]

DNT_PROBABILITY = 0.5
UPGRADE_INSECURE_PROBABILITY = 0.3


# ---------------------------------------------------------------------------
# Run configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScanConfig:
    """Immutable run configuration shared read-only by every thread."""
    concurrency: int = DEFAULT_CONCURRENCY
    timeout: float = DEFAULT_TIMEOUT
    max_content_read: int = DEFAULT_MAX_CONTENT_READ
    min_content_size: int = 0
    status_codes: frozenset[int] = frozenset()
    content_types: tuple[str, ...] = ()
    disallowed_content_types: tuple[str, ...] = ()
    disallowed_content_strings: tuple[str, ...] = ()
    host_depth: int = 0
    env_list: tuple[str, ...] = DEFAULT_ENV_LIST
    skip_root: bool = False
    dont_generate_paths: bool = False
    no_env_appending: bool = False
    env_removing: bool = False
    append_bypasses: bool = False
    force_http: bool = False
    disable_duplicate_check: bool = False
    ignore_base_path_slash: bool = False
    max_words_per_host: int = 0
    extra_headers: dict[str, str] = field(default_factory=dict)
    proxy: str | None = None
    base_paths: tuple[str, ...] = ()
    fast_http: bool = False
    rate_limit: float = 0          # requests/second; 0 = same as concurrency
    memory_ceiling_mb: int = DEFAULT_MEMORY_CEILING_MB
    verbose: bool = False

    @property
    def protocol(self) -> str:
        return "http" if self.force_http else "https"

    @property
    def effective_rate(self) -> float:
        return self.rate_limit if self.rate_limit > 0 else float(self.concurrency)

    @property
    def has_rules(self) -> bool:
        return bool(self.status_codes or self.min_content_size > 0 or self.content_types)


# ---------------------------------------------------------------------------
# Option-string parsing
# ---------------------------------------------------------------------------

def parse_csv(raw: str | None, lower: bool = False) -> tuple[str, ...]:
    """Split a comma-separated option into trimmed, non-empty items."""
    if not raw:
        return ()
    items = (p.strip() for p in raw.split(","))
    return tuple(p.lower() if lower else p for p in items if p)


def parse_status_codes(raw: str | None) -> frozenset[int]:
    """Parse ``"200,301-302"`` into a set of ints.

    Entries that are not integers (or integer ranges) are logged and
    skipped rather than aborting the run.
    """
    codes: set[int] = set()
    for piece in parse_csv(raw):
        try:
            if "-" in piece:
                start, end = (int(x) for x in piece.split("-", 1))
                codes.update(range(start, end + 1))
            else:
                codes.add(int(piece))
        except ValueError:
            log.warning("[SKIP] Ignoring invalid status code '%s'", piece)
    return frozenset(codes)


_HEADER_RE = re.compile(r"^\s*([^:]+?)\s*:\s*(.*?)\s*$")


def parse_headers(raw: str | None) -> dict[str, str]:
    """Parse ``"Header1: Value1,Header2: Value2"`` into a dict."""
    headers: dict[str, str] = {}
    if not raw:
        return headers
    for chunk in raw.split(","):
        m = _HEADER_RE.match(chunk)
        if m and m.group(1):
            headers[m.group(1)] = m.group(2)
    return headers
