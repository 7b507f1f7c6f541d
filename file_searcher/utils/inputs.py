"""
Line-file loading helpers for hosts, paths, markers and base paths.
"""

import random
from pathlib import Path


def read_lines(path: str | Path) -> list[str]:
    """Return every line of *path* with the trailing newline removed.

    Blank lines are dropped; everything else (including ``##`` comment
    lines in path lists) is kept verbatim for the caller to interpret.
    """
    with open(path, encoding="utf-8", errors="replace") as f:
        return [line.rstrip("\r\n") for line in f if line.strip()]


def load_hosts(hosts_file: str | None, single_host: str | None,
               shuffle: bool = True) -> list[str]:
    """Load hosts from *hosts_file* (skipping ``#`` comments) or fall back
    to *single_host*.  File-sourced hosts are shuffled so consecutive
    requests spread over different targets."""
    if hosts_file:
        hosts = [
            line.strip() for line in read_lines(hosts_file)
            if not line.strip().startswith("#")
        ]
        if shuffle:
            random.shuffle(hosts)
        return hosts
    if single_host and single_host.strip():
        return [single_host.strip()]
    return []


def load_base_paths(path: str | None) -> tuple[str, ...]:
    if not path:
        return ()
    return tuple(line.strip() for line in read_lines(path))
