"""Utility helpers for logging, input files and progress reporting."""

from file_searcher.utils.log import setup_logging, log
from file_searcher.utils.inputs import read_lines, load_hosts, load_base_paths

__all__ = [
    "setup_logging",
    "log",
    "read_lines",
    "load_hosts",
    "load_base_paths",
]
