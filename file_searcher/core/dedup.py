"""
Sharded, size-bounded duplicate-response suppressor.

Generated words multiply the number of requests per host, and many of them
hit the same catch-all page.  :class:`ResponseTracker` remembers which
``(host, total size)`` pairs were already reported so that only the first
one surfaces as a finding.

Keys are 64-bit FNV-1a hashes of ``"host:size"``; the low bits of the
hash pick one of a power-of-two number of shards, each an independent LRU
behind its own lock.  Two different keys with the same hash are treated as
the same response (a false suppression); at 64 bits this is accepted.
"""

import threading
from collections import OrderedDict

from file_searcher.config import DEDUP_CAPACITY, DEDUP_SHARDS

_FNV_OFFSET = 0xCBF29CE484222325
_FNV_PRIME = 0x100000001B3
_MASK_64 = 0xFFFFFFFFFFFFFFFF


def fnv1a_64(data: str) -> int:
    """64-bit FNV-1a over the UTF-8 bytes of *data*."""
    h = _FNV_OFFSET
    for byte in data.encode("utf-8"):
        h ^= byte
        h = (h * _FNV_PRIME) & _MASK_64
    return h


class _Shard:
    __slots__ = ("lock", "entries", "capacity")

    def __init__(self, capacity: int) -> None:
        self.lock = threading.Lock()
        self.entries: OrderedDict[int, None] = OrderedDict()
        self.capacity = capacity


class ResponseTracker:
    """Answers "was an identically sized response already seen for this host?"."""

    def __init__(self, capacity: int = DEDUP_CAPACITY, shards: int = DEDUP_SHARDS) -> None:
        if shards <= 0 or shards & (shards - 1):
            raise ValueError(f"shard count must be a power of two, got {shards}")
        self._mask = shards - 1
        per_shard = max(1, capacity // shards)
        self._shards = [_Shard(per_shard) for _ in range(shards)]

    @staticmethod
    def key(host: str, size: int) -> int:
        return fnv1a_64(f"{host}:{size}")

    def shard_index(self, host: str, size: int) -> int:
        return self.key(host, size) & self._mask

    def is_new(self, host: str, size: int) -> bool:
        """Record ``(host, size)``; ``False`` if it was already present."""
        h = self.key(host, size)
        shard = self._shards[h & self._mask]
        with shard.lock:
            if h in shard.entries:
                shard.entries.move_to_end(h)
                return False
            shard.entries[h] = None
            if len(shard.entries) > shard.capacity:
                shard.entries.popitem(last=False)
            return True

    def __len__(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.entries)
        return total
