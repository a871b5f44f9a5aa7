"""Build result cache, project hashing and bounded parallel analysis."""

import asyncio
import hashlib
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from contracts import BuildResult

logger = logging.getLogger(__name__)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return sign + "".join(reversed(digits))


def rolling_hash(text: str) -> str:
    """31-multiplier rolling hash wrapped to a signed 32-bit integer, in base 36."""
    h = 0
    for ch in text:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return _to_base36(h)


def sha256_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


HASH_ALGORITHMS: Dict[str, Callable[[str], str]] = {
    "rolling": rolling_hash,
    "sha256": sha256_hash,
}


def hash_project_files(files: Dict[str, str], algorithm: str = "rolling") -> str:
    """Hash each file, then the sorted `path:hash|...` join. Independent of key order."""
    hash_fn = HASH_ALGORITHMS[algorithm]
    combined = "|".join(f"{path}:{hash_fn(files[path])}" for path in sorted(files))
    return hash_fn(combined)


class BuildCache:
    """TTL-bounded build result cache, evicting the oldest entry beyond max_entries."""

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        max_entries: int = 50,
        hash_algorithm: str = "rolling",
        clock: Callable[[], float] = time.monotonic,
    ):
        if hash_algorithm not in HASH_ALGORITHMS:
            raise ValueError(f"Unknown hash algorithm: {hash_algorithm}")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.hash_algorithm = hash_algorithm
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[BuildResult, float]]" = OrderedDict()

    @classmethod
    def from_settings(cls, settings=None) -> "BuildCache":
        if settings is None:
            from config import settings
        return cls(ttl_seconds=settings.build_cache_ttl_seconds, max_entries=settings.build_cache_max_entries)

    def key_for(self, files: Dict[str, str]) -> str:
        return hash_project_files(files, self.hash_algorithm)

    def get(self, files: Dict[str, str]) -> Optional[BuildResult]:
        key = self.key_for(files)
        cached = self._entries.get(key)
        if cached is None:
            return None
        result, stored_at = cached
        if self._clock() - stored_at < self.ttl_seconds:
            return result
        del self._entries[key]
        return None

    def put(self, files: Dict[str, str], result: BuildResult) -> None:
        key = self.key_for(files)
        self._entries[key] = (result, self._clock())
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


AnalysisFn = Callable[[str, str], Awaitable[Tuple[List[str], List[str]]]]


async def analyze_files_in_parallel(
    files: Dict[str, str],
    analyzer: AnalysisFn,
    max_concurrent: int = 5,
) -> Tuple[List[str], List[str]]:
    """Run `analyzer(path, content)` in chunks of `max_concurrent`, merging (errors, warnings)."""
    errors: List[str] = []
    warnings: List[str] = []
    entries = list(files.items())
    step = max(1, max_concurrent)
    for i in range(0, len(entries), step):
        batch = entries[i:i + step]
        results = await asyncio.gather(*(analyzer(path, content) for path, content in batch))
        for batch_errors, batch_warnings in results:
            errors.extend(batch_errors)
            warnings.extend(batch_warnings)
    return errors, warnings


@dataclass(frozen=True)
class BuildProfile:
    """Retry bound and analysis switches for one pipeline run."""
    max_retries: int
    skip_ai_analysis: bool = False
    parallel_analysis: bool = True

    @classmethod
    def optimize_for_speed(cls, settings=None) -> "BuildProfile":
        if settings is None:
            from config import settings
        return cls(max_retries=settings.build_speed_max_retries)

    @classmethod
    def optimize_for_quality(cls, settings=None) -> "BuildProfile":
        if settings is None:
            from config import settings
        return cls(max_retries=settings.build_max_retries)
