# =========================
# FILE: pesach_orders/infrastructure/rate_limit.py
# (sliding window per client key, in-process)
# =========================
from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after_s: int = 0


@dataclass
class _Bucket:
    hits: List[float] = field(default_factory=list)


class InMemoryRateLimiter:
    def __init__(
        self,
        max_requests: int = 8,
        window_s: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_s = window_s
        self._clock = clock
        self._data: Dict[str, _Bucket] = {}
        self._lock = threading.Lock()

    def check(self, key: str) -> RateLimitDecision:
        with self._lock:
            now = self._clock()
            self._gc(now)
            bucket = self._data.setdefault(key, _Bucket())
            bucket.hits = [ts for ts in bucket.hits if now - ts < self.window_s]

            if len(bucket.hits) >= self.max_requests:
                oldest = bucket.hits[0]
                retry = max(1, math.ceil(self.window_s - (now - oldest)))
                return RateLimitDecision(allowed=False, retry_after_s=retry)

            bucket.hits.append(now)
            return RateLimitDecision(allowed=True)

    def _gc(self, now: float) -> None:
        expired = [
            k for k, b in self._data.items()
            if not b.hits or now - b.hits[-1] >= self.window_s
        ]
        for k in expired:
            self._data.pop(k, None)
