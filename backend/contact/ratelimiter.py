# contact/ratelimiter.py
import math
import time
import logging
from threading import Lock
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

UNKNOWN_KEY = "unknown"

# --- Defaults: small bursts allowed, sustained spam is not ---
DEFAULT_CAPACITY = 5
DEFAULT_TOKENS_PER_PERIOD = 2
DEFAULT_PERIOD_SECONDS = 60.0
DEFAULT_MAX_KEYS = 10_000


class _Bucket:
    __slots__ = ("tokens", "updated_at", "lock", "detached")

    def __init__(self, tokens: float, updated_at: float):
        self.tokens = tokens
        self.updated_at = updated_at
        self.lock = Lock()
        self.detached = False


class TokenBucketLimiter:
    """
    Per-client token bucket. Requests are accepted or rejected immediately;
    nothing is queued. State is in-memory and resets with the process.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        tokens_per_period: int = DEFAULT_TOKENS_PER_PERIOD,
        period_seconds: float = DEFAULT_PERIOD_SECONDS,
        *,
        clock: Callable[[], float] = time.time,
        max_keys: int = DEFAULT_MAX_KEYS,
    ):
        if capacity < 1 or tokens_per_period < 1 or period_seconds <= 0:
            raise ValueError("capacity, tokens_per_period and period_seconds must be positive")
        self.capacity = capacity
        self.tokens_per_period = tokens_per_period
        self.period_seconds = float(period_seconds)
        self.max_keys = max_keys
        self._clock = clock
        self._buckets: Dict[str, _Bucket] = {}
        self._lock = Lock()

    @staticmethod
    def _key(key: Optional[str]) -> str:
        key = (key or "").strip()
        return key or UNKNOWN_KEY

    def _now(self, now: Optional[float]) -> float:
        return self._clock() if now is None else now

    def _bucket(self, key: str, now: float) -> _Bucket:
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                if len(self._buckets) >= self.max_keys:
                    self._prune_locked(now)
                bucket = _Bucket(float(self.capacity), now)
                self._buckets[key] = bucket
            return bucket

    def _refill(self, bucket: _Bucket, now: float) -> None:
        # caller holds bucket.lock
        elapsed = max(0.0, now - bucket.updated_at)
        if elapsed:
            refill = elapsed / self.period_seconds * self.tokens_per_period
            bucket.tokens = min(float(self.capacity), bucket.tokens + refill)
            bucket.updated_at = now

    def try_acquire(self, key: Optional[str], now: Optional[float] = None) -> bool:
        key = self._key(key)
        now = self._now(now)
        while True:
            bucket = self._bucket(key, now)
            with bucket.lock:
                if bucket.detached:
                    # pruned between lookup and lock; fetch the live bucket
                    continue
                self._refill(bucket, now)
                if bucket.tokens >= 1:
                    bucket.tokens -= 1
                    return True
                break
        logger.info("[ratelimit] bucket empty for %s", key)
        return False

    def retry_after(self, key: Optional[str], now: Optional[float] = None) -> int:
        """Whole seconds until `key` has a token again (0 if it has one now)."""
        key = self._key(key)
        now = self._now(now)
        with self._lock:
            bucket = self._buckets.get(key)
        if bucket is None:
            return 0
        with bucket.lock:
            self._refill(bucket, now)
            missing = 1 - bucket.tokens
        if missing <= 0:
            return 0
        return max(1, math.ceil(missing / self.tokens_per_period * self.period_seconds))

    def _prune_locked(self, now: float) -> int:
        # A bucket that has refilled to capacity behaves exactly like a new one.
        stale = []
        for key, bucket in self._buckets.items():
            with bucket.lock:
                self._refill(bucket, now)
                if bucket.tokens >= self.capacity:
                    bucket.detached = True
                    stale.append(key)
        for key in stale:
            del self._buckets[key]
        if stale:
            logger.debug("[ratelimit] pruned %d idle buckets", len(stale))
        return len(stale)

    def prune(self, now: Optional[float] = None) -> int:
        with self._lock:
            return self._prune_locked(self._now(now))

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)
