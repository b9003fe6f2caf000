# contact/quota.py
import time
import logging
from datetime import datetime, timezone, timedelta
from threading import Lock
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 2


def day_key(now: float) -> str:
    return datetime.fromtimestamp(now, timezone.utc).strftime("%Y%m%d")


def seconds_until_midnight_utc(now: float) -> int:
    current = datetime.fromtimestamp(now, timezone.utc)
    midnight = datetime.combine((current + timedelta(days=1)).date(), datetime.min.time(), tzinfo=timezone.utc)
    return max(1, int((midnight - current).total_seconds()))


class DailyQuota:
    """
    Process-wide cap on contact emails per UTC day, shared by every client.
    It bounds sending cost; per-client abuse is the rate limiter's job.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        retention_days: int = DEFAULT_RETENTION_DAYS,
    ):
        self._clock = clock
        self.retention_days = retention_days
        self._counts: Dict[str, int] = {}
        self._current_key: Optional[str] = None
        self._lock = Lock()

    def _now(self, now: Optional[float]) -> float:
        return self._clock() if now is None else now

    def try_consume(self, max_per_day: int, now: Optional[float] = None) -> bool:
        now = self._now(now)
        key = day_key(now)
        with self._lock:
            if key != self._current_key:
                self._current_key = key
                self._prune_locked(now)
            used = self._counts.get(key, 0) + 1
            if used > max_per_day:
                self._counts[key] = max(0, max_per_day)
                logger.warning("[quota] daily limit of %d reached for %s", max_per_day, key)
                return False
            self._counts[key] = used
            return True

    def usage(self, max_per_day: int, now: Optional[float] = None) -> dict:
        now = self._now(now)
        with self._lock:
            used = self._counts.get(day_key(now), 0)
        return {
            "used": used,
            "remaining": max(0, max_per_day - used),
            "limit": max_per_day,
            "reset_in_seconds": seconds_until_midnight_utc(now),
        }

    def _prune_locked(self, now: float) -> None:
        cutoff = day_key(now - self.retention_days * 86400)
        # YYYYMMDD keys sort chronologically
        for key in [k for k in self._counts if k < cutoff]:
            del self._counts[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)
