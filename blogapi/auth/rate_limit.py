from __future__ import annotations

import threading
from datetime import datetime, timedelta


class RateLimiter:
    """Sliding-window limiter keyed by login identifier.

    Keys whose attempts have all left the window are dropped, and a full sweep
    of idle keys runs at most once per window, so the map only holds keys seen
    within roughly the last two windows.
    """

    def __init__(self, max_attempts: int, window_seconds: int) -> None:
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._attempts: dict[str, list[datetime]] = {}
        self._last_sweep: datetime | None = None
        self._lock = threading.Lock()

    def allow(self, key: str, now: datetime) -> bool:
        key = key.strip().lower()
        cutoff = now - timedelta(seconds=self.window_seconds)
        with self._lock:
            self._sweep(now, cutoff)
            recent = [ts for ts in self._attempts.pop(key, []) if ts >= cutoff]
            if len(recent) >= self.max_attempts:
                self._attempts[key] = recent
                return False
            recent.append(now)
            self._attempts[key] = recent
            return True

    def _sweep(self, now: datetime, cutoff: datetime) -> None:
        if self._last_sweep is not None and self._last_sweep > cutoff:
            return
        self._last_sweep = now
        # attempts are appended in order, so the last one is the newest
        stale = [key for key, stamps in self._attempts.items() if not stamps or stamps[-1] < cutoff]
        for key in stale:
            del self._attempts[key]
