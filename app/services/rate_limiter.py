# /app/services/rate_limiter.py

"""
Fixed-window rate limiting for the unauthenticated password-reset endpoints.

Each limit type has its own window, request budget and optional cooldown
(minimum spacing between two counted attempts). Counters are keyed by
`type:identifier`, e.g. `forgot_password_email:jane@uni.edu`.
"""

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Tuple


@dataclass(frozen=True)
class RateLimitRule:
    window_seconds: int
    max_requests: int
    cooldown_seconds: int = 0


DEFAULT_RULES: Dict[str, RateLimitRule] = {
    "forgot_password_ip": RateLimitRule(window_seconds=60, max_requests=5),
    "forgot_password_email": RateLimitRule(window_seconds=60, max_requests=3, cooldown_seconds=60),
    "verify_otp_ip": RateLimitRule(window_seconds=60, max_requests=10),
    "verify_otp_email": RateLimitRule(window_seconds=60, max_requests=5),
}


@dataclass
class _Window:
    count: int
    reset_at: float
    last_attempt: float


class RateLimiter:
    def __init__(self, rules: Dict[str, RateLimitRule] = None, clock: Callable[[], float] = time.time):
        self.rules = dict(rules or DEFAULT_RULES)
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def hit(self, limit_type: str, identifier: str) -> Tuple[bool, int]:
        """
        Counts one attempt. Returns `(limited, retry_after_seconds)`; a limited
        attempt is not counted.
        """
        rule = self.rules[limit_type]
        key = f"{limit_type}:{identifier.strip().lower()}"
        now = self._clock()
        with self._lock:
            window = self._windows.get(key)
            if window is None or window.reset_at <= now:
                if window is not None and rule.cooldown_seconds:
                    wait = window.last_attempt + rule.cooldown_seconds - now
                    if wait > 0:
                        return True, math.ceil(wait)
                self._windows[key] = _Window(count=1, reset_at=now + rule.window_seconds, last_attempt=now)
                return False, 0

            if rule.cooldown_seconds:
                wait = window.last_attempt + rule.cooldown_seconds - now
                if wait > 0:
                    return True, math.ceil(wait)
            if window.count >= rule.max_requests:
                return True, math.ceil(window.reset_at - now)

            window.count += 1
            window.last_attempt = now
            return False, 0

    def reset(self, limit_type: str, identifier: str) -> None:
        with self._lock:
            self._windows.pop(f"{limit_type}:{identifier.strip().lower()}", None)

    def clear_all(self) -> None:
        with self._lock:
            self._windows.clear()

    def cleanup(self) -> int:
        """Drops windows that have expired and whose cooldown has elapsed."""
        now = self._clock()
        with self._lock:
            stale = []
            for key, window in self._windows.items():
                rule = self.rules[key.split(":", 1)[0]]
                if window.reset_at <= now and window.last_attempt + rule.cooldown_seconds <= now:
                    stale.append(key)
            for key in stale:
                del self._windows[key]
        return len(stale)


rate_limiter = RateLimiter()
