"""
Fixed-window rate limiting
Per-client counters kept in process memory
"""
import logging
import threading
import time
from typing import Callable, Dict, Tuple

from fastapi import Request

from bridge.core.config import settings
from bridge.core.errors import TooManyRequests

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Allow `max_requests` per client in each `window_seconds` window.
    Use an instance as a route dependency.
    """

    def __init__(self, name: str, max_requests: int, window_seconds: int, message: str,
                 clock: Callable[[], float] = time.monotonic):
        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.message = message
        self.clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> bool:
        """Count one request for `key`; False once the window is used up"""
        now = self.clock()
        with self._lock:
            self._prune(now)
            started, count = self._windows.get(key, (now, 0))
            count += 1
            self._windows[key] = (started, count)
            return count <= self.max_requests

    def _prune(self, now: float) -> None:
        stale = [k for k, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for k in stale:
            del self._windows[k]

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def __call__(self, request: Request) -> None:
        key = request.client.host if request.client else "unknown"
        if not self.hit(key):
            logger.warning("[RATE] %s limit hit by %s", self.name, key)
            raise TooManyRequests(self.message)


otp_send_limiter = RateLimiter(
    "otp_send",
    settings.RATE_LIMIT_OTP_SEND,
    settings.RATE_LIMIT_WINDOW,
    "Too many OTP requests. Please try again after 15 minutes.",
)

otp_verify_limiter = RateLimiter(
    "otp_verify",
    settings.RATE_LIMIT_OTP_VERIFY,
    settings.RATE_LIMIT_WINDOW,
    "Too many verification attempts. Please try again after 15 minutes.",
)

profile_limiter = RateLimiter(
    "profile",
    settings.RATE_LIMIT_PROFILE,
    settings.RATE_LIMIT_WINDOW,
    "Too many profile requests, please try again later.",
)

career_limiter = RateLimiter(
    "career",
    settings.RATE_LIMIT_CAREER,
    settings.RATE_LIMIT_CAREER_WINDOW,
    "Too many career requests, please try again later.",
)
