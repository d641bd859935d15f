"""Sliding-window limiter for failed login attempts."""

import logging
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict

from fastapi import Request

logger = logging.getLogger(__name__)


class LoginRateLimiter:
    """Blocks a client after too many failed logins inside a time window.

    Only failures are recorded; a successful login clears the client's
    history. One instance lives on ``app.state.login_limiter``.

    Usage:
        limiter = LoginRateLimiter(max_attempts=5, window_seconds=900)
        if limiter.is_blocked(client_ip):
            ...
        limiter.record_failure(client_ip)
    """

    def __init__(
        self,
        max_attempts: int = 5,
        window_seconds: float = 900,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock
        self._failures: Dict[str, Deque[float]] = defaultdict(deque)

    def _prune(self, key: str) -> Deque[float]:
        now = self._clock()
        failures = self._failures[key]
        while failures and now - failures[0] >= self.window_seconds:
            failures.popleft()
        if not failures:
            del self._failures[key]
        return failures

    def is_blocked(self, key: str) -> bool:
        """Whether ``key`` has used up its attempts in the current window."""
        return len(self._prune(key)) >= self.max_attempts

    def retry_after(self, key: str) -> int:
        """Seconds until the oldest counted failure leaves the window."""
        failures = self._prune(key)
        if len(failures) < self.max_attempts:
            return 0
        return max(1, int(self.window_seconds - (self._clock() - failures[0])) + 1)

    def record_failure(self, key: str) -> None:
        self._prune(key)
        self._failures[key].append(self._clock())
        if len(self._failures[key]) >= self.max_attempts:
            logger.warning("Login attempts exhausted", extra={"client": key})

    def reset(self, key: str) -> None:
        self._failures.pop(key, None)


def get_login_limiter(request: Request) -> LoginRateLimiter:
    """Get the application's LoginRateLimiter for dependency injection."""
    return request.app.state.login_limiter
