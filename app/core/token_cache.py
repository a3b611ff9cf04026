from __future__ import annotations

import threading
import time
from typing import Callable


class TokenCache:
    """Holds one bearer token until shortly before it expires.

    ``skew_s`` seconds are shaved off the lifetime the server reports so a
    token is never presented right at its expiry.
    """

    def __init__(self, *, skew_s: int = 300, clock: Callable[[], float] = time.monotonic):
        self._skew_s = max(0, int(skew_s))
        self._clock = clock
        self._token: str | None = None
        self._expires_at: float = 0.0
        self._lock = threading.Lock()

    def get(self) -> str | None:
        with self._lock:
            if self._token and self._clock() < self._expires_at:
                return self._token
            return None

    def set(self, token: str, expires_in_s: float | None) -> None:
        lifetime = float(expires_in_s) if expires_in_s else 3600.0
        with self._lock:
            self._token = token
            self._expires_at = self._clock() + max(0.0, lifetime - self._skew_s)

    def clear(self) -> None:
        with self._lock:
            self._token = None
            self._expires_at = 0.0
