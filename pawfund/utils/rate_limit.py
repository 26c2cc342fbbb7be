"""
Per-client sliding window for the signup and login routes.

RATE_LIMIT_ENABLED=0 turns it off (read per request so tests can flip it);
RATE_LIMIT_AUTH_PER_MINUTE sets the budget. State is per process, so a
multi-worker deployment gets one budget per worker.
"""

from __future__ import annotations
import logging
import os
import time
from collections import deque
from functools import wraps
from threading import Lock
from typing import Deque, Dict

from flask import jsonify, request

logger = logging.getLogger(__name__)

AUTH_PER_MINUTE = int(os.getenv("RATE_LIMIT_AUTH_PER_MINUTE", "10"))
WINDOW_SECONDS = 60

_lock = Lock()
_hits: Dict[str, Deque[float]] = {}


def _enabled() -> bool:
    return os.getenv("RATE_LIMIT_ENABLED", "1") == "1"


def client_ip() -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr or "unknown"


def hit(key: str, limit: int) -> int:
    """
    Record one attempt for ``key``. Returns 0 when allowed, otherwise the
    number of seconds until the oldest attempt leaves the window.
    """
    if limit <= 0:
        return 0
    now = time.monotonic()
    with _lock:
        window = _hits.setdefault(key, deque())
        while window and now - window[0] >= WINDOW_SECONDS:
            window.popleft()
        if len(window) >= limit:
            return max(1, int(WINDOW_SECONDS - (now - window[0])) + 1)
        window.append(now)
        return 0


def reset() -> None:
    with _lock:
        _hits.clear()


def rate_limit_decorator(limit_per_minute: int, key_prefix: str = ""):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not _enabled():
                return fn(*args, **kwargs)
            key = f"{key_prefix or fn.__name__}:{client_ip()}"
            retry_after = hit(key, limit_per_minute)
            if retry_after:
                logger.warning("rate limit hit for %s", key)
                resp = jsonify({"error": "too many attempts, slow down", "retry_after": retry_after})
                resp.headers["Retry-After"] = str(retry_after)
                return resp, 429
            return fn(*args, **kwargs)

        return wrapper

    return decorator
