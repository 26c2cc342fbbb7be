"""Shared Redis client and the cache keys used across services."""

import os

import redis

REDIS_URL = os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0")
ETH_USD_RATE_KEY = "rates:eth_usd:v1"

_client = None


def r() -> redis.Redis:
    global _client
    if _client is None:
        _client = redis.Redis.from_url(
            REDIS_URL, decode_responses=True, socket_timeout=2, socket_connect_timeout=2
        )
    return _client


def case_progress_key(case_id) -> str:
    return f"case:{case_id}:progress:v1"
