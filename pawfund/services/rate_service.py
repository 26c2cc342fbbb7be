import logging
import math
import os

import requests
from redis import RedisError

from pawfund.errors import UpstreamError
from pawfund.utils.cache import ETH_USD_RATE_KEY, r

logger = logging.getLogger(__name__)

ETH_USD_RATE = os.getenv("ETH_USD_RATE", "").strip()
ETH_PRICE_URL = os.getenv(
    "ETH_PRICE_URL",
    "https://api.coingecko.com/api/v3/simple/price?ids=ethereum&vs_currencies=usd",
)
ETH_PRICE_TIMEOUT = float(os.getenv("ETH_PRICE_TIMEOUT", "5"))
ETH_PRICE_CACHE_SECONDS = int(os.getenv("ETH_PRICE_CACHE_SECONDS", "60"))
CACHE_KEY = ETH_USD_RATE_KEY


def _fetch_eth_usd() -> float:
    try:
        resp = requests.get(ETH_PRICE_URL, timeout=ETH_PRICE_TIMEOUT)
        resp.raise_for_status()
        rate = float(resp.json()["ethereum"]["usd"])
    except (requests.RequestException, KeyError, TypeError, ValueError) as e:
        raise UpstreamError(f"could not fetch ETH price: {e}")
    if not math.isfinite(rate) or rate <= 0:
        raise UpstreamError("price feed returned an unusable ETH price")
    return rate


def get_eth_usd_rate() -> float:
    """
    Authoritative ETH->USD rate: static override, then the redis cache,
    then the price API.
    """
    if ETH_USD_RATE:
        return float(ETH_USD_RATE)

    try:
        cached = r().get(CACHE_KEY)
        if cached:
            return float(cached)
    except RedisError as e:
        logger.warning("rate cache unavailable: %s", e)

    rate = _fetch_eth_usd()
    try:
        r().setex(CACHE_KEY, ETH_PRICE_CACHE_SECONDS, str(rate))
    except RedisError as e:
        logger.warning("could not cache ETH rate: %s", e)
    return rate


def eth_to_usd(amount_eth: float, rate: float) -> float:
    return round(amount_eth * rate, 2)
