"""
Background tasks for RQ (Redis Queue).

Run worker: rq worker -u $REDIS_URL notifications
"""

from __future__ import annotations
import logging
import os
from typing import Any, Dict

from redis import Redis, RedisError
from rq import Queue

from pawfund.models.message import insert_message
from pawfund.utils.cache import REDIS_URL
from pawfund.utils.db import transaction

logger = logging.getLogger(__name__)

NOTIFY_QUEUE = "notifications"


def deliver_message(**fields) -> Dict[str, Any]:
    """Write one inbox Message in its own transaction."""
    with transaction() as cur:
        msg = insert_message(cur, **fields)
    logger.debug("message %s delivered to %s", msg["id"], msg["to_id"])
    return msg


def enqueue_message(**fields) -> bool:
    """
    Enqueue deliver_message for background processing.
    Returns True if enqueued, False if delivered synchronously (no queue).
    """
    use_queue = os.getenv("USE_NOTIFY_QUEUE", "0") == "1"
    if not use_queue:
        deliver_message(**fields)
        return False

    try:
        conn = Redis.from_url(REDIS_URL, decode_responses=False)
        q = Queue(NOTIFY_QUEUE, connection=conn)
        q.enqueue(deliver_message, kwargs=fields, job_timeout="2m")
        return True
    except RedisError as e:
        logger.warning("rq enqueue failed (%s), delivering inline", e)
        deliver_message(**fields)
        return False
