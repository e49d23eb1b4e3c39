"""Queue factory driven by environment variables.

Environment Variables:
    QUEUE_ENABLED: "true" to publish to Redis Streams, "false" (default) for NullQueue
    QUEUE_URL: Redis URL (default: "redis://localhost:6379")
"""

from __future__ import annotations

import logging
import os

from pulse.shared.queue.null_queue import NullQueue
from pulse.shared.queue.protocol import MessageQueue

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_URL = "redis://localhost:6379"


def queue_enabled() -> bool:
    return os.environ.get("QUEUE_ENABLED", "false").lower() == "true"


def queue_url() -> str:
    return os.environ.get("QUEUE_URL", DEFAULT_QUEUE_URL)


def create_queue(url: str | None = None) -> MessageQueue:
    """Return a NullQueue, or a RedisStreamQueue when QUEUE_ENABLED=true.

    Args:
        url: Redis URL overriding QUEUE_URL.

    Raises:
        ImportError: If QUEUE_ENABLED=true but the redis package is missing.
    """
    if not queue_enabled():
        logger.debug("[Queue] QUEUE_ENABLED=false, using NullQueue")
        return NullQueue()

    url = url or queue_url()
    logger.info(f"[Queue] QUEUE_ENABLED=true, connecting to {url}")

    try:
        from pulse.shared.queue.redis_queue import RedisStreamQueue
        return RedisStreamQueue(url)
    except ImportError as e:
        logger.error(f"[Queue] Redis queue requested but redis package not installed: {e}")
        raise
