"""Redis Streams publisher.

Each message is stored as JSON under a single ``data`` field. Connection
errors are raised to the caller, there is no silent fallback.
"""

from __future__ import annotations

import json
import logging
import warnings
from typing import Any

import redis

logger = logging.getLogger(__name__)

# Approximate cap on stream length
DEFAULT_MAXLEN = 10000
LARGE_MESSAGE_BYTES = 1_000_000


class RedisStreamQueue:
    """MessageQueue backed by XADD on a bounded Redis stream."""

    def __init__(
        self,
        url: str = "redis://localhost:6379",
        maxlen: int = DEFAULT_MAXLEN,
        client: redis.Redis | None = None,
    ) -> None:
        self._url = url
        self._maxlen = maxlen
        self._client = client
        self._probed = False

    def _get_client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(self._url, decode_responses=True)
        if not self._probed:
            self._client.ping()
            self._probed = True
            logger.info(f"[RedisQueue] Connected to {self._url}")
        return self._client

    def publish(self, stream: str, message: dict) -> str | None:
        """XADD ``message`` to ``stream`` and return the Redis entry ID.

        Raises:
            redis.exceptions.ConnectionError: If Redis is unavailable.
        """
        client = self._get_client()
        serialized = json.dumps(message)

        if len(serialized) > LARGE_MESSAGE_BYTES:
            warnings.warn(
                f"Large message ({len(serialized)} bytes) being published to {stream}.",
                stacklevel=2,
            )

        msg_id: Any = client.xadd(
            stream,
            {"data": serialized},
            maxlen=self._maxlen,
            approximate=True,
        )
        logger.debug(f"[RedisQueue] Published to {stream}: {msg_id}")
        return str(msg_id)

    def is_available(self) -> bool:
        try:
            self._get_client().ping()
            return True
        except redis.exceptions.ConnectionError:
            return False
