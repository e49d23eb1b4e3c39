"""NullQueue for standalone mode (QUEUE_ENABLED=false)."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class NullQueue:
    """Queue that drops every message.

    Lets the tagging stage run from the CLI or tests without Redis.
    """

    def __init__(self) -> None:
        self.discarded = 0

    def publish(self, stream: str, message: dict) -> str | None:
        self.discarded += 1
        logger.debug(f"[NullQueue] Discarding message to stream '{stream}'")
        return None

    def is_available(self) -> bool:
        return False
