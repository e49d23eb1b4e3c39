"""Redis Streams consumer base class with dead-letter support.

- Consumer group creation (XGROUP CREATE ... MKSTREAM)
- Reads with XREADGROUP, acknowledges with XACK
- Immediate retry up to ``max_retries``, then the entry goes to ``{stream}:dlq``
- Graceful shutdown on SIGTERM/SIGINT when run from the main thread
"""

from __future__ import annotations

import json
import logging
import os
import signal
import socket
import threading
from abc import ABC, abstractmethod
from typing import Any

import redis

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_BLOCK_MS = 5000
DEFAULT_BATCH_SIZE = 10


class QueueConsumer(ABC):
    """Consume a stream through a consumer group; subclasses implement process_message()."""

    def __init__(
        self,
        redis_url: str,
        stream: str,
        group: str,
        consumer: str | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        dlq_stream: str | None = None,
        block_ms: int = DEFAULT_BLOCK_MS,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        self._url = redis_url
        self._stream = stream
        self._group = group
        self._consumer = consumer or f"{socket.gethostname()}-{os.getpid()}"
        self._max_retries = max_retries
        self._dlq_stream = dlq_stream or f"{stream}:dlq"
        self._block_ms = block_ms
        self._batch_size = batch_size

        self._client: redis.Redis | None = None
        self._shutdown = threading.Event()
        self._saved_handlers: dict[int, Any] = {}

    def _get_client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(self._url, decode_responses=True)
        return self._client

    def _ensure_group(self) -> None:
        try:
            self._get_client().xgroup_create(self._stream, self._group, id="0", mkstream=True)
            logger.info(f"[Consumer] Created group '{self._group}' on '{self._stream}'")
        except redis.exceptions.ResponseError as e:
            if "BUSYGROUP" not in str(e):
                raise
            logger.debug(f"[Consumer] Group '{self._group}' already exists")

    @abstractmethod
    def process_message(self, data: dict) -> None:
        """Handle one decoded message. Any exception triggers retry, then DLQ."""
        ...

    def _move_to_dlq(self, msg_id: str, data: dict, error: Exception) -> None:
        self._get_client().xadd(self._dlq_stream, {
            "original_stream": self._stream,
            "original_id": msg_id,
            "data": json.dumps(data),
            "error_type": type(error).__name__,
            "error_message": str(error),
            "consumer": self._consumer,
        })
        logger.warning(f"[Consumer] Moved {msg_id} to DLQ: {error}")

    def _process_one(self, msg_id: str, fields: dict[str, str]) -> bool:
        """Process one entry, retrying in place. Returns False if it went to the DLQ."""
        client = self._get_client()
        try:
            data = json.loads(fields.get("data", "{}"))
        except json.JSONDecodeError as e:
            logger.error(f"[Consumer] Invalid JSON in {msg_id}: {e}")
            self._move_to_dlq(msg_id, {"raw": fields}, e)
            client.xack(self._stream, self._group, msg_id)
            return False

        last_error: Exception | None = None
        for attempt in range(1, self._max_retries + 1):
            try:
                self.process_message(data)
                client.xack(self._stream, self._group, msg_id)
                logger.debug(f"[Consumer] Processed {msg_id}")
                return True
            except Exception as e:
                last_error = e
                logger.warning(
                    f"[Consumer] Attempt {attempt}/{self._max_retries} failed for {msg_id}: {e}"
                )

        if last_error is not None:
            self._move_to_dlq(msg_id, data, last_error)
        client.xack(self._stream, self._group, msg_id)
        return False

    def _read(self, start_id: str, block_ms: int) -> list[tuple[str, dict[str, str]]]:
        result: Any = self._get_client().xreadgroup(
            self._group,
            self._consumer,
            {self._stream: start_id},
            count=self._batch_size,
            block=block_ms,
        )
        return [
            (msg_id, fields)
            for _stream, entries in (result or [])
            for msg_id, fields in entries
        ]

    def process_pending(self) -> int:
        """Drain unacknowledged entries, then new ones, without blocking long.

        Returns:
            Number of entries handled.
        """
        self._ensure_group()
        processed = 0
        for start_id in ("0", ">"):
            while not self._shutdown.is_set():
                batch = self._read(start_id, block_ms=100)
                if not batch:
                    break
                for msg_id, fields in batch:
                    self._process_one(msg_id, fields)
                    processed += 1
        return processed

    def run(self) -> None:
        """Consume until stop() is called or a termination signal arrives."""
        self._install_signal_handlers()
        self._ensure_group()
        logger.info(f"[Consumer] Starting consumer '{self._consumer}' on '{self._stream}'")

        pending = self.process_pending()
        if pending:
            logger.info(f"[Consumer] Processed {pending} pending messages")

        while not self._shutdown.is_set():
            try:
                for msg_id, fields in self._read(">", block_ms=self._block_ms):
                    self._process_one(msg_id, fields)
            except redis.exceptions.ConnectionError as e:
                logger.error(f"[Consumer] Redis connection error: {e}")
                self._shutdown.wait(1.0)

        logger.info("[Consumer] Shutdown complete")
        self._restore_signal_handlers()

    def stop(self) -> None:
        logger.info("[Consumer] Shutdown requested")
        self._shutdown.set()

    def _install_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            logger.debug("[Consumer] Skipping signal handlers (not main thread)")
            return

        def handler(signum, frame):
            logger.info(f"[Consumer] Received signal {signum}")
            self.stop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            self._saved_handlers[sig] = signal.signal(sig, handler)

    def _restore_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        for sig, previous in self._saved_handlers.items():
            signal.signal(sig, previous)
        self._saved_handlers.clear()
