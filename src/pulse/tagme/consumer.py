"""Redis Streams worker running the TagMe stage.

Reads MessageEnvelope entries from the input stream, appends TagMe tags to
the payload and publishes the enriched envelope to the output stream.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from pulse.shared.queue import MessageEnvelope, MessageQueue, QueueConsumer
from pulse.tagme.config import TagMeConfig
from pulse.tagme.operator import apply_tagger
from pulse.tagme.protocol import Tagger
from pulse.tagme.types import Message

logger = logging.getLogger(__name__)


def wrap_envelope(message: Message, source_service: str, message_id: str | None = None) -> MessageEnvelope:
    return {
        "message_id": message_id or str(uuid.uuid4()),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source_service": source_service,
        "payload": message.to_dict(),
    }


class TaggingQueueConsumer(QueueConsumer):
    """Queue consumer that tags each message and forwards it downstream."""

    def __init__(
        self,
        redis_url: str,
        tagger: Tagger[TagMeConfig],
        output: MessageQueue,
        config: TagMeConfig | None = None,
        stream: str = "pulse:messages",
        output_stream: str = "pulse:tagged",
        group: str | None = None,
        consumer: str | None = None,
        max_retries: int = 3,
    ) -> None:
        """Initialize the worker.

        Args:
            redis_url: Redis connection URL.
            tagger: Stage applied to every message.
            output: Queue the enriched envelopes are published to.
            config: Stage config shared by all messages.
            stream: Stream to consume from.
            output_stream: Stream to publish to.
            group: Consumer group name (default: "{tagger.name}-tagger").
            consumer: Consumer name (auto-generated if None).
            max_retries: Max retries before moving to DLQ.
        """
        super().__init__(
            redis_url=redis_url,
            stream=stream,
            group=group or f"{tagger.name}-tagger",
            consumer=consumer,
            max_retries=max_retries,
        )
        self._tagger = tagger
        self._output = output
        self._config = config or tagger.default_config()
        self._output_stream = output_stream

    def process_message(self, data: dict) -> None:
        """Tag one envelope (or bare payload) and publish the result.

        Raises:
            ValueError: If the payload is not a message object.
        """
        if "payload" in data:
            payload = data["payload"]
            message_id = data.get("message_id")
        else:
            payload = data
            message_id = None

        message = Message.from_dict(payload)
        before = len(message.tags)
        apply_tagger(self._tagger, message, self._config)

        envelope = wrap_envelope(message, self._tagger.name, message_id)
        self._output.publish(self._output_stream, envelope)
        logger.debug(
            f"[TaggingConsumer] {envelope['message_id']}: +{len(message.tags) - before} tags"
        )
