"""Redis Streams integration for pipeline stages.

Stages run standalone by default; with QUEUE_ENABLED=true they read message
envelopes from one stream and publish enriched envelopes to another.

Usage:
    from pulse.shared.queue import create_queue

    queue = create_queue()  # NullQueue or RedisStreamQueue based on env
    queue.publish("pulse:tagged", envelope)
"""

from pulse.shared.queue.consumer import QueueConsumer
from pulse.shared.queue.factory import create_queue, queue_enabled, queue_url
from pulse.shared.queue.null_queue import NullQueue
from pulse.shared.queue.protocol import MessageQueue
from pulse.shared.queue.redis_queue import RedisStreamQueue
from pulse.shared.queue.types import MessageEnvelope, MessagePayload, TagPayload

__all__ = [
    # Factory
    "create_queue",
    "queue_enabled",
    "queue_url",
    # Protocol & implementations
    "MessageQueue",
    "NullQueue",
    "RedisStreamQueue",
    # Consumer
    "QueueConsumer",
    # Types
    "TagPayload",
    "MessagePayload",
    "MessageEnvelope",
]
