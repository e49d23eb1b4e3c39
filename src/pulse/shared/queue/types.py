"""Wire schema for messages flowing through the enrichment streams.

- MessagePayload: a pipeline message (text, language, tags so far)
- MessageEnvelope: transport wrapper (message_id, timestamp, source_service)

Producers upstream publish envelopes to the input stream; the tagging worker
(src/pulse/tagme/consumer.py) appends its tags and republishes to the output
stream.
"""

from __future__ import annotations

from typing import TypedDict


class TagPayload(TypedDict):
    """Tag as serialized on the wire; sources is a sorted list."""
    text: str
    sources: list[str]


class MessagePayload(TypedDict, total=False):
    """Pipeline message. Only ``text`` and ``language`` are read by taggers."""
    text: str | None
    language: str | None
    tags: list[TagPayload]


class MessageEnvelope(TypedDict):
    """Wrapper for MessagePayload with transport metadata."""
    message_id: str
    timestamp: str  # ISO 8601 format
    source_service: str  # e.g., "tagme"
    payload: MessagePayload
