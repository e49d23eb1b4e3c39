"""MessageQueue Protocol shared by the queue backends."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class MessageQueue(Protocol):
    """Publishing side of a message stream (Redis, NullQueue, ...)."""

    def publish(self, stream: str, message: dict) -> str | None:
        """Publish a message to a stream.

        Args:
            stream: Stream name (e.g., 'pulse:tagged').
            message: Message payload as a dictionary.

        Returns:
            Message ID if published, None if the queue is disabled.
        """
        ...

    def is_available(self) -> bool:
        """Return True if the queue is connected and accepting messages."""
        ...
