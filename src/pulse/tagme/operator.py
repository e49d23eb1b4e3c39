"""Stream operator: apply a tagger to every message of a stream.

One output message per input message, in input order. Messages are
independent; with ``workers > 1`` they are tagged on a thread pool that
reads the input lazily, a bounded window ahead of the consumer.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from pulse.tagme.protocol import Tagger
from pulse.tagme.types import Message

WINDOW_PER_WORKER = 4


def apply_tagger(tagger: Tagger[Any], message: Message, config: Any = None) -> Message:
    if config is None:
        config = tagger.default_config()
    message.add_tags(tagger.process(message.text, message.language, config))
    return message


def tag_messages(
    messages: Iterable[Message],
    tagger: Tagger[Any],
    config: Any = None,
    workers: int = 1,
) -> Iterator[Message]:
    """Yield each message of ``messages`` with the tagger's tags appended.

    With a thread pool, at most ``workers * WINDOW_PER_WORKER`` messages are
    in flight at any time.
    """
    if config is None:
        config = tagger.default_config()

    if workers <= 1:
        for message in messages:
            yield apply_tagger(tagger, message, config)
        return

    window = workers * WINDOW_PER_WORKER
    pending: deque[Future[Message]] = deque()
    with ThreadPoolExecutor(max_workers=workers) as pool:
        for message in messages:
            if len(pending) >= window:
                yield pending.popleft().result()
            pending.append(pool.submit(apply_tagger, tagger, message, config))
        while pending:
            yield pending.popleft().result()
