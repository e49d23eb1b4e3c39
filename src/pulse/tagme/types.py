"""Data types for the TagMe tagging stage.

Flow:
    TagMe JSON -> AnnotationResponse(AnnotationCandidate...) -> Tag -> Message.tags

Candidates and responses are frozen: they are only built by the client from
the raw payload. Tags are plain dataclasses owned by the message they are
attached to.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pulse.shared.queue.types import MessagePayload, TagPayload


@dataclass(frozen=True)
class AnnotationCandidate:
    """One entity the service believes is mentioned in the text."""

    title: str
    confidence: float  # TagMe "rho"; higher is more confident


@dataclass(frozen=True)
class AnnotationResponse:
    """Decoded TagMe answer. Order of annotations carries no meaning."""

    annotations: tuple[AnnotationCandidate, ...] = ()
    lang: str | None = None
    timestamp: str | None = None
    time: int | None = None  # server-side processing time, ms


@dataclass
class Tag:
    text: str
    sources: set[str] = field(default_factory=set)

    def add_source(self, source: str) -> None:
        self.sources.add(source)

    def to_dict(self) -> TagPayload:
        return {"text": self.text, "sources": sorted(self.sources)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Tag":
        """Raises ValueError unless ``data`` is an object with a string ``text``."""
        if not isinstance(data, dict) or not isinstance(data.get("text"), str):
            raise ValueError(f"Tag must be an object with a string 'text', got {data!r}")
        sources = data.get("sources") or []
        if not isinstance(sources, list) or not all(isinstance(s, str) for s in sources):
            raise ValueError("Tag 'sources' must be a list of strings")
        return cls(text=data["text"], sources=set(sources))


@dataclass
class Message:
    """Pipeline message as seen by a tagger.

    Only ``text`` and ``language`` are read; taggers append to ``tags``.
    Any other wire fields ride along in ``extra`` untouched.
    """

    text: str | None = None
    language: str | None = None
    tags: list[Tag] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def add_tags(self, tags: list[Tag]) -> None:
        self.tags.extend(tags)

    def to_dict(self) -> MessagePayload:
        data: dict[str, Any] = dict(self.extra)
        data["text"] = self.text
        data["language"] = self.language
        data["tags"] = [t.to_dict() for t in self.tags]
        return data  # type: ignore[return-value]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        """Build a Message from its wire form.

        Raises:
            ValueError: If ``data`` is not a mapping or ``text``/``tags`` have the wrong type.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Message must be an object, got {type(data).__name__}")
        extra = {k: v for k, v in data.items() if k not in ("text", "language", "lang", "tags")}
        text = data.get("text")
        if text is not None and not isinstance(text, str):
            raise ValueError("Message 'text' must be a string")
        language = data.get("language", data.get("lang"))
        raw_tags = data.get("tags") or []
        if not isinstance(raw_tags, list):
            raise ValueError("Message 'tags' must be a list")
        return cls(
            text=text,
            language=language,
            tags=[Tag.from_dict(t) for t in raw_tags],
            extra=extra,
        )
