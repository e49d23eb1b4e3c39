"""Tagger Protocol: the contract a tagging stage offers to the pipeline."""

from typing import Protocol, TypeVar, runtime_checkable

from pulse.tagme.types import Tag

ConfigT = TypeVar("ConfigT")


@runtime_checkable
class Tagger(Protocol[ConfigT]):
    """A per-message transform that produces tags.

    Implementations must never raise from ``process``: failures are logged
    and yield no tags, so a single message cannot stop the stream.
    """

    @property
    def name(self) -> str:
        """Identifier recorded as the source of every tag this stage creates."""
        ...

    def default_config(self) -> ConfigT:
        """Configuration used when the pipeline supplies none."""
        ...

    def process(self, text: str | None, language: str | None, config: ConfigT) -> list[Tag]:
        """Return the tags for one message's text."""
        ...
