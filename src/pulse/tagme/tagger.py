"""TagMe tagging stage.

Sends Italian and English texts to TagMe, keeps the annotations whose rho
reaches ``minRho`` and turns them into tags whose source is ``tagme``.
Unsupported languages are skipped without a call. Any failure is logged and
the message simply gets no tags from this stage.
"""

from __future__ import annotations

import logging

from pulse.tagme.client import TagMeClient
from pulse.tagme.config import TagMeConfig
from pulse.tagme.errors import DecodeError, RequestError
from pulse.tagme.filtering import filter_by_confidence, to_tags
from pulse.tagme.types import Tag

logger = logging.getLogger(__name__)

PLUGIN_NAME = "tagme"
SUPPORTED_LANGUAGES = frozenset({"IT", "EN"})


def is_supported_language(language: object) -> bool:
    return isinstance(language, str) and language.upper() in SUPPORTED_LANGUAGES


class TagMeTagger:
    """Stage implementing the Tagger protocol on top of TagMeClient.

    Holds no per-call state: one instance can serve many worker threads.
    """

    def __init__(self, client: TagMeClient | None = None) -> None:
        self._client = client or TagMeClient()

    @property
    def name(self) -> str:
        return PLUGIN_NAME

    @property
    def client(self) -> TagMeClient:
        return self._client

    def default_config(self) -> TagMeConfig:
        return TagMeConfig()

    def process(
        self,
        text: str | None,
        language: str | None,
        config: TagMeConfig | None = None,
    ) -> list[Tag]:
        """Tags for ``text``; never raises.

        Args:
            text: Message text; None is treated as empty.
            language: Two-letter code, case-insensitive. Only IT and EN are sent.
            config: Stage config; defaults to no filtering.

        Returns:
            Tags for the annotations that passed the rho threshold, in
            response order. Empty for unsupported languages and on failure.
        """
        if not is_supported_language(language):
            logger.debug("[tagme] Skipping unsupported language %r", language)
            return []

        config = config or self.default_config()
        try:
            response = self._client.tag(text or "", language)
            kept = filter_by_confidence(response.annotations, config.min_confidence)
            return to_tags(kept, self.name)
        except RequestError as e:
            if e.status_code is not None:
                logger.error("%s returned %s: %s", e.url, e.status_code, e.reason)
            else:
                logger.error("%s returned an error: %r", e.url, e.__cause__ or e)
        except DecodeError as e:
            logger.error("%s returned an unexpected payload: %s", e.url, e.detail)
        except Exception:
            logger.exception("[tagme] Unexpected failure while tagging (lang=%s)", language)
        return []
