"""TagMe entity tagging stage."""

from pulse.tagme.client import TagMeClient
from pulse.tagme.config import TagMeConfig, TagMeSettings, load_config
from pulse.tagme.errors import ConfigError, DecodeError, RequestError, TagMeError
from pulse.tagme.filtering import filter_by_confidence, to_tags
from pulse.tagme.operator import apply_tagger, tag_messages
from pulse.tagme.protocol import Tagger
from pulse.tagme.tagger import PLUGIN_NAME, SUPPORTED_LANGUAGES, TagMeTagger, is_supported_language
from pulse.tagme.types import AnnotationCandidate, AnnotationResponse, Message, Tag

__all__ = [
    # Stage
    "TagMeTagger",
    "Tagger",
    "PLUGIN_NAME",
    "SUPPORTED_LANGUAGES",
    "is_supported_language",
    # Client
    "TagMeClient",
    # Pure steps
    "filter_by_confidence",
    "to_tags",
    # Stream operator
    "apply_tagger",
    "tag_messages",
    # Configuration
    "TagMeConfig",
    "TagMeSettings",
    "load_config",
    # Errors
    "TagMeError",
    "RequestError",
    "DecodeError",
    "ConfigError",
    # Types
    "AnnotationCandidate",
    "AnnotationResponse",
    "Tag",
    "Message",
]
