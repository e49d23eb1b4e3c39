"""Configuration for the TagMe tagging stage.

Two layers:

- ``TagMeConfig``: per-pipeline stage parameters, loaded from the pipeline
  definition. The only parameter is ``minRho``: annotations with a rho at or
  above it are kept, e.g. ``{"minRho": 0.1}``. Without it every annotation
  is kept.
- ``TagMeSettings``: deployment settings (endpoint, token, timeout, streams)
  read from the environment.

Environment variables:
- TAGME_ENDPOINT: Service base URL (default: https://tagme.d4science.org/tagme)
- TAGME_TOKEN: Identification token sent with every request (default: empty)
- TAGME_TOKEN_PARAM: Request field carrying the token (default: gcube-token)
- TAGME_TIMEOUT: Request timeout in seconds (default: 10)
- TAGME_INPUT_STREAM: Stream the worker consumes (default: pulse:messages)
- TAGME_OUTPUT_STREAM: Stream the worker publishes to (default: pulse:tagged)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pulse.tagme.errors import ConfigError

DEFAULT_ENDPOINT = "https://tagme.d4science.org/tagme"
DEFAULT_TOKEN_PARAM = "gcube-token"
DEFAULT_TIMEOUT_S = 10.0
DEFAULT_INPUT_STREAM = "pulse:messages"
DEFAULT_OUTPUT_STREAM = "pulse:tagged"


class TagMeConfig(BaseModel):
    """Stage parameters. Frozen, so one instance is shared by all workers."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    min_confidence: float | None = Field(
        default=None,
        alias="minRho",
        allow_inf_nan=False,
        description="Inclusive lower bound on rho; None disables filtering",
    )

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any] | None) -> "TagMeConfig":
        """Build a config from a JSON document, a mapping, or nothing.

        Raises:
            ConfigError: If the document is not valid JSON or minRho is not a number.
        """
        if data is None:
            return cls()
        try:
            if isinstance(data, (str, bytes)):
                if not data.strip():
                    return cls()
                return cls.model_validate_json(data)
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise ConfigError(f"Invalid TagMe configuration: {e}") from e


@dataclass(frozen=True)
class TagMeSettings:
    endpoint: str = DEFAULT_ENDPOINT
    token: str = ""
    token_param: str = DEFAULT_TOKEN_PARAM
    timeout_s: float = DEFAULT_TIMEOUT_S
    input_stream: str = DEFAULT_INPUT_STREAM
    output_stream: str = DEFAULT_OUTPUT_STREAM

    @classmethod
    def from_env(cls) -> "TagMeSettings":
        raw_timeout = os.environ.get("TAGME_TIMEOUT", str(DEFAULT_TIMEOUT_S))
        try:
            timeout_s = float(raw_timeout)
        except ValueError as e:
            raise ConfigError(f"TAGME_TIMEOUT must be a number, got {raw_timeout!r}") from e
        if timeout_s <= 0:
            raise ConfigError(f"TAGME_TIMEOUT must be positive, got {timeout_s}")

        return cls(
            endpoint=os.environ.get("TAGME_ENDPOINT", DEFAULT_ENDPOINT).rstrip("/"),
            token=os.environ.get("TAGME_TOKEN", ""),
            token_param=os.environ.get("TAGME_TOKEN_PARAM", DEFAULT_TOKEN_PARAM),
            timeout_s=timeout_s,
            input_stream=os.environ.get("TAGME_INPUT_STREAM", DEFAULT_INPUT_STREAM),
            output_stream=os.environ.get("TAGME_OUTPUT_STREAM", DEFAULT_OUTPUT_STREAM),
        )


def load_config(path: str | os.PathLike[str] | None) -> TagMeConfig:
    """Read a TagMeConfig from a JSON file; no path means the default config."""
    if path is None:
        return TagMeConfig()
    try:
        with open(path, encoding="utf-8") as f:
            return TagMeConfig.from_json(f.read())
    except OSError as e:
        raise ConfigError(f"Cannot read TagMe configuration {path}: {e}") from e
