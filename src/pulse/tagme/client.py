"""HTTP client for the TagMe entity annotation service.

One call per ``tag()``: no retry, no cache, no rate limiting. Every failure
is raised as ``RequestError`` (transport, timeout, non-2xx) or
``DecodeError`` (body is not the expected annotation list).

See https://sobigdata.d4science.org/web/tagme/tagme-help for the wire format.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Generator
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from pulse.tagme.config import TagMeSettings
from pulse.tagme.errors import DecodeError, RequestError
from pulse.tagme.types import AnnotationCandidate, AnnotationResponse

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Wire models
# ---------------------------------------------------------------------------


class _WireAnnotation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str
    rho: float


class _WireResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    annotations: list[_WireAnnotation]
    lang: str | None = None
    timestamp: Any = None
    time: Any = None

    def to_response(self) -> AnnotationResponse:
        return AnnotationResponse(
            annotations=tuple(
                AnnotationCandidate(title=a.title, confidence=a.rho)
                for a in self.annotations
            ),
            lang=self.lang,
            timestamp=None if self.timestamp is None else str(self.timestamp),
            time=self.time if isinstance(self.time, int) else None,
        )


class _TokenAuth(httpx.Auth):
    """Adds the service identification token to every outgoing request."""

    def __init__(self, param: str, token: str) -> None:
        self._param = param
        self._token = token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.url = request.url.copy_merge_params({self._param: self._token})
        yield request


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class TagMeClient:
    """Thread-safe TagMe client.

    The underlying ``httpx.Client`` is built on first use and shared by all
    callers; construction is guarded so concurrent first calls build it once.
    """

    def __init__(
        self,
        settings: TagMeSettings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Create a client.

        Args:
            settings: Endpoint, token and timeout. Read from the environment if None.
            transport: Optional httpx transport (e.g. ``httpx.MockTransport`` in tests).
        """
        self._settings = settings or TagMeSettings.from_env()
        self._transport = transport
        self._http: httpx.Client | None = None
        self._lock = threading.Lock()

    @property
    def url(self) -> str:
        return f"{self._settings.endpoint}/tag"

    def _get_http(self) -> httpx.Client:
        http = self._http
        if http is None:
            with self._lock:
                if self._http is None:
                    if not self._settings.token:
                        logger.warning("[tagme] No TAGME_TOKEN set, requests will likely be rejected")
                    self._http = httpx.Client(
                        timeout=httpx.Timeout(self._settings.timeout_s),
                        auth=_TokenAuth(self._settings.token_param, self._settings.token),
                        transport=self._transport,
                    )
                    logger.debug("[tagme] HTTP client ready for %s", self.url)
                http = self._http
        return http

    def tag(self, text: str, language: str) -> AnnotationResponse:
        """Annotate ``text`` written in ``language``.

        Args:
            text: Text to annotate (may be empty).
            language: Two-letter language code; sent lowercased.

        Returns:
            Decoded annotations.

        Raises:
            RequestError: Transport failure, timeout, or non-success status.
            DecodeError: Body is not JSON or lacks the annotation fields.
        """
        url = self.url
        try:
            response = self._get_http().post(
                url, data={"text": text, "lang": language.lower()}
            )
        except httpx.HTTPError as e:
            raise RequestError(
                url, message=f"{url} returned an error: {type(e).__name__}: {e}"
            ) from e

        if not response.is_success:
            raise RequestError(url, response.status_code, response.reason_phrase)

        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeError(url, f"body is not JSON ({e})", response.text) from e

        try:
            decoded = _WireResponse.model_validate(payload).to_response()
        except ValidationError as e:
            raise DecodeError(url, str(e), response.text) from e

        logger.debug(
            "[tagme] OK | lang=%s | annotations=%d", language, len(decoded.annotations)
        )
        return decoded

    def close(self) -> None:
        with self._lock:
            if self._http is not None:
                self._http.close()
                self._http = None

    def __enter__(self) -> "TagMeClient":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
