"""Exceptions raised by the TagMe client and configuration loader."""

from __future__ import annotations


class TagMeError(Exception):
    """Base class for expected, operational TagMe failures."""


class RequestError(TagMeError):
    """The call could not complete, or the service answered with a non-2xx status."""

    def __init__(
        self,
        url: str,
        status_code: int | None = None,
        reason: str | None = None,
        message: str | None = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        self.reason = reason
        if message is None:
            if status_code is not None:
                message = f"{url} returned {status_code}: {reason}"
            else:
                message = f"{url} returned an error"
        super().__init__(message)


class DecodeError(TagMeError):
    """The response body does not have the expected annotation shape."""

    def __init__(self, url: str, detail: str, body: str = "") -> None:
        self.url = url
        self.detail = detail
        self.body = body[:300]
        super().__init__(f"{url} returned an unexpected payload: {detail}")


class ConfigError(TagMeError, ValueError):
    """Stage configuration could not be loaded."""
