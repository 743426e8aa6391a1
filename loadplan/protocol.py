"""Protocol configuration: base URL plus default headers for a population."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from urllib.parse import urlparse

from .exceptions import ConfigurationError
from .headers import HeaderMap, Headers
from .logging_config import resolve_logger
from .models import ProtocolConfig

SECURE_SCHEME = "https"
JSON_MIME = "application/json"
DEFAULT_HEADERS = {"Accept": JSON_MIME, "Content-Type": JSON_MIME}


def validate_base_url(base_url: str | None) -> str:
    """Return the stripped URL if it is absolute https with a host; raise otherwise."""
    if base_url is None or not isinstance(base_url, str) or not base_url.strip():
        raise ConfigurationError("Base URL must not be null or blank.")
    url = base_url.strip()
    try:
        parsed = urlparse(url)
        _ = parsed.port  # raises ValueError on malformed ports
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid base URL: {url}", context={"base_url": url}, original_error=e
        ) from e
    if parsed.scheme.lower() != SECURE_SCHEME or not parsed.hostname:
        raise ConfigurationError(
            f"Base URL must use {SECURE_SCHEME} and contain a valid host: {url}",
            context={"base_url": url},
        )
    return url


class ProtocolBuilder:
    """Reusable base configuration for all requests of one or more populations.

    The base URL is fixed at construction. Headers start as JSON defaults and may
    be overridden until build(); build() is idempotent and returns the same
    ProtocolConfig on every call.
    """

    def __init__(self, base_url: str, logger: logging.Logger | None = None) -> None:
        self._logger = resolve_logger(logger, "protocol")
        try:
            self._base_url = validate_base_url(base_url)
        except ConfigurationError:
            self._logger.error("Rejected base URL %r", base_url)
            raise
        self._headers = HeaderMap(DEFAULT_HEADERS)
        self._built: ProtocolConfig | None = None
        self._logger.info("Initialized protocol builder with base URL: %s", self._base_url)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def headers(self) -> Headers:
        """Read-only snapshot of the currently configured headers."""
        return self._headers.freeze()

    def _ensure_mutable(self) -> None:
        if self._built is not None:
            raise ConfigurationError(
                "Protocol configuration already built; headers can no longer change.",
                context={"base_url": self._base_url},
            )

    def accept_header(self, mime_type: str) -> "ProtocolBuilder":
        return self._mime_header("Accept", mime_type)

    def content_type_header(self, mime_type: str) -> "ProtocolBuilder":
        return self._mime_header("Content-Type", mime_type)

    def _mime_header(self, name: str, mime_type: str) -> "ProtocolBuilder":
        self._ensure_mutable()
        if not isinstance(mime_type, str) or not mime_type.strip():
            self._logger.warning("Ignored blank %s header input.", name)
            return self
        self._headers.set(name, mime_type.strip())
        self._logger.debug("%s header set to: %s", name, mime_type)
        return self

    def with_header(self, key: str, value: str) -> "ProtocolBuilder":
        self._ensure_mutable()
        self._headers.add(key, value, self._logger)
        return self

    def with_headers(self, headers: Mapping[str, str] | None) -> "ProtocolBuilder":
        """Add or override several headers; entries with null keys or values are skipped."""
        self._ensure_mutable()
        self._headers.update(headers, self._logger)
        return self

    def build(self) -> ProtocolConfig:
        if self._built is not None:
            self._logger.warning("Protocol configuration already built. Returning existing instance.")
            return self._built
        self._built = ProtocolConfig(base_url=self._base_url, headers=self._headers.freeze())
        self._logger.info("Protocol configuration built for base URL: %s", self._base_url)
        return self._built
