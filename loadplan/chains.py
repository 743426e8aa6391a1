"""Request step and chain builders.

RequestBuilder assembles one HTTP call header-by-header and check-by-check, then
freezes it into a RequestStep. ChainBuilder lines request steps and pauses up
into a reusable Chain, preserving append order exactly.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import orjson

from .checks import UNSET, Check, JsonPathCheck
from .exceptions import ConfigurationError
from .headers import HeaderMap
from .logging_config import resolve_logger
from .models import BODYLESS_METHODS, Chain, ChainElement, HttpMethod, Pause, RequestStep


def _body_text(body: Any) -> str | None:
    """Normalize a payload to text: JSON for dicts/lists, UTF-8 for bytes, str() otherwise."""
    if body is None or isinstance(body, str):
        return body
    try:
        if isinstance(body, (bytes, bytearray)):
            return bytes(body).decode("utf-8")
        if isinstance(body, Mapping):
            return orjson.dumps(dict(body)).decode("utf-8")
        if isinstance(body, (list, tuple)):
            return orjson.dumps(body).decode("utf-8")
    except (TypeError, UnicodeDecodeError) as e:
        raise ConfigurationError(
            f"Request body cannot be encoded: {e}",
            context={"body_type": type(body).__name__},
            original_error=e,
        ) from e
    return str(body)


class RequestBuilder:
    """Fluent builder for a single RequestStep.

    Example:
        login = (
            RequestBuilder("Login")
            .post("/auth/login")
            .with_body({"username": "u", "password": "p"})
            .with_check(status(200))
            .save_as("$.accessToken", "accessToken")
            .build()
        )
    """

    def __init__(self, name: str | None = None, logger: logging.Logger | None = None) -> None:
        if name is not None and (not isinstance(name, str) or not name.strip()):
            raise ConfigurationError("Request name must not be blank when given.")
        self.name = name.strip() if name else None
        self._logger = resolve_logger(logger, "chains")
        self._method: HttpMethod | None = None
        self._path: str | None = None
        self._body: str | None = None
        self._headers = HeaderMap()
        self._checks: list[Check] = []

    def request(self, method: HttpMethod | str, path: str) -> "RequestBuilder":
        """Set the HTTP method and path together."""
        parsed = HttpMethod.parse(method)
        if not isinstance(path, str) or not path.strip():
            raise ConfigurationError(
                "Request path must not be null or blank.",
                context={"method": parsed.value, "request": self.name},
            )
        self._method = parsed
        self._path = path.strip()
        self._logger.debug("Request %r set to %s %s", self.name, parsed.value, self._path)
        return self

    def get(self, path: str) -> "RequestBuilder":
        return self.request(HttpMethod.GET, path)

    def post(self, path: str) -> "RequestBuilder":
        return self.request(HttpMethod.POST, path)

    def put(self, path: str) -> "RequestBuilder":
        return self.request(HttpMethod.PUT, path)

    def delete(self, path: str) -> "RequestBuilder":
        return self.request(HttpMethod.DELETE, path)

    def patch(self, path: str) -> "RequestBuilder":
        return self.request(HttpMethod.PATCH, path)

    def head(self, path: str) -> "RequestBuilder":
        return self.request(HttpMethod.HEAD, path)

    def options(self, path: str) -> "RequestBuilder":
        return self.request(HttpMethod.OPTIONS, path)

    def with_body(self, body: Any) -> "RequestBuilder":
        """Set or replace the payload; None clears it."""
        self._body = _body_text(body)
        self._logger.debug("Request %r body %s", self.name, "cleared" if self._body is None else "set")
        return self

    def with_header(self, key: str, value: str) -> "RequestBuilder":
        self._headers.add(key, value, self._logger)
        return self

    def with_headers(self, headers: Mapping[str, str] | None) -> "RequestBuilder":
        """Merge a batch of headers; unusable entries are skipped, not fatal."""
        self._headers.update(headers, self._logger)
        return self

    def with_check(self, check: Check) -> "RequestBuilder":
        if not isinstance(check, Check):
            raise ConfigurationError(
                f"Not a check: {check!r}",
                context={"request": self.name, "type": type(check).__name__},
            )
        self._checks.append(check)
        self._logger.debug("Request %r check added: %r", self.name, check)
        return self

    def with_checks(self, *checks: Check) -> "RequestBuilder":
        for check in checks:
            self.with_check(check)
        return self

    def save_as(self, expression: str, variable: str, *, equals: Any = UNSET) -> "RequestBuilder":
        """Require expression to resolve, store its value as session variable.

        When equals is given the extracted value must also equal it.
        """
        return self.with_check(JsonPathCheck(expression, save_as_name=variable, expected=equals))

    def build(self) -> RequestStep:
        """Freeze the configured request. Raises ConfigurationError if method or path is unset."""
        if self._method is None or self._path is None:
            raise ConfigurationError(
                "Method and path must be set before building the request.",
                context={"request": self.name},
            )
        if self._body is not None and self._method in BODYLESS_METHODS:
            self._logger.warning("Request %r sends a body with %s.", self.name, self._method.value)
        step = RequestStep(
            name=self.name or f"{self._method.value} {self._path}",
            method=self._method,
            path=self._path,
            headers=self._headers.freeze() if len(self._headers) else None,
            body=self._body,
            checks=tuple(self._checks),
        )
        self._logger.info("Built request %r: %s %s", step.name, step.method.value, step.path)
        return step


class ChainBuilder:
    """Ordered list of request steps and pauses, frozen into a Chain."""

    def __init__(self, name: str | None = None, logger: logging.Logger | None = None) -> None:
        self.name = name
        self._logger = resolve_logger(logger, "chains")
        self._elements: list[ChainElement] = []

    def exec(self, *elements: RequestStep | Pause | RequestBuilder) -> "ChainBuilder":
        """Append steps and pauses in order. Request builders are built on the spot."""
        if not elements:
            self._logger.warning("exec() called with no elements for chain %r", self.name)
            return self
        resolved: list[ChainElement] = []
        for element in elements:
            if isinstance(element, RequestBuilder):
                element = element.build()
            if not isinstance(element, (RequestStep, Pause)):
                raise ConfigurationError(
                    f"Chain elements must be request steps or pauses, got {type(element).__name__}",
                    context={"chain": self.name},
                )
            resolved.append(element)
        self._elements.extend(resolved)
        self._logger.debug("Added %d element(s) to chain %r", len(resolved), self.name)
        return self

    def pause(self, seconds: float) -> "ChainBuilder":
        self._elements.append(Pause(seconds))
        self._logger.debug("Added %ss pause to chain %r", seconds, self.name)
        return self

    def build(self) -> Chain:
        if not self._elements:
            self._logger.warning("Chain %r has no elements; it will do nothing.", self.name)
        chain = Chain(elements=tuple(self._elements), name=self.name)
        self._logger.info("Built chain %r with %d element(s)", self.name, len(chain))
        return chain
