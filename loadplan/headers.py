"""Case-insensitive HTTP header maps.

``HeaderMap`` is the mutable accumulator used by builders; ``Headers`` is the
read-only value they produce. Both match names case-insensitively, keep the most
recent spelling of a name, and let the last write win.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any


def is_usable_header(name: Any, value: Any) -> bool:
    """True when name is a non-blank string and value is not None."""
    return isinstance(name, str) and bool(name.strip()) and value is not None


def _entries(source: Mapping[str, str] | Iterable[tuple[str, str]] | None) -> Iterable[tuple[str, str]]:
    if source is None:
        return ()
    if isinstance(source, Mapping):
        return source.items()
    return source


class Headers(Mapping[str, str]):
    """Immutable header mapping with case-insensitive lookup."""

    __slots__ = ("_store",)

    def __init__(self, source: Mapping[str, str] | Iterable[tuple[str, str]] | None = None) -> None:
        store: dict[str, tuple[str, str]] = {}
        for name, value in _entries(source):
            name = name.strip()
            store[name.lower()] = (name, str(value))
        self._store = store

    def __getitem__(self, name: str) -> str:
        if not isinstance(name, str):
            raise KeyError(name)
        return self._store[name.strip().lower()][1]

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return f"Headers({dict(self.items())!r})"

    def merged(self, overrides: Mapping[str, str] | None) -> "Headers":
        """Return a new Headers with overrides applied on top of self."""
        if not overrides:
            return self
        return Headers([*self.items(), *overrides.items()])


class HeaderMap:
    """Mutable header accumulator for builders.

    Unusable entries (None or blank name, None value) are skipped and reported on
    the given logger instead of raising.
    """

    __slots__ = ("_store",)

    def __init__(self, source: Mapping[str, str] | None = None) -> None:
        self._store: dict[str, tuple[str, str]] = {}
        for name, value in _entries(source):
            self.set(name, value)

    def set(self, name: str, value: str) -> None:
        name = name.strip()
        self._store[name.lower()] = (name, str(value))

    def add(self, name: Any, value: Any, logger: logging.Logger) -> bool:
        """Set one header if usable; log and skip it otherwise. Returns True if set."""
        if not is_usable_header(name, value):
            logger.warning("Skipped unusable header entry: %r = %r", name, value)
            return False
        self.set(name, value)
        logger.debug("Header set: %s = %s", name, value)
        return True

    def update(self, headers: Mapping[Any, Any] | None, logger: logging.Logger) -> int:
        """Merge a batch of headers. Returns how many entries were applied."""
        if not headers:
            logger.warning("Empty or null headers map ignored.")
            return 0
        return sum(1 for name, value in headers.items() if self.add(name, value, logger))

    def get(self, name: str, default: str | None = None) -> str | None:
        entry = self._store.get(name.lower())
        return entry[1] if entry else default

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._store

    def freeze(self) -> Headers:
        return Headers(self._store.values())
