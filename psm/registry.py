"""Persistent alias -> server mapping.

The whole collection is loaded at start-up and rewritten as one snapshot after
every change. Neither ``insert`` nor ``rename`` protects an existing alias;
callers that need create-if-absent semantics must ``lookup`` first.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from pydantic import ValidationError

from .errors import StorageError
from .models import HostsFile, Server
from .storage import dump_json, write_atomic

LOGGER = logging.getLogger(__name__)


class ServerRegistry:
    """Servers keyed by alias."""

    def __init__(self, hosts: dict[str, Server] | None = None):
        self._hosts: dict[str, Server] = dict(hosts or {})

    def __len__(self) -> int:
        return len(self._hosts)

    def __contains__(self, alias: object) -> bool:
        return alias in self._hosts

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._hosts))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ServerRegistry):
            return NotImplemented
        return self._hosts == other._hosts

    def __repr__(self) -> str:
        return f"ServerRegistry({self._hosts!r})"

    def lookup(self, alias: str) -> Server | None:
        """Return the server stored under *alias*, or None."""
        return self._hosts.get(alias)

    def insert(self, alias: str, server: Server) -> ServerRegistry:
        """Store *server* under *alias*, overwriting any existing entry."""
        self._hosts[alias] = server
        return self

    def remove(self, alias: str) -> ServerRegistry:
        """Drop *alias* if present."""
        self._hosts.pop(alias, None)
        return self

    def rename(self, old: str, new: str) -> bool:
        """Move the server at *old* to *new*.

        Returns False and leaves the registry untouched if *old* is unknown.
        An existing entry at *new* is overwritten.
        """
        server = self._hosts.pop(old, None)
        if server is None:
            return False
        self._hosts[new] = server
        return True

    def is_empty(self) -> bool:
        return not self._hosts

    def entries(self) -> list[tuple[str, Server]]:
        """Return ``(alias, server)`` pairs sorted by alias."""
        return sorted(self._hosts.items())

    # Persistence ---------------------------------------------------------
    def to_payload(self) -> dict:
        return HostsFile(hosts=self._hosts).model_dump()

    def save(self, path: Path) -> None:
        """Write the whole registry to *path*."""
        try:
            write_atomic(path, dump_json(self.to_payload()))
        except OSError as e:
            raise StorageError(f"Failed to write server file {path}: {e}") from e
        LOGGER.debug("Saved %d server(s) to %s", len(self), path)

    @classmethod
    def load(cls, path: Path) -> ServerRegistry:
        """Read a registry previously written by ``save``."""
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read server file {path}: {e}") from e
        try:
            data = HostsFile.model_validate_json(text)
        except ValidationError as e:
            raise StorageError(f"Corrupt server file {path}: {e}") from e
        LOGGER.debug("Loaded %d server(s) from %s", len(data.hosts), path)
        return cls(data.hosts)

    @classmethod
    def init(cls, path: Path) -> ServerRegistry:
        """Create and persist an empty registry at *path*."""
        registry = cls()
        registry.save(path)
        return registry
