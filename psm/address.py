"""Parsing of ``user@host[:port]`` targets and ``alias:path`` references."""

from __future__ import annotations

import re

from .errors import InvalidRemoteSpecError, MalformedAddressError
from .models import RemotePath, Server

DEFAULT_PORT = 22

TARGET_RE = re.compile(
    r"""
    ^(?P<username>[A-Za-z0-9_][A-Za-z0-9._-]*)
    @(?P<address>[A-Za-z0-9_][A-Za-z0-9._-]*)
    (?::(?P<port>\d*))?$
    """,
    re.VERBOSE,
)


def _parse_port(raw: str | None) -> int:
    if not raw:
        return DEFAULT_PORT
    port = int(raw)
    # Out-of-range ports fall back to the default rather than failing
    return port if port <= 0xFFFF else DEFAULT_PORT


def parse_target(value: str) -> Server:
    """Parse ``user@host[:port]`` into a server record.

    The port defaults to 22 when it is missing or does not fit in 16 bits.
    Raises ``MalformedAddressError`` carrying *value* when it does not match.
    """
    match = TARGET_RE.match(value.strip())
    if match is None:
        raise MalformedAddressError(value)
    return Server(
        username=match.group("username"),
        address=match.group("address"),
        port=_parse_port(match.group("port")),
    )


def parse_remote_path(value: str) -> RemotePath:
    """Split ``alias:path`` on the first colon.

    The alias is not checked against the registry here.
    """
    parts = value.split(":", 1)
    if len(parts) != 2 or not parts[0]:
        raise InvalidRemoteSpecError(value)
    alias, path = parts
    return RemotePath(alias=alias, path=path)


def looks_like_target(value: str) -> bool:
    """Return True if *value* should be parsed as an address instead of an alias."""
    return "@" in value
