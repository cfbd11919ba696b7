"""Tests for Server and RemotePath models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from psm.models import HostsFile, RemotePath, Server


def test_server_creation_minimal():
    """Test creating server with default port."""
    server = Server(username="admin", address="192.168.1.1")

    assert server.username == "admin"
    assert server.address == "192.168.1.1"
    assert server.port == 22


def test_server_equality_is_structural():
    assert Server(username="a", address="h", port=2200) == Server(username="a", address="h", port=2200)
    assert Server(username="a", address="h", port=2200) != Server(username="a", address="h", port=22)


def test_server_is_immutable():
    server = Server(username="admin", address="host")
    with pytest.raises(ValidationError):
        server.port = 2222


def test_server_copy_produces_new_record():
    server = Server(username="admin", address="host")
    moved = server.model_copy(update={"port": 2222})

    assert moved.port == 2222
    assert server.port == 22


@pytest.mark.parametrize(
    "fields",
    [
        {"username": "", "address": "host"},
        {"username": "admin", "address": ""},
        {"username": "admin", "address": "host", "port": 65536},
        {"username": "admin", "address": "host", "port": -1},
    ],
)
def test_server_rejects_invalid_fields(fields: dict):
    with pytest.raises(ValidationError):
        Server(**fields)


def test_server_display_and_destination():
    server = Server(username="bob", address="host.example", port=2200)

    assert server.destination == "bob@host.example"
    assert server.display() == "bob@host.example:2200"


def test_remote_path_fields():
    ref = RemotePath(alias="prod", path="/var/www")
    assert (ref.alias, ref.path) == ("prod", "/var/www")


def test_hosts_file_serialization():
    """Test the on-disk document shape."""
    doc = HostsFile(hosts={"prod": Server(username="bob", address="h", port=22)})

    assert doc.model_dump() == {"hosts": {"prod": {"username": "bob", "address": "h", "port": 22}}}
    assert HostsFile.model_validate_json("{}").hosts == {}
