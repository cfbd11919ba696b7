from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

Alias = Annotated[str, Field(min_length=1)]


class Server(BaseModel):
    """Connection parameters of one remote host."""

    model_config = ConfigDict(frozen=True)

    username: str = Field(min_length=1)
    address: str = Field(min_length=1)
    port: int = Field(default=22, ge=0, le=65535)

    @property
    def destination(self) -> str:
        return f"{self.username}@{self.address}"

    def display(self) -> str:
        """Return formatted server display string."""
        return f"{self.username}@{self.address}:{self.port}"


class RemotePath(BaseModel):
    """An ``alias:path`` reference to a location on a remote host."""

    model_config = ConfigDict(frozen=True)

    alias: str
    path: str


class HostsFile(BaseModel):
    """On-disk layout of the server file."""

    hosts: dict[Alias, Server] = Field(default_factory=dict)
