from __future__ import annotations

import enum
import logging
import shlex
import subprocess
from collections.abc import Sequence
from os import PathLike

from rich.console import Console
from rich.markup import escape

from .config import Config
from .errors import LaunchError, PublicKeyError, UsageError
from .models import Server

LOGGER = logging.getLogger(__name__)

console = Console()

AUTHORIZED_KEYS = "~/.ssh/authorized_keys"


class KeyInstall(enum.Enum):
    """Outcome of installing the public key on a server."""

    INSTALLED = "installed"
    FAILED = "failed"
    LAUNCH_ERROR = "launch error"


def port_flag(server: Server) -> str:
    return f"-p{server.port}"


def scp_flag(server: Server, recursive: bool = False) -> str:
    return f"-{'r' if recursive else ''}P{server.port}"


def remote_spec(server: Server, remote_path: str) -> str:
    return f"{server.destination}:{remote_path}"


def append_key_command(key: str) -> str:
    """Shell command that appends *key* to authorized_keys unless already there."""
    quoted = shlex.quote(key)
    return (
        "mkdir -p -m 700 ~/.ssh; "
        f"grep -cq {quoted} {AUTHORIZED_KEYS} || echo {quoted} >> {AUTHORIZED_KEYS}; exit 0;"
    )


def read_public_key(config: Config) -> str:
    """Return the first non-empty line of the public key file."""
    try:
        key = config.pub_key_path.read_text(encoding="utf-8")
    except OSError as e:
        raise PublicKeyError(f"Failed to read public key {config.pub_key_path}: {e}") from e
    key = next((line.strip() for line in key.splitlines() if line.strip()), "")
    if not key:
        raise PublicKeyError(f"Public key {config.pub_key_path} is empty")
    return key


def connect_command(server: Server, config: Config) -> list[str]:
    return [str(config.ssh_client_app_path), server.destination, port_flag(server)]


def install_key_command(server: Server, config: Config, key: str) -> list[str]:
    return [str(config.ssh_client_app_path), server.destination, port_flag(server), append_key_command(key)]


def upload_command(
    server: Server,
    config: Config,
    sources: Sequence[str | PathLike[str]],
    remote_path: str,
    recursive: bool = False,
) -> list[str]:
    if not sources:
        raise UsageError("At least one local path is required for upload")
    return [
        str(config.scp_app_path),
        scp_flag(server, recursive),
        *(str(s) for s in sources),
        remote_spec(server, remote_path),
    ]


def download_command(
    server: Server,
    config: Config,
    remote_path: str,
    destinations: Sequence[str | PathLike[str]],
    recursive: bool = False,
) -> list[str]:
    if len(destinations) != 1:
        raise UsageError(f"Download needs exactly one local destination, got {len(destinations)}")
    return [
        str(config.scp_app_path),
        scp_flag(server, recursive),
        remote_spec(server, remote_path),
        str(destinations[0]),
    ]


def run(cmd: list[str]) -> int:
    """Run *cmd* attached to the terminal and wait for it. Returns exit code."""
    LOGGER.debug("Spawning %s", cmd)
    try:
        return subprocess.call(cmd)  # noqa: S603
    except KeyboardInterrupt:
        return 130
    except OSError as e:
        raise LaunchError(cmd[0], e) from e


def connect(server: Server, config: Config) -> int:
    """Open an interactive SSH session. Returns exit code of the client."""
    cmd = connect_command(server, config)
    console.print(f"[cyan]SSH: {' '.join(cmd)}[/cyan]")
    return run(cmd)


def install_key(server: Server, config: Config) -> KeyInstall:
    """Append the local public key to the server's authorized_keys."""
    key = read_public_key(config)
    cmd = install_key_command(server, config, key)
    try:
        rc = run(cmd)
    except LaunchError as e:
        console.print(f"[red]Fatal error: {escape(str(e))}[/red]")
        return KeyInstall.LAUNCH_ERROR

    if rc == 0:
        console.print(f"[green]Public key installed on {server.display()}.[/green]")
        return KeyInstall.INSTALLED
    console.print(f"[red]Failed to install public key on {server.display()} (exit code {rc}).[/red]")
    return KeyInstall.FAILED


def upload(
    server: Server,
    config: Config,
    sources: Sequence[str | PathLike[str]],
    remote_path: str,
    recursive: bool = False,
) -> int:
    """Copy local *sources* to *remote_path* on the server."""
    cmd = upload_command(server, config, sources, remote_path, recursive)
    console.print(f"[cyan]SCP: {' '.join(cmd)}[/cyan]")
    return run(cmd)


def download(
    server: Server,
    config: Config,
    remote_path: str,
    destinations: Sequence[str | PathLike[str]],
    recursive: bool = False,
) -> int:
    """Copy *remote_path* from the server to the single local destination."""
    cmd = download_command(server, config, remote_path, destinations, recursive)
    console.print(f"[cyan]SCP: {' '.join(cmd)}[/cyan]")
    return run(cmd)
