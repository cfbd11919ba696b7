from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator
from pathlib import Path

import typer
from InquirerPy import inquirer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import config as config_store
from . import ssh
from .address import looks_like_target, parse_remote_path, parse_target
from .config import Config
from .errors import PsmError, UsageError
from .models import Server
from .registry import ServerRegistry


class OrderCommands(typer.core.TyperGroup):
    """Custom group to sort commands alphabetically in help.

    An unknown first argument is taken as a server to connect to, so
    ``psm prod`` behaves like ``psm connect prod``.
    """

    def list_commands(self, ctx):
        return sorted(super().list_commands(ctx))

    def resolve_command(self, ctx, args):
        if args and not args[0].startswith("-") and args[0] not in self.commands:
            args = ["connect", *args]
        return super().resolve_command(ctx, args)


app = typer.Typer(
    help="PSM: short aliases for SSH servers, key installation and file transfer.",
    cls=OrderCommands,
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()


@contextlib.contextmanager
def handle_errors() -> Iterator[None]:
    """Report library errors and exit with status 1."""
    try:
        yield
    except PsmError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1) from e
    except ValidationError as e:
        console.print(f"[red]Invalid server: {e.errors()[0]['msg']}[/red]")
        raise typer.Exit(1) from e


def _load() -> tuple[Config, ServerRegistry]:
    config = config_store.load_config()
    return config, ServerRegistry.load(config.server_file_path)


def _print_servers(registry: ServerRegistry) -> None:
    """Print servers table."""
    table = Table(title="Servers")
    table.add_column("Alias", style="bold")
    table.add_column("Username", justify="right")
    table.add_column("Address", justify="right")
    table.add_column("Port", justify="right", no_wrap=True)

    for alias, s in registry.entries():
        table.add_row(alias, s.username, s.address, str(s.port))

    console.print(table)


def _pick_alias(registry: ServerRegistry, message: str) -> str:
    """Let the user choose an alias interactively."""
    if registry.is_empty():
        console.print("[yellow]No servers found. Add one: psm add[/yellow]")
        raise typer.Exit(1)

    choices = {f"{alias}  ({s.display()})": alias for alias, s in registry.entries()}
    try:
        selected = inquirer.select(
            message=message,
            choices=list(choices),
            cycle=True,
            vi_mode=False,
            instruction="↑↓ navigate, search by alias",
        ).execute()
    except KeyboardInterrupt:
        console.print("\n[dim]Cancelled.[/dim]")
        raise typer.Exit(0)
    return choices[selected]


def _check_alias(alias: str) -> None:
    if not alias.strip():
        raise UsageError(f"Alias must not be empty: {alias!r}")


def _resolve(registry: ServerRegistry, target: str) -> Server | None:
    """Look *target* up as an alias, else parse it as ``user@host[:port]``."""
    server = registry.lookup(target)
    if server is None and looks_like_target(target):
        server = parse_target(target)
    return server


def _select_server(registry: ServerRegistry, target: str | None, message: str) -> Server | None:
    if target is None:
        target = _pick_alias(registry, message)
    return _resolve(registry, target)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """PSM: short aliases for SSH servers, key installation and file transfer."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@app.command("list", help="Show list of servers. Alias: ls")
@app.command("ls", hidden=True)
def list_servers() -> None:
    """Show list of servers."""
    with handle_errors():
        _, registry = _load()
    if registry.is_empty():
        console.print("[yellow]No servers found. Add one: psm add[/yellow]")
        return
    _print_servers(registry)


@app.command("add", help="Add a new server alias. Alias: new")
@app.command("new", hidden=True)
def add_server(
    alias: str = typer.Argument(..., help="Alias for the server"),
    username: str = typer.Argument(..., help="Remote username"),
    address: str = typer.Argument(..., help="Hostname or IP address"),
    port: int = typer.Argument(22, min=0, max=65535, help="SSH port"),
):
    """Add a new server alias."""
    with handle_errors():
        _check_alias(alias)
        config, registry = _load()
        if registry.lookup(alias) is not None:
            console.print(f"[red]Server alias {alias} already exists[/red]")
            raise typer.Exit(1)
        server = Server(username=username, address=address, port=port)
        registry.insert(alias, server).save(config.server_file_path)
    console.print(f"[green]Added:[/green] {alias}  ({server.display()})")
    _print_servers(registry)


@app.command("remove", help="Remove a server alias. Alias: rm")
@app.command("rm", hidden=True)
def remove(alias: str | None = typer.Argument(None, help="Alias (optional)")):
    """Remove a server alias."""
    with handle_errors():
        config, registry = _load()
        if alias is None:
            alias = _pick_alias(registry, "Select server to remove:")
        if alias not in registry:
            console.print(f"[yellow]Nothing to remove: {alias} is not a known alias.[/yellow]")
            return
        registry.remove(alias).save(config.server_file_path)
    console.print(f"[green]Server alias {alias} has been removed.[/green]")


@app.command("edit", help="Modify a server alias. Alias: upd")
@app.command("upd", hidden=True)
def edit(
    alias: str = typer.Argument(..., help="Alias"),
    username: str | None = typer.Option(None, "--username", "-u", help="New username"),
    address: str | None = typer.Option(None, "--address", "-a", help="New address"),
    port: int | None = typer.Option(None, "--port", "-p", min=0, max=65535, help="New port"),
):
    """Modify a server alias. Prompts for every field when no option is given."""
    with handle_errors():
        config, registry = _load()
        srv = registry.lookup(alias)
        if srv is None:
            console.print(f"[red]Cannot find alias {alias}[/red]")
            raise typer.Exit(1)

        if username is None and address is None and port is None:
            try:
                username = typer.prompt("Username", default=srv.username)
                address = typer.prompt("Address", default=srv.address)
                port = typer.prompt("Port", default=srv.port, type=int)
            except (KeyboardInterrupt, typer.Abort):
                console.print("\n[dim]Cancelled.[/dim]")
                raise typer.Exit(0)

        updated = Server(
            username=username if username is not None else srv.username,
            address=address if address is not None else srv.address,
            port=port if port is not None else srv.port,
        )
        registry.remove(alias).insert(alias, updated).save(config.server_file_path)
    console.print(f"[green]Saved:[/green] {alias}  ({updated.display()})")


@app.command("rename", help="Rename a server alias. Alias: mv")
@app.command("mv", hidden=True)
def rename(
    alias: str = typer.Argument(..., help="Current alias"),
    new_alias: str = typer.Argument(..., help="New alias"),
):
    """Rename a server alias."""
    with handle_errors():
        _check_alias(new_alias)
        config, registry = _load()
        if not registry.rename(alias, new_alias):
            console.print(f"[red]Cannot find alias {alias}[/red]")
            raise typer.Exit(1)
        registry.save(config.server_file_path)
    console.print(f"[green]Server alias {alias} has been renamed to {new_alias}.[/green]")


@app.command("connect", help="Connect to a server. Alias: go")
@app.command("go", hidden=True)
def connect_cmd(
    target: str | None = typer.Argument(None, help="Alias or user@host[:port] (optional)"),
):
    """Connect to a server."""
    with handle_errors():
        config, registry = _load()
        srv = _select_server(registry, target, "Select server to connect:")
        if srv is None:
            _print_servers(registry)
            return
        rc = ssh.connect(srv, config)
    raise typer.Exit(rc)


@app.command("link", help="Install your public key on a server. Alias: ln")
@app.command("ln", hidden=True)
def link(
    target: str | None = typer.Argument(None, help="Alias or user@host[:port] (optional)"),
):
    """Append the configured public key to the server's authorized_keys."""
    with handle_errors():
        config, registry = _load()
        srv = _select_server(registry, target, "Select server to install key on:")
        if srv is None:
            _print_servers(registry)
            return
        outcome = ssh.install_key(srv, config)
    if outcome is not ssh.KeyInstall.INSTALLED:
        raise typer.Exit(1)


def _transfer_server(registry: ServerRegistry, alias: str) -> Server:
    srv = _resolve(registry, alias)
    if srv is None:
        console.print(f"[red]Unknown alias {alias}[/red]")
        if not registry.is_empty():
            _print_servers(registry)
        raise typer.Exit(1)
    return srv


@app.command("upload", help="Copy local files to a server. Alias: up")
@app.command("up", hidden=True)
def upload_cmd(
    sources: list[str] | None = typer.Argument(None, help="Local files or directories"),
    remote: str = typer.Argument(..., help="Destination as alias:path"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Copy directories recursively"),
):
    """Copy local files to a server."""
    with handle_errors():
        config, registry = _load()
        spec = parse_remote_path(remote)
        srv = _transfer_server(registry, spec.alias)
        rc = ssh.upload(srv, config, sources or [], spec.path, recursive=recursive)
    raise typer.Exit(rc)


@app.command("download", help="Copy files from a server. Alias: down")
@app.command("down", hidden=True)
def download_cmd(
    remote: str = typer.Argument(..., help="Source as alias:path"),
    destinations: list[str] | None = typer.Argument(None, help="Local destination"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Copy directories recursively"),
):
    """Copy files from a server."""
    with handle_errors():
        config, registry = _load()
        spec = parse_remote_path(remote)
        srv = _transfer_server(registry, spec.alias)
        rc = ssh.download(srv, config, spec.path, destinations or [], recursive=recursive)
    raise typer.Exit(rc)


def _print_config(config: Config) -> None:
    table = Table(title="Configuration")
    table.add_column("Setting", style="bold")
    table.add_column("Path")
    table.add_row("Public key", str(config.pub_key_path))
    table.add_row("Server file", str(config.server_file_path))
    table.add_row("SSH client", str(config.ssh_client_app_path))
    table.add_row("SCP client", str(config.scp_app_path))
    console.print(table)


@app.command("set")
def set_config(
    pub_key_path: Path | None = typer.Option(None, "--pub-key", "-k", help="Public key to install"),
    server_file_path: Path | None = typer.Option(None, "--server-file", "-s", help="Server file"),
    ssh_client_app_path: Path | None = typer.Option(None, "--ssh", "-c", help="SSH client executable"),
    scp_app_path: Path | None = typer.Option(None, "--scp", "-a", help="SCP executable"),
):
    """Configure paths. Shows the current configuration without options."""
    with handle_errors():
        config = config_store.load_config()
        if all(v is None for v in (pub_key_path, server_file_path, ssh_client_app_path, scp_app_path)):
            _print_config(config)
            return
        config = config_store.update_config(
            config,
            pub_key_path=pub_key_path,
            server_file_path=server_file_path,
            ssh_client_app_path=ssh_client_app_path,
            scp_app_path=scp_app_path,
        )
        config_store.save_config(config)
    console.print("[green]Saved.[/green]")
    _print_config(config)


def main():
    app()


if __name__ == "__main__":
    main()
