"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import json
import stat
from collections.abc import Callable
from pathlib import Path

import pytest
from typer.testing import CliRunner

from psm.config import Config


@pytest.fixture
def runner() -> CliRunner:
    """Provide Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create temporary config directory and patch storage paths."""
    config_dir = tmp_path / "config"

    def mock_get_config_paths() -> tuple[Path, Path, Path]:
        return config_dir, config_dir / "config.json", config_dir / "servers.json"

    monkeypatch.setattr("psm.storage.get_config_paths", mock_get_config_paths)
    return config_dir


@pytest.fixture
def temp_ssh_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create temporary SSH directory and point Path.home() at it."""
    ssh_dir = tmp_path / "home" / ".ssh"
    ssh_dir.mkdir(parents=True, exist_ok=True)
    monkeypatch.setattr(Path, "home", lambda: tmp_path / "home")
    return ssh_dir


@pytest.fixture
def pub_key(temp_ssh_dir: Path) -> Path:
    """Create a public key file with a trailing CRLF."""
    key_path = temp_ssh_dir / "id_ed25519.pub"
    key_path.write_text("ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIFakeKey test@example.local\r\n", encoding="utf-8")
    return key_path


@pytest.fixture
def make_stub(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory writing fake executables that record their arguments.

    Each argument is written on its own line to ``<name>.args`` next to the stub.
    """
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)

    def factory(name: str, exit_code: int = 0) -> Path:
        stub = bin_dir / name
        args_file = bin_dir / f"{name}.args"
        stub.write_text(
            "#!/bin/sh\n"
            f"for arg in \"$@\"; do printf '%s\\n' \"$arg\"; done > '{args_file}'\n"
            f"exit {exit_code}\n",
            encoding="utf-8",
        )
        stub.chmod(stub.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return stub

    return factory


def _recorded_args(stub: Path) -> list[str] | None:
    args_file = stub.with_name(f"{stub.name}.args")
    if not args_file.exists():
        return None
    return args_file.read_text(encoding="utf-8").splitlines()


@pytest.fixture
def recorded_args() -> Callable[[Path], list[str] | None]:
    """Return a reader for the arguments a stub was last called with (None if never run)."""
    return _recorded_args


@pytest.fixture
def config(tmp_path: Path, pub_key: Path, make_stub: Callable[..., Path]) -> Config:
    """Provide a configuration wired to stub ssh and scp executables."""
    return Config(
        pub_key_path=pub_key,
        server_file_path=tmp_path / "servers.json",
        ssh_client_app_path=make_stub("ssh"),
        scp_app_path=make_stub("scp"),
    )


@pytest.fixture
def sample_hosts_data() -> dict[str, dict]:
    """Provide sample server file contents."""
    return {
        "hosts": {
            "prod": {"username": "deploy", "address": "prod.example.com", "port": 22},
            "db": {"username": "postgres", "address": "10.0.0.5", "port": 2222},
            "web": {"username": "www", "address": "web.example.com", "port": 22},
        }
    }


@pytest.fixture
def configured(temp_config_dir: Path, config: Config, sample_hosts_data: dict[str, dict]) -> Config:
    """Write config.json and servers.json into the temp config directory."""
    temp_config_dir.mkdir(parents=True, exist_ok=True)
    (temp_config_dir / "config.json").write_text(config.model_dump_json(indent=2), encoding="utf-8")
    config.server_file_path.write_text(json.dumps(sample_hosts_data, indent=2), encoding="utf-8")
    return config
