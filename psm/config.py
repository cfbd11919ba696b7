from __future__ import annotations

import logging
import shutil
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError

from . import storage
from .errors import ConfigError
from .registry import ServerRegistry

LOGGER = logging.getLogger(__name__)


class Config(BaseModel):
    """Paths used to locate the server file, the public key and the SSH tools."""

    model_config = ConfigDict(frozen=True)

    pub_key_path: Path
    server_file_path: Path
    ssh_client_app_path: Path
    scp_app_path: Path


def find_default_public_key() -> Path:
    """Find default public key in ~/.ssh/."""
    ssh_dir = Path.home() / ".ssh"
    # Priority: ed25519 > rsa > ecdsa
    for key_name in ["id_ed25519.pub", "id_rsa.pub", "id_ecdsa.pub"]:
        key_path = ssh_dir / key_name
        if key_path.exists():
            return key_path
    return ssh_dir / "id_rsa.pub"


def resolve_executable(name: str) -> Path:
    """Return the absolute path of *name*, searching PATH for bare names."""
    found = shutil.which(name)
    return Path(found) if found else Path(name)


def default_config(servers_file: Path) -> Config:
    return Config(
        pub_key_path=find_default_public_key(),
        server_file_path=servers_file,
        ssh_client_app_path=resolve_executable("ssh"),
        scp_app_path=resolve_executable("scp"),
    )


def save_config(config: Config) -> None:
    _, cfg_file, _ = storage.get_config_paths()
    try:
        storage.write_atomic(cfg_file, storage.dump_json(config.model_dump(mode="json")))
    except OSError as e:
        raise ConfigError(f"Failed to write config file {cfg_file}: {e}") from e


def load_config() -> Config:
    """Load the configuration, bootstrapping it on first run.

    On first run the config directory, an empty server file and a default
    config file are created before anything is read.
    """
    cfg_dir, cfg_file, servers_file = storage.get_config_paths()
    if not cfg_file.exists():
        LOGGER.debug("First run: initialising %s", cfg_dir)
        cfg_dir.mkdir(parents=True, exist_ok=True)
        if not servers_file.exists():
            ServerRegistry.init(servers_file)
        save_config(default_config(servers_file))

    try:
        text = cfg_file.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config file {cfg_file}: {e}") from e
    try:
        return Config.model_validate_json(text)
    except ValidationError as e:
        raise ConfigError(f"Corrupt config file {cfg_file}: {e}") from e


def update_config(
    config: Config,
    *,
    pub_key_path: Path | None = None,
    server_file_path: Path | None = None,
    ssh_client_app_path: Path | None = None,
    scp_app_path: Path | None = None,
) -> Config:
    """Return a copy of *config* with the given paths replaced.

    Every supplied path must already exist. Bare executable names are looked
    up on PATH first.
    """
    changes: dict[str, Path] = {}
    for field, value, executable in [
        ("pub_key_path", pub_key_path, False),
        ("server_file_path", server_file_path, False),
        ("ssh_client_app_path", ssh_client_app_path, True),
        ("scp_app_path", scp_app_path, True),
    ]:
        if value is None:
            continue
        path = resolve_executable(str(value)) if executable else Path(value).expanduser()
        if not path.exists():
            raise ConfigError(f"{path} not found!")
        changes[field] = path.absolute()
    return config.model_copy(update=changes)
