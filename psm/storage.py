from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "psm"

LOGGER = logging.getLogger(__name__)


def get_config_paths() -> tuple[Path, Path, Path]:
    """Return the config directory, config file and default server file."""
    cfg_dir = Path(user_config_dir(APP_NAME, appauthor=False))
    cfg_file = cfg_dir / "config.json"
    servers_file = cfg_dir / "servers.json"
    return cfg_dir, cfg_file, servers_file


def dump_json(payload: object) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2)


def write_atomic(path: Path, text: str) -> None:
    """Replace *path* with *text* in a single rename.

    The permissions of an existing file are kept. Concurrent writers are not
    coordinated; the last rename wins.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        if path.exists():
            os.chmod(tmp_path, stat.S_IMODE(path.stat().st_mode))
        os.replace(tmp_path, path)
    finally:
        tmp_path.unlink(missing_ok=True)
    LOGGER.debug("Wrote %s", path)
