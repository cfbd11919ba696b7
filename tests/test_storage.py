"""Tests for storage module."""

from __future__ import annotations

import json
from pathlib import Path

from psm import storage
from psm.storage import dump_json, write_atomic


def test_get_config_paths(temp_config_dir: Path):
    """Test config paths share one directory."""
    cfg_dir, cfg_file, servers_file = storage.get_config_paths()

    assert cfg_dir == temp_config_dir
    assert cfg_file.parent == cfg_dir
    assert servers_file.parent == cfg_dir


def test_default_config_paths_use_app_name():
    cfg_dir, cfg_file, servers_file = storage.get_config_paths()

    assert cfg_dir.name.lower() == storage.APP_NAME
    assert cfg_file.name == "config.json"
    assert servers_file.name == "servers.json"


def test_dump_json_is_readable():
    text = dump_json({"hosts": {"café": {"port": 22}}})

    assert "café" in text
    assert text.startswith("{\n  ")


def test_write_atomic_creates_parent(tmp_path: Path):
    target = tmp_path / "nested" / "dir" / "servers.json"
    write_atomic(target, dump_json({"hosts": {}}))

    assert json.loads(target.read_text(encoding="utf-8")) == {"hosts": {}}


def test_write_atomic_overwrites(tmp_path: Path):
    target = tmp_path / "servers.json"
    write_atomic(target, "first")
    write_atomic(target, "second")

    assert target.read_text(encoding="utf-8") == "second"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["servers.json"]


def test_write_atomic_keeps_existing_permissions(tmp_path: Path):
    target = tmp_path / "servers.json"
    target.write_text("first", encoding="utf-8")
    target.chmod(0o644)

    write_atomic(target, "second")

    assert target.stat().st_mode & 0o777 == 0o644
