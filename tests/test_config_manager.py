from __future__ import annotations

import json
import os

import pytest

from modsync.core.config.manager import CONFIG_FILES, ConfigManager
from modsync.core.config.paths import ConfigFsPaths
from modsync.core.errors import ConfigError


class DummyLogger:
    def info(self, *_a, **_k): ...
    def warning(self, *_a, **_k): ...
    def error(self, *_a, **_k): ...


def test_missing_files_are_created_with_defaults(config_manager):
    for name in CONFIG_FILES:
        assert os.path.exists(os.path.join(config_manager.fs.config_dir, name))
    cfg = config_manager.get()
    assert cfg.app.paths.modules_dirs == ["Modules"]
    assert cfg.activation.max_depth == 1
    assert cfg.packages.backend == "pip"
    assert cfg.packages.timeout_seconds is None


def test_paths_resolve_against_root(config_manager, project_root):
    assert config_manager.modules_dirs() == [os.path.join(project_root, "Modules")]
    assert config_manager.vendor_dirs() == [os.path.join(project_root, "vendor/modules")]
    assert config_manager.state_db_path() == os.path.join(project_root, "storage/modsync.sqlite3")
    assert config_manager.resolve_path("/abs/x") == "/abs/x"


def test_read_only_does_not_write(tmp_path):
    cm = ConfigManager(fs=ConfigFsPaths(str(tmp_path)), logger=DummyLogger(), read_only=True)
    cfg = cm.load_all()
    assert cfg.events.enabled is True
    assert not os.path.exists(os.path.join(str(tmp_path), "config"))


def test_corrupt_json_is_quarantined_and_defaults_used(config_manager):
    fs = config_manager.fs
    with open(fs.packages, "w", encoding="utf-8") as f:
        f.write("{not json")

    cfg = config_manager.load_all()

    assert cfg.packages.backend == "pip"
    backups = os.listdir(fs.backups_dir)
    assert any("packages.json" in b and "corrupt" in b for b in backups)


def test_unknown_fields_rejected(config_manager):
    bad = config_manager.get().activation.model_dump()
    bad["unknown_field"] = 1
    with pytest.raises(ConfigError):
        config_manager.save("activation.json", bad)


def test_save_backs_up_and_revalidates(config_manager):
    pk = config_manager.get().packages.model_dump()
    pk["backend"] = "command"
    pk["install_command"] = ["composer", "require", "{requirement}"]
    pk["remove_command"] = ["composer", "remove", "{package}"]

    cfg = config_manager.save("packages.json", pk)

    assert cfg.packages.backend == "command"
    with open(config_manager.fs.packages, "r", encoding="utf-8") as f:
        assert json.load(f)["install_command"][2] == "{requirement}"
    assert any(b.startswith("packages.json.") for b in os.listdir(config_manager.fs.backups_dir))


def test_save_unknown_file_rejected(config_manager):
    with pytest.raises(ConfigError):
        config_manager.save("web.json", {})


def test_get_before_load_raises(tmp_path):
    with pytest.raises(ConfigError):
        ConfigManager(fs=ConfigFsPaths(str(tmp_path))).get()
