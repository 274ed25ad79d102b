from __future__ import annotations

import os

import pytest

from modsync.core.config.manager import ConfigManager
from modsync.core.config.paths import ConfigFsPaths
from modsync.core.state.store_sqlite import ModuleStateStore

from .helpers.fakes import TickClock
from .helpers.harness import build_stack


@pytest.fixture
def project_root(tmp_path):
    """
    Isolated project root with an empty Modules/ directory under tmp_path.
    """
    os.makedirs(tmp_path / "Modules", exist_ok=True)
    return str(tmp_path)


@pytest.fixture
def config_manager(project_root):
    cm = ConfigManager(fs=ConfigFsPaths(root=project_root), logger=None, read_only=False)
    cm.load_all()
    return cm


@pytest.fixture
def state_store(tmp_path):
    return ModuleStateStore(path=str(tmp_path / "storage" / "state.sqlite3"), clock=TickClock())


@pytest.fixture
def stack(project_root):
    return build_stack(project_root)
