from __future__ import annotations

import json
import os

import pytest

from modsync.core.errors import DescriptorMissingError, MalformedDescriptorError, ModuleMissingError
from modsync.core.modules.descriptor_store import DescriptorStore
from modsync.core.modules.discovery import ModuleDiscovery

from .helpers.fakes import TickClock, write_descriptor


def _store(tmp_path):
    local = tmp_path / "Modules"
    vendor = tmp_path / "vendor" / "modules"
    os.makedirs(local, exist_ok=True)
    os.makedirs(vendor, exist_ok=True)
    disc = ModuleDiscovery(modules_dirs=[str(local)], vendor_dirs=[str(vendor)])
    return DescriptorStore(discovery=disc, clock=TickClock()), str(local), str(vendor)


def test_load_missing_module_dir(tmp_path):
    store, _local, _vendor = _store(tmp_path)
    with pytest.raises(ModuleMissingError) as ei:
        store.load("Ghost")
    assert ei.value.user_message == "Module not found"
    assert ei.value.code == "module_not_found"


def test_load_dir_without_descriptor(tmp_path):
    store, local, _vendor = _store(tmp_path)
    os.makedirs(os.path.join(local, "Bare"))
    with pytest.raises(DescriptorMissingError) as ei:
        store.load("Bare")
    assert ei.value.user_message == "module.json not found"


def test_load_malformed_json(tmp_path):
    store, local, _vendor = _store(tmp_path)
    os.makedirs(os.path.join(local, "Broken"))
    with open(os.path.join(local, "Broken", "module.json"), "w", encoding="utf-8") as f:
        f.write("{not json")
    with pytest.raises(MalformedDescriptorError) as ei:
        store.load("Broken")
    assert ei.value.user_message.startswith("Invalid JSON file: ")


def test_load_non_object_is_malformed(tmp_path):
    store, local, _vendor = _store(tmp_path)
    os.makedirs(os.path.join(local, "Listy"))
    with open(os.path.join(local, "Listy", "module.json"), "w", encoding="utf-8") as f:
        json.dump(["a"], f)
    with pytest.raises(MalformedDescriptorError):
        store.load("Listy")


def test_missing_enabled_and_name_default(tmp_path):
    store, local, _vendor = _store(tmp_path)
    os.makedirs(os.path.join(local, "Thin"))
    with open(os.path.join(local, "Thin", "module.json"), "w", encoding="utf-8") as f:
        json.dump({"dependencies": ["a/b:^1.0"]}, f)
    loaded = store.load("Thin")
    assert loaded.descriptor.enabled is False
    assert loaded.descriptor.name == "Thin"
    assert loaded.descriptor.dependencies == ["a/b:^1.0"]


def test_set_enabled_keeps_key_order_and_unknown_keys(tmp_path):
    store, local, _vendor = _store(tmp_path)
    path = write_descriptor(local, "Blog", providers=["Modules/Blog/Providers/X"], enabled=False)
    loaded = store.load("Blog")

    store.set_enabled(loaded, True)

    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    data = json.loads(text)
    assert list(data.keys())[:5] == ["name", "version", "description", "enabled", "providers"]
    assert data["enabled"] is True
    assert data["providers"] == ["Modules/Blog/Providers/X"]
    assert data["last_enabled_at"] == "2024-01-01T00:00:01Z"
    assert "last_disabled_at" not in data
    # pretty-printed with 4 spaces, slashes unescaped
    assert '\n    "name": "Blog"' in text
    assert "Modules/Blog/Providers/X" in text


def test_set_enabled_leaves_other_timestamp(tmp_path):
    store, local, _vendor = _store(tmp_path)
    write_descriptor(local, "Blog", enabled=True, last_enabled_at="2020-01-01T00:00:00Z")
    updated = store.set_enabled(store.load("Blog"), False)
    assert updated.descriptor.enabled is False
    assert updated.descriptor.last_enabled_at == "2020-01-01T00:00:00Z"
    assert updated.descriptor.last_disabled_at == "2024-01-01T00:00:01Z"


def test_vendor_root_used_when_not_local(tmp_path):
    store, local, vendor = _store(tmp_path)
    write_descriptor(vendor, "Shop", version="2.0.0")
    loaded = store.load("Shop")
    assert loaded.location.is_vendor is True
    assert loaded.descriptor.version == "2.0.0"


def test_local_root_wins_over_vendor(tmp_path):
    store, local, vendor = _store(tmp_path)
    write_descriptor(vendor, "Shop", version="2.0.0")
    write_descriptor(local, "Shop", version="3.0.0")
    loaded = store.load("Shop")
    assert loaded.location.is_vendor is False
    assert loaded.descriptor.version == "3.0.0"


def test_list_modules_dedupes_and_skips_hidden(tmp_path):
    store, local, vendor = _store(tmp_path)
    write_descriptor(local, "Blog")
    write_descriptor(vendor, "Blog")
    write_descriptor(vendor, "Shop")
    os.makedirs(os.path.join(local, ".git"))
    os.makedirs(os.path.join(local, "_template"))
    with open(os.path.join(local, "README.md"), "w", encoding="utf-8") as f:
        f.write("x")
    assert store.discovery.list_modules() == ["Blog", "Shop"]


def test_unsafe_names_are_not_found(tmp_path):
    store, _local, _vendor = _store(tmp_path)
    with pytest.raises(ModuleMissingError):
        store.load("../etc")


def test_dependencies_of_missing_descriptor_is_empty(tmp_path):
    store, _local, _vendor = _store(tmp_path)
    assert store.dependencies_of("Ghost") == []
