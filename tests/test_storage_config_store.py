"""Tests for the JSON config store (ConfigStore)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from impcli.storage.config_store import ConfigFileError, ConfigStore


def _write_json(path: Path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


class TestLoading:
    def test_missing_files_start_empty(self, store: ConfigStore):
        assert store.load_local_config() is None
        assert store.get("local", "modelId") is None
        assert store.get("global", "apiKey") is None

    def test_reads_existing_local_config(self, project_dir, global_path):
        _write_json(project_dir / ".impconfig", {"modelId": "m-1", "devices": ["d1"]})
        store = ConfigStore(project_dir, global_path=global_path)
        assert store.load_local_config() == {"modelId": "m-1", "devices": ["d1"]}
        assert store.get("local", "devices") == ["d1"]

    def test_preserves_unknown_keys(self, project_dir, global_path):
        _write_json(project_dir / ".impconfig", {"modelId": "m-1", "logLevel": "debug"})
        store = ConfigStore(project_dir, global_path=global_path)
        assert store.get("local", "logLevel") == "debug"

    def test_invalid_json_raises(self, project_dir, global_path):
        (project_dir / ".impconfig").write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigFileError, match="could not read"):
            ConfigStore(project_dir, global_path=global_path)

    def test_non_object_raises(self, project_dir, global_path):
        _write_json(project_dir / ".impconfig", ["modelId"])
        with pytest.raises(ConfigFileError, match="JSON object"):
            ConfigStore(project_dir, global_path=global_path)

    def test_wrong_value_type_raises(self, project_dir, global_path):
        _write_json(project_dir / ".impconfig", {"devices": "d1"})
        with pytest.raises(ConfigFileError, match="invalid config"):
            ConfigStore(project_dir, global_path=global_path)

    def test_discard_invalid_local_starts_empty(self, project_dir, global_path):
        _write_json(project_dir / ".impconfig", {"devices": "d1", "modelId": "m-1"})
        store = ConfigStore(project_dir, global_path=global_path, discard_invalid_local=True)

        assert isinstance(store.local_error, ConfigFileError)
        assert store.load_local_config() == {}
        assert store.get("local", "modelId") is None

    def test_discard_invalid_local_leaves_valid_file_alone(self, project_dir, global_path):
        _write_json(project_dir / ".impconfig", {"modelId": "m-1"})
        store = ConfigStore(project_dir, global_path=global_path, discard_invalid_local=True)

        assert store.local_error is None
        assert store.get("local", "modelId") == "m-1"


class TestLookup:
    def test_local_overrides_global(self, project_dir, global_path):
        _write_json(global_path, {"apiKey": "global-key"})
        _write_json(project_dir / ".impconfig", {"apiKey": "local-key"})
        store = ConfigStore(project_dir, global_path=global_path)
        assert store.lookup("apiKey") == "local-key"

    def test_falls_back_to_global(self, project_dir, global_path):
        _write_json(global_path, {"apiKey": "global-key"})
        store = ConfigStore(project_dir, global_path=global_path)
        assert store.lookup("apiKey") == "global-key"

    def test_unknown_scope_rejected(self, store):
        with pytest.raises(ValueError, match="Unknown config scope"):
            store.get("project", "apiKey")  # type: ignore[arg-type]


class TestPersist:
    def test_set_is_in_memory_until_persist(self, store):
        store.set("local", "modelId", "m-1")
        assert store.get("local", "modelId") == "m-1"
        assert not store.local_path.exists()

    def test_persist_writes_local_json(self, store):
        store.set("local", "modelId", "m-1")
        store.set("local", "devices", ["d1", "d2"])
        store.persist()

        data = json.loads(store.local_path.read_text(encoding="utf-8"))
        assert data == {"modelId": "m-1", "devices": ["d1", "d2"]}
        assert store.load_local_config() == data

    def test_persist_leaves_no_tmp_file(self, store, project_dir):
        store.set("local", "modelId", "m-1")
        store.persist()
        assert list(project_dir.glob("*.tmp")) == []

    def test_persist_skips_clean_global(self, store, global_path):
        store.set("local", "modelId", "m-1")
        store.persist()
        assert not global_path.exists()

    def test_persist_writes_dirty_global(self, store, global_path):
        store.set("global", "apiKey", "k")
        store.persist()
        assert json.loads(global_path.read_text(encoding="utf-8")) == {"apiKey": "k"}

    def test_none_values_are_dropped(self, store):
        store.set("local", "modelId", "m-1")
        store.set("local", "agentFile", None)
        store.persist()
        assert "agentFile" not in json.loads(store.local_path.read_text(encoding="utf-8"))

    def test_invalid_value_raises(self, store):
        store.set("local", "devices", 42)
        with pytest.raises(ConfigFileError, match="invalid config"):
            store.persist()
        assert not store.local_path.exists()
