"""JSON-backed key/value store for local and global imp configuration.

The local scope belongs to one project directory (<project>/.impconfig),
the global scope is shared by every project (~/.impconfig). Values are
held in memory until persist() is called. Writes are atomic to prevent
partial files.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ValidationError

from impcli.models.config import (
    CONFIG_FILENAME,
    GlobalConfig,
    LocalConfig,
    global_config_path,
)

Scope = Literal["local", "global"]


class ConfigFileError(Exception):
    """Raised when a config file cannot be read, parsed, or written."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class ConfigStore:
    """In-memory view of the local and global .impconfig files.

    Keys are the on-disk (camelCase) names, e.g. ``modelId``. Both files
    are read on construction; missing files start as empty scopes.

    With discard_invalid_local, an unreadable or invalid local file is
    treated as present but empty (so it still counts as an existing
    config) and the error is kept in ``local_error`` instead of raised.
    """

    def __init__(
        self,
        project_dir: Path,
        global_path: Path | None = None,
        discard_invalid_local: bool = False,
    ) -> None:
        self.local_path = project_dir / CONFIG_FILENAME
        self.global_path = global_path or global_config_path()
        self.local_error: ConfigFileError | None = None
        try:
            self._local_on_disk = self._read(self.local_path, LocalConfig)
        except ConfigFileError as e:
            if not discard_invalid_local:
                raise
            self.local_error = e
            self._local_on_disk = {}
        self._local: dict[str, Any] = dict(self._local_on_disk or {})
        self._global: dict[str, Any] = dict(self._read(self.global_path, GlobalConfig) or {})
        self._global_dirty = False

    def get(self, scope: Scope, key: str) -> Any:
        """Return the value stored under key in scope, or None."""
        return self._scope(scope).get(key)

    def set(self, scope: Scope, key: str, value: Any) -> None:
        """Store value under key in scope (in memory only)."""
        self._scope(scope)[key] = value
        if scope == "global":
            self._global_dirty = True

    def lookup(self, key: str) -> Any:
        """Return the local value for key, falling back to the global one."""
        value = self._local.get(key)
        if value is None:
            value = self._global.get(key)
        return value

    def load_local_config(self) -> dict[str, Any] | None:
        """Return the local config as loaded from disk, or None if absent."""
        if self._local_on_disk is None:
            return None
        return dict(self._local_on_disk)

    def persist(self) -> None:
        """Write the local scope, and the global scope if it changed.

        Raises:
            ConfigFileError: If a value fails validation or the write fails.
        """
        self._write(self.local_path, LocalConfig, self._local)
        self._local_on_disk = dict(self._local)
        if self._global_dirty:
            self._write(self.global_path, GlobalConfig, self._global)
            self._global_dirty = False

    def _scope(self, scope: Scope) -> dict[str, Any]:
        if scope == "local":
            return self._local
        if scope == "global":
            return self._global
        raise ValueError(f"Unknown config scope: {scope!r}")

    @staticmethod
    def _read(path: Path, schema: type[BaseModel]) -> dict[str, Any] | None:
        if not path.exists():
            return None
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigFileError(path, f"could not read config ({e})") from e
        if not isinstance(raw, dict):
            raise ConfigFileError(path, "config must be a JSON object")
        try:
            parsed = schema.model_validate(raw)
        except ValidationError as e:
            raise ConfigFileError(path, f"invalid config ({e.error_count()} errors)") from e
        return parsed.model_dump(by_alias=True, exclude_none=True)

    @staticmethod
    def _write(path: Path, schema: type[BaseModel], values: dict[str, Any]) -> None:
        try:
            data = schema.model_validate(values).model_dump(by_alias=True, exclude_none=True)
        except ValidationError as e:
            raise ConfigFileError(path, f"invalid config ({e.error_count()} errors)") from e
        content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

        # Atomic write: write to .tmp then rename
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(content, encoding="utf-8")
            tmp_path.replace(path)
        except OSError as e:
            raise ConfigFileError(path, f"could not write config ({e})") from e
