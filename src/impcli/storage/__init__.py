"""Local persistence for imp-cli."""

from impcli.storage.config_store import ConfigFileError, ConfigStore, Scope

__all__ = ["ConfigFileError", "ConfigStore", "Scope"]
