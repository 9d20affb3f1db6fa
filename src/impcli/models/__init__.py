"""imp-cli data models - re-exports all public model classes."""

from impcli.models.api import Device, Model, Revision, RevisionSummary
from impcli.models.config import ClientSettings, GlobalConfig, LocalConfig

__all__ = [
    "ClientSettings",
    "Device",
    "GlobalConfig",
    "LocalConfig",
    "Model",
    "Revision",
    "RevisionSummary",
]
