"""Remote entities returned by the Electric Imp build API.

Models, devices, and code revisions are owned by the server; the CLI
only reads them or asks for a model to be created. Unknown fields in
server payloads are ignored so API additions do not break parsing.
"""

from __future__ import annotations

from pydantic import BaseModel


class Model(BaseModel):
    """A named container for a device/agent code pair."""

    model_config = {"extra": "ignore"}

    id: str
    name: str


class Device(BaseModel):
    """A registered device, optionally assigned to a model."""

    model_config = {"extra": "ignore"}

    id: str
    name: str | None = None
    model_id: str | None = None


class RevisionSummary(BaseModel):
    """Entry in a model's revision listing (code not included)."""

    model_config = {"extra": "ignore"}

    version: int
    created_at: str | None = None


class Revision(BaseModel):
    """Full content of a single code revision."""

    model_config = {"extra": "ignore"}

    version: int
    device_code: str | None = ""
    agent_code: str | None = ""
