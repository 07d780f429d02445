"""Command models for the compile and command-channel endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CompileRequest(BaseModel):
    """
    Body of POST /api/claude.

    transcript is left untyped so that missing, empty and non-string values
    all reach the compiler's own validation and get its 400 message.
    """

    transcript: Any = None


class CompileResponse(BaseModel):
    actions: list[dict[str, Any]]
    warnings: list[str] = Field(default_factory=list)


class PostCommandRequest(BaseModel):
    """Body of POST /api/commands: a transcript or pre-compiled actions for one plugin."""

    model_config = ConfigDict(populate_by_name=True)

    plugin_id: str | None = Field(default=None, alias="pluginId")
    transcript: str | None = None
    actions: list[dict[str, Any]] | None = None


class PostCommandResponse(BaseModel):
    success: bool = True
    id: str
    pending: int


class PendingCommandResponse(BaseModel):
    """What a polling plugin receives. command is null when nothing is pending."""

    command: dict[str, Any] | None = None
    pending: int = 0


class ClearCommandResponse(BaseModel):
    success: bool = True
    cleared: int


class PluginStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    connected: bool
    active_plugins: int = Field(alias="activePlugins")
    timestamp: datetime


class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: datetime
    environment: str
