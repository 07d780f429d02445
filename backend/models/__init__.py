"""
Pydantic models for Voice Canvas.

All request/response shapes defined here. No imports from services or routes.
"""

from backend.models.command import (
    ClearCommandResponse,
    CompileRequest,
    CompileResponse,
    HealthResponse,
    PendingCommandResponse,
    PluginStatusResponse,
    PostCommandRequest,
    PostCommandResponse,
)

__all__ = [
    # Compile
    "CompileRequest",
    "CompileResponse",
    # Command channel
    "PostCommandRequest",
    "PostCommandResponse",
    "PendingCommandResponse",
    "ClearCommandResponse",
    "PluginStatusResponse",
    # Service
    "HealthResponse",
]
