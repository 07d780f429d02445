"""Command routes — compile transcripts, queue and poll plugin commands."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status

from backend.config import settings
from backend.middleware.rate_limit import rate_limiter
from backend.models.command import (
    ClearCommandResponse,
    CompileRequest,
    CompileResponse,
    PendingCommandResponse,
    PluginStatusResponse,
    PostCommandRequest,
    PostCommandResponse,
)
from backend.services.command_channel import CommandChannel, command_channel
from backend.services.command_compiler import CommandCompiler, command_compiler
from backend.services.orchestrator import error_status
from engine.kernel.errors import ResponseShapeError, UpstreamServiceError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["commands"])

UNUSABLE_RESPONSE_MESSAGE = "The AI service returned a response that could not be understood. Please try again."
UNKNOWN_PLUGIN = "unknown"


def get_command_channel() -> CommandChannel:
    return command_channel


def get_command_compiler() -> CommandCompiler:
    return command_compiler


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


@router.post("/claude", status_code=200)
async def compile_transcript(
    req: CompileRequest,
    request: Request,
    compiler: CommandCompiler = Depends(get_command_compiler),
) -> CompileResponse:
    """
    Compile a transcript into an action batch.

    Rate limited per client IP (per minute and per day).
    """
    limited = rate_limiter.check_client(
        _client_ip(request),
        per_minute=settings.RATE_LIMIT_PER_MINUTE,
        per_day=settings.RATE_LIMIT_PER_DAY,
    )
    if limited:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=limited)

    try:
        batch = await compiler.compile(req.transcript)
    except ValidationError as e:
        raise HTTPException(status_code=error_status(e), detail=str(e)) from e
    except UpstreamServiceError as e:
        raise HTTPException(status_code=error_status(e), detail=e.message) from e
    except ResponseShapeError as e:
        raise HTTPException(status_code=error_status(e), detail=UNUSABLE_RESPONSE_MESSAGE) from e

    return CompileResponse(actions=[a.to_dict() for a in batch], warnings=batch.warnings)


@router.post("/commands", status_code=200)
async def post_command(
    req: PostCommandRequest,
    channel: CommandChannel = Depends(get_command_channel),
) -> PostCommandResponse:
    """Queue a voice command for a plugin."""
    if not req.plugin_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="pluginId is required")
    if not (req.transcript or "").strip() and req.actions is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Transcript is required")
    if req.transcript is not None and len(req.transcript) > settings.TRANSCRIPT_MAX_LENGTH:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Transcript too long")

    command = channel.post(req.plugin_id, transcript=req.transcript, actions=req.actions)
    return PostCommandResponse(id=command.id, pending=channel.pending_count(req.plugin_id))


@router.get("/commands")
async def poll_command(
    x_plugin_id: str | None = Header(default=None),
    channel: CommandChannel = Depends(get_command_channel),
) -> PendingCommandResponse:
    """Next pending command for the polling plugin. Registers the plugin as connected."""
    plugin_id = x_plugin_id or UNKNOWN_PLUGIN
    channel.touch(plugin_id)
    command = channel.peek(plugin_id)
    if command:
        logger.info("Command %s available for plugin %s", command.id, plugin_id)
    return PendingCommandResponse(
        command=command.to_dict() if command else None,
        pending=channel.pending_count(plugin_id),
    )


@router.delete("/commands")
async def clear_commands(
    clear_all: bool = Query(default=False, alias="all"),
    x_plugin_id: str | None = Header(default=None),
    channel: CommandChannel = Depends(get_command_channel),
) -> ClearCommandResponse:
    """Acknowledge the oldest pending command, or drop them all with ?all=true."""
    plugin_id = x_plugin_id or UNKNOWN_PLUGIN
    if clear_all:
        cleared = channel.clear(plugin_id)
    else:
        cleared = 1 if channel.pop(plugin_id) else 0
    logger.info("Cleared %d command(s) for plugin %s", cleared, plugin_id)
    return ClearCommandResponse(cleared=cleared)


@router.get("/plugin-status")
async def plugin_status(channel: CommandChannel = Depends(get_command_channel)) -> PluginStatusResponse:
    """How many plugins polled within the connection TTL."""
    active = channel.connected_count()
    return PluginStatusResponse(connected=active > 0, active_plugins=active, timestamp=datetime.now(UTC))
