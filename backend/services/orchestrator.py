"""Main orchestrator — coordinates compiler, executor and host notifications."""

from __future__ import annotations

import logging
from typing import Any

from backend.services.command_channel import CommandChannel
from backend.services.command_compiler import CommandCompiler, command_compiler
from engine.kernel.errors import CommandError, ResponseShapeError, UpstreamServiceError, ValidationError
from engine.kernel.executor import ActionExecutor
from engine.kernel.host import DocumentHost
from engine.kernel.types import ActionBatch

logger = logging.getLogger(__name__)

NO_ACTIONS_MESSAGE = "No actions generated from command"


class Orchestrator:
    """Transcript in, edited document and one summary notification out."""

    def __init__(self, compiler: CommandCompiler | None = None) -> None:
        self.compiler = compiler or command_compiler

    async def process_transcript(self, transcript: Any, host: DocumentHost, **executor_options: Any) -> dict[str, Any]:
        """
        Compile a transcript and execute it against host.

        Compile failures abort the transcript with a single host notification;
        nothing is executed.

        Returns:
            Dict with:
            - batch: the compiled ActionBatch, or None
            - result: the ExecuteResult, or None
            - error: message of the compile failure, or None
        """
        try:
            batch = await self.compiler.compile(transcript)
        except (ValidationError, UpstreamServiceError, ResponseShapeError) as e:
            logger.warning("Transcript aborted (%s): %s", type(e).__name__, e)
            host.notify(f"Error processing voice command: {e}")
            return {"batch": None, "result": None, "error": str(e)}

        if not batch.actions:
            host.notify(NO_ACTIONS_MESSAGE)
            return {"batch": batch, "result": None, "error": None}

        result = await self.execute_actions(batch, host, **executor_options)
        return {"batch": batch, "result": result, "error": None}

    async def execute_actions(self, batch: ActionBatch | list[dict[str, Any]], host: DocumentHost, **executor_options: Any):
        """Execute an already-compiled batch (or raw action dicts) against host."""
        executor = ActionExecutor(host, **executor_options)
        return await executor.execute(batch)

    async def drain(self, channel: CommandChannel, plugin_id: str, host: DocumentHost) -> list[dict[str, Any]]:
        """
        Process every pending command for plugin_id in arrival order.
        Pre-compiled actions skip the compiler.
        """
        channel.touch(plugin_id)
        outcomes: list[dict[str, Any]] = []
        while (command := channel.pop(plugin_id)) is not None:
            logger.info("Draining command %s for plugin %s", command.id, plugin_id)
            if command.actions is not None:
                batch = ActionBatch.from_list(command.actions, transcript=command.transcript)
                result = await self.execute_actions(batch, host)
                outcomes.append({"batch": batch, "result": result, "error": None})
            else:
                outcomes.append(await self.process_transcript(command.transcript, host))
        return outcomes


def error_status(error: CommandError) -> int:
    """HTTP status for a compile failure."""
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, UpstreamServiceError) and error.rate_limited:
        return 429
    return 502


# Singleton instance
orchestrator = Orchestrator()
