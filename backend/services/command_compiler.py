"""Command Compiler — transcript to ActionBatch via a language model."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import anthropic
import openai

from backend.config import settings
from backend.services.ai_provider import ai_provider
from backend.services.prompt_builder import build_compiler_prompt
from engine.kernel.errors import ResponseShapeError, UpstreamServiceError, ValidationError
from engine.kernel.primitives import validate
from engine.kernel.types import Action, ActionBatch

logger = logging.getLogger(__name__)

_RATE_LIMIT_ERRORS = (anthropic.RateLimitError, openai.RateLimitError)
_STATUS_ERRORS = (anthropic.APIStatusError, openai.APIStatusError)
_CONNECTION_ERRORS = (anthropic.APIConnectionError, openai.APIConnectionError)


class CompletionProvider(Protocol):
    async def complete(self, prompt: str) -> str: ...


class CommandCompiler:
    """
    Maps one transcript to an ordered batch of schema-shaped actions.

    Makes exactly one upstream call per transcript and never retries.
    """

    def __init__(self, llm: CompletionProvider | None = None, max_length: int | None = None) -> None:
        self.llm = llm or ai_provider
        self.max_length = max_length or settings.TRANSCRIPT_MAX_LENGTH

    @property
    def service_name(self) -> str:
        return getattr(self.llm, "service_name", "language model")

    async def compile(self, transcript: Any) -> ActionBatch:
        """
        Compile a transcript into an ActionBatch.

        Raises:
            ValidationError: transcript empty or too long (no upstream call made)
            UpstreamServiceError: the model service failed or rate-limited us
            ResponseShapeError: the reply was not an actions document
        """
        transcript = self.check_transcript(transcript)
        prompt = build_compiler_prompt(transcript)

        raw = await self._call(prompt)
        logger.debug("Compiler raw reply (first 500): %s", raw[:500])

        batch = ActionBatch(
            actions=[Action.from_dict(item) for item in parse_actions(raw)],
            transcript=transcript,
            raw_response=raw,
        )

        # Invalid actions are kept; the executor reports them per action
        for index, action in enumerate(batch.actions):
            for error in validate(action):
                logger.warning("Compiled action %d (%s) invalid: %s", index, action.op, error)
                batch.warnings.append(f"action {index}: {error}")

        logger.info("Compiled %r into %d action(s): %s", transcript, len(batch), [a.op for a in batch])
        return batch

    def check_transcript(self, transcript: Any) -> str:
        if not isinstance(transcript, str) or not transcript.strip():
            raise ValidationError("Transcript is required")
        if len(transcript) > self.max_length:
            raise ValidationError("Transcript too long")
        return transcript.strip()

    async def _call(self, prompt: str) -> str:
        service = self.service_name
        try:
            return await self.llm.complete(prompt)
        except _RATE_LIMIT_ERRORS as e:
            logger.warning("%s rate limited: %s", service, e)
            raise UpstreamServiceError(
                _service_message(e) or f"{service} rate limit exceeded",
                service=service,
                status_code=429,
                rate_limited=True,
            ) from e
        except _STATUS_ERRORS as e:
            logger.error("%s returned %s: %s", service, e.status_code, e)
            raise UpstreamServiceError(
                _service_message(e) or f"{service} request failed with status {e.status_code}",
                service=service,
                status_code=e.status_code,
            ) from e
        except _CONNECTION_ERRORS as e:
            logger.error("%s unreachable: %s", service, e)
            raise UpstreamServiceError(f"Could not reach {service}: {e}", service=service) from e


def _service_message(error: Exception) -> str | None:
    """Most specific message the service put in its error body."""
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        inner = body.get("error")
        if isinstance(inner, dict) and inner.get("message"):
            return str(inner["message"])
        if body.get("message"):
            return str(body["message"])
    return None


def strip_code_fence(content: str) -> str:
    """Extract JSON from a markdown code block anywhere in the reply."""
    content = content.strip()
    if "```json" in content:
        start = content.find("```json") + 7
        end = content.find("```", start)
        if end > start:
            return content[start:end].strip()
    elif "```" in content:
        start = content.find("```") + 3
        end = content.find("```", start)
        if end > start:
            return content[start:end].strip()
    return content


def parse_actions(raw: str) -> list[dict[str, Any]]:
    """
    Raw reply text to a list of action objects.

    Accepts {"actions": [...]}, a bare action object, and {"action": {...}}.

    Raises:
        ResponseShapeError: anything else, carrying the raw payload
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        data = None

    # Fences are only stripped when the reply is not already a JSON document
    if data is None:
        try:
            data = json.loads(strip_code_fence(raw))
        except json.JSONDecodeError as e:
            logger.error("Compiler reply is not valid JSON: %s (first 500: %s)", e, raw[:500])
            raise ResponseShapeError(f"Model reply is not valid JSON: {e}", raw_payload=raw) from e

    if not isinstance(data, dict):
        logger.error("Compiler reply is %s, not an object", type(data).__name__)
        raise ResponseShapeError("Model reply is not a JSON object", raw_payload=raw)

    if "actions" in data:
        items = data["actions"]
        if not isinstance(items, list):
            raise ResponseShapeError("'actions' must be a list", raw_payload=raw)
    elif isinstance(data.get("op"), str) or isinstance(data.get("action"), str):
        items = [data]
    elif isinstance(data.get("action"), dict):
        items = [data["action"]]
    else:
        logger.error("Compiler reply has no actions: %s", raw[:500])
        raise ResponseShapeError("Model reply has no 'actions' list", raw_payload=raw)

    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ResponseShapeError(f"Action {index} is not an object", raw_payload=raw)
    return items


# Singleton instance
command_compiler = CommandCompiler()
