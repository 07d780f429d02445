"""Tests for the command compiler: transcript validation, reply parsing, upstream errors."""

from __future__ import annotations

import anthropic
import httpx
import openai
import pytest

from backend.services.command_compiler import CommandCompiler, parse_actions, strip_code_fence
from engine.kernel.errors import ResponseShapeError, UpstreamServiceError, ValidationError
from engine.kernel.executor import ActionExecutor
from engine.kernel.memory_host import MemoryDocument
from engine.kernel.mock_llm import MockLLM
from engine.kernel.types import RGB

# ============================================================================
# Transcript validation
# ============================================================================


class TestTranscriptValidation:
    @pytest.mark.parametrize("transcript", [None, "", "   ", 42, ["make a box"]])
    async def test_rejects_missing_or_empty(self, llm, transcript):
        compiler = CommandCompiler(llm=llm)
        with pytest.raises(ValidationError, match="Transcript is required"):
            await compiler.compile(transcript)
        llm.complete.assert_not_called()

    async def test_rejects_too_long(self, llm):
        compiler = CommandCompiler(llm=llm, max_length=1000)
        with pytest.raises(ValidationError, match="Transcript too long"):
            await compiler.compile("a" * 1001)
        llm.complete.assert_not_called()

    async def test_accepts_exact_limit(self, llm):
        compiler = CommandCompiler(llm=llm, max_length=1000)
        batch = await compiler.compile("a" * 1000)
        assert len(batch) == 0
        llm.complete.assert_awaited_once()


# ============================================================================
# Reply parsing
# ============================================================================


class TestParseActions:
    def test_actions_document(self):
        raw = '{"actions":[{"op":"select_all"},{"op":"zoom_to_selection"}]}'
        assert [a["op"] for a in parse_actions(raw)] == ["select_all", "zoom_to_selection"]

    def test_code_fenced_reply(self):
        raw = 'Here you go:\n```json\n{"actions":[{"op":"deselect"}]}\n```'
        assert parse_actions(raw) == [{"op": "deselect"}]

    def test_fence_inside_text_value_is_preserved(self):
        raw = '{"actions":[{"op":"create_text","args":{"text":"wrap it in ``` fences ```"}}]}'
        assert parse_actions(raw) == [{"op": "create_text", "args": {"text": "wrap it in ``` fences ```"}}]

    def test_plain_fence(self):
        assert strip_code_fence('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_single_action(self):
        assert parse_actions('{"op":"group","args":{"name":"Nav"}}') == [{"op": "group", "args": {"name": "Nav"}}]

    def test_action_wrapper(self):
        assert parse_actions('{"action":{"op":"ungroup"}}') == [{"op": "ungroup"}]

    def test_legacy_action_key(self):
        assert parse_actions('{"action":"select_all"}') == [{"action": "select_all"}]

    def test_not_json(self):
        raw = "Sorry, I can only help with design commands."
        with pytest.raises(ResponseShapeError) as exc:
            parse_actions(raw)
        assert exc.value.raw_payload == raw

    @pytest.mark.parametrize(
        "raw",
        ['["create_rectangle"]', '"hello"', '{"commands": []}', '{"actions": {"op": "deselect"}}', '{"actions": [1, 2]}'],
    )
    def test_wrong_shape(self, raw):
        with pytest.raises(ResponseShapeError) as exc:
            parse_actions(raw)
        assert exc.value.raw_payload == raw


class TestCompile:
    async def test_makes_exactly_one_call(self, llm):
        llm.complete.return_value = '{"actions":[{"op":"create_rectangle","args":{"color":"#FF0000"}}]}'
        batch = await CommandCompiler(llm=llm).compile("make a red rectangle")

        llm.complete.assert_awaited_once()
        prompt = llm.complete.await_args.args[0]
        assert prompt.rstrip().endswith('"make a red rectangle"')
        assert batch.transcript == "make a red rectangle"
        assert [a.op for a in batch] == ["create_rectangle"]
        assert batch.raw_response == llm.complete.return_value

    async def test_invalid_actions_are_kept_with_warnings(self, llm):
        llm.complete.return_value = '{"actions":[{"op":"move","target":"1:1","args":{"x":"left"}},{"op":"teleport"}]}'
        batch = await CommandCompiler(llm=llm).compile("do things")
        assert [a.op for a in batch] == ["move", "teleport"]
        assert batch.warnings == ["action 0: 'x' must be a number", "action 1: Unknown action: teleport"]

    async def test_non_json_reply(self, llm):
        llm.complete.return_value = "I'm not sure what you mean."
        with pytest.raises(ResponseShapeError):
            await CommandCompiler(llm=llm).compile("hmm")


# ============================================================================
# Upstream errors
# ============================================================================


class TestUpstreamErrors:
    async def test_anthropic_rate_limit(self, llm, upstream_response):
        llm.complete.side_effect = anthropic.RateLimitError(
            "rate limited",
            response=upstream_response(429),
            body={"type": "error", "error": {"type": "rate_limit_error", "message": "Number of requests has exceeded your rate limit"}},
        )
        with pytest.raises(UpstreamServiceError) as exc:
            await CommandCompiler(llm=llm).compile("make a box")
        assert exc.value.rate_limited
        assert exc.value.status_code == 429
        assert exc.value.message == "Number of requests has exceeded your rate limit"
        assert llm.complete.await_count == 1

    async def test_openai_rate_limit_without_body(self, llm, upstream_response):
        llm.service_name = "OpenAI"
        llm.complete.side_effect = openai.RateLimitError("slow down", response=upstream_response(429), body=None)
        with pytest.raises(UpstreamServiceError) as exc:
            await CommandCompiler(llm=llm).compile("make a box")
        assert exc.value.rate_limited
        assert exc.value.message == "OpenAI rate limit exceeded"

    async def test_server_error_uses_generic_message(self, llm, upstream_response):
        llm.complete.side_effect = anthropic.InternalServerError("boom", response=upstream_response(500), body=None)
        with pytest.raises(UpstreamServiceError) as exc:
            await CommandCompiler(llm=llm).compile("make a box")
        assert not exc.value.rate_limited
        assert exc.value.status_code == 500
        assert exc.value.message == "Claude request failed with status 500"

    async def test_service_message_preferred(self, llm, upstream_response):
        llm.complete.side_effect = openai.BadRequestError(
            "bad", response=upstream_response(400), body={"message": "max_tokens is too large"}
        )
        with pytest.raises(UpstreamServiceError) as exc:
            await CommandCompiler(llm=llm).compile("make a box")
        assert exc.value.message == "max_tokens is too large"

    async def test_connection_error(self, llm):
        request = httpx.Request("POST", "https://api.example.test")
        llm.complete.side_effect = anthropic.APIConnectionError(request=request)
        with pytest.raises(UpstreamServiceError) as exc:
            await CommandCompiler(llm=llm).compile("make a box")
        assert exc.value.message.startswith("Could not reach Claude")
        assert exc.value.status_code is None


# ============================================================================
# End to end with golden replies
# ============================================================================


class TestGoldenEndToEnd:
    async def test_red_rectangle(self):
        doc = MemoryDocument()
        batch = await CommandCompiler(llm=MockLLM()).compile("make a red rectangle")
        result = await ActionExecutor(doc).execute(batch)

        (node,) = doc.page.children
        assert node.type == "RECTANGLE"
        assert node.fills[0]["color"] == RGB(1.0, 0.0, 0.0)
        assert (node.x, node.y) == (100, 100)
        assert result.succeeded == [0]

    async def test_select_the_app_icon(self):
        doc = MemoryDocument()
        icon = doc.add("RECTANGLE", "App Icon")
        doc.add("FRAME", "Header")
        batch = await CommandCompiler(llm=MockLLM()).compile("select the app icon")
        await ActionExecutor(doc).execute(batch)
        assert doc.get_selection() == [icon]

    async def test_title_inside_card(self):
        doc = MemoryDocument()
        card = doc.add("FRAME", "Card")
        batch = await CommandCompiler(llm=MockLLM()).compile("Add a title inside the card")
        await ActionExecutor(doc).execute(batch)
        (title,) = card.children
        assert (title.characters, title.font_size) == ("Title", 24)

    async def test_unusable_golden_reply(self):
        with pytest.raises(ResponseShapeError):
            await CommandCompiler(llm=MockLLM()).compile("tell me a joke")
