"""
Prompt builder for the command compiler.

Assembles the compiler prompt from the instruction template, the rendered
action schema and the user's transcript.
"""

from __future__ import annotations

import json
from pathlib import Path

from engine.kernel.schema import TRANSCRIPT_MARKER, describe_categories, describe_schema

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"

# Cache loaded prompts in memory (they don't change at runtime)
_cache: dict[str, str] = {}


def _load(name: str) -> str:
    """Load and cache a prompt file."""
    if name not in _cache:
        path = PROMPTS_DIR / f"{name}.md"
        _cache[name] = path.read_text()
    return _cache[name]


def build_instructions() -> str:
    """The fixed part of the prompt: instructions, schema and rules."""
    return (
        _load("command_parser")
        .replace("{{categories}}", describe_categories())
        .replace("{{schema}}", describe_schema())
    )


def build_compiler_prompt(transcript: str) -> str:
    """
    Full prompt for one transcript.

    The transcript goes on the last line, JSON-quoted so embedded quotes and
    newlines cannot break out of it.
    """
    return f"{build_instructions().rstrip()}\n{TRANSCRIPT_MARKER}{json.dumps(transcript)}\n"
