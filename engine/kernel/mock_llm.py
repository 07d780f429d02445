"""
Mock LLM for deterministic testing and offline use.

Answers compiler prompts with golden replies keyed by the transcript.
Used in tests (instant profile), the CLI's --mock mode and UX timing checks
(realistic profile). Exposes the same `complete(prompt)` coroutine as the
real AI provider so it can be swapped in wherever one is expected.
"""

from __future__ import annotations

import asyncio
import json
import re
from pathlib import Path

from engine.kernel.schema import TRANSCRIPT_MARKER

GOLDEN_DIR = Path(__file__).parent / "tests" / "fixtures" / "golden"

DELAY_PROFILES: dict[str, dict[str, int]] = {
    "instant": {"think_ms": 0},
    "realistic": {"think_ms": 800},
    "slow": {"think_ms": 3000},
}

_NON_WORD = re.compile(r"[^a-z0-9]+")


def scenario_for(transcript: str) -> str:
    """Golden file stem for a transcript: lowercase words joined by underscores."""
    return _NON_WORD.sub("_", transcript.lower()).strip("_")


def extract_transcript(prompt: str) -> str:
    """The transcript embedded in a compiler prompt (last marker line wins)."""
    for line in reversed(prompt.splitlines()):
        if line.startswith(TRANSCRIPT_MARKER):
            value = line[len(TRANSCRIPT_MARKER) :].strip()
            return json.loads(value) if value.startswith('"') else value
    raise ValueError("Prompt does not contain a transcript line")


class MockLLM:
    """Returns golden replies with a configurable think delay."""

    def __init__(self, golden_dir: Path = GOLDEN_DIR, profile: str = "instant"):
        if profile not in DELAY_PROFILES:
            raise ValueError(f"Unknown delay profile: {profile!r}. Valid profiles: {list(DELAY_PROFILES)}")
        self.golden_dir = golden_dir
        self.profile = profile
        self.prompts: list[str] = []

    async def reply(self, scenario: str) -> str:
        """
        Raw reply text for a scenario.

        Args:
            scenario: Golden file name without extension (e.g., "make_a_red_rectangle")

        Raises:
            FileNotFoundError: If the golden file does not exist
        """
        path = self.golden_dir / f"{scenario}.json"
        if not path.exists():
            raise FileNotFoundError(f"Golden file not found: {path}")

        think_ms = DELAY_PROFILES[self.profile]["think_ms"]
        if think_ms > 0:
            await asyncio.sleep(think_ms / 1000)

        return path.read_text()

    async def complete(self, prompt: str) -> str:
        """Provider-compatible entry point: pick the golden reply from the prompt's transcript."""
        self.prompts.append(prompt)
        return await self.reply(scenario_for(extract_transcript(prompt)))

    def list_scenarios(self) -> list[str]:
        """Return names of all available golden reply scenarios."""
        return sorted(p.stem for p in self.golden_dir.glob("*.json"))
