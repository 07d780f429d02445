"""
Engine kernel test configuration.

Kernel tests run against MemoryDocument; nothing here touches the network.
"""

from __future__ import annotations

import pytest

from engine.kernel.executor import ActionExecutor
from engine.kernel.memory_host import MemoryDocument


@pytest.fixture
def doc() -> MemoryDocument:
    return MemoryDocument()


@pytest.fixture
def run(doc):
    """Execute raw action dicts against `doc` and return the ExecuteResult."""

    async def _run(*actions, **options):
        return await ActionExecutor(doc, **options).execute(list(actions))

    return _run
