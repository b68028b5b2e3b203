"""
Pytest configuration and shared fixtures for backend tests.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List

import pytest
from unittest.mock import AsyncMock, Mock

# Add backend directory to path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from lib.core.agent_loop import FinalTurn, ToolCall, ToolCallTurn  # noqa: E402


SAMPLE_HEADLINES = [
    f"**Company {i} ships new AI model with better reasoning** (January {i}, 2026)"
    for i in range(1, 21)
]


class FakeClock:
    """Settable UTC clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class ScriptedProvider:
    """
    Generation provider that replays a fixed list of turns.

    Records a snapshot of the history it was called with on every call.
    """

    def __init__(self, turns: List[Any]):
        self.turns = list(turns)
        self.calls: List[Dict[str, Any]] = []

    async def generate(self, system_prompt, messages, tools, max_output_tokens=None):
        self.calls.append({
            "system_prompt": system_prompt,
            "messages": list(messages),
            "tools": list(tools),
            "max_output_tokens": max_output_tokens,
        })
        turn = self.turns.pop(0)
        if isinstance(turn, Exception):
            raise turn
        return turn


class RecordingToolbox:
    """Toolbox that answers every call with a canned string."""

    def __init__(self, answer: str = "1. \"Result\" - description (1 day ago)"):
        self.answer = answer
        self.executed: List[tuple] = []

    def declarations(self):
        return ["search_news"]

    async def execute_tool(self, tool_name, arguments):
        self.executed.append((tool_name, arguments))
        return f"{self.answer} [{tool_name}:{arguments.get('query', '')}]"


async def no_sleep(seconds: float) -> None:
    return None


@pytest.fixture
def mock_supabase():
    """Mock Supabase client."""
    mock = Mock()
    mock.storage.from_.return_value.upload.return_value = None
    mock.storage.from_.return_value.get_public_url.return_value = "https://example.com/file.mp3"
    mock.storage.from_.return_value.remove.return_value = None
    return mock


@pytest.fixture
def mock_genai_client():
    """Mock Gemini AI client."""
    mock = Mock()
    mock.aio.models.generate_content = AsyncMock()
    return mock


@pytest.fixture
def sample_headlines():
    """Twenty curated headlines."""
    return list(SAMPLE_HEADLINES)


@pytest.fixture
def fake_clock():
    """Clock fixed at 2026-01-15 15:00 UTC (10:00 AM Eastern)."""
    return FakeClock(datetime(2026, 1, 15, 15, 0, tzinfo=timezone.utc))


@pytest.fixture
def tool_call_turn():
    """Factory for a tool-call turn with one search per query."""
    def _make(*queries: str, text: str = "") -> ToolCallTurn:
        calls = [
            ToolCall(id=f"call-{idx}", name="search_news", arguments={"query": q})
            for idx, q in enumerate(queries)
        ]
        return ToolCallTurn(calls=calls, text=text)
    return _make


@pytest.fixture
def final_turn():
    """Factory for a final turn."""
    def _make(text: str) -> FinalTurn:
        return FinalTurn(text=text)
    return _make
