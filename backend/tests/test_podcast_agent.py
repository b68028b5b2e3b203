"""
Tests for the podcast script agent.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from conftest import RecordingToolbox, ScriptedProvider, no_sleep
from lib.core.agent_loop import AgenticLoop
from lib.core.errors import MalformedResponse, ProviderUnavailable
from lib.core.retry import RetryPolicy
from lib.podcasts.agent import (
    SCRIPT_MAX_ITERATIONS,
    SCRIPT_MAX_TOKENS,
    SCRIPT_SYSTEM_PROMPT,
    PodcastAgent,
    ScriptBundle,
)


def _loop_returning(*results):
    loop = Mock()
    loop.run = AsyncMock(side_effect=list(results))
    return loop


class TestGenerateStoryScript:
    """Tests for PodcastAgent.generate_story_script."""

    @pytest.mark.asyncio
    async def test_runs_loop_in_script_mode(self):
        loop = _loop_returning("  OpenAI shipped a new model today.  ")
        agent = PodcastAgent(loop, sleep=no_sleep)

        script = await agent.generate_story_script("**OpenAI ships GPT-5** (Jan 5)")

        assert script == "OpenAI shipped a new model today."
        args, kwargs = loop.run.call_args
        assert args[0] == SCRIPT_SYSTEM_PROMPT
        assert "**OpenAI ships GPT-5** (Jan 5)" in args[1]
        assert kwargs["max_iterations"] == SCRIPT_MAX_ITERATIONS
        assert kwargs["max_output_tokens"] == SCRIPT_MAX_TOKENS

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        ProviderUnavailable("down", 503),
        MalformedResponse("empty"),
        RuntimeError("unexpected SDK error"),
        TypeError("bad request conversion"),
    ])
    async def test_failure_becomes_placeholder(self, error):
        agent = PodcastAgent(_loop_returning(error), sleep=no_sleep)

        script = await agent.generate_story_script("**Chip export rules tighten**")

        assert "**Chip export rules tighten**" in script
        assert "move on to the next story" in script

    @pytest.mark.asyncio
    async def test_blank_script_becomes_placeholder(self):
        agent = PodcastAgent(_loop_returning("   "), sleep=no_sleep)

        script = await agent.generate_story_script("**Quiet day**")

        assert "**Quiet day**" in script

    @pytest.mark.asyncio
    async def test_researches_before_writing(self, tool_call_turn, final_turn):
        provider = ScriptedProvider([
            tool_call_turn("GPT-5 launch details"),
            final_turn("GPT-5 is here and it reasons better."),
        ])
        toolbox = RecordingToolbox()
        loop = AgenticLoop(provider, toolbox, retry_policy=RetryPolicy(sleep=no_sleep))

        script = await PodcastAgent(loop, sleep=no_sleep).generate_story_script("**GPT-5 launches**")

        assert script == "GPT-5 is here and it reasons better."
        assert toolbox.executed == [("search_news", {"query": "GPT-5 launch details"})]


class TestGenerateScripts:
    """Tests for PodcastAgent.generate_scripts."""

    @pytest.mark.asyncio
    async def test_sequential_in_order_with_delays(self):
        delays = []

        async def sleep(seconds):
            delays.append(seconds)

        loop = _loop_returning("Script one.", ProviderUnavailable("down"), "Script three.")
        agent = PodcastAgent(loop, story_delay=1.0, sleep=sleep)

        bundle = await agent.generate_scripts(["**One**", "**Two**", "**Three**"])

        assert len(bundle.scripts) == 3
        assert bundle.scripts[0] == "Script one."
        assert "**Two**" in bundle.scripts[1]
        assert bundle.scripts[2] == "Script three."
        assert delays == [1.0, 1.0]
        prompts = [call.args[1] for call in loop.run.call_args_list]
        assert ["**One**" in prompts[0], "**Two**" in prompts[1], "**Three**" in prompts[2]] == [True, True, True]

    @pytest.mark.asyncio
    async def test_unexpected_error_does_not_abort_remaining_stories(self):
        loop = _loop_returning(RuntimeError("unexpected SDK error"), "Script two.")
        agent = PodcastAgent(loop, sleep=no_sleep)

        bundle = await agent.generate_scripts(["**One**", "**Two**"])

        assert "**One**" in bundle.scripts[0]
        assert bundle.scripts[1] == "Script two."

    @pytest.mark.asyncio
    async def test_no_headlines(self):
        bundle = await PodcastAgent(_loop_returning(), sleep=no_sleep).generate_scripts([])

        assert bundle.scripts == []


class TestScriptBundle:
    """Tests for ScriptBundle."""

    def test_full_script_and_dict(self):
        bundle = ScriptBundle(["word " * 75, "word " * 75])

        data = bundle.to_dict()

        assert data["script"] == bundle.full_script
        assert bundle.full_script == bundle.scripts[0] + "\n\n" + bundle.scripts[1]
        assert data["scripts"] == bundle.scripts
        assert data["estimated_duration_seconds"] == 60
