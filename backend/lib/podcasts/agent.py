"""
Podcast script agent.

Uses the tool-use loop in script-writer mode: for every headline the model
looks the story up with the news tools first, then writes a spoken segment.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List

from ..core.agent_loop import AgenticLoop
from .script import estimate_reading_time, script_failure_placeholder

logger = logging.getLogger(__name__)

SCRIPT_MAX_ITERATIONS = 5
SCRIPT_MAX_TOKENS = 2048

SCRIPT_SYSTEM_PROMPT = """You are the host of a daily AI and technology news podcast.

Your style is conversational and warm, knowledgeable but accessible, and focused on why
the story matters to people building AI products. Explain technical ideas simply and
include specific numbers, names and quotes when the sources have them.

Always look the story up with the search tools before writing, and only state facts the
sources support.

Write ONLY the words the host says out loud: no greeting, no stage directions, no
commentary about your research. End with a short transition into the next story."""


def build_story_prompt(headline: str) -> str:
    return f"""Write a podcast segment (300-450 words) about this AI/tech news story:

{headline}

1. FIRST use the search tools to look up this headline and get accurate, current details.
2. THEN write only the spoken script, starting immediately with the story.

Cover who, what, when and why it matters, with concrete numbers or technical details."""


@dataclass
class ScriptBundle:
    scripts: List[str] = field(default_factory=list)

    @property
    def full_script(self) -> str:
        return "\n\n".join(self.scripts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "script": self.full_script,
            "scripts": list(self.scripts),
            "estimated_duration_seconds": estimate_reading_time(self.full_script),
        }


class PodcastAgent:
    """
    Podcast script agent on top of the tool-use loop.

    This agent:
    1. Takes the user's selected headlines
    2. Researches each one with the news tools
    3. Writes one spoken segment per headline, in order

    Args:
        loop: Tool-use loop wired to the generation provider and news toolbox
        max_iterations: Provider-call ceiling per story
        story_delay: Seconds to wait between stories
        sleep: Async sleep (tests pass a fake)
    """

    def __init__(
        self,
        loop: AgenticLoop,
        max_iterations: int = SCRIPT_MAX_ITERATIONS,
        story_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        self.loop = loop
        self.max_iterations = max_iterations
        self.story_delay = story_delay
        self.sleep = sleep

    async def generate_story_script(self, headline: str) -> str:
        """
        Generate the spoken segment for a single headline.

        Args:
            headline: Display headline, e.g. "**Title** (Date)"

        Returns:
            Script text; a spoken placeholder when generation fails
        """
        logger.info(f"✍️ Generating script for: {headline[:80]}")

        try:
            script = await self.loop.run(
                SCRIPT_SYSTEM_PROMPT,
                build_story_prompt(headline),
                max_iterations=self.max_iterations,
                max_output_tokens=SCRIPT_MAX_TOKENS
            )
        except Exception as e:
            logger.error(f"❌ Script generation failed for '{headline[:80]}': {e}", exc_info=True)
            return script_failure_placeholder(headline)

        script = script.strip()
        if not script:
            logger.warning(f"⚠️ Empty script for '{headline[:80]}', using placeholder")
            return script_failure_placeholder(headline)

        logger.info(f"✅ Script generated ({len(script.split())} words)")
        return script

    async def generate_scripts(self, headlines: List[str]) -> ScriptBundle:
        """
        Generate scripts for several headlines, sequentially and in order.

        Args:
            headlines: Selected headlines

        Returns:
            ScriptBundle with one script per headline
        """
        bundle = ScriptBundle()
        for idx, headline in enumerate(headlines):
            if idx > 0 and self.story_delay > 0:
                await self.sleep(self.story_delay)
            bundle.scripts.append(await self.generate_story_script(headline))

        logger.info(f"✅ Generated {len(bundle.scripts)} script(s)")
        return bundle
