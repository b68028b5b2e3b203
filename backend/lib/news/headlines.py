"""
Headline curation.

Runs the tool-use loop in curation mode and turns the model's answer into
an ordered list of display-ready "**Title** (Date)" headlines.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Callable, List, Optional

from ..core.agent_loop import AgenticLoop
from ..core.errors import MalformedResponse

logger = logging.getLogger(__name__)

HEADLINE_COUNT = 20
CURATION_MAX_ITERATIONS = 10
CURATION_MAX_TOKENS = 4096

HEADLINE_SYSTEM_PROMPT = """You are the news editor of a daily AI and technology podcast.

Your job is to find concrete, recent news events: product launches, model releases,
developer tools, funding rounds, acquisitions, hardware and research with practical impact.

Reject explainers, tutorials, listicles, "best of" roundups and opinion pieces without a
news hook. Every headline must name the company or person involved and say what happened.

Cover several companies and story types; do not let one company dominate the list.

Output format: one headline per line, exactly like
**NVIDIA to invest up to $100B in OpenAI** (January 2, 2026)"""


def build_curation_prompt(today: Optional[datetime] = None) -> str:
    """
    Build the dated user prompt for headline curation.

    Args:
        today: Date to anchor "past 7 days" to (defaults to now)

    Returns:
        Prompt text
    """
    today = today or datetime.now(timezone.utc)
    date_str = f"{today.strftime('%A, %B')} {today.day}, {today.year}"

    return f"""Today is {date_str}. Use the search tools to find the most important AI and technology news from the past 7 days.

Run several searches so the list covers different angles, for example:
1. Major AI company announcements
2. AI startup funding and acquisitions
3. New AI model releases
4. Developer tools and AI agents
5. AI hardware and infrastructure

Then curate exactly {HEADLINE_COUNT} of the best headlines.

Format each one like this:
1. **OpenAI releases GPT-5 with advanced reasoning capabilities** (January 2, 2026)

Return exactly {HEADLINE_COUNT} headlines, numbered 1-{HEADLINE_COUNT}, each starting with ** and ending with a date in parentheses."""


_NUMBERED_BOLD = re.compile(r"^\d+\.\s*\*\*")
_BULLET_BOLD = re.compile(r"^-\s*\*\*")
_BOLD_CAPITAL = re.compile(r"^\*\*[A-Z]")
_PREFIXES = (re.compile(r"^\d+\.\s*"), re.compile(r"^-\s*"), re.compile(r"^•\s*"))


def _looks_like_headline(line: str) -> bool:
    return (
        ("**" in line and "(" in line)
        or bool(_NUMBERED_BOLD.match(line))
        or bool(_BULLET_BOLD.match(line))
        or bool(_BOLD_CAPITAL.match(line))
    )


def parse_headlines(text: str, limit: int = HEADLINE_COUNT) -> List[str]:
    """
    Extract headlines from the curator's free-text answer.

    Keeps lines that look like bolded headlines, strips numbering and bullet
    prefixes, drops anything of 10 characters or fewer.

    Args:
        text: Model output
        limit: Maximum headlines to keep

    Returns:
        Headlines in the order they appeared
    """
    headlines = []
    for raw_line in (text or "").splitlines():
        line = raw_line.strip()
        if not line or not _looks_like_headline(line):
            continue
        for prefix in _PREFIXES:
            line = prefix.sub("", line)
        line = line.strip()
        if len(line) > 10:
            headlines.append(line)
        if len(headlines) >= limit:
            break
    return headlines


class HeadlineCurator:
    """
    Produces a fresh ranked list of headlines.

    Args:
        loop: Tool-use loop wired to the generation provider and news toolbox
        clock: Returns the current UTC time (used to date the prompt)
    """

    strategy = "gemini-agent"

    def __init__(self, loop: AgenticLoop, clock: Optional[Callable[[], datetime]] = None):
        self.loop = loop
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def fetch_headlines(self) -> List[str]:
        logger.info("🔄 Starting headline curation")

        text = await self.loop.run(
            HEADLINE_SYSTEM_PROMPT,
            build_curation_prompt(self.clock()),
            max_iterations=CURATION_MAX_ITERATIONS,
            max_output_tokens=CURATION_MAX_TOKENS
        )

        headlines = parse_headlines(text)
        if not headlines:
            raise MalformedResponse("Curator returned no parseable headlines")

        logger.info(f"✅ Curated {len(headlines)} headlines")
        return headlines
