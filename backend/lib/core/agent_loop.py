"""
Provider-agnostic tool-use loop.

Drives a conversation with a function-calling LLM:
1. Send the system prompt, one user turn and the tool declarations
2. When the model asks for tools, run every call in order and answer each one
3. Repeat with the full history until the model answers in plain text or
   the iteration ceiling is reached

The provider adapter (see gemini_client.py) translates between these domain
types and the vendor SDK.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

from .errors import MalformedResponse, ProviderUnavailable
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_TIMEOUT = 60.0


# ==================== Conversation Types ====================

@dataclass(frozen=True)
class ToolCall:
    id: str
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)
    # id was made up locally because the provider did not assign one
    synthetic_id: bool = False


@dataclass(frozen=True)
class ToolCallTurn:
    """Assistant turn requesting one or more tool executions."""
    calls: List[ToolCall]
    text: str = ""
    raw: Any = None


@dataclass(frozen=True)
class FinalTurn:
    """Assistant turn with the finished answer."""
    text: str
    raw: Any = None


@dataclass(frozen=True)
class UserMessage:
    text: str


@dataclass(frozen=True)
class ToolResultMessage:
    call_id: str
    name: str
    content: str


AssistantTurn = Union[ToolCallTurn, FinalTurn]
Message = Union[UserMessage, ToolCallTurn, FinalTurn, ToolResultMessage]


@dataclass
class ConversationState:
    messages: List[Message] = field(default_factory=list)
    loop_count: int = 0


# ==================== Collaborator Protocols ====================

class GenerationProvider(Protocol):
    async def generate(
        self,
        system_prompt: str,
        messages: Sequence[Message],
        tools: Sequence[Any],
        max_output_tokens: Optional[int] = None
    ) -> AssistantTurn:
        ...


class Toolbox(Protocol):
    def declarations(self) -> List[Any]:
        ...

    async def execute_tool(self, tool_name: str, arguments: Dict[str, Any]) -> str:
        ...


# ==================== Loop Engine ====================

class AgenticLoop:
    """
    Runs the tool-use conversation against a generation provider.

    Args:
        provider: Generation provider adapter
        toolbox: Tool declarations and executor
        retry_policy: Retry policy wrapped around every provider call
        timeout: Wall-clock timeout per provider call, in seconds
    """

    def __init__(
        self,
        provider: GenerationProvider,
        toolbox: Toolbox,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = DEFAULT_PROVIDER_TIMEOUT
    ):
        self.provider = provider
        self.toolbox = toolbox
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = timeout

    async def _call_provider(
        self,
        system_prompt: str,
        state: ConversationState,
        max_output_tokens: Optional[int]
    ) -> AssistantTurn:
        try:
            return await asyncio.wait_for(
                self.provider.generate(
                    system_prompt,
                    list(state.messages),
                    self.toolbox.declarations(),
                    max_output_tokens=max_output_tokens
                ),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            raise ProviderUnavailable(f"Generation timed out after {self.timeout:.0f}s")

    async def run(
        self,
        system_prompt: str,
        user_prompt: str,
        max_iterations: int,
        max_output_tokens: Optional[int] = None
    ) -> str:
        """
        Run the loop to completion.

        Args:
            system_prompt: Instructions for the model
            user_prompt: The single user turn that opens the conversation
            max_iterations: Ceiling on provider calls
            max_output_tokens: Optional per-call output limit

        Returns:
            Final text from the model, or the text of the last tool-call turn
            (possibly empty) when the ceiling is reached

        Raises:
            ProviderUnavailable: Provider failed after retries
            MalformedResponse: Final turn carried no text
        """
        state = ConversationState(messages=[UserMessage(user_prompt)])

        while True:
            turn = await self.retry_policy.run(
                self._call_provider,
                system_prompt,
                state,
                max_output_tokens,
                description="Generation request"
            )

            if isinstance(turn, FinalTurn):
                if not turn.text:
                    raise MalformedResponse("Model returned a final turn without text")
                logger.info(f"✅ Agent finished after {state.loop_count + 1} provider call(s)")
                return turn.text

            logger.info(f"🔄 Executing {len(turn.calls)} tool call(s) (iteration {state.loop_count + 1}/{max_iterations})")
            results = []
            for call in turn.calls:
                content = await self.toolbox.execute_tool(call.name, dict(call.arguments))
                results.append(ToolResultMessage(call_id=call.id, name=call.name, content=content))

            state.messages.append(turn)
            state.messages.extend(results)
            state.loop_count += 1

            if state.loop_count >= max_iterations:
                logger.warning(f"⚠️ Max iterations ({max_iterations}) reached, returning current text")
                return turn.text
