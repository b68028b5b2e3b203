"""
Gemini generation provider.

Adapts the google-genai SDK to the provider interface used by the
tool-use loop: domain messages go out as types.Content, the model's reply
comes back as a ToolCallTurn or FinalTurn.
"""

import logging
from typing import Any, List, Optional, Sequence

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from .agent_loop import (
    AssistantTurn,
    FinalTurn,
    Message,
    ToolCall,
    ToolCallTurn,
    ToolResultMessage,
    UserMessage,
)
from .errors import ProviderUnavailable, RateLimited

logger = logging.getLogger(__name__)


def translate_api_error(e: Exception, what: str = "Gemini request") -> ProviderUnavailable:
    """
    Map an SDK or transport exception onto the provider error taxonomy.

    Args:
        e: Exception raised by the SDK
        what: Short label used in the message

    Returns:
        RateLimited for HTTP 429, ProviderUnavailable otherwise
    """
    if isinstance(e, genai_errors.APIError):
        code = getattr(e, "code", None)
        if code == 429:
            return RateLimited(f"{what} rate limited: {e}")
        return ProviderUnavailable(f"{what} failed: {e}", status_code=code)
    return ProviderUnavailable(f"{what} failed: {e}")


def to_contents(messages: Sequence[Message]) -> List[types.Content]:
    """
    Translate conversation history into Gemini contents.

    Assistant turns reuse the raw model content when present so that the
    model sees its own turn verbatim. Consecutive tool results are grouped
    into a single user content. Call ids made up in to_turn are never sent
    back; the provider pairs those calls and responses by position.
    """
    contents: List[types.Content] = []
    pending_results: List[types.Part] = []
    synthetic_ids = set()

    def flush_results():
        if pending_results:
            contents.append(types.Content(role="user", parts=list(pending_results)))
            pending_results.clear()

    for message in messages:
        if isinstance(message, ToolResultMessage):
            pending_results.append(
                types.Part(
                    function_response=types.FunctionResponse(
                        id=None if message.call_id in synthetic_ids else message.call_id,
                        name=message.name,
                        response={"result": message.content}
                    )
                )
            )
            continue

        flush_results()
        if isinstance(message, ToolCallTurn):
            synthetic_ids.update(call.id for call in message.calls if call.synthetic_id)

        if isinstance(message, UserMessage):
            contents.append(types.Content(role="user", parts=[types.Part(text=message.text)]))
        elif message.raw is not None:
            contents.append(message.raw)
        elif isinstance(message, ToolCallTurn):
            parts = [types.Part(text=message.text)] if message.text else []
            parts.extend(
                types.Part(function_call=types.FunctionCall(
                    id=None if call.synthetic_id else call.id,
                    name=call.name,
                    args=call.arguments
                ))
                for call in message.calls
            )
            contents.append(types.Content(role="model", parts=parts))
        else:
            contents.append(types.Content(role="model", parts=[types.Part(text=message.text)]))

    flush_results()
    return contents


def to_turn(response: Any) -> AssistantTurn:
    """Map a GenerateContentResponse onto the tagged assistant turn."""
    if not response.candidates or not response.candidates[0].content:
        return FinalTurn(text="", raw=None)

    content = response.candidates[0].content
    calls: List[ToolCall] = []
    texts: List[str] = []

    for part in content.parts or []:
        if getattr(part, "function_call", None):
            fc = part.function_call
            calls.append(ToolCall(
                id=fc.id or f"{fc.name}-{len(calls)}",
                name=fc.name,
                arguments=dict(fc.args or {}),
                synthetic_id=not fc.id
            ))
        elif getattr(part, "text", None) and not getattr(part, "thought", False):
            texts.append(part.text)

    text = "".join(texts)
    if calls:
        return ToolCallTurn(calls=calls, text=text, raw=content)
    return FinalTurn(text=text, raw=content)


class GeminiProvider:
    """Generation provider backed by Gemini function calling."""

    def __init__(self, client: genai.Client, model: str = "gemini-2.5-flash"):
        self.client = client
        self.model = model

    async def generate(
        self,
        system_prompt: str,
        messages: Sequence[Message],
        tools: Sequence[types.FunctionDeclaration],
        max_output_tokens: Optional[int] = None
    ) -> AssistantTurn:
        config = types.GenerateContentConfig(
            system_instruction=system_prompt,
            tools=[types.Tool(function_declarations=list(tools))] if tools else None,
            max_output_tokens=max_output_tokens
        )

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=to_contents(messages),
                config=config
            )
        except (genai_errors.APIError, httpx.HTTPError) as e:
            raise translate_api_error(e) from e

        return to_turn(response)
