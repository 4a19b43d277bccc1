"""
Model Engine - Chat completion interface with a bounded tool-call loop

WHAT: LanguageModel protocol and an OpenAI-backed implementation
WHERE: swarm/runtime/orchestration/model_engine.py - model collaborator
WHO: AgentManager requesting one completion per agent prompt
TIME: One API round trip per loop iteration, at most ``max_tool_rounds`` + 1

Every model turn is classified into a tagged variant:
- FinalReply: the assistant answered in text; the loop ends
- ToolRequest: the assistant asked for tool calls; results are appended and
  the model is asked again

The loop never recurses and stops after ``max_tool_rounds`` tool requests.
API failures come back as ``ChatResult(success=False)``; nothing is raised to
the caller.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Union, runtime_checkable

import openai
from openai import AsyncOpenAI

from .config import APOLOGY_MESSAGE
from .tools import ToolRegistry

logger = logging.getLogger(__name__)

Message = Dict[str, Any]


@dataclass(slots=True)
class ChatResult:
    content: str
    success: bool
    role: str = "assistant"
    message_id: Optional[str] = None
    error: Optional[str] = None
    tool_rounds: int = 0


@dataclass(slots=True)
class ToolCall:
    id: str
    name: str
    arguments: str


@dataclass(slots=True)
class FinalReply:
    content: str
    message_id: Optional[str] = None


@dataclass(slots=True)
class ToolRequest:
    message: Message
    calls: List[ToolCall] = field(default_factory=list)


ModelTurn = Union[FinalReply, ToolRequest]


@runtime_checkable
class LanguageModel(Protocol):
    """Abstract interface for chat completion backends."""

    async def create_chat_completion(
        self,
        messages: List[Message],
        *,
        model: Optional[str] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[Any] = None,
        user_id: Optional[str] = None,
    ) -> ChatResult:
        """Return generated text, or a failure result."""


@dataclass(slots=True)
class EngineConfig:
    model: str = "gpt-4o"
    max_tokens: int = 1000
    temperature: float = 0.7
    max_tool_rounds: int = 5

    @staticmethod
    def from_env() -> "EngineConfig":
        cfg = EngineConfig()
        cfg.model = os.environ.get("OPENAI_MODEL", cfg.model)
        rounds = os.environ.get("SWARM_MAX_TOOL_ROUNDS")
        if rounds:
            cfg.max_tool_rounds = int(rounds)
        return cfg


def classify_turn(response: Any) -> ModelTurn:
    """Turn a chat completion response into FinalReply or ToolRequest."""

    choices = getattr(response, "choices", None) or []
    if not choices:
        return FinalReply(content="", message_id=getattr(response, "id", None))
    message = choices[0].message
    tool_calls = getattr(message, "tool_calls", None) or []
    if tool_calls:
        calls = [
            ToolCall(id=tc.id, name=tc.function.name, arguments=tc.function.arguments or "{}")
            for tc in tool_calls
        ]
        assistant: Message = {
            "role": "assistant",
            "content": message.content,
            "tool_calls": [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in calls
            ],
        }
        return ToolRequest(message=assistant, calls=calls)
    return FinalReply(content=message.content or "", message_id=getattr(response, "id", None))


class OpenAIChatEngine:
    """LanguageModel over ``openai.AsyncOpenAI`` chat completions."""

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        *,
        config: EngineConfig | None = None,
        tools: ToolRegistry | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self._client = client
        self._tools = tools or ToolRegistry()

    @staticmethod
    def from_env(*, tools: ToolRegistry | None = None) -> "OpenAIChatEngine":
        api_key = os.environ.get("OPENAI_API_KEY")
        base_url = os.environ.get("OPENAI_BASE_URL") or None
        client = AsyncOpenAI(api_key=api_key, base_url=base_url) if (api_key or base_url) else None
        return OpenAIChatEngine(client, config=EngineConfig.from_env(), tools=tools)

    @property
    def tools(self) -> ToolRegistry:
        return self._tools

    def is_configured(self) -> bool:
        return self._client is not None

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()

    async def _complete(
        self,
        messages: List[Message],
        *,
        model: str,
        tools: Optional[List[Dict[str, Any]]],
        tool_choice: Optional[Any],
        user_id: Optional[str],
    ) -> Any:
        request: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "user": user_id or "anonymous",
        }
        if tools:
            request["tools"] = tools
        if tool_choice:
            request["tool_choice"] = tool_choice
        return await self._client.chat.completions.create(**request)

    async def _run_tool_calls(self, request: ToolRequest) -> List[Message]:
        results: List[Message] = []
        for call in request.calls:
            payload = await self._tools.execute(call.name, call.arguments)
            results.append(
                {
                    "role": "tool",
                    "tool_call_id": call.id,
                    "name": call.name,
                    "content": json.dumps(payload),
                }
            )
        return results

    async def create_chat_completion(
        self,
        messages: List[Message],
        *,
        model: Optional[str] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[Any] = None,
        user_id: Optional[str] = None,
    ) -> ChatResult:
        if self._client is None:
            return ChatResult(content=APOLOGY_MESSAGE, success=False, error="OpenAI client not configured")

        conversation = list(messages)
        chosen_model = model or self.config.model
        rounds = 0
        try:
            while True:
                response = await self._complete(
                    conversation,
                    model=chosen_model,
                    tools=tools,
                    tool_choice=tool_choice,
                    user_id=user_id,
                )
                turn = classify_turn(response)
                if isinstance(turn, FinalReply):
                    return ChatResult(
                        content=turn.content,
                        success=True,
                        message_id=turn.message_id,
                        tool_rounds=rounds,
                    )
                if rounds >= self.config.max_tool_rounds:
                    logger.warning(f"Tool call limit of {self.config.max_tool_rounds} rounds reached")
                    return ChatResult(
                        content=APOLOGY_MESSAGE,
                        success=False,
                        error="Tool call limit exceeded",
                        tool_rounds=rounds,
                    )
                rounds += 1
                conversation.append(turn.message)
                conversation.extend(await self._run_tool_calls(turn))
        except openai.OpenAIError as e:
            logger.error(f"Error calling OpenAI: {e}")
            return ChatResult(content=APOLOGY_MESSAGE, success=False, error=str(e), tool_rounds=rounds)


__all__ = [
    "ChatResult",
    "EngineConfig",
    "FinalReply",
    "LanguageModel",
    "ModelTurn",
    "OpenAIChatEngine",
    "ToolCall",
    "ToolRequest",
    "classify_turn",
]
