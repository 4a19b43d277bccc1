"""
Educational Tools - Function-calling catalog and handler registry

WHAT: OpenAI function schemas for educational agents plus async handlers
WHERE: swarm/runtime/orchestration/tools.py - tool layer under the model engine
WHO: AgentManager (attaches the catalog) and OpenAIChatEngine (executes calls)
TIME: Dispatch O(1); handler latency is the handler's own

Handlers are injected. Search, research, avatar, and UI generation are
backed by external services that are registered by the deployment; a call to
a tool with no handler answers ``{"error": "Function not implemented"}``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]

AGE_GROUP_PROPERTY = {
    "type": "string",
    "enum": ["young", "middle", "teen"],
    "description": "Target age group: young (5-8), middle (9-12), teen (13-16)",
}

EDUCATIONAL_TOOLS: List[Dict[str, Any]] = [
    {
        "type": "function",
        "function": {
            "name": "searchEducationalContent",
            "description": "Search for educational content on a specific topic",
            "parameters": {
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "The search query"},
                    "ageGroup": AGE_GROUP_PROPERTY,
                    "maxTokens": {
                        "type": "integer",
                        "description": "Maximum number of tokens for the response",
                    },
                },
                "required": ["query"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "researchTopic",
            "description": "Research a topic in depth and provide structured educational content",
            "parameters": {
                "type": "object",
                "properties": {
                    "topic": {"type": "string", "description": "The topic to research"},
                    "ageGroup": AGE_GROUP_PROPERTY,
                },
                "required": ["topic"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "generateAvatarResponse",
            "description": "Generate a video response with an AI avatar",
            "parameters": {
                "type": "object",
                "properties": {
                    "text": {"type": "string", "description": "The text for the avatar to speak"},
                    "avatarId": {"type": "string", "description": "The ID of the avatar to use"},
                    "voiceId": {"type": "string", "description": "The ID of the voice to use"},
                    "style": {
                        "type": "string",
                        "enum": ["normal", "happy", "sad", "surprised", "angry"],
                        "description": "The emotional style for the avatar",
                    },
                },
                "required": ["text", "avatarId"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "generateUIComponent",
            "description": "Generate an interactive UI component",
            "parameters": {
                "type": "object",
                "properties": {
                    "type": {
                        "type": "string",
                        "enum": ["quiz", "flashcards", "timeline", "diagram", "custom"],
                        "description": "The type of component to generate",
                    },
                    "title": {"type": "string", "description": "The title of the component"},
                    "content": {
                        "type": "string",
                        "description": "The content for the component (for custom components)",
                    },
                    "questions": {
                        "type": "array",
                        "description": "The questions for a quiz component",
                        "items": {
                            "type": "object",
                            "properties": {
                                "question": {"type": "string", "description": "The question text"},
                                "options": {
                                    "type": "array",
                                    "description": "The answer options",
                                    "items": {"type": "string"},
                                },
                                "correctAnswer": {
                                    "type": "integer",
                                    "description": "The index of the correct answer",
                                },
                            },
                        },
                    },
                    "cards": {
                        "type": "array",
                        "description": "The cards for a flashcards component",
                        "items": {
                            "type": "object",
                            "properties": {
                                "front": {"type": "string", "description": "The text for the front of the card"},
                                "back": {"type": "string", "description": "The text for the back of the card"},
                            },
                        },
                    },
                    "events": {
                        "type": "array",
                        "description": "The events for a timeline component",
                        "items": {
                            "type": "object",
                            "properties": {
                                "date": {"type": "string", "description": "The date or time period"},
                                "title": {"type": "string", "description": "The title of the event"},
                                "description": {"type": "string", "description": "The description of the event"},
                            },
                        },
                    },
                },
                "required": ["type"],
            },
        },
    },
]


def tool_names(catalog: Optional[List[Dict[str, Any]]] = None) -> List[str]:
    return [entry["function"]["name"] for entry in (catalog or EDUCATIONAL_TOOLS)]


class ToolRegistry:
    """Maps tool names to async handlers and executes model tool calls."""

    def __init__(
        self,
        handlers: Mapping[str, ToolHandler] | None = None,
        *,
        catalog: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        self._handlers: Dict[str, ToolHandler] = dict(handlers or {})
        self._catalog = list(catalog if catalog is not None else EDUCATIONAL_TOOLS)

    def register(self, name: str, handler: ToolHandler) -> "ToolRegistry":
        self._handlers[name] = handler
        return self

    def has_handler(self, name: str) -> bool:
        return name in self._handlers

    def catalog(self) -> List[Dict[str, Any]]:
        return [dict(entry) for entry in self._catalog]

    async def execute(self, name: str, raw_arguments: str | Dict[str, Any] | None) -> Dict[str, Any]:
        """Run one tool call; failures come back as ``{"error": ...}`` payloads."""

        handler = self._handlers.get(name)
        if handler is None:
            return {"error": "Function not implemented"}
        try:
            if isinstance(raw_arguments, dict):
                arguments = raw_arguments
            else:
                arguments = json.loads(raw_arguments or "{}")
            if not isinstance(arguments, dict):
                raise ValueError(f"arguments for {name} must be a JSON object")
            return await handler(arguments)
        except Exception as e:
            logger.error(f"Error executing tool {name}: {e}")
            return {"error": str(e)}


__all__ = [
    "EDUCATIONAL_TOOLS",
    "ToolHandler",
    "ToolRegistry",
    "tool_names",
]
