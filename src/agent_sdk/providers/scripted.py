"""Deterministic model that replays queued completions."""

from __future__ import annotations

import threading
from collections import deque
from typing import Sequence, Union

from agent_sdk.errors import ProviderError
from agent_sdk.models.messages import Message, ModelCompletion, ToolCall, ToolChoice, ToolDefinition
from agent_sdk.providers.base import ChatModel

Scripted = Union[ModelCompletion, Exception]


class ScriptedModel(ChatModel):
    def __init__(self, responses: Sequence[Scripted] = ()) -> None:
        self._responses: deque[Scripted] = deque(responses)
        self._lock = threading.Lock()
        self.calls: list[list[Message]] = []
        self.tool_choices: list[ToolChoice] = []

    def push(self, response: Scripted) -> None:
        with self._lock:
            self._responses.append(response)

    @property
    def remaining(self) -> int:
        return len(self._responses)

    def invoke(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition],
        tool_choice: ToolChoice = ToolChoice.AUTO,
    ) -> ModelCompletion:
        with self._lock:
            self.calls.append(list(messages))
            self.tool_choices.append(tool_choice)
            if not self._responses:
                raise ProviderError("scripted model exhausted responses")
            response = self._responses.popleft()
        if isinstance(response, Exception):
            raise response
        return response


def text(content: str, thinking: str | None = None) -> ModelCompletion:
    return ModelCompletion(text=content, thinking=thinking)


def tool_calls(*calls: tuple[str, str, object], content: str | None = None) -> ModelCompletion:
    """Build a completion from ``(id, name, arguments)`` triples."""
    return ModelCompletion(
        text=content,
        tool_calls=[ToolCall(id=call_id, name=name, arguments=args) for call_id, name, args in calls],
    )
