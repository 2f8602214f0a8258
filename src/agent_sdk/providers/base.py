"""Abstract model adapter interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from agent_sdk.models.messages import Message, ModelCompletion, ToolChoice, ToolDefinition


class ChatModel(ABC):
    """One round trip to a language-model provider.

    Implementations translate the conversation to their wire format and
    raise ProviderError on failure. Retries, if any, happen in here.
    """

    @abstractmethod
    def invoke(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition],
        tool_choice: ToolChoice = ToolChoice.AUTO,
    ) -> ModelCompletion: ...
