"""Adapter for OpenAI-compatible chat-completions endpoints (OpenAI, OpenRouter, ...)."""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

from openai import APIConnectionError, APITimeoutError, InternalServerError, OpenAI, OpenAIError, RateLimitError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from agent_sdk.config import ModelConfig, Settings, get_model_config
from agent_sdk.errors import ProviderError
from agent_sdk.models.messages import (
    Message,
    ModelCompletion,
    Role,
    ToolCall,
    ToolChoice,
    ToolDefinition,
    Usage,
)
from agent_sdk.providers.base import ChatModel

logger = logging.getLogger(__name__)


class OpenAIChatModel(ChatModel):
    def __init__(self, config: ModelConfig | None = None, api_key: str | None = None) -> None:
        current = Settings()
        if config is None:
            config = get_model_config()
        key = api_key if api_key is not None else current.llm_api_key
        if not key:
            raise ProviderError("LLM_API_KEY is not set")
        self._config = config
        self.model = config.model or current.llm_model
        self.client = OpenAI(
            api_key=key,
            base_url=config.base_url or current.llm_base_url,
        )
        self._temperature = config.temperature
        self._max_tokens = config.max_tokens

    @classmethod
    def from_env(cls, model: str | None = None, profile: str = "") -> OpenAIChatModel:
        """Build from LLM_API_KEY / LLM_BASE_URL / LLM_MODEL (and models.yaml)."""
        config = get_model_config(profile)
        if model:
            config.model = model
        return cls(config)

    def _get_temperature(self) -> float:
        return self._temperature if self._temperature is not None else 0.2

    def invoke(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition],
        tool_choice: ToolChoice = ToolChoice.AUTO,
    ) -> ModelCompletion:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [to_openai_message(m) for m in messages],
            "temperature": self._get_temperature(),
        }
        if tools:
            kwargs["tools"] = [to_openai_tool(t) for t in tools]
            kwargs["tool_choice"] = tool_choice.value
        if self._max_tokens is not None:
            kwargs["max_tokens"] = self._max_tokens

        try:
            response = self._create(kwargs)
        except OpenAIError as e:
            logger.error("Provider request failed: %s", e)
            raise ProviderError(f"provider request failed: {e}") from e
        return parse_completion(response)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(min=2, max=30),
        retry=retry_if_exception_type((APIConnectionError, APITimeoutError, InternalServerError, RateLimitError)),
        reraise=True,
    )
    def _create(self, kwargs: dict[str, Any]):
        return self.client.chat.completions.create(**kwargs)


def to_openai_message(message: Message) -> dict[str, Any]:
    if message.role is Role.ASSISTANT:
        out: dict[str, Any] = {"role": "assistant", "content": message.content or None}
        if message.tool_calls:
            out["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {
                        "name": call.name,
                        "arguments": call.arguments
                        if isinstance(call.arguments, str)
                        else json.dumps(call.arguments, ensure_ascii=False),
                    },
                }
                for call in message.tool_calls
            ]
        return out
    if message.role is Role.TOOL:
        content = message.content or ""
        return {
            "role": "tool",
            "tool_call_id": message.tool_call_id,
            "content": f"Error: {content}" if message.is_error else content,
        }
    return {"role": message.role.value, "content": message.content or ""}


def to_openai_tool(tool: ToolDefinition) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.parameters,
        },
    }


def parse_completion(response: Any) -> ModelCompletion:
    if not getattr(response, "choices", None):
        raise ProviderError("provider response invalid: no choices")
    message = response.choices[0].message

    calls = []
    for tool_call in message.tool_calls or []:
        raw = tool_call.function.arguments
        try:
            args = json.loads(raw) if raw else {}
        except json.JSONDecodeError:
            # keep the raw string; validation reports it as invalid arguments
            args = raw
        calls.append(ToolCall(id=tool_call.id, name=tool_call.function.name, arguments=args))

    thinking = getattr(message, "reasoning_content", None) or getattr(message, "reasoning", None)

    usage = None
    if getattr(response, "usage", None) is not None:
        usage = Usage(
            input_tokens=response.usage.prompt_tokens or 0,
            output_tokens=response.usage.completion_tokens or 0,
        )

    return ModelCompletion(
        text=message.content,
        thinking=thinking if isinstance(thinking, str) else None,
        tool_calls=calls,
        usage=usage,
    )
