"""Events emitted by the agent loop, in emission order."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from agent_sdk.models.messages import Role


class StepStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class _Event(BaseModel):
    # 1-based position within one run
    seq: int = 0


class MessageStart(_Event):
    type: Literal["message_start"] = "message_start"
    message_id: str
    role: Role


class MessageComplete(_Event):
    type: Literal["message_complete"] = "message_complete"
    message_id: str
    content: str = ""


class HiddenUserMessage(_Event):
    """Follow-up injected by the loop; not shown to the end user."""

    type: Literal["hidden_user_message"] = "hidden_user_message"
    content: str


class StepStart(_Event):
    type: Literal["step_start"] = "step_start"
    step_id: str
    title: str
    step_number: int


class StepComplete(_Event):
    type: Literal["step_complete"] = "step_complete"
    step_id: str
    status: StepStatus
    duration_ms: int


class Thinking(_Event):
    type: Literal["thinking"] = "thinking"
    content: str


class Text(_Event):
    type: Literal["text"] = "text"
    content: str


class ToolCall(_Event):
    type: Literal["tool_call"] = "tool_call"
    tool: str
    arguments: Any
    tool_call_id: str


class ToolResult(_Event):
    type: Literal["tool_result"] = "tool_result"
    tool: str
    result_text: str
    tool_call_id: str
    is_error: bool = False


class FinalResponse(_Event):
    type: Literal["final_response"] = "final_response"
    content: str


AgentEvent = Annotated[
    Union[
        MessageStart,
        MessageComplete,
        HiddenUserMessage,
        StepStart,
        StepComplete,
        Thinking,
        Text,
        ToolCall,
        ToolResult,
        FinalResponse,
    ],
    Field(discriminator="type"),
]

_event_adapter: TypeAdapter[AgentEvent] = TypeAdapter(AgentEvent)


def parse_event(data: dict[str, Any]) -> AgentEvent:
    """Rebuild an event from its ``model_dump()`` form."""
    return _event_adapter.validate_python(data)
