"""Minimal tool-using agent loop with explicit completion and an observable event stream."""

from agent_sdk.agents.agent import Agent, AgentConfig, query, query_stream
from agent_sdk.errors import (
    AgentBusy,
    AgentError,
    CancellationRequested,
    ConfigurationError,
    DuplicateTool,
    InvalidArguments,
    IterationLimitExceeded,
    MissingDependency,
    MissingFinalResponse,
    ProviderError,
    SchemaError,
    ToolExecutionError,
    UnknownTool,
)
from agent_sdk.models.events import AgentEvent, StepStatus, parse_event
from agent_sdk.models.messages import Message, ModelCompletion, ToolCall, ToolChoice, ToolDefinition
from agent_sdk.providers.base import ChatModel
from agent_sdk.providers.scripted import ScriptedModel
from agent_sdk.tools import DependencyMap, ToolOutcome, ToolRegistry, ToolSpec

__all__ = [
    "Agent",
    "AgentBusy",
    "AgentConfig",
    "AgentError",
    "AgentEvent",
    "CancellationRequested",
    "ChatModel",
    "ConfigurationError",
    "DependencyMap",
    "DuplicateTool",
    "InvalidArguments",
    "IterationLimitExceeded",
    "Message",
    "MissingDependency",
    "MissingFinalResponse",
    "ModelCompletion",
    "ProviderError",
    "SchemaError",
    "ScriptedModel",
    "StepStatus",
    "ToolCall",
    "ToolChoice",
    "ToolDefinition",
    "ToolExecutionError",
    "ToolOutcome",
    "ToolRegistry",
    "ToolSpec",
    "UnknownTool",
    "parse_event",
    "query",
    "query_stream",
]
