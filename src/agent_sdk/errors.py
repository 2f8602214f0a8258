"""Exception hierarchy raised by the agent loop, the tool registry and providers."""

from __future__ import annotations

from typing import Any


class AgentError(Exception):
    """Base class for every error surfaced to callers of the SDK."""


class ConfigurationError(AgentError):
    """Raised when an Agent or a component is configured inconsistently."""


class AgentBusy(AgentError):
    """Raised when a second run is started while one is still in flight."""


class SchemaError(AgentError):
    """Raised when a tool's JSON schema document is malformed."""


class DuplicateTool(AgentError):
    def __init__(self, name: str) -> None:
        super().__init__(f"duplicate tool registered: {name}")
        self.name = name


class UnknownTool(AgentError):
    def __init__(self, name: str) -> None:
        super().__init__(f"tool not found: {name}")
        self.name = name


class InvalidArguments(AgentError):
    """Arguments did not match the tool schema.

    ``field`` is the dotted path of the offending value ("" for the root).
    """

    def __init__(self, tool: str, message: str, field: str = "") -> None:
        super().__init__(f"invalid tool arguments for {tool}: {message}")
        self.tool = tool
        self.field = field
        self.message = message


class MissingDependency(AgentError):
    def __init__(self, key: Any) -> None:
        name = key if isinstance(key, str) else getattr(key, "__name__", repr(key))
        super().__init__(f"dependency missing: {name}")
        self.key = key


class ToolExecutionError(AgentError):
    """Wraps an exception raised by a tool executor (see ``__cause__``)."""

    def __init__(self, tool: str, cause: BaseException) -> None:
        super().__init__(f"tool execution failed: {tool}: {type(cause).__name__}: {cause}")
        self.tool = tool


class ProviderError(AgentError):
    """Raised by model adapters; the loop never retries it."""


class IterationLimitExceeded(AgentError):
    def __init__(self, max_iterations: int) -> None:
        super().__init__(f"max iterations reached ({max_iterations})")
        self.max_iterations = max_iterations


class CancellationRequested(AgentError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"run cancelled: {reason}")
        self.reason = reason


class MissingFinalResponse(AgentError):
    """The event stream ended without a FinalResponse."""

    def __init__(self) -> None:
        super().__init__("agent stream ended without final response")
