"""Tool plugin system for the agent loop."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Union

from pydantic import BaseModel

from agent_sdk.errors import AgentError, DuplicateTool, InvalidArguments, ToolExecutionError, UnknownTool
from agent_sdk.models.messages import ToolDefinition
from agent_sdk.tools.dependencies import DependencyMap, DependencyView
from agent_sdk.tools.schema import ArgumentError, check_schema, empty_schema, validate_arguments

logger = logging.getLogger(__name__)


class OutcomeKind(str, Enum):
    TEXT = "text"
    DONE = "done"


class ToolOutcome(BaseModel):
    """Result of one tool execution: continue with text, or finish the run."""

    kind: OutcomeKind
    content: str

    @classmethod
    def text(cls, content: str) -> ToolOutcome:
        return cls(kind=OutcomeKind.TEXT, content=content)

    @classmethod
    def done(cls, content: str) -> ToolOutcome:
        return cls(kind=OutcomeKind.DONE, content=content)

    @property
    def is_done(self) -> bool:
        return self.kind is OutcomeKind.DONE


Executor = Callable[[dict[str, Any], DependencyView], Union[ToolOutcome, str]]


@dataclass
class ToolSpec:
    name: str
    description: str
    execute: Executor
    parameters: dict[str, Any] = field(default_factory=empty_schema)

    def __post_init__(self) -> None:
        check_schema(self.parameters)

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )


class ToolRegistry:
    def __init__(self, dependencies: DependencyMap | None = None) -> None:
        self._tools: dict[str, ToolSpec] = {}
        self.dependencies = dependencies if dependencies is not None else DependencyMap()

    def register(self, tool: ToolSpec) -> None:
        if tool.name in self._tools:
            raise DuplicateTool(tool.name)
        self._tools[tool.name] = tool

    def register_many(self, tools: list[ToolSpec]) -> None:
        for tool in tools:
            self.register(tool)

    def get(self, name: str) -> ToolSpec:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownTool(name) from None

    def list_all(self) -> list[ToolSpec]:
        return list(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def definitions(self) -> list[ToolDefinition]:
        return [tool.definition() for tool in self._tools.values()]

    def to_openai_tools(self) -> list[dict[str, Any]]:
        result = []
        for tool in self._tools.values():
            result.append(
                {
                    "type": "function",
                    "function": {
                        "name": tool.name,
                        "description": tool.description,
                        "parameters": tool.parameters,
                    },
                }
            )
        return result

    def validate(self, name: str, args: Any) -> dict[str, Any]:
        """Resolve ``name`` and check ``args`` against its schema."""
        tool = self.get(name)
        try:
            return validate_arguments(tool.parameters, args)
        except ArgumentError as e:
            raise InvalidArguments(name, e.message, field=e.path) from None

    def dispatch(
        self,
        name: str,
        args: Any,
        dependencies: DependencyMap | None = None,
    ) -> ToolOutcome:
        """Validate and execute one call.

        Executor exceptions are wrapped in ToolExecutionError; AgentError
        subclasses (e.g. MissingDependency) pass through unchanged.
        """
        validated = self.validate(name, args)
        tool = self._tools[name]
        deps = dependencies if dependencies is not None else self.dependencies
        logger.debug("Dispatching tool '%s'", name)
        try:
            out = tool.execute(copy.deepcopy(validated), deps.view())
        except AgentError:
            raise
        except Exception as e:
            logger.error("Tool '%s' failed: %s", name, e)
            raise ToolExecutionError(name, e) from e

        if isinstance(out, str):
            return ToolOutcome.text(out)
        if not isinstance(out, ToolOutcome):
            raise ToolExecutionError(name, TypeError(f"tool returned {type(out).__name__}"))
        return out


__all__ = [
    "DependencyMap",
    "DependencyView",
    "Executor",
    "OutcomeKind",
    "ToolOutcome",
    "ToolRegistry",
    "ToolSpec",
]
