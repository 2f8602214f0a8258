"""Tool-calling agent loop with an observable event stream."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, replace
from typing import Any, Iterable, Iterator

from agent_sdk.errors import (
    AgentBusy,
    AgentError,
    CancellationRequested,
    ConfigurationError,
    IterationLimitExceeded,
    MissingFinalResponse,
    ProviderError,
)
from agent_sdk.models import events as ev
from agent_sdk.models.events import AgentEvent, StepStatus
from agent_sdk.models.messages import Conversation, Message, ModelCompletion, Role, ToolCall, ToolChoice, ToolResult
from agent_sdk.prompts.prompt_layer import render_prompt
from agent_sdk.providers.base import ChatModel
from agent_sdk.tools import ToolRegistry, ToolSpec
from agent_sdk.tools.dependencies import DependencyMap

logger = logging.getLogger(__name__)


@dataclass
class AgentConfig:
    require_done_tool: bool = False
    max_iterations: int = 24
    # seconds for a whole query; checked before each provider call and tool execution
    timeout: float | None = None
    system_prompt: str | None = None
    # feed tool failures back to the model instead of ending the run
    tool_errors_as_results: bool = False
    # inject a wrap-up warning when this many steps remain (0 disables)
    step_warning_threshold: int = 5
    done_tool_name: str = "done"

    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ConfigurationError("max_iterations must be at least 1")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError("timeout must be positive")
        if self.step_warning_threshold < 0:
            raise ConfigurationError("step_warning_threshold must not be negative")


class _RunState:
    def __init__(self, config: AgentConfig) -> None:
        self.seq = 0
        self.started = time.monotonic()
        self.deadline = self.started + config.timeout if config.timeout else None
        self.timeout = config.timeout
        self.finished = False

    def stamp(self, event: Any) -> Any:
        self.seq += 1
        event.seq = self.seq
        return event

    def check_deadline(self) -> None:
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise CancellationRequested(f"timeout after {self.timeout}s")


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class Agent:
    """One configured loop bound to a model, a tool set and dependencies.

    The conversation persists across ``query`` calls so follow-up questions
    see earlier turns; ``reset()`` starts a new one. Only one run may be in
    flight at a time, from any thread.
    """

    def __init__(
        self,
        model: ChatModel,
        tools: Iterable[ToolSpec] = (),
        dependencies: DependencyMap | None = None,
        config: AgentConfig | None = None,
        **options: Any,
    ) -> None:
        if model is None or not callable(getattr(model, "invoke", None)):
            raise ConfigurationError("agent model must implement ChatModel.invoke")
        self.model = model
        self.config = replace(config or AgentConfig(), **options)
        self.registry = ToolRegistry(dependencies)
        self.registry.register_many(list(tools))
        self.conversation = Conversation()
        self._running = False
        self._run_lock = threading.Lock()

        if self.config.require_done_tool and self.config.done_tool_name not in self.registry:
            logger.warning(
                "require_done_tool is set but no '%s' tool is registered", self.config.done_tool_name
            )

    @property
    def dependencies(self) -> DependencyMap:
        return self.registry.dependencies

    @property
    def running(self) -> bool:
        return self._running

    def messages_len(self) -> int:
        return len(self.conversation)

    def reset(self) -> None:
        with self._run_lock:
            if self._running:
                raise AgentBusy("cannot reset while a run is in flight")
            self.conversation.clear()

    def query(self, user_message: str) -> str:
        """Run to completion and return the final answer."""
        final: str | None = None
        for event in self.query_stream(user_message):
            if isinstance(event, ev.FinalResponse):
                final = event.content
        if final is None:
            raise MissingFinalResponse()
        return final

    def query_stream(self, user_message: str) -> Iterator[AgentEvent]:
        """Yield events as the run progresses.

        The terminal error, if any, is raised from the generator. Closing the
        generator stops the run before its next provider call or tool call.
        """
        return self._run(user_message)

    # --- loop ---

    def _run(self, user_message: str) -> Iterator[AgentEvent]:
        with self._run_lock:
            if self._running:
                raise AgentBusy("agent already has a run in flight")
            self._running = True
        run = _RunState(self.config)
        logger.info(
            "Agent run started (max_iterations=%d, require_done_tool=%s, tools=%d)",
            self.config.max_iterations,
            self.config.require_done_tool,
            len(self.registry),
        )
        try:
            self._open_conversation(user_message)
            for step_number in range(1, self.config.max_iterations + 1):
                final = yield from self._step(run, step_number)
                if final is not None:
                    run.finished = True
                    logger.info("Agent run finished after %d step(s)", step_number)
                    yield run.stamp(ev.FinalResponse(content=final))
                    return

            logger.warning("Agent hit max iterations (%d)", self.config.max_iterations)
            raise IterationLimitExceeded(self.config.max_iterations)
        except AgentError as e:
            self._answer_pending_calls(e)
            raise
        except GeneratorExit:
            if not run.finished:
                logger.warning("Agent run cancelled by consumer")
                self._answer_pending_calls(CancellationRequested("consumer stopped"))
            raise
        finally:
            self._running = False

    def _open_conversation(self, user_message: str) -> None:
        if not self.conversation:
            parts = []
            if self.config.system_prompt:
                parts.append(self.config.system_prompt)
            if self.config.require_done_tool:
                parts.append(render_prompt("done_contract", done_tool=self.config.done_tool_name))
            if parts:
                self.conversation.append(Message.system("\n\n".join(parts)))
        self.conversation.append(Message.user(user_message))

    def _step(self, run: _RunState, step_number: int) -> Iterator[AgentEvent]:
        step_id = _new_id("step")
        started = time.monotonic()
        max_steps = self.config.max_iterations
        logger.debug("Step %d/%d", step_number, max_steps)
        yield run.stamp(
            ev.StepStart(step_id=step_id, title=f"Step {step_number}/{max_steps}", step_number=step_number)
        )

        try:
            final = yield from self._step_body(run, step_number)
        except AgentError as e:
            logger.error("Step %d failed: %s", step_number, e)
            yield run.stamp(
                ev.StepComplete(step_id=step_id, status=StepStatus.FAILED, duration_ms=_elapsed_ms(started))
            )
            raise

        yield run.stamp(
            ev.StepComplete(step_id=step_id, status=StepStatus.COMPLETED, duration_ms=_elapsed_ms(started))
        )
        return final

    def _step_body(self, run: _RunState, step_number: int) -> Iterator[AgentEvent]:
        remaining = self.config.max_iterations - step_number + 1
        threshold = self.config.step_warning_threshold
        if threshold and remaining == threshold and self.config.max_iterations > threshold:
            if self.config.require_done_tool:
                finish = f"call the `{self.config.done_tool_name}` tool with your final answer."
            else:
                finish = "respond with a final summary."
            yield from self._inject_hidden(
                run, render_prompt("step_budget_warning", remaining=remaining, finish=finish)
            )
            logger.info("Injected step budget warning (%d remaining)", remaining)

        run.check_deadline()
        message_id = _new_id("msg")
        yield run.stamp(ev.MessageStart(message_id=message_id, role=Role.ASSISTANT))
        completion = self._invoke_model()

        if completion.thinking:
            yield run.stamp(ev.Thinking(content=completion.thinking))
        text = completion.text or ""
        if text:
            yield run.stamp(ev.Text(content=text))
        self.conversation.append(Message.assistant(completion.text, completion.tool_calls))
        yield run.stamp(ev.MessageComplete(message_id=message_id, content=text))

        if not completion.tool_calls:
            if not self.config.require_done_tool:
                return text
            yield from self._inject_hidden(
                run, render_prompt("done_reminder", done_tool=self.config.done_tool_name)
            )
            logger.info("Plain reply in explicit-completion mode; reminded model to call '%s'",
                        self.config.done_tool_name)
            return None

        # every call in the batch runs; the first Done supplies the answer
        final: str | None = None
        for call in completion.tool_calls:
            run.check_deadline()
            done = yield from self._execute_call(run, call)
            if done is not None and final is None:
                final = done
        return final

    def _invoke_model(self) -> ModelCompletion:
        tool_choice = ToolChoice.AUTO if len(self.registry) else ToolChoice.NONE
        try:
            completion = self.model.invoke(self.conversation.messages, self.registry.definitions(), tool_choice)
        except AgentError:
            raise
        except Exception as e:
            raise ProviderError(f"provider request failed: {type(e).__name__}: {e}") from e
        if not isinstance(completion, ModelCompletion):
            raise ProviderError(f"provider response invalid: {type(completion).__name__}")
        return completion

    def _execute_call(self, run: _RunState, call: ToolCall) -> Iterator[AgentEvent]:
        """Validate, run and record one tool call; return the Done content if any."""
        try:
            args = self.registry.validate(call.name, call.arguments)
        except AgentError as e:
            if not self.config.tool_errors_as_results:
                raise
            yield run.stamp(ev.ToolCall(tool=call.name, arguments=call.arguments, tool_call_id=call.id))
            yield from self._record(run, ToolResult(tool_call_id=call.id, tool_name=call.name,
                                                    content=str(e), is_error=True))
            return None

        yield run.stamp(ev.ToolCall(tool=call.name, arguments=args, tool_call_id=call.id))
        try:
            outcome = self.registry.dispatch(call.name, args, self.dependencies)
        except AgentError as e:
            result = ToolResult(tool_call_id=call.id, tool_name=call.name, content=str(e), is_error=True)
            yield from self._record(run, result)
            if not self.config.tool_errors_as_results:
                raise
            return None

        if outcome.is_done:
            result = ToolResult(tool_call_id=call.id, tool_name=call.name,
                                content=f"Task completed: {outcome.content}", done=True)
            yield from self._record(run, result)
            return outcome.content

        yield from self._record(run, ToolResult(tool_call_id=call.id, tool_name=call.name, content=outcome.content))
        return None

    def _record(self, run: _RunState, result: ToolResult) -> Iterator[AgentEvent]:
        self.conversation.append(Message.tool_result(result))
        yield run.stamp(
            ev.ToolResult(
                tool=result.tool_name,
                result_text=result.content,
                tool_call_id=result.tool_call_id,
                is_error=result.is_error,
            )
        )

    def _answer_pending_calls(self, reason: AgentError) -> None:
        """Close out tool calls left unanswered by an aborted run.

        Keeps the history well-formed for a follow-up ``query``. Nothing is
        executed and no event is emitted.
        """
        messages = self.conversation.messages
        last = next(
            (i for i in range(len(messages) - 1, -1, -1) if messages[i].role is Role.ASSISTANT),
            None,
        )
        if last is None or not messages[last].tool_calls:
            return
        answered = {m.tool_call_id for m in messages[last + 1:] if m.role is Role.TOOL}
        for call in messages[last].tool_calls:
            if call.id not in answered:
                self.conversation.append(
                    Message.tool_result(
                        ToolResult(
                            tool_call_id=call.id,
                            tool_name=call.name,
                            content=f"Not executed: {reason}",
                            is_error=True,
                        )
                    )
                )

    def _inject_hidden(self, run: _RunState, content: str) -> Iterator[AgentEvent]:
        self.conversation.append(Message.user(content, hidden=True))
        yield run.stamp(ev.HiddenUserMessage(content=content))


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def query(agent: Agent, user_message: str) -> str:
    return agent.query(user_message)


def query_stream(agent: Agent, user_message: str) -> Iterator[AgentEvent]:
    return agent.query_stream(user_message)
