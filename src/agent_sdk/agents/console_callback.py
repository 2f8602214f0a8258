"""Renderers for agent events: rich console output and a markdown transcript."""

from __future__ import annotations

import json
from typing import Any, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from agent_sdk.models import events as ev
from agent_sdk.models.events import AgentEvent, StepStatus
from agent_sdk.tools import ToolRegistry

MAX_RESULT_LINES = 30
MAX_RESULT_CHARS = 2000


def _truncate(text: str) -> str:
    lines = text.splitlines()
    if len(lines) > MAX_RESULT_LINES or len(text) > MAX_RESULT_CHARS:
        kept = lines[:MAX_RESULT_LINES]
        truncated = "\n".join(kept)
        if len(truncated) > MAX_RESULT_CHARS:
            truncated = truncated[:MAX_RESULT_CHARS]
        omitted = len(lines) - MAX_RESULT_LINES
        if omitted > 0:
            truncated += f"\n... ({omitted} more lines)"
        return truncated
    return text


TOOL_ICONS = {
    "bash": "💻",
    "read": "👁 ",
    "write": "📄",
    "edit": "✏️ ",
    "glob_search": "📂",
    "grep": "🔍",
    "todo_read": "📋",
    "todo_write": "📝",
    "done": "✅",
}


def _format_arg_value(value: Any) -> str:
    """Render one argument value, truncated to 120 chars."""
    s = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
    if len(s) > 120:
        return s[:120] + "..."
    return s


class ConsoleCallback:
    def __init__(self, console: Console | None = None, show_hidden: bool = False) -> None:
        self.console = console or Console()
        self.show_hidden = show_hidden
        self.tool_calls = 0
        self.steps = 0

    def print_tools(self, registry: ToolRegistry) -> None:
        table = Table(title="Available tools", border_style="dim", show_lines=False)
        table.add_column("Tool", style="bold cyan", no_wrap=True)
        table.add_column("Description", style="dim")
        for tool in registry.list_all():
            icon = TOOL_ICONS.get(tool.name, "🔧")
            params = tool.parameters.get("properties", {})
            param_names = ", ".join(params.keys()) if params else ""
            table.add_row(f"{icon} {tool.name}({param_names})", tool.description)
        self.console.print(table)
        self.console.print()

    def handle(self, event: AgentEvent) -> None:
        if isinstance(event, ev.StepStart):
            self.steps = event.step_number
            self.console.rule(f"[bold blue]{event.title}", style="blue")
        elif isinstance(event, ev.Thinking):
            self.console.print(
                Panel(_truncate(event.content), title="[bold yellow]Thinking", border_style="yellow", padding=(0, 1))
            )
        elif isinstance(event, ev.Text):
            self.console.print(Panel(_truncate(event.content), title="[bold]Assistant", padding=(0, 1)))
        elif isinstance(event, ev.HiddenUserMessage):
            if self.show_hidden:
                self.console.print(f"  [dim italic]↪ {_truncate(event.content)}[/]")
        elif isinstance(event, ev.ToolCall):
            self.tool_calls += 1
            self._print_tool_call(event.tool, event.arguments)
        elif isinstance(event, ev.ToolResult):
            self._print_tool_result(event.result_text, event.is_error)
        elif isinstance(event, ev.StepComplete):
            if event.status is StepStatus.FAILED:
                self.console.print(f"  [red]step failed after {event.duration_ms} ms[/]")
        elif isinstance(event, ev.FinalResponse):
            self._print_final(event.content)

    def _print_tool_call(self, name: str, args: Any) -> None:
        icon = TOOL_ICONS.get(name, "🔧")
        self.console.print(f"  {icon} [bold cyan]{name}[/]")
        if not isinstance(args, dict):
            self.console.print(f"      [dim]raw:[/] {_format_arg_value(args)}")
            return
        for k, v in args.items():
            val = _format_arg_value(v)
            # Multiline values (e.g. content / old_string) get a panel
            if "\n" in val:
                self.console.print(f"      [dim]{k}:[/]")
                self.console.print(
                    Panel(
                        Syntax(val, "text", theme="ansi_dark", word_wrap=True),
                        border_style="dim",
                        padding=(0, 1),
                    )
                )
            else:
                self.console.print(f"      [dim]{k}:[/] {val}")

    def _print_tool_result(self, result: str, is_error: bool) -> None:
        truncated = _truncate(result)
        self.console.print(
            Panel(
                Syntax(truncated, "text", theme="ansi_dark", word_wrap=True)
                if len(truncated) > 200
                else Text(truncated, style="red" if is_error else "dim"),
                title="[red]error" if is_error else "[dim]result",
                border_style="red" if is_error else "dim",
                padding=(0, 1),
            )
        )

    def _print_final(self, text: str) -> None:
        self.console.print()
        self.console.rule("[bold green]Agent finished", style="green")
        self.console.print(
            Panel(
                text,
                title=f"[bold green]Result ({self.steps} steps, {self.tool_calls} tool calls)",
                border_style="green",
                padding=(0, 1),
            )
        )


class MarkdownCallback:
    """Collects agent events into a markdown transcript."""

    def __init__(self) -> None:
        self._entries: list[str] = []
        self._current_step: int = 0
        self._final_text: str = ""
        self._total_tool_calls: int = 0

    def handle(self, event: AgentEvent) -> None:
        if isinstance(event, ev.StepStart):
            self._current_step = event.step_number
        elif isinstance(event, ev.Thinking):
            self._entries.append(
                f"<details><summary>Step {self._current_step}: 💭 Thinking</summary>\n\n"
                f"{event.content}\n\n"
                f"</details>"
            )
        elif isinstance(event, ev.ToolCall):
            self._total_tool_calls += 1
            icon = TOOL_ICONS.get(event.tool, "🔧")
            if isinstance(event.arguments, dict):
                short_args = ", ".join(f'{k}="{_format_arg_value(v)}"' for k, v in event.arguments.items())
            else:
                short_args = _format_arg_value(event.arguments)
            header = f"Step {self._current_step}: {icon} {event.tool}({short_args})"
            # Result is appended by the matching ToolResult
            self._entries.append(f"<details><summary>{header}</summary>\n\n")
        elif isinstance(event, ev.ToolResult):
            body = _truncate(event.result_text).replace("```", "")
            label = "**error**\n\n" if event.is_error else ""
            if self._entries and self._entries[-1].endswith("\n\n"):
                self._entries[-1] += f"{label}```\n{body}\n```\n\n</details>"
        elif isinstance(event, ev.FinalResponse):
            self._final_text = event.content

    def render(self, title: str = "Agent run") -> str:
        parts: list[str] = [
            f"# {title}",
            "",
            "**Final answer:**",
            self._final_text or "_No final message._",
            "",
        ]
        if self._entries:
            inner = "\n\n".join(self._entries)
            summary = f"Agent log ({self._current_step} steps, {self._total_tool_calls} tool calls)"
            parts.append(f"<details><summary>{summary}</summary>\n\n{inner}\n\n</details>")
        return "\n".join(parts)


class CompositeCallback:
    """Forwards every event to multiple delegates."""

    def __init__(self, callbacks: Sequence[Any]) -> None:
        self._callbacks = callbacks

    def handle(self, event: AgentEvent) -> None:
        for cb in self._callbacks:
            cb.handle(event)
