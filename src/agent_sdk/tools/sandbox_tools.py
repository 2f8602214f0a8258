"""Shell, file, search and todo tools backed by a SandboxContext dependency."""

from __future__ import annotations

import re
import subprocess
from pathlib import Path

from pydantic import ValidationError

from agent_sdk.services.sandbox import TODO_STATUSES, SandboxContext, SandboxViolation, TodoItem
from agent_sdk.tools import ToolOutcome, ToolSpec
from agent_sdk.tools.dependencies import DependencyView

MAX_SEARCH_RESULTS = 50
MAX_LINE_PREVIEW = 100
DEFAULT_BASH_TIMEOUT = 30

TODO_MARKERS = {"pending": "[ ]", "in_progress": "[>]", "completed": "[x]"}


def _strict(properties: dict, required: list[str]) -> dict:
    return {
        "type": "object",
        "properties": properties,
        "required": required,
        "additionalProperties": False,
    }


def bash(args: dict, deps: DependencyView) -> str:
    ctx = deps.get(SandboxContext)
    timeout = args.get("timeout", DEFAULT_BASH_TIMEOUT)
    try:
        out = subprocess.run(
            ["sh", "-lc", args["command"]],
            cwd=ctx.working_dir,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return f"Command timed out after {timeout}s"
    except OSError as e:
        return f"Error: {e}"
    rendered = (out.stdout + out.stderr).strip()
    return rendered or "(no output)"


def read(args: dict, deps: DependencyView) -> str:
    ctx = deps.get(SandboxContext)
    file_path = args["file_path"]
    try:
        path = ctx.resolve_path(file_path)
    except SandboxViolation as e:
        return f"Security error: {e}"
    if not path.exists():
        return f"File not found: {file_path}"
    if path.is_dir():
        return f"Path is a directory: {file_path}"
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return f"Error reading file: {e}"
    return "\n".join(f"{i:>4}  {line}" for i, line in enumerate(content.splitlines(), 1))


def write(args: dict, deps: DependencyView) -> str:
    ctx = deps.get(SandboxContext)
    file_path = args["file_path"]
    content = args["content"]
    try:
        ctx.write_file(file_path, content)
    except SandboxViolation as e:
        return f"Security error: {e}"
    except OSError as e:
        return f"Error writing file: {e}"
    return f"Wrote {len(content.encode('utf-8'))} bytes to {file_path}"


def edit(args: dict, deps: DependencyView) -> str:
    ctx = deps.get(SandboxContext)
    file_path = args["file_path"]
    old_string = args["old_string"]
    try:
        path = ctx.resolve_path(file_path)
    except SandboxViolation as e:
        return f"Security error: {e}"
    if not path.is_file():
        return f"File not found: {file_path}"
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return f"Error reading file: {e}"
    if old_string not in content:
        return f"String not found in {file_path}"
    count = content.count(old_string)
    try:
        path.write_text(content.replace(old_string, args["new_string"]), encoding="utf-8")
    except OSError as e:
        return f"Error writing file: {e}"
    return f"Replaced {count} occurrence(s) in {file_path}"


def glob_search(args: dict, deps: DependencyView) -> str:
    ctx = deps.get(SandboxContext)
    pattern = args["pattern"]
    try:
        root = _search_root(ctx, args.get("path"))
    except SandboxViolation as e:
        return f"Security error: {e}"
    try:
        matches = sorted(root.glob(pattern))
    except (ValueError, NotImplementedError) as e:
        return f"Invalid glob pattern: {e}"

    files: list[str] = []
    for fpath in matches:
        # patterns like "../*" can match outside the root
        try:
            fpath = ctx.resolve_path(fpath)
        except SandboxViolation:
            continue
        if not fpath.is_file():
            continue
        files.append(ctx.relative(fpath))
        if len(files) >= MAX_SEARCH_RESULTS:
            break
    if not files:
        return f"No files match pattern: {pattern}"
    return f"Found {len(files)} file(s):\n" + "\n".join(files)


def grep(args: dict, deps: DependencyView) -> str:
    ctx = deps.get(SandboxContext)
    pattern = args["pattern"]
    try:
        root = _search_root(ctx, args.get("path"))
    except SandboxViolation as e:
        return f"Security error: {e}"
    try:
        regex = re.compile(pattern)
    except re.error as e:
        return f"Invalid regex: {e}"

    results: list[str] = []
    for fpath in _walk_files(root):
        try:
            text = fpath.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            continue
        rel = ctx.relative(fpath)
        for i, line in enumerate(text.splitlines(), 1):
            if regex.search(line):
                if len(results) >= MAX_SEARCH_RESULTS:
                    results.append("... (truncated)")
                    return "\n".join(results)
                preview = line if len(line) <= MAX_LINE_PREVIEW else line[:MAX_LINE_PREVIEW] + "..."
                results.append(f"{rel}:{i}: {preview}")
    if not results:
        return f"No matches for: {pattern}"
    return "\n".join(results)


def todo_read(args: dict, deps: DependencyView) -> str:
    todos = deps.get(SandboxContext).read_todos()
    if not todos:
        return "Todo list is empty"
    return "\n".join(
        f"{i}. {TODO_MARKERS.get(item.status, '[?]')} {item.content}" for i, item in enumerate(todos, 1)
    )


def todo_write(args: dict, deps: DependencyView) -> str:
    ctx = deps.get(SandboxContext)
    try:
        todos = [TodoItem.model_validate(item) for item in args["todos"]]
    except ValidationError as e:
        return f"Invalid todos payload: {e}"
    for item in todos:
        if item.status not in TODO_STATUSES:
            item.status = "pending"
    ctx.write_todos(todos)
    counts = {status: sum(1 for t in todos if t.status == status) for status in TODO_STATUSES}
    return (
        f"Updated todos: {counts['pending']} pending, "
        f"{counts['in_progress']} in progress, {counts['completed']} completed"
    )


def done(args: dict, deps: DependencyView) -> ToolOutcome:
    return ToolOutcome.done(args.get("message") or "task complete")


def done_tool(name: str = "done") -> ToolSpec:
    return ToolSpec(
        name=name,
        description="Signal that the task is complete and give the final answer.",
        parameters=_strict({"message": {"type": "string", "description": "Final answer for the user"}}, ["message"]),
        execute=done,
    )


def create_sandbox_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="bash",
            description="Execute a shell command in the sandbox working directory and return its output.",
            parameters=_strict(
                {
                    "command": {"type": "string", "description": "Shell command to run"},
                    "timeout": {"type": "integer", "description": f"Seconds (default: {DEFAULT_BASH_TIMEOUT})"},
                },
                ["command"],
            ),
            execute=bash,
        ),
        ToolSpec(
            name="read",
            description="Read the contents of a file, with line numbers.",
            parameters=_strict({"file_path": {"type": "string", "description": "File path to read"}}, ["file_path"]),
            execute=read,
        ),
        ToolSpec(
            name="write",
            description="Write content to a file, creating parent directories.",
            parameters=_strict(
                {
                    "file_path": {"type": "string", "description": "File path to write"},
                    "content": {"type": "string", "description": "File content"},
                },
                ["file_path", "content"],
            ),
            execute=write,
        ),
        ToolSpec(
            name="edit",
            description="Replace every occurrence of an exact text snippet in a file.",
            parameters=_strict(
                {
                    "file_path": {"type": "string", "description": "File path to edit"},
                    "old_string": {"type": "string", "description": "Exact text to find"},
                    "new_string": {"type": "string", "description": "Replacement text"},
                },
                ["file_path", "old_string", "new_string"],
            ),
            execute=edit,
        ),
        ToolSpec(
            name="glob_search",
            description="Find files matching a glob pattern, e.g. '**/*.py'.",
            parameters=_strict(
                {
                    "pattern": {"type": "string", "description": "Glob pattern"},
                    "path": {"type": "string", "description": "Directory to search in (default: '.')"},
                },
                ["pattern"],
            ),
            execute=glob_search,
        ),
        ToolSpec(
            name="grep",
            description="Search file contents with a regex. Returns file:line: text.",
            parameters=_strict(
                {
                    "pattern": {"type": "string", "description": "Regular expression"},
                    "path": {"type": "string", "description": "Directory or file to search (default: '.')"},
                },
                ["pattern"],
            ),
            execute=grep,
        ),
        ToolSpec(
            name="todo_read",
            description="Read the current todo list.",
            parameters=_strict({}, []),
            execute=todo_read,
        ),
        ToolSpec(
            name="todo_write",
            description="Replace the todo list. Status is one of pending, in_progress, completed.",
            parameters=_strict(
                {
                    "todos": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "content": {"type": "string"},
                                "status": {"type": "string"},
                                "active_form": {"type": "string"},
                            },
                            "required": ["content", "status"],
                        },
                    }
                },
                ["todos"],
            ),
            execute=todo_write,
        ),
        done_tool(),
    ]


def _search_root(ctx: SandboxContext, path: str | None) -> Path:
    return ctx.resolve_path(path) if path else ctx.working_dir


def _walk_files(root: Path) -> list[Path]:
    """Recursively collect files under root (or root itself if it is a file)."""
    if root.is_file():
        return [root]
    return [fpath for fpath in sorted(root.rglob("*")) if fpath.is_file()]
