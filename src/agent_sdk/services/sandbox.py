"""Filesystem sandbox shared by the bundled tools through the DependencyMap."""

from __future__ import annotations

import logging
import os
import threading
import time
from pathlib import Path

from pydantic import BaseModel

logger = logging.getLogger(__name__)

TODO_STATUSES = ("pending", "in_progress", "completed")


class SandboxViolation(ValueError):
    """A path resolved outside the sandbox root."""


class TodoItem(BaseModel):
    content: str
    status: str = "pending"
    active_form: str | None = None


class SandboxContext:
    def __init__(self, root_dir: Path | str | None = None, session_id: str | None = None) -> None:
        self.session_id = session_id or _short_session_id()
        root = Path(root_dir) if root_dir else Path("tmp") / "sandbox" / self.session_id
        root.mkdir(parents=True, exist_ok=True)
        self.root_dir = root.resolve()
        self.working_dir = self.root_dir
        self._todos: list[TodoItem] = []
        self._todo_lock = threading.Lock()
        logger.info("Sandbox %s at %s", self.session_id, self.root_dir)

    def resolve_path(self, path: str | Path) -> Path:
        """Resolve path relative to working_dir, refusing anything outside root_dir."""
        candidate = Path(path)
        unresolved = candidate if candidate.is_absolute() else self.working_dir / candidate
        resolved = Path(os.path.normpath(unresolved))
        if resolved != self.root_dir and self.root_dir not in resolved.parents:
            raise SandboxViolation(f"Path escapes sandbox: {path} -> {resolved}")
        return resolved

    def relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.root_dir).as_posix()
        except ValueError:
            return str(path)

    # --- file operations ---

    def read_file(self, path: str) -> str:
        return self.resolve_path(path).read_text(encoding="utf-8")

    def write_file(self, path: str, content: str) -> None:
        p = self.resolve_path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")
        logger.debug("Written: %s (%d bytes)", p, len(content))

    def list_directory(self, path: str = ".") -> list[str]:
        p = self.resolve_path(path)
        return sorted(entry.name + ("/" if entry.is_dir() else "") for entry in p.iterdir())

    def file_exists(self, path: str) -> bool:
        return self.resolve_path(path).exists()

    # --- todo list ---

    def read_todos(self) -> list[TodoItem]:
        with self._todo_lock:
            return list(self._todos)

    def write_todos(self, todos: list[TodoItem]) -> None:
        with self._todo_lock:
            self._todos = list(todos)


def _short_session_id() -> str:
    return format(int(time.time() * 1000), "x")
