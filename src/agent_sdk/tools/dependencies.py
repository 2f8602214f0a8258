"""Injectable context objects handed to tool executors."""

from __future__ import annotations

import threading
from typing import Any, Iterator, TypeVar, Union, overload

from agent_sdk.errors import MissingDependency

T = TypeVar("T")
Key = Union[type, str]

_MISSING = object()


class DependencyMap:
    """Keyed container of context values (a sandbox handle, a client, ...).

    Keys are either a type or a string name. Overrides live in a separate
    layer and shadow base bindings at lookup time, so a test can swap a fake
    in without touching what the application registered.
    """

    def __init__(self) -> None:
        self._values: dict[Key, Any] = {}
        self._overrides: dict[Key, Any] = {}
        self._lock = threading.RLock()

    def insert(self, key: Key, value: Any) -> None:
        with self._lock:
            self._values[key] = value

    def provide(self, value: Any) -> None:
        """Bind ``value`` under its own type."""
        self.insert(type(value), value)

    def override(self, key: Key, value: Any) -> None:
        with self._lock:
            self._overrides[key] = value

    def clear_overrides(self) -> None:
        with self._lock:
            self._overrides.clear()

    @overload
    def get(self, key: type[T]) -> T: ...

    @overload
    def get(self, key: str) -> Any: ...

    @overload
    def get(self, key: Key, default: Any) -> Any: ...

    def get(self, key: Key, default: Any = _MISSING) -> Any:
        with self._lock:
            if key in self._overrides:
                return self._overrides[key]
            if key in self._values:
                return self._values[key]
        if default is _MISSING:
            raise MissingDependency(key)
        return default

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._overrides or key in self._values

    def keys(self) -> list[Key]:
        with self._lock:
            return list(dict.fromkeys([*self._values, *self._overrides]))

    def merged_with(self, other: DependencyMap) -> DependencyMap:
        """Return a new map where ``other``'s bindings and overrides win."""
        merged = DependencyMap()
        with self._lock:
            merged._values.update(self._values)
            merged._overrides.update(self._overrides)
        with other._lock:
            merged._values.update(other._values)
            merged._overrides.update(other._overrides)
        return merged

    def view(self) -> DependencyView:
        return DependencyView(self)

    def __repr__(self) -> str:
        names = [k if isinstance(k, str) else k.__name__ for k in self.keys()]
        return f"DependencyMap({names})"


class DependencyView:
    """Read-only window onto a DependencyMap, passed to executors."""

    __slots__ = ("_source",)

    def __init__(self, source: DependencyMap) -> None:
        self._source = source

    @overload
    def get(self, key: type[T]) -> T: ...

    @overload
    def get(self, key: str) -> Any: ...

    @overload
    def get(self, key: Key, default: Any) -> Any: ...

    def get(self, key: Key, default: Any = _MISSING) -> Any:
        if default is _MISSING:
            return self._source.get(key)
        return self._source.get(key, default)

    def __contains__(self, key: object) -> bool:
        return key in self._source

    def __iter__(self) -> Iterator[Key]:
        return iter(self._source.keys())
