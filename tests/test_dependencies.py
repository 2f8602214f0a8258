"""Tests for DependencyMap and DependencyView."""

from __future__ import annotations

import pytest

from agent_sdk.errors import MissingDependency
from agent_sdk.tools.dependencies import DependencyMap


class Client:
    def __init__(self, name: str) -> None:
        self.name = name


def test_typed_and_named_keys():
    deps = DependencyMap()
    client = Client("real")
    deps.provide(client)
    deps.insert("region", "eu")

    assert deps.get(Client) is client
    assert deps.get("region") == "eu"
    assert Client in deps
    assert "region" in deps


def test_missing_key_raises():
    deps = DependencyMap()
    with pytest.raises(MissingDependency) as exc_info:
        deps.get(Client)
    assert str(exc_info.value) == "dependency missing: Client"
    assert exc_info.value.key is Client


def test_default_value():
    assert DependencyMap().get("nope", None) is None


def test_insert_replaces():
    deps = DependencyMap()
    deps.insert("k", 1)
    deps.insert("k", 2)
    assert deps.get("k") == 2


def test_override_shadows_and_clears():
    deps = DependencyMap()
    deps.provide(Client("real"))
    deps.override(Client, Client("fake"))
    assert deps.get(Client).name == "fake"

    deps.clear_overrides()
    assert deps.get(Client).name == "real"


def test_merged_with_prefers_other():
    base = DependencyMap()
    base.insert("a", 1)
    base.insert("b", 1)
    extra = DependencyMap()
    extra.insert("b", 2)
    extra.insert("c", 2)

    merged = base.merged_with(extra)

    assert merged.get("a") == 1
    assert merged.get("b") == 2
    assert merged.get("c") == 2
    # sources untouched
    assert base.get("b") == 1
    assert "c" not in base


def test_keys_deduplicated():
    deps = DependencyMap()
    deps.insert("a", 1)
    deps.override("a", 2)
    deps.override("b", 3)
    assert deps.keys() == ["a", "b"]


def test_view_is_read_only():
    deps = DependencyMap()
    deps.insert("a", 1)
    view = deps.view()

    assert view.get("a") == 1
    assert view.get("missing", "fallback") == "fallback"
    assert "a" in view
    assert list(view) == ["a"]
    assert not hasattr(view, "insert")
    with pytest.raises(AttributeError):
        view.extra = 1


def test_view_sees_later_changes():
    deps = DependencyMap()
    view = deps.view()
    deps.insert("late", True)
    assert view.get("late") is True


def test_repr_lists_keys():
    deps = DependencyMap()
    deps.provide(Client("x"))
    deps.insert("region", "eu")
    assert repr(deps) == "DependencyMap(['Client', 'region'])"
