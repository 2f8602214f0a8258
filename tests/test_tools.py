"""Tests for ToolSpec, ToolRegistry and argument validation."""

from __future__ import annotations

import pytest

from agent_sdk.errors import DuplicateTool, InvalidArguments, MissingDependency, SchemaError, ToolExecutionError, UnknownTool
from agent_sdk.tools import ToolOutcome, ToolRegistry, ToolSpec
from agent_sdk.tools.dependencies import DependencyMap
from agent_sdk.tools.schema import ArgumentError, check_schema, empty_schema, matches_type, validate_arguments

ADD_SCHEMA = {
    "type": "object",
    "properties": {"a": {"type": "integer"}, "b": {"type": "integer"}},
    "required": ["a", "b"],
    "additionalProperties": False,
}


def _add(args, deps):
    return str(args["a"] + args["b"])


def _registry(*tools: ToolSpec) -> ToolRegistry:
    registry = ToolRegistry()
    registry.register_many(list(tools) or [ToolSpec(name="add", description="Add two ints", parameters=ADD_SCHEMA, execute=_add)])
    return registry


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class TestRegistry:
    def test_register_and_get(self):
        registry = _registry()
        assert "add" in registry
        assert len(registry) == 1
        assert registry.get("add").description == "Add two ints"

    def test_duplicate_name(self):
        registry = _registry()
        with pytest.raises(DuplicateTool) as exc_info:
            registry.register(ToolSpec(name="add", description="again", execute=_add))
        assert str(exc_info.value) == "duplicate tool registered: add"

    def test_unknown_tool(self):
        with pytest.raises(UnknownTool, match="tool not found: missing"):
            _registry().dispatch("missing", {})

    def test_definitions_keep_registration_order(self):
        registry = _registry(
            ToolSpec(name="b", description="second", execute=_add),
            ToolSpec(name="a", description="first", execute=_add),
        )
        assert [d.name for d in registry.definitions()] == ["b", "a"]
        assert registry.to_openai_tools()[0]["function"]["name"] == "b"

    def test_dispatch_text(self):
        outcome = _registry().dispatch("add", {"a": 2, "b": 3})
        assert outcome == ToolOutcome.text("5")
        assert outcome.is_done is False

    def test_dispatch_is_not_cached(self):
        calls = []

        def count(args, deps):
            calls.append(args)
            return "ok"

        registry = _registry(ToolSpec(name="count", description="counts", execute=count))
        registry.dispatch("count", {})
        registry.dispatch("count", {})
        assert len(calls) == 2

    def test_dispatch_done(self):
        registry = _registry(ToolSpec(name="finish", description="f", execute=lambda a, d: ToolOutcome.done("bye")))
        outcome = registry.dispatch("finish", {})
        assert outcome.is_done
        assert outcome.content == "bye"

    def test_invalid_arguments_not_executed(self):
        calls = []
        registry = _registry(
            ToolSpec(name="add", description="a", parameters=ADD_SCHEMA, execute=lambda a, d: calls.append(a) or "x")
        )
        with pytest.raises(InvalidArguments) as exc_info:
            registry.dispatch("add", {"a": 1})
        assert exc_info.value.field == "b"
        assert exc_info.value.tool == "add"
        assert calls == []

    def test_executor_error_wrapped(self):
        def boom(args, deps):
            raise KeyError("oops")

        registry = _registry(ToolSpec(name="boom", description="b", execute=boom))
        with pytest.raises(ToolExecutionError) as exc_info:
            registry.dispatch("boom", {})
        assert exc_info.value.tool == "boom"
        assert isinstance(exc_info.value.__cause__, KeyError)

    def test_bad_return_type(self):
        registry = _registry(ToolSpec(name="bad", description="b", execute=lambda a, d: 42))
        with pytest.raises(ToolExecutionError, match="int"):
            registry.dispatch("bad", {})

    def test_dependency_lookup(self):
        deps = DependencyMap()
        deps.insert("prefix", ">> ")
        registry = ToolRegistry(deps)
        registry.register(ToolSpec(name="p", description="p", execute=lambda a, d: d.get("prefix") + "hi"))
        assert registry.dispatch("p", {}).content == ">> hi"

    def test_per_call_dependencies(self):
        registry = _registry(ToolSpec(name="p", description="p", execute=lambda a, d: d.get("who")))
        call_deps = DependencyMap()
        call_deps.insert("who", "override")
        assert registry.dispatch("p", {}, call_deps).content == "override"

    def test_missing_dependency_passes_through(self):
        registry = _registry(ToolSpec(name="p", description="p", execute=lambda a, d: d.get("nope")))
        with pytest.raises(MissingDependency, match="dependency missing: nope"):
            registry.dispatch("p", {})


# ---------------------------------------------------------------------------
# Schema checks
# ---------------------------------------------------------------------------

class TestCheckSchema:
    def test_empty_schema_is_valid(self):
        check_schema(empty_schema())
        assert empty_schema()["additionalProperties"] is False
        assert empty_schema(strict=False)["additionalProperties"] is True

    @pytest.mark.parametrize(
        "schema",
        [
            "not a dict",
            {"type": "array"},
            {"type": "object", "required": "a"},
            {"type": "object", "required": [1]},
            {"type": "object", "properties": []},
            {"type": "object", "properties": {"a": "string"}},
            {"type": "object", "properties": {"a": {"type": "str"}}},
        ],
    )
    def test_malformed(self, schema):
        with pytest.raises(SchemaError):
            check_schema(schema)

    def test_tool_spec_checks_schema(self):
        with pytest.raises(SchemaError):
            ToolSpec(name="x", description="x", execute=_add, parameters={"type": "string"})

    @pytest.mark.parametrize(
        "prop",
        [
            {"type": "integer", "minimum": 0},
            {"type": "integer", "maximum": 10},
            {"type": "string", "pattern": "^a"},
            {"type": "string", "maxLength": 2},
            {"type": "string", "minLength": 1},
            {"type": "string", "format": "date"},
            {"oneOf": [{"type": "string"}, {"type": "integer"}]},
            {"$ref": "#/definitions/x"},
            {"type": "array", "items": {"type": "integer", "minimum": 0}},
            {"type": "object", "properties": {"inner": {"type": "string", "maxLength": 3}}},
        ],
    )
    def test_unsupported_keyword_rejected(self, prop):
        schema = {"type": "object", "properties": {"v": prop}}
        with pytest.raises(SchemaError, match="unsupported schema keyword"):
            check_schema(schema)

    def test_unsupported_root_keyword_rejected(self):
        with pytest.raises(SchemaError, match="unsupported schema keyword at <root>: minProperties"):
            check_schema({"type": "object", "properties": {}, "minProperties": 1})

    def test_additional_properties_schema_rejected(self):
        with pytest.raises(SchemaError):
            check_schema({"type": "object", "additionalProperties": {"type": "string"}})

    def test_enum_must_be_array(self):
        with pytest.raises(SchemaError):
            check_schema({"type": "object", "properties": {"v": {"enum": "a"}}})

    def test_unenforceable_schema_never_reaches_executor(self):
        calls = []
        with pytest.raises(SchemaError):
            ToolSpec(
                name="t",
                description="t",
                parameters={"type": "object", "properties": {"n": {"type": "integer", "minimum": 0}}},
                execute=lambda a, d: calls.append(a) or "ran",
            )
        assert calls == []

    def test_descriptions_allowed(self):
        check_schema(
            {
                "type": "object",
                "description": "root",
                "properties": {"v": {"type": "array", "description": "v", "items": {"type": "string"}}},
            }
        )


# ---------------------------------------------------------------------------
# Argument validation
# ---------------------------------------------------------------------------

TODO_SCHEMA = {
    "type": "object",
    "properties": {
        "todos": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "content": {"type": "string"},
                    "status": {"type": "string", "enum": ["pending", "completed"]},
                },
                "required": ["content", "status"],
            },
        }
    },
    "required": ["todos"],
}


class TestValidateArguments:
    def test_non_object_payload(self):
        with pytest.raises(ArgumentError) as exc_info:
            validate_arguments(empty_schema(), "{raw")
        assert exc_info.value.message == "arguments must be a JSON object"
        assert exc_info.value.path == ""

    def test_missing_required(self):
        with pytest.raises(ArgumentError, match="missing required field: b"):
            validate_arguments(ADD_SCHEMA, {"a": 1})

    def test_unknown_field_in_strict_schema(self):
        with pytest.raises(ArgumentError, match="unknown field: c"):
            validate_arguments(ADD_SCHEMA, {"a": 1, "b": 2, "c": 3})

    def test_unknown_field_allowed_when_not_strict(self):
        assert validate_arguments(empty_schema(strict=False), {"x": 1}) == {"x": 1}

    def test_type_mismatch(self):
        with pytest.raises(ArgumentError, match="field 'a' must be of type integer"):
            validate_arguments(ADD_SCHEMA, {"a": "1", "b": 2})

    def test_bool_is_not_integer(self):
        with pytest.raises(ArgumentError):
            validate_arguments(ADD_SCHEMA, {"a": True, "b": 2})

    def test_integral_float_is_integer(self):
        assert validate_arguments(ADD_SCHEMA, {"a": 1.0, "b": 2})["a"] == 1.0

    def test_nested_path(self):
        payload = {"todos": [{"content": "a", "status": "pending"}, {"content": "b", "status": "later"}]}
        with pytest.raises(ArgumentError) as exc_info:
            validate_arguments(TODO_SCHEMA, payload)
        assert exc_info.value.path == "todos[1].status"

    def test_nested_missing_field(self):
        with pytest.raises(ArgumentError, match=r"missing required field: todos\[0\].status"):
            validate_arguments(TODO_SCHEMA, {"todos": [{"content": "a"}]})

    def test_bool_does_not_match_integer_enum(self):
        schema = {"type": "object", "properties": {"n": {"enum": [1, 2]}}}
        with pytest.raises(ArgumentError, match="must be one of"):
            validate_arguments(schema, {"n": True})
        assert validate_arguments(schema, {"n": 1}) == {"n": 1}

    def test_integer_does_not_match_bool_enum(self):
        schema = {"type": "object", "properties": {"flag": {"enum": [True]}}}
        with pytest.raises(ArgumentError):
            validate_arguments(schema, {"flag": 1})

    def test_enum_rejection_skips_executor(self):
        calls = []
        registry = _registry(
            ToolSpec(
                name="t",
                description="t",
                parameters={"type": "object", "properties": {"n": {"enum": [1, 2]}}},
                execute=lambda a, d: calls.append(a) or "ran",
            )
        )
        with pytest.raises(InvalidArguments):
            registry.dispatch("t", {"n": True})
        assert calls == []

    def test_type_list(self):
        schema = {"type": "object", "properties": {"v": {"type": ["string", "null"]}}}
        validate_arguments(schema, {"v": None})
        validate_arguments(schema, {"v": "x"})
        with pytest.raises(ArgumentError):
            validate_arguments(schema, {"v": 3})


@pytest.mark.parametrize(
    "value,type_name,expected",
    [
        (1, "number", True),
        (1.5, "number", True),
        (True, "number", False),
        (False, "integer", False),
        (1.5, "integer", False),
        (True, "boolean", True),
        ([], "array", True),
        ({}, "object", True),
        (None, "null", True),
        ("", "string", True),
    ],
)
def test_matches_type(value, type_name, expected):
    assert matches_type(value, type_name) is expected
