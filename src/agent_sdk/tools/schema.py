"""JSON-schema checks shared by the provider contract and local validation.

Only the subset of JSON schema that tool definitions use is supported:
``type`` (a name or a list of names), ``properties``, ``required``,
``additionalProperties``, ``items``, ``enum`` and ``description``. Schemas
using any other keyword are rejected by ``check_schema``.
"""

from __future__ import annotations

from typing import Any

from agent_sdk.errors import SchemaError

_TYPE_NAMES = {"string", "integer", "number", "boolean", "object", "array", "null"}
_KEYWORDS = {"type", "properties", "required", "additionalProperties", "items", "enum", "description"}


class ArgumentError(ValueError):
    """Validation failure for one value; ``path`` locates it in the payload."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = path
        self.message = message


def empty_schema(strict: bool = True) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {},
        "required": [],
        "additionalProperties": not strict,
    }


def check_schema(schema: Any) -> None:
    """Raise SchemaError unless ``schema`` is a usable object schema.

    Keywords outside the supported subset are rejected rather than ignored,
    so local validation never accepts a payload the provider would refuse.
    """
    if not isinstance(schema, dict):
        raise SchemaError("tool schema must be a JSON object")
    if schema.get("type") != "object":
        raise SchemaError("tool schema must declare type=object")
    _check_node(schema, "")


def _check_node(node: dict[str, Any], path: str) -> None:
    where = path or "<root>"
    unsupported = sorted(set(node) - _KEYWORDS)
    if unsupported:
        raise SchemaError(f"unsupported schema keyword at {where}: {unsupported[0]}")

    declared = node.get("type")
    names = declared if isinstance(declared, list) else [declared] if declared else []
    unknown = [n for n in names if n not in _TYPE_NAMES]
    if unknown:
        raise SchemaError(f"property '{where}' has unknown type: {unknown[0]}")

    required = node.get("required", [])
    if not isinstance(required, list) or not all(isinstance(r, str) for r in required):
        raise SchemaError(f"required at {where} must be an array of strings")
    if not isinstance(node.get("additionalProperties", False), bool):
        raise SchemaError(f"additionalProperties at {where} must be a boolean")
    if "enum" in node and not isinstance(node["enum"], list):
        raise SchemaError(f"enum at {where} must be an array")

    properties = node.get("properties", {})
    if not isinstance(properties, dict):
        raise SchemaError(f"properties at {where} must be a JSON object")
    for key, prop in properties.items():
        if not isinstance(prop, dict):
            raise SchemaError(f"property '{key}' must be a JSON object")
        _check_node(prop, _join(path, key))

    if "items" in node:
        if not isinstance(node["items"], dict):
            raise SchemaError(f"items at {where} must be a JSON object")
        _check_node(node["items"], f"{path}[]")


def validate_arguments(schema: dict[str, Any], args: Any) -> dict[str, Any]:
    """Validate a tool-call payload and return it as a dict.

    Raises ArgumentError naming the first offending field.
    """
    if not isinstance(args, dict):
        raise ArgumentError("", "arguments must be a JSON object")
    _validate_value(schema, args, "")
    return args


def _validate_value(schema: dict[str, Any], value: Any, path: str) -> None:
    declared = schema.get("type")
    if declared is not None:
        names = declared if isinstance(declared, list) else [declared]
        if not any(matches_type(value, name) for name in names):
            expected = " or ".join(names)
            raise ArgumentError(path, f"field '{path or '<root>'}' must be of type {expected}")

    if "enum" in schema and not any(_json_equal(value, option) for option in schema["enum"]):
        raise ArgumentError(path, f"field '{path}' must be one of {schema['enum']}")

    if isinstance(value, dict):
        _validate_object(schema, value, path)
    elif isinstance(value, list) and isinstance(schema.get("items"), dict):
        for index, item in enumerate(value):
            _validate_value(schema["items"], item, f"{path}[{index}]")


def _validate_object(schema: dict[str, Any], value: dict[str, Any], path: str) -> None:
    properties = schema.get("properties") or {}

    for name in schema.get("required") or []:
        if name not in value:
            field = _join(path, name)
            raise ArgumentError(field, f"missing required field: {field}")

    if schema.get("additionalProperties") is False:
        for key in value:
            if key not in properties:
                field = _join(path, key)
                raise ArgumentError(field, f"unknown field: {field}")

    for key, item in value.items():
        field_schema = properties.get(key)
        if isinstance(field_schema, dict):
            _validate_value(field_schema, item, _join(path, key))


def matches_type(value: Any, type_name: str) -> bool:
    # bool is an int subclass in Python but never a JSON number
    if type_name == "string":
        return isinstance(value, str)
    if type_name == "integer":
        if isinstance(value, bool):
            return False
        return isinstance(value, int) or (isinstance(value, float) and value.is_integer())
    if type_name == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if type_name == "boolean":
        return isinstance(value, bool)
    if type_name == "object":
        return isinstance(value, dict)
    if type_name == "array":
        return isinstance(value, list)
    if type_name == "null":
        return value is None
    return True


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _json_equal(left: Any, right: Any) -> bool:
    # True == 1 in Python; JSON keeps booleans and numbers apart
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, list) and isinstance(right, list):
        return len(left) == len(right) and all(_json_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(_json_equal(left[k], right[k]) for k in left)
    return left == right
