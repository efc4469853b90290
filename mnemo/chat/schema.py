"""
Parameter schemas for tools and runtime coercion of model-supplied arguments.

Tools declare their parameters with the JSON-schema subset the models are
prompted with::

    {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "..."},
            "limit": {"type": "integer"}
        },
        "required": ["query"]
    }

Arguments arrive from the model as loosely typed JSON. ``coerce_arguments``
checks them against the parsed ``ParameterSpec`` list and returns a new dict of
typed values, or raises ``InvalidArguments`` listing every problem found.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from mnemo.errors import InvalidArguments

logger = logging.getLogger(__name__)


class ParamType(Enum):
    """Primitive parameter types understood by the dispatcher."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True)
class ParameterSpec:
    """A single named parameter of a tool."""

    name: str
    type: ParamType
    description: str = ""
    required: bool = False
    items: Optional[ParamType] = None
    enum: Optional[Tuple[Any, ...]] = None

    def describe(self) -> str:
        kind = self.type.value
        if self.type is ParamType.ARRAY and self.items:
            kind = f"array of {self.items.value}"
        flag = "required" if self.required else "optional"
        return f"{self.name} ({kind}, {flag})"


def _parse_type(value: Any, where: str) -> ParamType:
    try:
        return ParamType(value)
    except ValueError:
        raise ValueError(f"Unsupported parameter type {value!r} for {where}") from None


def parse_parameters(schema: Optional[Mapping]) -> List[ParameterSpec]:
    """
    Parse a JSON-schema object into parameter specs, in declaration order.

    Args:
        schema: Schema dict with ``properties`` and optional ``required``

    Returns:
        List of ParameterSpec

    Raises:
        ValueError: If the schema is malformed
    """
    if not schema:
        return []

    if schema.get("type", "object") != "object":
        raise ValueError("Tool parameters must be described by an object schema")

    properties = schema.get("properties", {})
    required = list(schema.get("required", []))

    missing = [name for name in required if name not in properties]
    if missing:
        raise ValueError(f"Required parameters without a definition: {missing}")

    specs = []
    for name, info in properties.items():
        param_type = _parse_type(info.get("type", "string"), name)
        items = None
        if param_type is ParamType.ARRAY and "items" in info:
            items = _parse_type(info["items"].get("type", "string"), f"{name}[]")
        enum = tuple(info["enum"]) if "enum" in info else None
        specs.append(ParameterSpec(
            name=name,
            type=param_type,
            description=info.get("description", ""),
            required=name in required,
            items=items,
            enum=enum
        ))
    return specs


def coerce_value(param_type: ParamType, value: Any) -> Any:
    """
    Coerce a single JSON value to ``param_type``.

    Integers widen to numbers and integral floats narrow to integers.
    Booleans are never accepted as numbers.

    Raises:
        TypeError: If the value cannot represent the type
    """
    if param_type is ParamType.STRING:
        if isinstance(value, str):
            return value
    elif param_type is ParamType.BOOLEAN:
        if isinstance(value, bool):
            return value
    elif param_type is ParamType.INTEGER:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
    elif param_type is ParamType.NUMBER:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if math.isfinite(value):
                return float(value)
    elif param_type is ParamType.ARRAY:
        if isinstance(value, (list, tuple)):
            return list(value)
    elif param_type is ParamType.OBJECT:
        if isinstance(value, Mapping):
            return dict(value)

    raise TypeError(f"expected {param_type.value}, got {type(value).__name__}")


def coerce_arguments(tool_name: str, specs: List[ParameterSpec], arguments: Any) -> Dict[str, Any]:
    """
    Validate and coerce call arguments against a tool's parameter specs.

    Optional parameters that are missing or null are left out so the handler
    default applies. Arguments the tool does not declare are dropped.

    Args:
        tool_name: Tool name, used in error messages
        specs: Parsed parameter specs
        arguments: Raw arguments from the model

    Returns:
        Dict of coerced argument values

    Raises:
        InvalidArguments: If anything is missing or mistyped
    """
    if not isinstance(arguments, Mapping):
        raise InvalidArguments(tool_name, [
            f"arguments must be an object, got {type(arguments).__name__}"
        ])

    known = {spec.name: spec for spec in specs}
    problems = []
    coerced: Dict[str, Any] = {}

    unknown = [name for name in arguments if name not in known]
    if unknown:
        logger.debug(f"Ignoring undeclared argument(s) for {tool_name}: {', '.join(sorted(unknown))}")

    for spec in specs:
        value = arguments.get(spec.name)
        if value is None:
            if spec.required:
                problems.append(f"missing required parameter '{spec.name}'")
            continue

        try:
            value = coerce_value(spec.type, value)
            if spec.type is ParamType.ARRAY and spec.items:
                value = [coerce_value(spec.items, item) for item in value]
        except TypeError as e:
            problems.append(f"parameter '{spec.name}': {e}")
            continue

        if spec.enum is not None and value not in spec.enum:
            allowed = ", ".join(repr(v) for v in spec.enum)
            problems.append(f"parameter '{spec.name}' must be one of {allowed}")
            continue

        coerced[spec.name] = value

    if problems:
        raise InvalidArguments(tool_name, problems)

    return coerced
