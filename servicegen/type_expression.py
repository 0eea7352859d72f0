"""Convert an OpenAPI schema node into a TypeScript type expression.

Handles:
- $ref (namespace-qualified type name)
- scalar families by type and format (number, Date, string, boolean, null)
- arrays, including tuple-style item lists
- enum literal unions, de-duplicated in declaration order
- oneOf/anyOf unions and allOf intersections
- inline object literals with required markers

The result is a pure function of (node, namespace). References are never
followed, so recursive documents cannot make synthesis loop.
"""

from __future__ import annotations

import json
from typing import Any, Callable

from .naming import resolve_type_name

ANY = "any"
MAP_TYPE = "Record<string, any>"

NUMBER_TYPES = frozenset({
    "integer", "long", "float", "double", "number", "int", "int32", "int64",
})
DATE_TYPES = frozenset({"Date", "date", "dateTime", "date-time", "datetime"})
STRING_TYPES = frozenset({"string", "email", "password", "url", "byte", "binary"})

TypeHook = Callable[[Any, str, Callable[..., str]], Any]


def ref_name(node: Any) -> Any:
    """Type name of a $ref node; anything else is returned unchanged."""
    if not isinstance(node, dict) or not node.get("$ref"):
        return node
    return resolve_type_name(node["$ref"].split("/")[-1])


def literal(value: Any, namespace: str = "") -> str:
    """Render one enum member as a literal type."""
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    return synthesize(value, namespace)


def literal_union(values: list[Any], namespace: str = "") -> str:
    members = dict.fromkeys(literal(v, namespace) for v in values)
    return " | ".join(members)


def is_required(schema: dict[str, Any], key: str) -> bool:
    """Any of the three required signals marks ``key`` as required."""
    required = schema.get("required")
    if required is True:
        return True
    if isinstance(required, list) and key in required:
        return True
    prop = (schema.get("properties") or {}).get(key)
    return isinstance(prop, dict) and bool(prop.get("required"))


def _quote_key(key: str) -> str:
    return "'" + key.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _array_type(node: dict[str, Any], namespace: str) -> str:
    items = node.get("items")
    if isinstance(node.get("schema"), dict):
        items = node["schema"].get("items")

    if isinstance(items, list):
        members = [
            synthesize(sub.get("schema", sub) if isinstance(sub, dict) else sub, namespace)
            for sub in items
        ]
        return f"[{','.join(members)}]"

    item_type = synthesize(items, namespace)
    if " | " in item_type:
        return f"({item_type})[]"
    return f"{item_type}[]"


def _object_type(node: dict[str, Any], namespace: str) -> str:
    properties = node.get("properties") or {}
    if not properties:
        return MAP_TYPE
    fields = "".join(
        f"{_quote_key(key)}{'' if is_required(node, key) else '?'}: "
        f"{synthesize(prop, namespace)}; "
        for key, prop in properties.items()
    )
    return f"{{ {fields}}}"


def synthesize(node: Any, namespace: str = "") -> str:
    """Default type expression for ``node``."""
    if node is None:
        return ANY
    if not isinstance(node, dict):
        # Already resolved, or a non-string enum member
        return node if isinstance(node, str) else json.dumps(node)
    if node.get("$ref"):
        return ".".join(s for s in (namespace, ref_name(node)) if s)

    kind = node.get("type")
    if isinstance(kind, list):
        # OpenAPI 3.1 type arrays
        return " | ".join(dict.fromkeys(synthesize({**node, "type": t}, namespace) for t in kind))
    if not isinstance(kind, str):
        kind = None
    fmt = node.get("format")
    if not isinstance(fmt, str):
        fmt = None
    if kind == "null":
        return "null"
    if fmt in NUMBER_TYPES:
        kind = "number"
    if node.get("enum") is not None:
        kind = "enum"

    if kind in NUMBER_TYPES:
        return "number"
    if kind in DATE_TYPES or (kind != "enum" and fmt in DATE_TYPES):
        return "Date"
    if kind in STRING_TYPES:
        return "string"
    if kind == "boolean":
        return "boolean"
    if kind == "array":
        return _array_type(node, namespace)
    if kind == "enum":
        values = node["enum"]
        return literal_union(values) if isinstance(values, list) and values else "string"

    for key in ("oneOf", "anyOf"):
        if node.get(key):
            return " | ".join(synthesize(item, namespace) for item in node[key])
    if node.get("allOf"):
        return "(" + " & ".join(synthesize(item, namespace) for item in node["allOf"]) + ")"

    if kind == "object" or isinstance(node.get("properties"), dict):
        return _object_type(node, namespace)
    return ANY


def get_type(node: Any, namespace: str = "", hook: TypeHook | None = None) -> str:
    """Type expression for ``node``, letting ``hook`` override the default.

    The hook is called as ``hook(node, namespace, synthesize)``; only a
    string result is used.
    """
    if hook is not None:
        custom = hook(node, namespace, synthesize)
        if isinstance(custom, str):
            return custom
    return synthesize(node, namespace)
