"""Resolve named schemas into the shapes the typings template renders.

A schema is dispatched by shape, first match wins:
  $ref -> enum -> allOf -> properties -> array -> passthrough

Object-like results carry ``props``: a list of property groups. An allOf
yields one group per member (plus one for the schema's own properties) so the
template can render each as its own block instead of a flattened object.
"""

from __future__ import annotations

import re
from typing import Any

from .config import GeneratorConfig
from .ir import TypeDefinition
from .loader import resolve_ref
from .naming import resolve_type_name
from .type_expression import MAP_TYPE, get_type, is_required, literal, ref_name

DEFAULT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {"id": {"type": "number"}},
}

_IDENTIFIER = re.compile(r"[A-Za-z_$][\w$]*", re.ASCII)


class SchemaResolver:
    """Schema lookups bound to one document and one configuration."""

    def __init__(self, document: dict[str, Any], config: GeneratorConfig):
        self.document = document
        self.config = config

    def get_type(self, node: Any, namespace: str = "") -> str:
        return get_type(node, namespace, self.config.hooks.type_expression)

    def resolve_ref_object(self, node: Any, _seen: frozenset[str] = frozenset()) -> Any:
        """Dereference an internal ``#/...`` reference.

        The result is a copy of the referenced node whose ``type`` is replaced
        by the dereferenced node itself (or, when that node is again a
        reference, by the ``type`` its own resolution produced). External
        references and non-reference nodes are returned unchanged. A
        reference seen twice on one chain resolves to ``{"type": Name}``.
        """
        if not isinstance(node, dict) or not isinstance(node.get("$ref"), str):
            return node
        ref = node["$ref"]
        if ref.split("/")[0] != "#":
            return node
        if ref in _seen:
            return {"type": ref_name(node)}

        target = resolve_ref(self.document, ref)
        resolved = self.resolve_ref_object(target, _seen | {ref})
        result = dict(resolved) if isinstance(resolved, dict) else {}
        if isinstance(target, dict) and target.get("$ref"):
            result["type"] = resolved.get("type") if isinstance(resolved, dict) else resolved
        else:
            result["type"] = target
        return result

    def resolve_object(self, node: Any) -> Any:
        node = node if node is not None else {}
        if not isinstance(node, dict):
            return node
        if node.get("$ref"):
            return self.resolve_ref_object(node)
        if node.get("enum") is not None:
            return self.resolve_enum(node)
        if node.get("allOf"):
            return self.resolve_all_of(node)
        if isinstance(node.get("properties"), dict):
            return self.resolve_properties(node)
        if node.get("items") and node.get("type") == "array":
            return self.resolve_array(node)
        return node

    def resolve_enum(self, node: dict[str, Any]) -> dict[str, Any]:
        values = node["enum"]
        nominal = self.config.enum_style == "enum"
        if not isinstance(values, list) or not values:
            enum_type = "string"
        elif nominal:
            members = dict.fromkeys(
                f"{_enum_key(v)}={literal(str(v))}" for v in values
            )
            enum_type = "{" + ",".join(members) + "}"
        else:
            members = dict.fromkeys(
                literal(v) if isinstance(v, str) else self.get_type(v) for v in values
            )
            enum_type = " | ".join(members)
        return {"isEnum": nominal, "type": enum_type}

    def resolve_all_of(self, node: dict[str, Any]) -> dict[str, Any]:
        groups: list[list[dict[str, Any]]] = []
        parents: list[str] = []
        for item in node["allOf"]:
            if isinstance(item, dict) and item.get("$ref"):
                name = self.get_type(item).split("/")[-1]
                parents.append(name)
                groups.append([{**item, "type": name}])
            else:
                groups.append(self.get_props(item))
        if isinstance(node.get("properties"), dict):
            groups.append(self.get_props(node))
        return {"props": groups, "parents": parents}

    def resolve_properties(self, node: dict[str, Any]) -> dict[str, Any]:
        return {"props": [self.get_props(node)]}

    def resolve_array(self, node: dict[str, Any]) -> dict[str, Any]:
        items = node["items"]
        if isinstance(items, dict) and items.get("$ref"):
            return {"type": f"{ref_name(items)}[]"}
        # Element types are not synthesized here
        return {"type": "any[]"}

    def get_props(self, node: Any) -> list[dict[str, Any]]:
        """One property group: each property with its type, description and required flag."""
        if not isinstance(node, dict) or not isinstance(node.get("properties"), dict):
            return []
        props = []
        for key, schema in node["properties"].items():
            schema = schema if isinstance(schema, dict) and schema else DEFAULT_SCHEMA
            props.append({
                **schema,
                # Brackets and pipes break the generated signatures
                "name": re.sub(r"[\[|\]]", "", key),
                "type": self.get_type(schema),
                "desc": " ".join(s for s in (schema.get("title"), schema.get("description")) if s),
                "required": is_required(node, key),
            })
        return props

    def define(self, name: str, node: Any) -> TypeDefinition:
        """Typings entry for the named schema ``name``."""
        node = node if node is not None else {}
        result = self.resolve_object(node)
        if not isinstance(node, dict) or node.get("$ref") or result is node:
            # Aliases and plain schemas render as their type expression
            type_expression = self.get_type(node)
            result = {}
        else:
            type_expression = result.get("type") or MAP_TYPE
        return TypeDefinition(
            type_name=resolve_type_name(name),
            type=type_expression,
            props=result.get("props") or [],
            parent_groups=result.get("parents") or [],
            is_enum=bool(result.get("isEnum")),
        )


def _enum_key(value: Any) -> str:
    text = str(value)
    return text if _IDENTIFIER.fullmatch(text) else literal(text)
