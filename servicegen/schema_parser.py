"""Extract call-site shapes from one operation.

Handles:
- query/path/cookie parameters ($ref resolved, header params dropped)
- path params implied by {name} tokens but never declared
- object-shaped params flagged for complex serialization
- request body (first media type, per-property entries for objects)
- multipart file fields (binary/base64, single or multiple)
- response type (default -> 200 -> 201, JSON preferred, envelope unwrap)
"""

from __future__ import annotations

import re
from typing import Any

from .loader import get_schemas
from .schema_resolver import DEFAULT_SCHEMA, SchemaResolver

PARAM_SOURCES = ("query", "path", "cookie")
FILE_FORMATS = ("binary", "base64")
MULTIPART = "multipart/form-data"

DEFAULT_PATH_PARAM: dict[str, Any] = {
    "in": "path",
    "name": None,
    "schema": {"type": "string"},
    "required": True,
    "isObject": False,
    "type": "string",
}

DEFAULT_RESPONSE: dict[str, Any] = {"mediaType": "*/*", "type": "any"}


def _is_object_param(resolver: SchemaResolver, param: dict[str, Any]) -> bool:
    """Direct object schema, or a $ref to a named object schema."""
    schema = param.get("schema") or {}
    if (schema.get("type") or param.get("type")) == "object":
        return True
    ref = (schema.get("$ref") or param.get("$ref") or "").split("/")[-1]
    target = get_schemas(resolver.document).get(ref) if ref else None
    return isinstance(target, dict) and target.get("type") == "object"


def get_params(
    resolver: SchemaResolver,
    parameters: list[Any] | None,
    path: str | None = None,
) -> dict[str, list[dict[str, Any]]]:
    """Group an operation's parameters by location."""
    namespace = resolver.config.namespace
    resolved = [resolver.resolve_ref_object(p) for p in parameters or []]
    groups: dict[str, list[dict[str, Any]]] = {}

    for source in PARAM_SOURCES:
        params = [
            {
                **p,
                "isObject": _is_object_param(resolver, p),
                "type": resolver.get_type(p.get("schema") or DEFAULT_SCHEMA, namespace),
            }
            for p in resolved
            if isinstance(p, dict) and p.get("in") == source
        ]
        if params:
            groups[source] = params

    if path:
        path_params = groups.setdefault("path", [])
        declared = {p.get("name") for p in path_params}
        for name in re.findall(r"\{(\w+)\}", path):
            if name not in declared:
                path_params.append({**DEFAULT_PATH_PARAM, "name": name})
                declared.add(name)
        # An empty group would make the operation look parameterised
        if not path_params:
            del groups["path"]

    return groups


def _is_file_schema(schema: dict[str, Any]) -> bool:
    if schema.get("format") in FILE_FORMATS:
        return True
    items = schema.get("items")
    return (
        schema.get("type") in ("string[]", "array")
        and isinstance(items, dict)
        and items.get("format") in FILE_FORMATS
    )


def _content(body: Any) -> dict[str, Any] | None:
    if not isinstance(body, dict):
        return None
    content = body.get("content")
    return content if isinstance(content, dict) and content else None


def get_body(resolver: SchemaResolver, request_body: Any) -> dict[str, Any] | None:
    """Describe the request body, or None when the operation has none."""
    body = resolver.resolve_ref_object(request_body)
    content = _content(body)
    if content is None:
        return None
    namespace = resolver.config.namespace

    media_type = next(iter(content))
    schema = (content[media_type] or {}).get("schema") or DEFAULT_SCHEMA
    if media_type == "*/*":
        media_type = ""
    required = body["required"] if isinstance(body.get("required"), bool) else False

    if schema.get("type") == "object" and schema.get("properties"):
        required_keys = schema.get("required") if isinstance(schema.get("required"), list) else []
        properties_list = [
            {
                "key": key,
                "schema": {
                    **prop,
                    "type": resolver.get_type(prop, namespace),
                    "required": key in required_keys,
                },
            }
            for key, prop in schema["properties"].items()
            # File fields go through get_file_fields instead
            if isinstance(prop, dict) and prop and not _is_file_schema(prop)
        ]
        return {
            "mediaType": media_type,
            **schema,
            "required": required,
            "propertiesList": properties_list,
        }

    return {
        "mediaType": media_type,
        "required": required,
        "type": resolver.get_type(schema, namespace),
    }


def resolve_file_fields(
    resolver: SchemaResolver,
    node: Any,
    _seen: set[Any] | None = None,
) -> list[dict[str, Any]]:
    """Collect binary properties of ``node``, following refs and allOf members."""
    seen = set() if _seen is None else _seen
    if not isinstance(node, dict):
        return []
    marker = node.get("$ref") or id(node)
    if marker in seen:
        return []
    seen.add(marker)

    resolved = resolver.resolve_object(node)
    if not isinstance(resolved, dict):
        return []

    fields: list[dict[str, Any]] = []
    for group in resolved.get("props") or []:
        for prop in group:
            if prop.get("$ref"):
                fields.extend(resolve_file_fields(resolver, {"$ref": prop["$ref"]}, seen))
            elif _is_file_schema(prop):
                fields.append({
                    "title": prop["name"],
                    "multiple": prop["type"] in ("string[]", "array"),
                })

    # A dereferenced node carries the referenced schema in "type"
    nested = resolved.get("type")
    if isinstance(nested, dict):
        fields.extend(resolve_file_fields(resolver, nested, seen))
    return fields


def get_file_fields(resolver: SchemaResolver, request_body: Any) -> list[dict[str, Any]] | None:
    """File upload fields of a multipart body, or None."""
    content = _content(resolver.resolve_ref_object(request_body))
    if content is None or MULTIPART not in content:
        return None
    fields = resolve_file_fields(resolver, (content[MULTIPART] or {}).get("schema"))
    return fields or None


def _pick_response(responses: dict[Any, Any]) -> Any:
    # YAML loads bare status codes as ints
    for code in ("default", "200", 200, "201", 201):
        if responses.get(code):
            return responses[code]
    return None


def _unwrap_envelope(resolver: SchemaResolver, schema: dict[str, Any]) -> dict[str, Any] | None:
    data_fields = resolver.config.data_fields
    if not data_fields or not schema.get("$ref"):
        return None
    target = get_schemas(resolver.document).get(schema["$ref"].split("/")[-1])
    if not isinstance(target, dict) or target.get("type") != "object" or "properties" not in target:
        return None
    properties = target.get("properties") or {}
    return next((properties[f] for f in data_fields if properties.get(f)), None)


def get_response(resolver: SchemaResolver, responses: dict[Any, Any] | None) -> dict[str, Any]:
    """Media type and type expression of the success response."""
    response = resolver.resolve_ref_object(_pick_response(responses or {}))
    if not isinstance(response, dict):
        return dict(DEFAULT_RESPONSE)
    content = response.get("content")
    if not isinstance(content, dict) or not content:
        return dict(DEFAULT_RESPONSE)

    media_type = "application/json" if "application/json" in content else next(iter(content))
    declared = (content[media_type] or {}).get("schema")
    schema = declared or DEFAULT_SCHEMA
    schema = _unwrap_envelope(resolver, schema) or schema

    if isinstance(schema.get("properties"), dict):
        required_keys = schema.get("required") if isinstance(schema.get("required"), list) else []
        schema = {
            **schema,
            "properties": {
                name: {**prop, "required": name in required_keys} if isinstance(prop, dict) else prop
                for name, prop in schema["properties"].items()
            },
        }

    return {
        "mediaType": media_type,
        "type": resolver.get_type(schema, resolver.config.namespace),
    }
