"""Group operations by tag and build the render IR.

Two passes over the document:
  1. group_operations: every path x method lands under one or more tags
  2. build_services: per tag, synthesize names, paths and call shapes

Tag priority: tag_resolver hook, x-swagger-router-controller, tags,
operationId, second path segment. Operations with no tag are dropped.

Function names: function_name hook, sanitized operationId, or
method + path in title case:
  GET /pets/{petId}/toys  (no operationId) -> getPetsByPetIdToys
Repeats within one tag get _2, _3, ... in encounter order.

Output is sorted (operations by final path, types by name) so that
re-running on an unchanged document produces identical files.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterator

from .config import GeneratorConfig
from .errors import ServiceGenError, SynthesisError
from .ir import GenerationResult, OperationDescriptor, ServiceGroup, TypeDefinition, VendorMapping
from .loader import get_paths, get_schemas
from .naming import (
    base_prefix,
    camel_case,
    default_function_name,
    final_file_name,
    lower_first,
    replace_dot,
    resolve_function_name,
    resolve_type_name,
    strip_dot,
    upper_first,
)
from .schema_parser import get_body, get_file_fields, get_params, get_response
from .schema_resolver import SchemaResolver
from .type_expression import MAP_TYPE

logger = logging.getLogger(__name__)

METHODS = ("get", "put", "post", "delete", "patch")
ROUTER_FIELD = "x-swagger-router-controller"
VENDOR_FIELD = "x-antTech-description"

_PATH_VARIABLE = re.compile(r":([^/]*)|{([^}]*)}")
_TEMPLATE_VARIABLE = re.compile(r"\$\{([^}]*)\}")
_QUOTES = ("'", '"', "`")

TagTable = dict[str, list[dict[str, Any]]]


def iter_operations(document: dict[str, Any]) -> Iterator[tuple[str, str, dict[str, Any], dict[str, Any]]]:
    """Yield (path, method, path item, operation) in document order."""
    for path, path_item in get_paths(document).items():
        if not isinstance(path_item, dict):
            continue
        for method in METHODS:
            operation = path_item.get(method)
            if isinstance(operation, dict):
                yield path, method, path_item, operation


def default_tags(operation: dict[str, Any], path: str) -> list[str]:
    if operation.get(ROUTER_FIELD):
        return [operation[ROUTER_FIELD]]
    if operation.get("tags"):
        return list(operation["tags"])
    if operation.get("operationId"):
        return [operation["operationId"]]
    segments = path.replace("/", "", 1).split("/")
    if len(segments) > 1 and segments[1]:
        return [segments[1]]
    return []


def resolve_tags(config: GeneratorConfig, operation: dict[str, Any], path: str, method: str) -> list[str]:
    hook = config.hooks.tag_resolver
    tags = hook(operation, path, method) if hook else None
    if not isinstance(tags, (list, tuple)) or not tags:
        tags = default_tags(operation, path)
    return [t for t in tags if isinstance(t, str) and t]


def group_operations(document: dict[str, Any], config: GeneratorConfig) -> TagTable:
    """First pass: map each tag to the operations filed under it."""
    table: TagTable = {}
    for path, method, path_item, operation in iter_operations(document):
        tags = resolve_tags(config, operation, path, method)
        if not tags:
            logger.debug("No tag for %s %s, skipping", method.upper(), path)
            continue
        for tag_string in tags:
            tag = resolve_type_name(tag_string)
            if config.is_camel_case:
                tag = camel_case(tag)
            if not tag:
                continue
            table.setdefault(tag, []).append({
                **operation,
                "path": path,
                "method": method,
                "_path_parameters": path_item.get("parameters") or [],
            })
    return table


def merge_parameters(
    resolver: SchemaResolver,
    own: list[Any],
    shared: list[Any],
) -> list[Any]:
    """Operation parameters plus path-item ones not redeclared by (name, in)."""
    declared = set()
    for param in own:
        resolved = resolver.resolve_ref_object(param)
        if isinstance(resolved, dict):
            declared.add((resolved.get("name"), resolved.get("in")))
    merged = list(own)
    for param in shared:
        resolved = resolver.resolve_ref_object(param)
        if isinstance(resolved, dict) and (resolved.get("name"), resolved.get("in")) in declared:
            continue
        merged.append(param)
    return merged


def function_name(config: GeneratorConfig, api: dict[str, Any], prefix: str) -> str:
    hook = config.hooks.function_name
    if hook:
        custom = hook(api)
        if isinstance(custom, str) and custom:
            return custom
    if api.get("operationId"):
        return resolve_function_name(strip_dot(api["operationId"]), api["method"])
    return api["method"] + default_function_name(api["path"], prefix)


def params_type_name(config: GeneratorConfig, api: dict[str, Any], prefix: str) -> str:
    """Unqualified name of the params type, e.g. ``GetPetByIdParams``."""
    hook = config.hooks.type_name
    base = hook(api) if hook else None
    if not isinstance(base, str) or not base:
        base = function_name(config, api, prefix)
    return resolve_type_name(f"{upper_first(base)}Params")


def qualified(config: GeneratorConfig, name: str) -> str:
    return f"{config.namespace}.{name}" if config.namespace else name


def apply_prefix(config: GeneratorConfig, path: str, method: str, tag: str, name: str) -> str:
    """Prepend ``api_prefix`` to ``path``.

    A literal prefix the path already starts with is not repeated. A callable
    prefix is spliced in as a runtime expression unless it returns a quoted
    literal.
    """
    api_prefix = config.api_prefix
    if not api_prefix:
        return path

    if callable(api_prefix):
        prefix = str(api_prefix({
            "path": path,
            "method": method,
            "namespace": tag,
            "functionName": name,
        }) or "").strip()
        if not prefix:
            return path
        if not prefix.startswith(_QUOTES):
            return f"${{{prefix}}}{path}"
    else:
        prefix = api_prefix.strip()

    if prefix.startswith(_QUOTES):
        prefix = prefix[1:-1]
    if not prefix or path.startswith(prefix) or path.startswith(f"/{prefix}"):
        return path
    return f"{prefix}{path}"


def _vendor_bundle(api: dict[str, Any]) -> dict[str, Any] | None:
    bundle = (api.get("extensions") or {}).get(VENDOR_FIELD) or api.get(VENDOR_FIELD)
    return bundle if isinstance(bundle, dict) else None


def _has_header_params(resolver: SchemaResolver, parameters: list[Any]) -> bool:
    return any(
        isinstance(p, dict) and p.get("in") == "header"
        for p in (resolver.resolve_ref_object(param) for param in parameters)
    )


def _description(api: dict[str, Any], name: str) -> str:
    summary = api.get("summary") or ""
    description = api.get("description") or ""
    # Repeating a summary that only restates the function name adds nothing
    if name == summary:
        return description
    default = (api.get("responses") or {}).get("default")
    returns = ""
    if isinstance(default, dict) and default.get("description"):
        returns = f"Return Value: {default['description']}"
    return " ".join(s for s in (summary, description, returns) if s)


def describe_operation(
    resolver: SchemaResolver,
    tag: str,
    api: dict[str, Any],
    prefix: str,
    counters: dict[str, int],
) -> tuple[OperationDescriptor, VendorMapping | None]:
    """Build the descriptor of one operation filed under ``tag``."""
    config = resolver.config
    parameters = merge_parameters(resolver, api.get("parameters") or [], api["_path_parameters"])
    params = get_params(resolver, parameters, api["path"])
    body = get_body(resolver, api.get("requestBody"))
    response = get_response(resolver, api.get("responses"))
    file = get_file_fields(resolver, api.get("requestBody"))
    form_data = bool(body and "form-data" in (body.get("mediaType") or "")) or bool(file)

    name = function_name(config, api, prefix)
    if name and name in counters:
        counters[name] += 1
        name = f"{name}_{counters[name]}"
    elif name:
        counters[name] = 1

    formatted = _PATH_VARIABLE.sub(
        lambda m: "${" + (m.group(1) if m.group(1) is not None else m.group(2)) + "}",
        api["path"],
    )

    mapping = None
    vendor_version = None
    bundle = _vendor_bundle(api)
    if bundle:
        formatted = bundle.get("antTechApiName") or formatted
        vendor_version = bundle.get("antTechVersion")
        mapping = VendorMapping(
            rewritten_path=formatted,
            vendor_action=bundle.get("apiName"),
            vendor_product=bundle.get("productCode"),
            vendor_version=vendor_version,
        )

    # Positional aliases keep reserved or odd param names out of call sites
    path_params = [{**p, "alias": f"param{i}"} for i, p in enumerate(params.get("path", []))]
    alias_by_name = {p["name"]: p["alias"] for p in path_params}
    # One pass: a param may itself be named like an alias
    formatted = _TEMPLATE_VARIABLE.sub(
        lambda m: "${" + alias_by_name.get(m.group(1), m.group(1)) + "}",
        formatted,
    )

    final_params = dict(params)
    if path_params:
        final_params["path"] = path_params
    if "query" in final_params:
        final_params["query"] = [{**q, "isComplexType": q["isObject"]} for q in final_params["query"]]

    options = config.hooks.default_options(api) if config.hooks.default_options else None

    descriptor = OperationDescriptor(
        function_name=camel_case(name) if config.is_camel_case else name,
        type_name=qualified(config, params_type_name(config, api, prefix)),
        method=api["method"],
        path=apply_prefix(config, formatted, api["method"], tag, name),
        raw_path=api["path"],
        path_in_comment=formatted.replace("*", "&#42;"),
        params=final_params,
        body=body,
        file=file,
        response=response,
        desc=_description(api, name),
        summary=api.get("summary") or "",
        options=options if isinstance(options, dict) else {},
        has_header=_has_header_params(resolver, parameters) or bool(body and body.get("mediaType")),
        has_form_data=form_data,
        has_params=bool(final_params),
        has_path_variables="{" in formatted,
        has_api_prefix=bool(config.api_prefix),
        vendor_version=vendor_version,
    )
    return descriptor, mapping


def build_services(
    resolver: SchemaResolver,
    table: TagTable,
) -> tuple[list[ServiceGroup], list[VendorMapping]]:
    """Second pass: one ServiceGroup per non-empty tag, plus vendor mappings."""
    config = resolver.config
    prefix = base_prefix(list(get_paths(resolver.document)))
    services: list[ServiceGroup] = []
    mappings: list[VendorMapping] = []

    for index, (tag, apis) in enumerate(table.items()):
        counters: dict[str, int] = {}
        operations: list[OperationDescriptor] = []
        for api in apis:
            # Template variables in literal paths are not supported
            if "${" in api["path"]:
                continue
            try:
                descriptor, mapping = describe_operation(resolver, tag, api, prefix, counters)
            except ServiceGenError:
                logger.error("Failed to build %s %s under tag %r", api["method"].upper(), api["path"], tag)
                raise
            except Exception as exc:
                logger.exception("Failed to build %s %s under tag %r", api["method"].upper(), api["path"], tag)
                raise SynthesisError(tag, api["method"], api["path"]) from exc
            operations.append(descriptor)
            if mapping:
                mappings.append(mapping)

        if not operations:
            continue
        operations.sort(key=lambda d: d.path)

        base_name = replace_dot(tag) or f"api{index}"
        class_name = base_name
        if config.hooks.class_name:
            custom = config.hooks.class_name(tag)
            if isinstance(custom, str) and custom:
                class_name = custom
        file_name = final_file_name(f"{class_name}.ts")
        if config.hooks.file_name:
            custom = config.hooks.file_name(class_name)
            if isinstance(custom, str) and custom:
                file_name = custom

        services.append(ServiceGroup(
            class_name=class_name,
            instance_name=lower_first(base_name),
            file_name=file_name,
            operations=tuple(operations),
        ))

    return services, mappings


def build_type_definitions(resolver: SchemaResolver) -> list[TypeDefinition]:
    """Typings entries: named schemas plus one params type per operation."""
    config = resolver.config
    document = resolver.document
    prefix = base_prefix(list(get_paths(document)))
    types = [resolver.define(name, node) for name, node in get_schemas(document).items()]

    for path, method, path_item, operation in iter_operations(document):
        parameters = merge_parameters(
            resolver, operation.get("parameters") or [], path_item.get("parameters") or [],
        )
        props = []
        for parameter in parameters:
            param = resolver.resolve_ref_object(parameter)
            if not isinstance(param, dict) or param.get("in") == "header":
                continue
            props.append({
                "desc": param.get("description") or "",
                "name": param.get("name"),
                "required": bool(param.get("required")),
                "type": resolver.get_type(param.get("schema")),
            })
        if props:
            api = {**operation, "path": path, "method": method}
            types.append(TypeDefinition(
                type_name=params_type_name(config, api, prefix),
                type=MAP_TYPE,
                props=[props],
            ))

    types.sort(key=lambda t: t.type_name)
    return types


def build_context(document: dict[str, Any], config: GeneratorConfig | None = None) -> GenerationResult:
    """Run both passes and return the full IR for ``document``."""
    config = config or GeneratorConfig()
    hook = config.hooks.after_document_loaded
    if hook:
        replaced = hook(document)
        if isinstance(replaced, dict):
            document = replaced

    resolver = SchemaResolver(document, config)
    table = group_operations(document, config)
    services, mappings = build_services(resolver, table)
    types = build_type_definitions(resolver)

    logger.info(
        "Built %d services (%d operations), %d types",
        len(services), sum(len(s.operations) for s in services), len(types),
    )
    return GenerationResult(
        services=services,
        types=types,
        mappings=mappings,
        version=str((document.get("info") or {}).get("version", "")),
    )
