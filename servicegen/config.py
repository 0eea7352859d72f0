"""Generator options and override hooks.

Every hook is optional. A hook that returns None, an empty value, or a value
of the wrong type hands control back to the default behaviour.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable

import yaml

ENUM_STYLES = ("string-literal", "enum")


@dataclass
class Hooks:
    # (operation, path, method) -> list of tag strings
    tag_resolver: Callable[[dict[str, Any], str, str], Any] | None = None
    # (operation data incl. "path" and "method") -> function name
    function_name: Callable[[dict[str, Any]], Any] | None = None
    # (operation data) -> params type name, without namespace
    type_name: Callable[[dict[str, Any]], Any] | None = None
    # (tag) -> controller class name
    class_name: Callable[[str], Any] | None = None
    # (class name) -> output file name
    file_name: Callable[[str], Any] | None = None
    # (node, namespace, default synthesizer) -> type expression
    type_expression: Callable[..., Any] | None = None
    # (operation) -> default request options
    default_options: Callable[[dict[str, Any]], Any] | None = None
    # (document) -> replacement document
    after_document_loaded: Callable[[dict[str, Any]], Any] | None = None


@dataclass
class GeneratorConfig:
    """Options recognised by the generator.

    ``api_prefix`` is either a literal string or a callable receiving
    ``{"path", "method", "namespace", "functionName"}``; a callable result is
    a runtime expression unless it is wrapped in quotes.

    With ``is_camel_case`` the repeat suffix of a function name is case-folded
    along with the rest, so a second ``listUsers`` becomes ``listUsers2``
    rather than ``listUsers_2``.
    """

    namespace: str = "API"
    enum_style: str = "string-literal"
    nullable: bool = False
    is_camel_case: bool = False
    data_fields: list[str] | None = None
    api_prefix: str | Callable[[dict[str, Any]], str] | None = None
    project_name: str = "api"
    request_lib_path: str | None = None
    request_options_type: str = "{[key: string]: any}"
    templates_folder: Path | None = None
    hooks: Hooks = field(default_factory=Hooks)

    def __post_init__(self) -> None:
        if self.enum_style not in ENUM_STYLES:
            raise ValueError(
                f"enum_style must be one of {', '.join(ENUM_STYLES)}, got {self.enum_style!r}"
            )
        if self.templates_folder is not None:
            self.templates_folder = Path(self.templates_folder)


# Options that can be set from a config file; hooks are code-only.
_FILE_OPTIONS = {f.name for f in fields(GeneratorConfig)} - {"hooks"}


def load_config(path: Path, **overrides: Any) -> GeneratorConfig:
    """Load options from a YAML or JSON file, then apply overrides."""
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping of options")

    # camelCase keys are accepted as well
    aliases = {
        "enumStyle": "enum_style",
        "isCamelCase": "is_camel_case",
        "dataFields": "data_fields",
        "apiPrefix": "api_prefix",
        "projectName": "project_name",
        "requestLibPath": "request_lib_path",
        "requestOptionsType": "request_options_type",
        "templatesFolder": "templates_folder",
    }
    options: dict[str, Any] = {}
    for key, value in data.items():
        name = aliases.get(key, key)
        if name not in _FILE_OPTIONS:
            raise ValueError(f"{path}: unknown option {key!r}")
        options[name] = value

    options.update({k: v for k, v in overrides.items() if v is not None})
    return GeneratorConfig(**options)
