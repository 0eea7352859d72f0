"""Intermediate representation handed to the render stage.

Key classes:
- OperationDescriptor: one callable service function (operation x tag)
- ServiceGroup: the operations emitted into one controller file
- TypeDefinition: one named declaration in the typings file
- VendorMapping: legacy vendor path record, side output only
- GenerationResult: everything one run produces
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class OperationDescriptor:
    """A single service function.

    Attributes:
        function_name: Name of the generated function, unique within its tag
        type_name: Namespace-qualified name of the params type
        method: Lower-case HTTP method
        path: Final path template, api prefix applied
        raw_path: Path as declared in the document
        path_in_comment: Path safe to embed in a block comment
        params: {"query" | "path" | "cookie": [param, ...]}
        body: Request body shape, or None
        file: File upload fields, or None
        response: {"mediaType": ..., "type": ...}
        desc: Free text description
        options: Default request options from the options hook
    """

    function_name: str
    type_name: str
    method: str
    path: str
    raw_path: str
    path_in_comment: str
    params: dict[str, list[dict[str, Any]]]
    body: dict[str, Any] | None
    file: list[dict[str, Any]] | None
    response: dict[str, Any]
    desc: str = ""
    summary: str = ""
    options: dict[str, Any] = field(default_factory=dict)
    has_header: bool = False
    has_form_data: bool = False
    has_params: bool = False
    has_path_variables: bool = False
    has_api_prefix: bool = False
    vendor_version: str | None = None


@dataclass(frozen=True)
class ServiceGroup:
    """Operations that share a tag and therefore a controller file."""

    class_name: str
    instance_name: str
    file_name: str
    operations: tuple[OperationDescriptor, ...]


@dataclass(frozen=True)
class TypeDefinition:
    """A named type in the typings file.

    ``props`` holds property groups; each group renders as its own block and
    the blocks are intersected. ``parent_groups`` names the referenced
    schemas an allOf inherits from.
    """

    type_name: str
    type: str
    props: list[list[dict[str, Any]]] = field(default_factory=list)
    parent_groups: list[str] = field(default_factory=list)
    is_enum: bool = False


@dataclass(frozen=True)
class VendorMapping:
    rewritten_path: str
    vendor_action: str | None
    vendor_product: str | None
    vendor_version: str | None


@dataclass(frozen=True)
class GenerationResult:
    """Full output of one generation run."""

    services: list[ServiceGroup]
    types: list[TypeDefinition]
    mappings: list[VendorMapping]
    version: str = ""

    @property
    def class_names(self) -> list[dict[str, str]]:
        """Entries for the index unit, one per emitted controller."""
        return [
            {"fileName": s.file_name.rsplit(".", 1)[0], "controllerName": s.class_name}
            for s in self.services
        ]
