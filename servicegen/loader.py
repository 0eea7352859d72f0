"""Load an OpenAPI document and look things up in it.

Accepts a local .json/.yaml/.yml file or an http(s) URL.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import httpx
import yaml

from .errors import DocumentIntegrityError, UnsupportedDocumentError

logger = logging.getLogger(__name__)


def _parse(text: str, source: str) -> dict[str, Any]:
    try:
        if source.endswith(".json"):
            doc = json.loads(text)
        else:
            # YAML is a superset of JSON, so this also covers extensionless URLs.
            doc = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise UnsupportedDocumentError(f"{source}: cannot parse document: {exc}") from exc
    if not isinstance(doc, dict):
        raise UnsupportedDocumentError(f"{source}: document is not a mapping")
    if "swagger" in doc:
        raise UnsupportedDocumentError(
            f"{source}: Swagger {doc['swagger']} documents must be converted to OpenAPI 3 first"
        )
    return doc


def load_document(source: str | Path, authorization: str | None = None) -> dict[str, Any]:
    """Load an OpenAPI 3 document from disk or over HTTP."""
    source = str(source)
    if source.startswith(("http://", "https://")):
        headers = {"authorization": authorization} if authorization else {}
        logger.info("Fetching %s", source)
        resp = httpx.get(source, headers=headers, timeout=30, follow_redirects=True)
        resp.raise_for_status()
        return _parse(resp.text, source)

    with open(source, encoding="utf-8") as f:
        return _parse(f.read(), source)


def get_paths(doc: dict[str, Any]) -> dict[str, Any]:
    """Extract paths from the document."""
    return doc.get("paths") or {}


def get_schemas(doc: dict[str, Any]) -> dict[str, Any]:
    """Extract component schemas from the document."""
    return (doc.get("components") or {}).get("schemas") or {}


def resolve_ref(doc: dict[str, Any], ref: str) -> Any:
    """Resolve an internal ``#/...`` pointer in the document."""
    node: Any = doc
    for part in ref.split("/")[1:]:
        part = part.replace("~1", "/").replace("~0", "~")
        if isinstance(node, list):
            if not part.isdecimal() or int(part) >= len(node):
                raise DocumentIntegrityError(ref)
            node = node[int(part)]
            continue
        if not isinstance(node, dict) or node.get(part) is None:
            raise DocumentIntegrityError(ref)
        node = node[part]
    return node
