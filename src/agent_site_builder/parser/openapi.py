"""OpenAPI document parser.

Loads OpenAPI 3.x / Swagger 2.0 documents describing an agent's invocation
surface and locates the request schema whose fields become the site's form.
"""

import copy
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel

from agent_site_builder.errors import SchemaError
from agent_site_builder.forms.fields import MAX_SCHEMA_DEPTH, FieldDescriptor, extract_fields

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH")
JSON_CONTENT_TYPE = "application/json"
MULTIPART_CONTENT_TYPE = "multipart/form-data"
CONTENT_TYPES = (JSON_CONTENT_TYPE, MULTIPART_CONTENT_TYPE)
PARAMS_PROPERTY = "params"
# counted in containers; one schema level can span several (properties map, allOf list)
MAX_NESTING = 4 * MAX_SCHEMA_DEPTH


class AgentOperation(BaseModel):
    """A single HTTP operation exposed by the agent."""

    method: str  # GET / POST / PUT / DELETE / PATCH
    path: str
    summary: str = ""
    request_schema: dict | None = None
    content_type: str = JSON_CONTENT_TYPE


def load_document(text: str) -> dict | None:
    """Parse YAML or JSON text; anything that is not a mapping yields None."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError:
        return None
    return data if isinstance(data, dict) else None


def parse_openapi(file_path: Path) -> dict | None:
    """Load an OpenAPI document from a YAML or JSON file."""
    return load_document(file_path.read_text(encoding="utf-8"))


def is_openapi(doc: Any) -> bool:
    if not isinstance(doc, dict):
        return False
    return "openapi" in doc or "swagger" in doc or isinstance(doc.get("paths"), dict)


def parse_operations(doc: dict) -> list[AgentOperation]:
    """List every operation in the document, in declaration order."""
    operations = []
    paths = doc.get("paths")
    if not isinstance(paths, dict):
        return operations

    for path, methods in paths.items():
        if not isinstance(methods, dict):
            continue
        for method, operation in methods.items():
            if str(method).upper() not in HTTP_METHODS or not isinstance(operation, dict):
                continue
            body = operation.get("requestBody")
            summary = operation.get("summary") or operation.get("description") or ""
            operations.append(
                AgentOperation(
                    method=str(method).upper(),
                    path=str(path),
                    summary=summary if isinstance(summary, str) else "",
                    request_schema=_parse_request_body(body),
                    content_type=_detect_content_type(body),
                )
            )
    return operations


def find_operation(doc: Any, method: str = "post") -> AgentOperation | None:
    """First operation using ``method`` that declares a request body schema."""
    if not is_openapi(doc):
        return None
    for operation in parse_operations(doc):
        if operation.method == method.upper() and operation.request_schema is not None:
            return operation
    return None


def find_request_schema(doc: Any, method: str = "post") -> dict | None:
    """Request body schema of the first operation using ``method``, refs resolved."""
    operation = find_operation(doc, method)
    if operation is None:
        return None
    return resolve_refs(operation.request_schema, doc)


def resolve_refs(
    node: Any,
    doc: dict,
    _stack: tuple[str, ...] = (),
    _depth: int = 0,
    _cache: dict | None = None,
) -> Any:
    """Return a copy of ``node`` with local ``#/...`` references inlined.

    Each reference target is resolved once; every ``$ref`` to it shares the
    result. A reference that leads back to itself, or nesting deeper than
    ``MAX_NESTING`` containers, raises SchemaError. References that cannot be
    resolved are left in place.
    """
    if _cache is None:
        _cache = {}
    if _depth > MAX_NESTING:
        raise SchemaError(f"Schema is nested deeper than {MAX_NESTING} levels")
    if isinstance(node, list):
        return [resolve_refs(item, doc, _stack, _depth + 1, _cache) for item in node]
    if not isinstance(node, dict):
        return node

    ref = node.get("$ref")
    if isinstance(ref, str) and ref.startswith("#/"):
        if ref in _stack:
            raise SchemaError(f"Cyclic reference {ref!r} via {' -> '.join(_stack)}")
        target = _lookup(doc, ref)
        if target is not None:
            if ref not in _cache:
                _cache[ref] = resolve_refs(target, doc, _stack + (ref,), _depth + 1, _cache)
            resolved = _cache[ref]
            siblings = {k: v for k, v in node.items() if k != "$ref"}
            if isinstance(resolved, dict) and siblings:
                resolved = {**resolved, **resolve_refs(siblings, doc, _stack, _depth, _cache)}
            return resolved

    return {key: resolve_refs(value, doc, _stack, _depth + 1, _cache) for key, value in node.items()}


def user_input_schema(request_schema: Any) -> dict | None:
    """Pick the subtree users fill in: ``params`` if it has properties, else the body."""
    if not isinstance(request_schema, dict):
        return None
    properties = request_schema.get("properties")
    if not isinstance(properties, dict):
        return None
    params = properties.get(PARAMS_PROPERTY)
    if isinstance(params, dict) and isinstance(params.get("properties"), dict):
        return params

    body = copy.copy(request_schema)
    body["properties"] = {k: v for k, v in properties.items() if k != PARAMS_PROPERTY}
    return body


def extract_user_inputs(
    doc: Any,
    *,
    max_depth: int | None = 0,
    heuristics: bool = True,
) -> list[FieldDescriptor]:
    """Form fields for the agent's POST operation; [] when there is none."""
    schema = user_input_schema(find_request_schema(doc))
    if schema is None:
        return []
    return extract_fields(schema, max_depth=max_depth, heuristics=heuristics)


def _lookup(doc: dict, ref: str) -> Any:
    node: Any = doc
    for part in ref[2:].split("/"):
        part = part.replace("~1", "/").replace("~0", "~")
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def _parse_request_body(body: Any) -> dict | None:
    if not isinstance(body, dict):
        return None
    content = body.get("content")
    if not isinstance(content, dict):
        return None
    media = next((content[ct] for ct in CONTENT_TYPES if isinstance(content.get(ct), dict)), None)
    if media is None:
        # Fallback: first available media type
        media = next((v for v in content.values() if isinstance(v, dict)), None)
    schema = media.get("schema") if media else None
    return schema if isinstance(schema, dict) else None


def _detect_content_type(body: Any) -> str:
    if not isinstance(body, dict) or not isinstance(body.get("content"), dict):
        return JSON_CONTENT_TYPE
    if MULTIPART_CONTENT_TYPE in body["content"]:
        return MULTIPART_CONTENT_TYPE
    return JSON_CONTENT_TYPE
