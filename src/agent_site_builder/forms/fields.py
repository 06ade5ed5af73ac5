"""Form field extraction from JSON Schema request bodies.

Walks the ``properties`` of a JSON Schema object node and produces one
:class:`FieldDescriptor` per property, in declaration order. The walk is
best-effort: absent or malformed input yields fewer (or zero) descriptors
and never raises, because the caller always has to render *something*.

A field's ``required`` flag comes from the ``required`` array of the schema
that *contains* it, never from the field's own node.
Its ``default`` is the node's own, or else the matching entry of the
containing object's ``default``.
"""

import logging
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

MAX_SCHEMA_DEPTH = 32
TEXTAREA_MIN_LENGTH = 200
SHORT_DESCRIPTION_LENGTH = 60


class FieldKind(str, Enum):
    """The input control a field renders as."""

    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    CHECKBOX = "checkbox"
    FILE = "file"
    DROPDOWN = "dropdown"


class FieldOption(BaseModel):
    """One choice of a dropdown field."""

    model_config = ConfigDict(frozen=True)

    value: Any
    label: str


class FieldDescriptor(BaseModel):
    """A single renderable input control derived from a schema property."""

    model_config = ConfigDict(frozen=True)

    name: str  # dot path for nested fields, e.g. options.timeout
    label: str
    kind: FieldKind
    required: bool = False
    hint: str = ""
    options: tuple[FieldOption, ...] | None = None
    default: Any = None
    depth: int = 0  # nesting level, renderers indent by it


# Substring heuristics, consulted only when the schema gives no structural
# signal. Checked in order; first match wins.
DESCRIPTION_HINTS = (
    (("upload", "file"), FieldKind.FILE),
)
NAME_HINTS = (
    (("keywords",), FieldKind.TEXT),
    (("tone",), FieldKind.DROPDOWN),
    (("length", "count"), FieldKind.NUMBER),
    (("query",), FieldKind.TEXTAREA),
)
QUESTION_HINTS = ("question", "inquiry")


def extract_fields(
    schema: Any,
    required: Any = None,
    *,
    max_depth: int | None = 0,
    heuristics: bool = True,
) -> list[FieldDescriptor]:
    """Convert a JSON Schema object node into form field descriptors.

    Args:
        schema: The container node whose ``properties`` become fields.
        required: Names of required fields at this level. Defaults to the
            container's own ``required`` array.
        max_depth: How many levels of nested objects to expand into
            ``parent.child`` fields. ``0`` gives one descriptor per immediate
            property; ``None`` expands fully (up to ``MAX_SCHEMA_DEPTH``).
        heuristics: Whether name/description substring heuristics may pick
            a kind when the schema itself does not.

    Returns:
        Descriptors in the order of the schema's ``properties``. Empty when
        the schema is absent, not an object, or has no properties.
    """
    limit = MAX_SCHEMA_DEPTH if max_depth is None else min(max(max_depth, 0), MAX_SCHEMA_DEPTH)
    fields: list[FieldDescriptor] = []
    _walk(schema, required, None, "", 0, limit, heuristics, frozenset(), fields)
    return fields


def _walk(
    schema: Any,
    required: Any,
    defaults: Any,
    prefix: str,
    depth: int,
    limit: int,
    heuristics: bool,
    ancestors: frozenset[int],
    out: list[FieldDescriptor],
) -> None:
    if not isinstance(schema, dict):
        return
    properties = schema.get("properties")
    if not isinstance(properties, dict):
        return
    if required is None:
        required = schema.get("required")
    required_names = _name_set(required)
    if not isinstance(defaults, dict):
        defaults = schema.get("default")
    inherited = defaults if isinstance(defaults, dict) else {}
    ancestors = ancestors | {id(schema)}

    for name, prop in properties.items():
        name = str(name)
        path = f"{prefix}{name}"
        node = prop if isinstance(prop, dict) else {}
        default = node["default"] if "default" in node else inherited.get(name)

        if _has_properties(node) and depth < limit:
            if id(node) in ancestors:
                logger.warning("Cyclic schema at %r, not expanded", path)
            else:
                _walk(node, None, default, f"{path}.", depth + 1, limit, heuristics, ancestors, out)
                continue

        out.append(
            describe_field(
                name,
                node,
                required=name in required_names,
                heuristics=heuristics,
                path=path,
                depth=depth,
                default=default,
            )
        )


def describe_field(
    name: str,
    schema: Any,
    *,
    required: bool = False,
    heuristics: bool = True,
    path: str | None = None,
    depth: int = 0,
    default: Any = None,
) -> FieldDescriptor:
    """Build the descriptor for one property node."""
    node = schema if isinstance(schema, dict) else {}
    kind = infer_kind(name, node, heuristics=heuristics)
    options = None
    if kind is FieldKind.DROPDOWN and isinstance(node.get("enum"), list):
        options = tuple(FieldOption(value=v, label=_literal_label(v)) for v in node["enum"])
    return FieldDescriptor(
        name=path or name,
        label=derive_label(name, node),
        kind=kind,
        required=required,
        hint=_description(node),
        options=options,
        depth=depth,
        default=node.get("default") if default is None else default,
    )


def infer_kind(name: str, schema: dict, heuristics: bool = True) -> FieldKind:
    """Pick the input kind; structural rules first, heuristics only as a fallback."""
    kind = _structural_kind(schema)
    if kind is None and heuristics:
        kind = _heuristic_kind(name, schema)
    return kind or FieldKind.TEXT


def _structural_kind(schema: dict) -> FieldKind | None:
    types = _types(schema)
    fmt = schema.get("format")
    if fmt == "binary":
        return FieldKind.FILE
    if "boolean" in types:
        return FieldKind.CHECKBOX
    if "integer" in types or "number" in types:
        return FieldKind.NUMBER
    if "string" in types:
        max_length = schema.get("maxLength")
        if _is_number(max_length) and max_length > TEXTAREA_MIN_LENGTH:
            return FieldKind.TEXTAREA
        if fmt == "textarea":
            return FieldKind.TEXTAREA
    if isinstance(schema.get("enum"), list):
        return FieldKind.DROPDOWN
    return None


def _heuristic_kind(name: str, schema: dict) -> FieldKind | None:
    lowered_name = name.lower()
    description = _description(schema).lower()
    for needles, kind in DESCRIPTION_HINTS:
        if any(n in description for n in needles):
            return kind
    for needles, kind in NAME_HINTS:
        if any(n in lowered_name for n in needles):
            return kind
    if any(n in description for n in QUESTION_HINTS):
        return FieldKind.TEXTAREA
    return None


def derive_label(name: str, schema: dict) -> str:
    """Title, else a short description, else the prettified field name."""
    title = schema.get("title")
    if isinstance(title, str) and title.strip():
        return title.strip()
    description = _description(schema).strip()
    if description and len(description) < SHORT_DESCRIPTION_LENGTH:
        return description[0].upper() + description[1:]
    return humanize(name)


def humanize(name: str) -> str:
    """``blogTopic`` -> ``Blog Topic``."""
    spaced = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", " ", name).strip()
    if not spaced:
        return name
    return spaced[0].upper() + spaced[1:]


# -- helpers ------------------------------------------------------------------


def _types(schema: dict) -> set[str]:
    declared = schema.get("type")
    if isinstance(declared, str):
        return {declared}
    if isinstance(declared, list):
        return {t for t in declared if isinstance(t, str)}
    return set()


def _has_properties(schema: dict) -> bool:
    properties = schema.get("properties")
    return isinstance(properties, dict) and bool(properties)


def _name_set(required: Any) -> set[str]:
    if isinstance(required, (list, tuple, set, frozenset)):
        return {r for r in required if isinstance(r, str)}
    return set()


def _description(schema: dict) -> str:
    description = schema.get("description")
    return description if isinstance(description, str) else ""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _literal_label(value: Any) -> str:
    # JSON spelling, matching what a browser shows for the same literal
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return "null"
    return str(value)
