"""Turn flat form submissions back into nested request bodies."""

import math
from collections.abc import Iterable, Mapping
from typing import Any

from agent_site_builder.forms.fields import FieldDescriptor, FieldKind

TRUTHY = {"true", "on", "1", "yes"}
FALSY = {"false", "off", "0", "no", ""}


def unflatten(flat: Mapping[str, Any], sep: str = ".") -> dict:
    """Rebuild a nested dict from dot-path keys.

    ``{"options.timeout": "30"}`` becomes ``{"options": {"timeout": "30"}}``.
    Later keys win: a non-dict value in the way of a deeper key is replaced
    by a dict, and a shorter key replaces an earlier subtree.
    """
    nested: dict = {}
    for key, value in flat.items():
        parts = str(key).split(sep)
        node = nested
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value
    return nested


def flatten(nested: Mapping[str, Any], sep: str = ".", prefix: str = "") -> dict:
    """Inverse of :func:`unflatten`; empty dicts are kept as leaves."""
    flat: dict = {}
    for key, value in nested.items():
        path = f"{prefix}{key}"
        if isinstance(value, Mapping) and value:
            flat.update(flatten(value, sep, f"{path}{sep}"))
        else:
            flat[path] = value
    return flat


def coerce_value(kind: FieldKind, raw: Any) -> Any:
    """Best-effort conversion of a raw form value; unparsable input is returned as is."""
    if not isinstance(raw, str):
        return raw
    text = raw.strip()
    if kind is FieldKind.NUMBER:
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return raw
        return number if math.isfinite(number) else raw
    if kind is FieldKind.CHECKBOX:
        lowered = text.lower()
        if lowered in TRUTHY:
            return True
        if lowered in FALSY:
            return False
    return raw


def form_defaults(fields: Iterable[FieldDescriptor]) -> dict:
    """Initial form values keyed by field name, taken from schema defaults.

    An object default on a field that was not expanded is flattened into the
    dot paths below it. File fields never get a default.
    """
    values: dict = {}
    for field in fields:
        if field.default is None or field.kind is FieldKind.FILE:
            continue
        if isinstance(field.default, Mapping) and field.default:
            values.update(flatten(field.default, prefix=f"{field.name}."))
        else:
            values[field.name] = field.default
    return values


def build_payload(fields: Iterable[FieldDescriptor], values: Mapping[str, Any]) -> dict:
    """Coerce submitted values by field kind, drop empty optional ones, and nest them.

    Schema defaults fill in names the submission leaves out. Values for names
    that no descriptor covers are passed through unchanged.
    """
    fields = list(fields)
    by_name = {f.name: f for f in fields}
    flat: dict = {}
    for name, raw in {**form_defaults(fields), **values}.items():
        field = by_name.get(name)
        if field is None:
            flat[name] = raw
            continue
        if not field.required and (raw is None or raw == ""):
            continue
        flat[name] = coerce_value(field.kind, raw)
    return unflatten(flat)
