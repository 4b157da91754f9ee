# src/llm_client/schema.py

"""JSON Schema generation for structured output.

Pure data transformation driven by type introspection. Works on stdlib
dataclasses and pydantic models.

Dataclass fields carry their wire metadata in ``dataclasses.field(metadata=...)``:

- ``"json"``: ``"name,omitempty"``. First segment renames the field, ``"-"``
  skips it, ``omitempty`` drops it from ``required`` (and a reply that leaves
  it out parses to the field default, or its zero value when there is none).
- ``"schema"``: ``"description=Some text"`` (``;``-separated key=value pairs).
- ``"embedded": True``: flatten the nested record into the parent.

Example:
    >>> @dataclass
    ... class Person:
    ...     name: str = field(metadata={"json": "name"})
    ...     age: int = field(default=0, metadata={"json": "age,omitempty"})
    >>> generate_schema(Person)
    {'type': 'object', 'properties': {'name': {'type': 'string'},
     'age': {'type': 'integer'}}, 'required': ['name']}
"""

import dataclasses
import json
import logging
import types
from collections.abc import MutableSequence, Sequence, Set
from typing import Annotated, Any, TypeVar, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel, TypeAdapter, ValidationError

from .errors import ResultUnmarshalError, SchemaGenerationError, UnsupportedTypeError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ARRAY_ORIGINS = (list, tuple, set, frozenset, Sequence, MutableSequence, Set)


def generate_schema(target: Any) -> dict[str, Any]:
    """Build a JSON Schema describing ``target``'s type.

    Args:
        target: A dataclass or pydantic model class, or an instance of one.

    Returns:
        An object schema (``type``, ``properties`` and, when any field is
        mandatory, ``required``).

    Raises:
        SchemaGenerationError: If the target is not a record type.
        UnsupportedTypeError: If any field, at any depth, has a type with
            no JSON Schema mapping. ``path`` names the offending field.
    """
    tp = target if isinstance(target, type) else type(target)
    if not _is_record(tp):
        raise SchemaGenerationError(
            f"expected a dataclass or pydantic model, got {_kind_name(tp)}"
        )

    schema = _schema_for_type(tp, ())
    logger.debug(
        "Generated schema for %s: %d properties", tp.__name__, len(schema["properties"])
    )
    return schema


def parse_structured(target: type[T], content: str) -> T:
    """Parse model output into an instance of ``target``.

    Field names are mapped back from their external (tagged or aliased)
    names before validation, mirroring generate_schema.

    Raises:
        ResultUnmarshalError: If the content is not JSON or does not fit.
    """
    try:
        data = json.loads(clean_json_response(content))
    except json.JSONDecodeError as e:
        raise ResultUnmarshalError(f"response content is not valid JSON: {e}") from e

    try:
        return TypeAdapter(target).validate_python(_to_field_names(target, data))
    except ValidationError as e:
        raise ResultUnmarshalError(
            f"response content does not match {_kind_name(target)}: {e}"
        ) from e


def clean_json_response(content: str) -> str:
    """Strip whitespace and a surrounding Markdown code fence."""
    content = content.strip()
    if content.startswith("```json"):
        content = content[len("```json") :]
    elif content.startswith("```"):
        content = content[len("```") :]
    if content.endswith("```"):
        content = content[: -len("```")]
    return content.strip()


def parse_schema_tag(tag: str, key: str) -> str:
    """Return the value for ``key`` in a ``k1=v1;k2=v2`` tag, or ""."""
    prefix = key + "="
    for part in tag.split(";"):
        if part.startswith(prefix):
            return part[len(prefix) :]
    return ""


def _parse_json_tag(tag: str, default_name: str) -> tuple[str, list[str]]:
    name, *options = tag.split(",")
    return name or default_name, options


def _is_record(tp: Any) -> bool:
    # Parametrized generics (list[int]) pass isinstance(tp, type) on some versions
    return get_origin(tp) is None and isinstance(tp, type) and (
        dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel)
    )


def _kind_name(tp: Any) -> str:
    origin = get_origin(tp) or tp
    return getattr(origin, "__name__", None) or repr(tp)


def _unwrap(tp: Any) -> Any:
    """Drop Annotated metadata and a single Optional wrapper."""
    if get_origin(tp) is Annotated:
        tp = get_args(tp)[0]
    if get_origin(tp) in (Union, types.UnionType):
        members = [arg for arg in get_args(tp) if arg is not type(None)]
        if len(members) != 1:
            raise UnsupportedTypeError("union")
        return _unwrap(members[0])
    return tp


def _element_type(tp: Any) -> Any:
    args = get_args(tp)
    if get_origin(tp) is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return args[0]
        if args and all(arg == args[0] for arg in args):
            return args[0]
        raise UnsupportedTypeError("tuple")
    if len(args) != 1:
        raise UnsupportedTypeError(_kind_name(tp))
    return args[0]


def _schema_for_type(tp: Any, stack: tuple[type, ...]) -> dict[str, Any]:
    tp = _unwrap(tp)

    if _is_record(tp):
        if tp in stack:
            raise UnsupportedTypeError(f"recursive {tp.__name__}")
        if issubclass(tp, BaseModel):
            return _model_schema(tp, (*stack, tp))
        return _dataclass_schema(tp, (*stack, tp))

    if get_origin(tp) in _ARRAY_ORIGINS:
        return {"type": "array", "items": _schema_for_type(_element_type(tp), stack)}

    if get_origin(tp) is None and isinstance(tp, type):
        # bool is a subclass of int, check it first
        if issubclass(tp, bool):
            return {"type": "boolean"}
        if issubclass(tp, str):
            return {"type": "string"}
        if issubclass(tp, int):
            return {"type": "integer"}
        if issubclass(tp, float):
            return {"type": "number"}

    raise UnsupportedTypeError(_kind_name(tp))


def _field_schema(name: str, tp: Any, stack: tuple[type, ...]) -> dict[str, Any]:
    try:
        return _schema_for_type(tp, stack)
    except UnsupportedTypeError as e:
        raise e.with_parent(name) from e


def _object_schema(
    properties: dict[str, Any], required: list[str]
) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def _type_hints(tp: type) -> dict[str, Any]:
    try:
        return get_type_hints(tp)
    except NameError as e:
        raise SchemaGenerationError(
            f"cannot resolve annotations of {tp.__name__}: {e}"
        ) from e


def _dataclass_schema(tp: type, stack: tuple[type, ...]) -> dict[str, Any]:
    hints = _type_hints(tp)
    properties: dict[str, Any] = {}
    required: list[str] = []

    for f in dataclasses.fields(tp):
        if f.name.startswith("_"):
            continue
        field_type = hints.get(f.name, f.type)

        if f.metadata.get("embedded"):
            embedded = _field_schema(f.name, field_type, stack)
            if embedded.get("type") != "object":
                raise SchemaGenerationError(
                    f"embedded field '{f.name}' must be a dataclass or pydantic model"
                )
            properties.update(embedded["properties"])
            required.extend(embedded.get("required", []))
            continue

        tag = f.metadata.get("json", "")
        if tag == "-":
            continue
        name, options = _parse_json_tag(tag, f.name)
        if "omitempty" not in options:
            required.append(name)

        node = _field_schema(f.name, field_type, stack)
        description = parse_schema_tag(f.metadata.get("schema", ""), "description")
        if description:
            node["description"] = description
        properties[name] = node

    return _object_schema(properties, required)


def _model_schema(tp: type[BaseModel], stack: tuple[type, ...]) -> dict[str, Any]:
    properties: dict[str, Any] = {}
    required: list[str] = []

    for field_name, info in tp.model_fields.items():
        if info.exclude:
            continue
        name = info.alias or field_name
        if info.is_required():
            required.append(name)

        node = _field_schema(field_name, info.annotation, stack)
        if info.description:
            node["description"] = info.description
        properties[name] = node

    return _object_schema(properties, required)


def _to_field_names(tp: Any, data: Any) -> Any:
    """Rename external JSON keys to dataclass field names, recursively.

    Missing ``omitempty`` fields without a default get their zero value.
    """
    if data is None:
        return None
    try:
        tp = _unwrap(tp)
    except UnsupportedTypeError:
        return data

    if isinstance(data, dict) and _is_record(tp):
        if issubclass(tp, BaseModel):
            # pydantic handles aliases itself; only nested dataclasses need help
            out = dict(data)
            for field_name, info in tp.model_fields.items():
                key = info.alias or field_name
                if key in data:
                    out[key] = _to_field_names(info.annotation, data[key])
            return out

        hints = _type_hints(tp)
        out = {}
        for f in dataclasses.fields(tp):
            if f.name.startswith("_") or not f.init:
                continue
            field_type = hints.get(f.name, f.type)
            if f.metadata.get("embedded"):
                out[f.name] = _to_field_names(field_type, data)
                continue
            tag = f.metadata.get("json", "")
            if tag == "-":
                continue
            name, options = _parse_json_tag(tag, f.name)
            if name in data:
                out[f.name] = _to_field_names(field_type, data[name])
            elif "omitempty" in options and not _has_default(f):
                out[f.name] = _zero_value(field_type)
        return out

    if isinstance(data, list) and get_origin(tp) in _ARRAY_ORIGINS:
        args = get_args(tp)
        element = args[0] if args else Any
        return [_to_field_names(element, item) for item in data]

    return data


def _has_default(f: dataclasses.Field) -> bool:
    return (
        f.default is not dataclasses.MISSING
        or f.default_factory is not dataclasses.MISSING
    )


def _zero_value(tp: Any) -> Any:
    """Zero value for a field the model left out: "", 0, False, [] or None."""
    if get_origin(tp) is Annotated:
        tp = get_args(tp)[0]
    if get_origin(tp) in (Union, types.UnionType) and type(None) in get_args(tp):
        return None
    try:
        tp = _unwrap(tp)
    except UnsupportedTypeError:
        return None

    if _is_record(tp):
        if issubclass(tp, BaseModel):
            return {
                info.alias or name: _zero_value(info.annotation)
                for name, info in tp.model_fields.items()
                if info.is_required()
            }
        hints = _type_hints(tp)
        return {
            f.name: _zero_value(hints.get(f.name, f.type))
            for f in dataclasses.fields(tp)
            if f.init and not _has_default(f)
        }

    if get_origin(tp) in _ARRAY_ORIGINS:
        return []

    if get_origin(tp) is None and isinstance(tp, type):
        if issubclass(tp, bool):
            return False
        if issubclass(tp, str):
            return ""
        if issubclass(tp, int):
            return 0
        if issubclass(tp, float):
            return 0.0

    return None
