"""Map result column names onto attribute paths of dataclass models.

A model is a dataclass. A field's column name comes from its ``boil`` metadata
entry (``field(metadata={"boil": "name,bind"})``); without one the field name is
converted with :func:`un_title_case`. A name of ``-`` excludes the field, and the
``,bind`` option makes a dataclass-typed field be recursed into, its columns
prefixed with ``name.``.

The type of a recursed field is taken from its annotation. String annotations
(as under postponed evaluation) are looked up by name in the model's module;
a field whose ``default_factory`` is a dataclass also names its type.
"""

from __future__ import annotations

import dataclasses
import inspect
import re
import types
import typing
from functools import lru_cache
from typing import Any, Sequence

Path = tuple[str, ...]
StructMapping = dict[str, Path]

# Longest words first, so that e.g. GUID wins over UID and ID.
_SPECIAL_WORDS = (
    ("ASCII", "Ascii"),
    ("GUID", "Guid"),
    ("JSON", "Json"),
    ("UUID", "Uuid"),
    ("UTF8", "Utf8"),
    ("ACL", "Acl"),
    ("API", "Api"),
    ("CPU", "Cpu"),
    ("EOF", "Eof"),
    ("RAM", "Ram"),
    ("SLA", "Sla"),
    ("UDP", "Udp"),
    ("UID", "Uid"),
    ("URI", "Uri"),
    ("URL", "Url"),
    ("ID", "Id"),
    ("IP", "Ip"),
    ("UI", "Ui"),
)
_SPECIAL_RGX = re.compile("|".join(re.escape(word) for word, _ in _SPECIAL_WORDS))
_SPECIAL = dict(_SPECIAL_WORDS)

_NAME_RGX = re.compile(r"[A-Za-z_][\w.]*")
_TYPING_WORDS = frozenset(
    {"None", "Optional", "Union", "typing", "typing.Optional", "typing.Union"}
)


def get_boil_tag(field: dataclasses.Field) -> tuple[str, bool]:
    """Return the column name and whether the field is to be recursed into."""
    tag = field.metadata.get("boil", "")
    if not tag:
        return "", False
    comma = tag.find(",")
    if comma == -1:
        return tag, False
    if comma == 0:
        return "", True
    return tag[:comma], True


def un_title_case(name: str) -> str:
    """Undo title casing: "FunID" becomes "fun_id"."""
    if not name:
        return ""

    name = _SPECIAL_RGX.sub(lambda match: _SPECIAL[match.group(0)], name)

    words: list[str] = []
    last_up = True
    start = 0
    for i, char in enumerate(name):
        current_up = char.isupper()
        is_digit = char.isdigit()

        if not is_digit and not last_up and current_up:
            words.append(name[start:i])
            start = i

        if not is_digit and last_up and not current_up and i - 1 - start > 1:
            words.append(name[start : i - 1])
            start = i - 1

        last_up = current_up

    if name[start:]:
        words.append(name[start:])
    return "_".join(word.lower() for word in words)


def _concrete(tp: Any) -> Any:
    origin = typing.get_origin(tp)
    if origin is typing.Union or origin is types.UnionType:
        members = [arg for arg in typing.get_args(tp) if arg is not type(None)]
        if len(members) == 1:
            return members[0]
    return tp


def _lookup_name(cls: type, text: str) -> Any:
    names = [n for n in _NAME_RGX.findall(text) if n not in _TYPING_WORDS]
    if len(names) != 1:
        return None
    first, *rest = names[0].split(".")
    if first == cls.__name__:
        current: Any = cls
    else:
        module = inspect.getmodule(cls)
        if module is None:
            return None
        current = getattr(module, first, None)
    for part in rest:
        if current is None:
            return None
        current = getattr(current, part, None)
    return current


def _is_model(tp: Any) -> bool:
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


@lru_cache(maxsize=None)
def _nested_type(cls: type, name: str) -> type:
    field = next((f for f in dataclasses.fields(cls) if f.name == name), None)
    if field is None:
        raise TypeError(f"{cls.__name__} has no field {name}")

    annotation = field.type
    if isinstance(annotation, str):
        nested = _lookup_name(cls, annotation)
    else:
        nested = _concrete(annotation)
    if _is_model(nested):
        return nested

    factory = field.default_factory
    if factory is not dataclasses.MISSING and _is_model(factory):
        return factory

    raise TypeError(f"field {name} of {cls.__name__} is not a dataclass type")


def _walk(cls: type, prefix: str, path: Path, out: StructMapping) -> None:
    for field in dataclasses.fields(cls):
        tag, recurse = get_boil_tag(field)
        if not tag:
            tag = un_title_case(field.name)
        elif tag.startswith("-"):
            continue

        if prefix:
            tag = f"{prefix}.{tag}"

        field_path = path + (field.name,)
        if recurse:
            _walk(_nested_type(cls, field.name), tag, field_path, out)
            continue
        out[tag] = field_path


@lru_cache(maxsize=None)
def _cached_mapping(cls: type) -> tuple[tuple[str, Path], ...]:
    out: StructMapping = {}
    _walk(cls, "", (), out)
    return tuple(out.items())


def make_struct_mapping(cls: type) -> StructMapping:
    """Map every column name of a dataclass model to its attribute path."""
    if not isinstance(cls, type):
        cls = type(cls)
    if not dataclasses.is_dataclass(cls):
        raise TypeError(f"{cls.__name__} is not a dataclass")
    return dict(_cached_mapping(cls))


def bind_mapping(mapping: StructMapping, columns: Sequence[str]) -> list[Path | None]:
    """Find the attribute path for each column; None for columns the model lacks.

    A column with no exact match binds to the first mapped name ending in
    ``.column``.
    """
    result: list[Path | None] = []
    for column in columns:
        path = mapping.get(column)
        if path is None:
            suffix = "." + column
            path = next((p for name, p in mapping.items() if name.endswith(suffix)), None)
        result.append(path)
    return result


def _value_at(obj: Any, path: Path | None) -> Any:
    if path is None:
        return None
    current = obj
    for name in path[:-1]:
        nested = getattr(current, name)
        if nested is None:
            nested = _nested_type(type(current), name)()
        current = nested
    return getattr(current, path[-1])


def values_from_mapping(obj: Any, mapping: Sequence[Path | None]) -> list[Any]:
    """Read the values at each path; a missing nested object reads as its defaults."""
    return [_value_at(obj, path) for path in mapping]


def assign_from_mapping(obj: Any, mapping: Sequence[Path | None], row: Sequence[Any]) -> None:
    """Store each row value at its path, creating missing nested objects."""
    if len(mapping) != len(row):
        raise ValueError(f"mapping has {len(mapping)} columns but row has {len(row)} values")
    for path, value in zip(mapping, row):
        if path is None:
            continue
        current = obj
        for name in path[:-1]:
            nested = getattr(current, name)
            if nested is None:
                nested = _nested_type(type(current), name)()
                setattr(current, name, nested)
            current = nested
        setattr(current, path[-1], value)