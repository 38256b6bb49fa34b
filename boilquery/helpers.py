"""Small helpers working on dataclass models."""

from __future__ import annotations

import dataclasses
import decimal
from typing import Any, Sequence

from .mapping import get_boil_tag

_SCALARS = (
    bool,
    int,
    float,
    complex,
    decimal.Decimal,
    str,
    bytes,
    bytearray,
    list,
    tuple,
    dict,
    set,
    frozenset,
)


def _is_zero(value: Any) -> bool:
    if value is None:
        return True
    is_zero = getattr(value, "is_zero", None)
    if callable(is_zero):
        return bool(is_zero())
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return all(_is_zero(getattr(value, f.name)) for f in dataclasses.fields(value))
    if isinstance(value, _SCALARS):
        return not value
    return False


def non_zero_default_set(defaults: Sequence[str], obj: Any) -> list[str]:
    """Return the column names from defaults whose fields on obj are not zero.

    Raises ValueError when a name in defaults belongs to no field.
    """
    by_name: dict[str, dataclasses.Field] = {}
    for f in dataclasses.fields(obj):
        name, _ = get_boil_tag(f)
        by_name.setdefault(name, f)

    result = []
    for default in defaults:
        f = by_name.get(default)
        if f is None:
            raise ValueError(
                f"could not find field name {default} in type {type(obj).__name__}"
            )
        if not _is_zero(getattr(obj, f.name)):
            result.append(default)
    return result