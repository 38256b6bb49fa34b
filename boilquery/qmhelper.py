"""Helpers that build where query mods for common comparisons."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from .query import Query


class Operator(enum.Enum):
    """Comparison operators supported by :func:`where`."""

    EQ = "="
    NEQ = "!="
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="


@dataclass
class WhereQueryMod:
    """A query mod that appends a where clause with its arguments."""

    clause: str
    args: list[Any] = field(default_factory=list)

    def apply(self, query: Query) -> None:
        query.append_where(self.clause, *self.args)


def _is_null(value: Any) -> bool:
    is_zero = getattr(value, "is_zero", None)
    if callable(is_zero):
        return bool(is_zero())
    return value is None


def where_null_eq(name: str, negated: bool, value: Any) -> WhereQueryMod:
    """Compare a nullable column, using "is null" when the value is null."""
    if _is_null(value):
        negation = "not " if negated else ""
        return WhereQueryMod(clause=f"{name} is {negation}null")

    op = Operator.NEQ if negated else Operator.EQ
    return WhereQueryMod(clause=f"{name} {op.value} ?", args=[value])


def where_is_null(name: str) -> WhereQueryMod:
    """Return a mod for "name is null"."""
    return WhereQueryMod(clause=f"{name} is null")


def where_is_not_null(name: str) -> WhereQueryMod:
    """Return a mod for "name is not null"."""
    return WhereQueryMod(clause=f"{name} is not null")


def where(name: str, operator: Operator | str, value: Any) -> WhereQueryMod:
    """Return a mod comparing a column with a value using the given operator."""
    op = Operator(operator)
    return WhereQueryMod(clause=f"{name} {op.value} ?", args=[value])