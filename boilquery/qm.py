"""Query mods: small objects that each modify a query when applied."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from . import qmhelper
from .query import Query


class QueryMod(abc.ABC):
    """Something that modifies a query."""

    @abc.abstractmethod
    def apply(self, query: Query) -> None:
        """Modify the query in place."""


QueryMod.register(qmhelper.WhereQueryMod)


@dataclass(frozen=True)
class QueryModFunc(QueryMod):
    """Adapts a plain function taking a query into a query mod."""

    func: Callable[[Query], None]

    def apply(self, query: Query) -> None:
        self.func(query)


class QueryMods(QueryMod):
    """A sequence of query mods applied in order."""

    def __init__(self, mods: Iterable[QueryMod] = ()) -> None:
        self.mods = tuple(mods)

    def __iter__(self):
        return iter(self.mods)

    def __len__(self) -> int:
        return len(self.mods)

    def __repr__(self) -> str:
        return f"QueryMods({list(self.mods)!r})"

    def apply(self, query: Query) -> None:
        apply(query, *self.mods)


def apply(query: Query, *mods: QueryMod) -> None:
    """Apply each mod to the query in order."""
    for mod in mods:
        mod.apply(query)


def sql(statement: str, *args: Any) -> QueryMod:
    """Use a plain SQL statement."""
    return QueryModFunc(lambda q: q.set_sql(statement, *args))


def load(relationship: str, *mods: QueryMod) -> QueryMod:
    """Eager load a relationship such as "Videos.Tags", with mods for its last step."""

    def _apply(q: Query) -> None:
        q.append_load(relationship)
        if mods:
            q.set_load_mods(relationship, QueryMods(mods))

    return QueryModFunc(_apply)


def inner_join(clause: str, *args: Any) -> QueryMod:
    return QueryModFunc(lambda q: q.append_inner_join(clause, *args))


def left_outer_join(clause: str, *args: Any) -> QueryMod:
    return QueryModFunc(lambda q: q.append_left_outer_join(clause, *args))


def right_outer_join(clause: str, *args: Any) -> QueryMod:
    return QueryModFunc(lambda q: q.append_right_outer_join(clause, *args))


def full_outer_join(clause: str, *args: Any) -> QueryMod:
    return QueryModFunc(lambda q: q.append_full_outer_join(clause, *args))


def distinct(clause: str) -> QueryMod:
    """Filter duplicates on the given expression."""

    def _apply(q: Query) -> None:
        q.distinct = clause

    return QueryModFunc(_apply)


def with_(clause: str, *args: Any) -> QueryMod:
    """Add a common table expression."""
    return QueryModFunc(lambda q: q.append_with(clause, *args))


def select(*columns: str) -> QueryMod:
    """Select specific columns instead of all of them."""
    return QueryModFunc(lambda q: q.append_select(*columns))


def where(clause: str, *args: Any) -> QueryMod:
    """Add a where clause; several are joined with AND."""
    return qmhelper.WhereQueryMod(clause=clause, args=list(args))


def and_(clause: str, *args: Any) -> QueryMod:
    """Add a where clause joined with AND."""
    return QueryModFunc(lambda q: q.append_where(clause, *args))


def _or_where(q: Query, clause: str, args: tuple[Any, ...]) -> None:
    q.append_where(clause, *args)
    q.set_last_where_as_or()


def or_(clause: str, *args: Any) -> QueryMod:
    """Add a where clause joined with OR."""
    return QueryModFunc(lambda q: _or_where(q, clause, args))


def or2(mod: QueryMod) -> QueryMod:
    """Apply a where mod and turn its last where expression into an OR."""

    def _apply(q: Query) -> None:
        mod.apply(q)
        q.set_last_where_as_or()

    return QueryModFunc(_apply)


def where_in(clause: str, *args: Any) -> QueryMod:
    """Add an "x IN (set)" clause, e.g. "column in ?"."""
    return QueryModFunc(lambda q: q.append_in(clause, *args))


def and_in(clause: str, *args: Any) -> QueryMod:
    return QueryModFunc(lambda q: q.append_in(clause, *args))


def _or_in(q: Query, clause: str, args: tuple[Any, ...]) -> None:
    q.append_in(clause, *args)
    q.set_last_in_as_or()


def or_in(clause: str, *args: Any) -> QueryMod:
    return QueryModFunc(lambda q: _or_in(q, clause, args))


def where_not_in(clause: str, *args: Any) -> QueryMod:
    """Add an "x NOT IN (set)" clause."""
    return QueryModFunc(lambda q: q.append_not_in(clause, *args))


def and_not_in(clause: str, *args: Any) -> QueryMod:
    return QueryModFunc(lambda q: q.append_not_in(clause, *args))


def _or_not_in(q: Query, clause: str, args: tuple[Any, ...]) -> None:
    q.append_not_in(clause, *args)
    q.set_last_in_as_or()


def or_not_in(clause: str, *args: Any) -> QueryMod:
    return QueryModFunc(lambda q: _or_not_in(q, clause, args))


def expr(*wheremods: QueryMod) -> QueryMod:
    """Group where mods in parentheses; disables automatic parentheses."""

    def _apply(q: Query) -> None:
        q.append_where_left_paren()
        apply(q, *wheremods)
        q.append_where_right_paren()

    return QueryModFunc(_apply)


def group_by(clause: str) -> QueryMod:
    return QueryModFunc(lambda q: q.append_group_by(clause))


def order_by(clause: str, *args: Any) -> QueryMod:
    return QueryModFunc(lambda q: q.append_order_by(clause, *args))


def having(clause: str, *args: Any) -> QueryMod:
    return QueryModFunc(lambda q: q.append_having(clause, *args))


def from_(table: str) -> QueryMod:
    """Add a table to select from."""
    return QueryModFunc(lambda q: q.append_from(table))


def limit(count: int) -> QueryMod:
    """Limit the number of returned rows."""

    def _apply(q: Query) -> None:
        q.limit = count

    return QueryModFunc(_apply)


def offset(count: int) -> QueryMod:
    """Skip rows at the start of the result."""

    def _apply(q: Query) -> None:
        q.offset = count

    return QueryModFunc(_apply)


def for_(clause: str) -> QueryMod:
    """Add a locking clause at the end of the statement."""

    def _apply(q: Query) -> None:
        q.for_lock = clause

    return QueryModFunc(_apply)


def comment(text: str) -> QueryMod:
    """Put a comment at the start of the query."""

    def _apply(q: Query) -> None:
        q.comment = text

    return QueryModFunc(_apply)


def rels(*names: str) -> str:
    """Join relationship names with dots for use with :func:`load`."""
    return ".".join(names)


def with_deleted() -> QueryMod:
    """Drop the automatic soft delete where clause."""

    def _apply(q: Query) -> None:
        q.remove_soft_delete = True

    return QueryModFunc(_apply)