"""Query state and the operations that build it up piece by piece."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Any

_DEFAULT_SOFT_DELETE_PATTERN = "deleted_at[\"'`]? is null"

_remove_soft_delete_rgx: re.Pattern[str] = re.compile(_DEFAULT_SOFT_DELETE_PATTERN)


def set_remove_soft_delete_rgx(pattern: str | re.Pattern[str]) -> None:
    """Set the pattern that recognises the automatic soft delete where clause."""
    global _remove_soft_delete_rgx
    _remove_soft_delete_rgx = re.compile(pattern) if isinstance(pattern, str) else pattern


@dataclass
class Dialect:
    """Quoting and placeholder rules of a database dialect."""

    lq: str = '"'
    rq: str = '"'
    use_index_placeholders: bool = False
    use_top_clause: bool = False


class JoinKind(enum.Enum):
    INNER = 0
    OUTER_LEFT = 1
    OUTER_RIGHT = 2
    NATURAL = 3
    OUTER_FULL = 4


class WhereKind(enum.Enum):
    NORMAL = 0
    LEFT_PAREN = 1
    RIGHT_PAREN = 2
    IN = 3
    NOT_IN = 4


@dataclass
class Where:
    """One element of a where expression."""

    clause: str = ""
    args: list[Any] = field(default_factory=list)
    kind: WhereKind = WhereKind.NORMAL
    or_separator: bool = False


@dataclass
class Join:
    """A join clause with its arguments."""

    clause: str
    kind: JoinKind = JoinKind.INNER
    args: list[Any] = field(default_factory=list)


@dataclass
class ArgClause:
    """A clause carrying positional arguments."""

    clause: str
    args: list[Any] = field(default_factory=list)


@dataclass
class Query:
    """The built-up state of a SQL query."""

    dialect: Dialect = field(default_factory=Dialect)
    raw_sql: str = ""
    raw_args: list[Any] = field(default_factory=list)

    load: list[str] = field(default_factory=list)
    load_mods: dict[str, Any] = field(default_factory=dict)

    delete: bool = False
    update: dict[str, Any] = field(default_factory=dict)
    withs: list[ArgClause] = field(default_factory=list)
    select_cols: list[str] = field(default_factory=list)
    count: bool = False
    from_: list[str] = field(default_factory=list)
    joins: list[Join] = field(default_factory=list)
    where: list[Where] = field(default_factory=list)
    group_by: list[str] = field(default_factory=list)
    order_by: list[ArgClause] = field(default_factory=list)
    having: list[ArgClause] = field(default_factory=list)
    limit: int | None = None
    offset: int = 0
    for_lock: str = ""
    distinct: str = ""
    comment: str = ""

    # When set, the automatic "deleted_at is null" where clause is dropped.
    remove_soft_delete: bool = False

    def set_sql(self, sql: str, *args: Any) -> None:
        """Replace the query with raw SQL and its arguments."""
        self.raw_sql = sql
        self.raw_args = list(args)

    def set_args(self, *args: Any) -> None:
        """Replace the arguments, keeping the already built SQL text."""
        self.raw_args = list(args)

    def set_load(self, *relationships: str) -> None:
        self.load = list(relationships)

    def append_load(self, relationship: str) -> None:
        self.load.append(relationship)

    def set_load_mods(self, relationship: str, applicator: Any) -> None:
        self.load_mods[relationship] = applicator

    def append_select(self, *columns: str) -> None:
        self.select_cols.extend(columns)

    def append_from(self, *tables: str) -> None:
        self.from_.extend(tables)

    def set_from(self, *tables: str) -> None:
        self.from_ = list(tables)

    def _append_join(self, kind: JoinKind, clause: str, args: tuple[Any, ...]) -> None:
        self.joins.append(Join(clause=clause, kind=kind, args=list(args)))

    def append_inner_join(self, clause: str, *args: Any) -> None:
        self._append_join(JoinKind.INNER, clause, args)

    def append_left_outer_join(self, clause: str, *args: Any) -> None:
        self._append_join(JoinKind.OUTER_LEFT, clause, args)

    def append_right_outer_join(self, clause: str, *args: Any) -> None:
        self._append_join(JoinKind.OUTER_RIGHT, clause, args)

    def append_full_outer_join(self, clause: str, *args: Any) -> None:
        self._append_join(JoinKind.OUTER_FULL, clause, args)

    def append_having(self, clause: str, *args: Any) -> None:
        self.having.append(ArgClause(clause, list(args)))

    def append_where(self, clause: str, *args: Any) -> None:
        self.where.append(Where(clause=clause, args=list(args)))

    def append_in(self, clause: str, *args: Any) -> None:
        self.where.append(Where(clause=clause, args=list(args), kind=WhereKind.IN))

    def append_not_in(self, clause: str, *args: Any) -> None:
        self.where.append(Where(clause=clause, args=list(args), kind=WhereKind.NOT_IN))

    def set_last_where_as_or(self) -> None:
        """Mark the last where expression (or parenthesised group) as OR-joined."""
        if not self.where:
            return
        last = self.where[-1]
        if last.kind is not WhereKind.RIGHT_PAREN:
            last.or_separator = True
            return

        depth = 0
        for element in reversed(self.where[:-1]):
            if element.kind is WhereKind.LEFT_PAREN:
                if depth == 0:
                    element.or_separator = True
                    return
                depth -= 1
            elif element.kind is WhereKind.RIGHT_PAREN:
                depth += 1

        raise ValueError("could not find matching ( in where query expr")

    def set_last_in_as_or(self) -> None:
        self.set_last_where_as_or()

    def append_where_left_paren(self) -> None:
        self.where.append(Where(kind=WhereKind.LEFT_PAREN))

    def append_where_right_paren(self) -> None:
        self.where.append(Where(kind=WhereKind.RIGHT_PAREN))

    def append_group_by(self, clause: str) -> None:
        self.group_by.append(clause)

    def append_order_by(self, clause: str, *args: Any) -> None:
        self.order_by.append(ArgClause(clause, list(args)))

    def append_with(self, clause: str, *args: Any) -> None:
        self.withs.append(ArgClause(clause, list(args)))

    def strip_soft_delete_where(self) -> None:
        """Drop the last automatic soft delete clause if removal was requested."""
        if not self.remove_soft_delete:
            return
        for index in range(len(self.where) - 1, -1, -1):
            element = self.where[index]
            if element.kind is WhereKind.NORMAL and _remove_soft_delete_rgx.search(element.clause):
                # Only one is removed; any others may come from the user.
                del self.where[index]
                return


def raw(sql: str, *args: Any) -> Query:
    """Make a query from raw SQL."""
    return Query(raw_sql=sql, raw_args=list(args))