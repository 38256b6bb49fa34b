"""Turn a Query into SQL text and its ordered arguments."""

from __future__ import annotations

import re
from typing import Any, Sequence

from .query import ArgClause, JoinKind, Query, Where, WhereKind

_RGX_IDENTIFIER = re.compile(r'"?[a-z_][_a-z0-9]*"?(?:\."?[_a-z][_a-z0-9]*"?)*', re.IGNORECASE)
_RGX_IN_CLAUSE = re.compile(r"^(.*[\s|\)|\?])IN([\s|\(|\?].*)$", re.IGNORECASE)
_RGX_NOT_IN_CLAUSE = re.compile(r"^(.*[\s|\)|\?])NOT\s+IN([\s|\(|\?].*)$", re.IGNORECASE)
_RGX_SMART_QUOTE = re.compile(
    r'"?[a-z_][_a-z0-9\-]*"?(\."?[_a-z][_a-z0-9]*"?)*(\.\*)?', re.IGNORECASE
)
_RGX_QUESTION_MARK = re.compile(r"\\\?|\?")
_RGX_COMMENT_SPLIT = re.compile(r"[\n\r]+")

_JOIN_KEYWORDS = {
    JoinKind.INNER: " INNER JOIN ",
    JoinKind.OUTER_LEFT: " LEFT JOIN ",
    JoinKind.OUTER_RIGHT: " RIGHT JOIN ",
    JoinKind.OUTER_FULL: " FULL JOIN ",
}


def ident_quote(lq: str, rq: str, name: str) -> str:
    """Quote a simple, possibly dotted identifier; leave anything else alone."""
    if name.lower() == "null" or name == "?":
        return name
    if not _RGX_SMART_QUOTE.fullmatch(name):
        return name

    pieces = []
    for piece in name.split("."):
        if piece.startswith(lq) or piece.endswith(rq) or piece == "*":
            pieces.append(piece)
        else:
            pieces.append(f"{lq}{piece}{rq}")
    return ".".join(pieces)


def ident_quote_all(lq: str, rq: str, names: Sequence[str]) -> list[str]:
    """Quote every identifier in names."""
    return [ident_quote(lq, rq, name) for name in names]


def placeholders(use_index_placeholders: bool, count: int, start: int, group: int) -> str:
    """Produce count placeholders numbered from start, grouped group at a time."""
    if start == 0 or group == 0:
        raise ValueError("Invalid start or group numbers supplied.")

    parts = []
    for i in range(count):
        if i:
            parts.append("),(" if group > 1 and i % group == 0 else ",")
        parts.append(f"${start + i}" if use_index_placeholders else "?")
    body = "".join(parts)
    return f"({body})" if group > 1 else body


def convert_question_marks(clause: str, start_at: int) -> tuple[str, int]:
    """Replace each unescaped ? with $n counting from start_at; unescape \\?."""
    if start_at == 0:
        raise ValueError("Not a valid start number.")

    counter = start_at

    def replace(match: re.Match[str]) -> str:
        nonlocal counter
        if match.group(0) != "?":
            return "?"
        counter += 1
        return f"${counter - 1}"

    converted = _RGX_QUESTION_MARK.sub(replace, clause)
    return converted, counter - start_at


def convert_in_question_marks(
    use_index_placeholders: bool, clause: str, start_at: int, group_at: int, total: int
) -> tuple[str, int]:
    """Swap the first unescaped ? for a parenthesised list of placeholders."""
    if start_at == 0 or not clause:
        raise ValueError("Not a valid start number.")

    found_at = next(
        (i for i, ch in enumerate(clause) if ch == "?" and (i == 0 or clause[i - 1] != "\\")),
        -1,
    )
    if found_at == -1:
        return clause.replace("\\?", "?"), 0

    expanded = (
        clause[:found_at]
        + "("
        + placeholders(use_index_placeholders, total, start_at, group_at)
        + ")"
        + clause[found_at + 1 :]
    )
    return expanded.replace("\\?", "?"), total


def parse_from_clause(tokens: Sequence[str]) -> tuple[str, str, bool]:
    """Parse "a", "a b" or "a as b" into (alias, name, ok)."""
    alias = name = ""
    ok = False
    saw_ident = saw_as = False
    for token in list(tokens)[:3]:
        lowered = token.lower()
        if saw_ident and lowered == "as":
            saw_as = True
            continue
        if saw_ident and lowered == "on":
            break
        if not _RGX_IDENTIFIER.fullmatch(token):
            break
        if saw_ident or saw_as:
            alias = token.strip('"')
            break
        name = token.strip('"')
        saw_ident = True
        ok = True
    return alias, name, ok


def write_stars(query: Query) -> list[str]:
    """Select every column of each table in the from list, by alias if given."""
    lq, rq = query.dialect.lq, query.dialect.rq
    columns = []
    for table in query.from_:
        tokens = table.split(" ")
        if len(tokens) == 1:
            columns.append(f"{ident_quote(lq, rq, tokens[0])}.*")
            continue
        alias, name, ok = parse_from_clause(tokens)
        if not ok:
            return []
        columns.append(f"{ident_quote(lq, rq, alias or name)}.*")
    return columns


def write_as_statements(query: Query) -> list[str]:
    """Quote selected columns and alias dotted ones to their dotted name."""
    lq, rq = query.dialect.lq, query.dialect.rq
    columns = []
    for column in query.select_cols:
        if not _RGX_IDENTIFIER.fullmatch(column):
            columns.append(column)
            continue
        tokens = column.split(".")
        if len(tokens) == 1:
            columns.append(ident_quote(lq, rq, column))
            continue
        as_name = ".".join(token.strip('"') for token in tokens)
        columns.append(f'{ident_quote(lq, rq, column)} as "{as_name}"')
    return columns


def write_comment(query: Query) -> str:
    """Render the query comment as SQL line comments."""
    if not query.comment:
        return ""
    return "".join(f"-- {line}\n" for line in _RGX_COMMENT_SPLIT.split(query.comment))


def _in_expression(query: Query, element: Where, start_at: int, manual: bool) -> tuple[str, int]:
    """Render an IN / NOT IN element; return its text and placeholders used."""
    is_in = element.kind is WhereKind.IN
    total = len(element.args)
    if total == 0:
        # An empty IN list is invalid SQL, so use a constant condition instead.
        return ("(1=0)" if is_in else "(1=1)"), 0

    index = query.dialect.use_index_placeholders

    def wrap(text: str) -> str:
        return text if manual else f"({text})"

    pattern = _RGX_IN_CLAUSE if is_in else _RGX_NOT_IN_CLAUSE
    match = pattern.match(element.clause)
    if match is None:
        clause, used = convert_in_question_marks(index, element.clause, start_at, 1, total)
        return wrap(clause), used

    left_side = match.group(1).strip()
    right_side = match.group(2).strip()
    columns = ident_quote_all(query.dialect.lq, query.dialect.rq, left_side.split(","))
    group_at = len(columns)

    if index:
        left_clause, left_count = convert_question_marks(",".join(columns), start_at)
    else:
        left_count = sum(1 for column in columns if column == "?")
        left_clause = ",".join(columns)

    right_clause, right_count = convert_in_question_marks(
        index, right_side, start_at + left_count, group_at, total - left_count
    )
    keyword = " IN " if is_in else " NOT IN "
    return wrap(left_clause + keyword + right_clause), left_count + right_count


def where_clause(query: Query, start_at: int) -> tuple[str, list[Any]]:
    """Render the where elements as one WHERE clause with placeholders from start_at."""
    if not query.where:
        return "", []

    manual = any(
        element.kind in (WhereKind.LEFT_PAREN, WhereKind.RIGHT_PAREN) for element in query.where
    )
    index = query.dialect.use_index_placeholders
    parts = [" WHERE "]
    args: list[Any] = []
    not_first = False

    for element in query.where:
        if not_first and element.kind is not WhereKind.RIGHT_PAREN:
            parts.append(" OR " if element.or_separator else " AND ")
        else:
            not_first = True

        if element.kind is WhereKind.NORMAL:
            if index:
                text, used = convert_question_marks(element.clause, start_at)
                start_at += used
            else:
                text = element.clause
            parts.append(text if manual else f"({text})")
            args.extend(element.args)
        elif element.kind is WhereKind.LEFT_PAREN:
            parts.append("(")
            not_first = False
        elif element.kind is WhereKind.RIGHT_PAREN:
            parts.append(")")
        elif element.kind in (WhereKind.IN, WhereKind.NOT_IN):
            text, used = _in_expression(query, element, start_at, manual)
            parts.append(text)
            start_at += used
            args.extend(element.args)
        else:
            raise ValueError("unknown where type")

    return "".join(parts), args


def _parameterized(
    query: Query, keyword: str, delim: str, clauses: Sequence[ArgClause], start: int
) -> tuple[str, list[Any]]:
    text = keyword + delim.join(clause.clause for clause in clauses)
    args = [arg for clause in clauses for arg in clause.args]
    if query.dialect.use_index_placeholders:
        text, _ = convert_question_marks(text, start)
    return text, args


def _write_ctes(query: Query) -> tuple[str, list[Any]]:
    if not query.withs:
        return "", []
    body = ",".join(f" {cte.clause}" for cte in query.withs) + " "
    args = [arg for cte in query.withs for arg in cte.args]
    if query.dialect.use_index_placeholders:
        body, _ = convert_question_marks(body, 1)
    return "WITH" + body, args


def _write_modifiers(query: Query, arg_count: int) -> tuple[str, list[Any]]:
    parts = []
    args: list[Any] = []

    if query.group_by:
        parts.append(" GROUP BY " + ", ".join(query.group_by))

    if query.having:
        text, extra = _parameterized(
            query, " HAVING ", " AND ", query.having, arg_count + len(args) + 1
        )
        parts.append(text)
        args.extend(extra)

    if query.order_by:
        text, extra = _parameterized(
            query, " ORDER BY ", ", ", query.order_by, arg_count + len(args) + 1
        )
        parts.append(text)
        args.extend(extra)

    if not query.dialect.use_top_clause:
        if query.limit is not None:
            parts.append(f" LIMIT {query.limit}")
        if query.offset != 0:
            parts.append(f" OFFSET {query.offset}")
    elif query.offset != 0:
        # OFFSET ... FETCH requires an ORDER BY; an arbitrary one keeps TOP-like behaviour.
        if not query.order_by:
            parts.append(" ORDER BY (SELECT NULL)")
        parts.append(f" OFFSET {query.offset} ROWS")
        if query.limit is not None:
            parts.append(f" FETCH NEXT {query.limit} ROWS ONLY")

    if query.for_lock:
        parts.append(f" FOR {query.for_lock}")

    return "".join(parts), args


def _build_select(query: Query) -> tuple[str, list[Any]]:
    dialect = query.dialect
    cte_sql, args = _write_ctes(query)
    parts = [write_comment(query), cte_sql]

    has_having = bool(query.having)
    has_group_by = bool(query.group_by)
    simple_count = query.count and not has_having and not has_group_by
    complex_count = query.count and (has_having or has_group_by)

    if complex_count:
        parts.append("SELECT COUNT(*) FROM (")
    parts.append("SELECT ")

    if dialect.use_top_clause and query.limit is not None and query.offset == 0:
        parts.append(f" TOP ({query.limit}) ")

    if simple_count:
        parts.append("COUNT(")

    has_select = bool(query.select_cols)
    has_joins = bool(query.joins)
    if query.distinct:
        parts.append("DISTINCT ")
        parts.append(f"({query.distinct})" if simple_count else query.distinct)
    elif has_joins and has_select and not simple_count:
        parts.append(", ".join(write_as_statements(query)))
    elif has_select:
        parts.append(", ".join(ident_quote_all(dialect.lq, dialect.rq, query.select_cols)))
    elif has_joins and not simple_count:
        parts.append(", ".join(write_stars(query)))
    else:
        parts.append("*")

    if simple_count:
        parts.append(")")

    parts.append(" FROM " + ", ".join(ident_quote_all(dialect.lq, dialect.rq, query.from_)))

    if query.joins:
        start = len(args) + 1
        join_parts = []
        for join in query.joins:
            keyword = _JOIN_KEYWORDS.get(join.kind)
            if keyword is None:
                raise ValueError(f"Unsupported join of kind {join.kind}")
            join_parts.append(keyword + join.clause)
            args.extend(join.args)
        join_sql = "".join(join_parts)
        if dialect.use_index_placeholders:
            join_sql, _ = convert_question_marks(join_sql, start)
        parts.append(join_sql)

    where_sql, where_args = where_clause(query, len(args) + 1)
    parts.append(where_sql)
    args.extend(where_args)

    modifiers, modifier_args = _write_modifiers(query, len(args))
    parts.append(modifiers)
    args.extend(modifier_args)

    if complex_count:
        parts.append(") AS q")
    parts.append(";")
    return "".join(parts), args


def _build_delete(query: Query) -> tuple[str, list[Any]]:
    dialect = query.dialect
    cte_sql, args = _write_ctes(query)
    parts = [
        write_comment(query),
        cte_sql,
        "DELETE FROM ",
        ", ".join(ident_quote_all(dialect.lq, dialect.rq, query.from_)),
    ]

    where_sql, where_args = where_clause(query, 1)
    args.extend(where_args)
    parts.append(where_sql)

    modifiers, modifier_args = _write_modifiers(query, len(args))
    parts.append(modifiers)
    args.extend(modifier_args)

    parts.append(";")
    return "".join(parts), args


def _build_update(query: Query) -> tuple[str, list[Any]]:
    dialect = query.dialect
    cte_sql, args = _write_ctes(query)
    parts = [
        write_comment(query),
        cte_sql,
        "UPDATE ",
        ", ".join(ident_quote_all(dialect.lq, dialect.rq, query.from_)),
    ]

    columns = sorted(query.update)
    args.extend(query.update[column] for column in columns)
    assignments = [
        f"{ident_quote(dialect.lq, dialect.rq, column)} = "
        f"{placeholders(dialect.use_index_placeholders, 1, position, 1)}"
        for position, column in enumerate(columns, start=1)
    ]
    parts.append(" SET " + ", ".join(assignments))

    where_sql, where_args = where_clause(query, len(args) + 1)
    args.extend(where_args)
    parts.append(where_sql)

    modifiers, modifier_args = _write_modifiers(query, len(args))
    parts.append(modifiers)
    args.extend(modifier_args)

    parts.append(";")
    return "".join(parts), args


def build_query(query: Query) -> tuple[str, list[Any]]:
    """Build the SQL text and arguments of a query, caching them on it for reuse."""
    query.strip_soft_delete_where()

    if query.raw_sql:
        return query.raw_sql, query.raw_args
    if query.delete:
        sql, args = _build_delete(query)
    elif query.update:
        sql, args = _build_update(query)
    else:
        sql, args = _build_select(query)

    query.raw_sql = sql
    query.raw_args = args
    return sql, args