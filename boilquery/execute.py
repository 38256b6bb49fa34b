"""Run built queries against a DB-API connection or cursor."""

from __future__ import annotations

import sys
from typing import Any, TextIO

from .builders import build_query
from .query import Query


def _run(query: Query, executor: Any, debug: bool | TextIO) -> Any:
    sql, args = build_query(query)
    if debug:
        writer = sys.stdout if debug is True else debug
        print(sql, file=writer)
        print(args, file=writer)
    result = executor.execute(sql, tuple(args))
    # Some DB-API cursors return None from execute; the cursor holds the result.
    return executor if result is None else result


def execute(query: Query, executor: Any, debug: bool | TextIO = False) -> Any:
    """Run a query that returns no rows; return the cursor for rowcount and the like.

    With debug set, the SQL and its arguments are written to stdout, or to the
    stream given as debug.
    """
    return _run(query, executor, debug)


def query_row(query: Query, executor: Any, debug: bool | TextIO = False) -> Any:
    """Run a query and return its first row, or None when there is none."""
    return _run(query, executor, debug).fetchone()


def query_rows(query: Query, executor: Any, debug: bool | TextIO = False) -> Any:
    """Run a query and return the cursor to iterate its rows."""
    return _run(query, executor, debug)