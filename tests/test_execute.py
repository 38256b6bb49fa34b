from __future__ import annotations

import io
import sqlite3

import pytest

from boilquery.execute import execute, query_row, query_rows
from boilquery.query import Query, raw


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:")
    connection.execute("CREATE TABLE t (a INTEGER, b TEXT)")
    yield connection
    connection.close()


def _insert(conn, a, b):
    execute(raw("INSERT INTO t (a, b) VALUES (?, ?)", a, b), conn)


def test_execute_then_query_rows(conn):
    _insert(conn, 1, "x")
    _insert(conn, 2, "y")
    rows = list(query_rows(Query(from_=["t"]), conn))
    assert rows == [(1, "x"), (2, "y")]


def test_execute_reports_rowcount(conn):
    _insert(conn, 1, "x")
    _insert(conn, 1, "z")
    query = Query(from_=["t"], delete=True)
    query.append_where("a = ?", 1)
    cursor = execute(query, conn)
    assert cursor.rowcount == 2
    assert list(query_rows(Query(from_=["t"]), conn)) == []


def test_query_row_with_where(conn):
    _insert(conn, 1, "x")
    _insert(conn, 2, "y")
    query = Query(from_=["t"])
    query.append_where("a = ?", 2)
    assert query_row(query, conn) == (2, "y")


def test_query_row_none_when_empty(conn):
    assert query_row(Query(from_=["t"]), conn) is None


def test_works_with_cursor_executor(conn):
    _insert(conn, 3, "w")
    cursor = conn.cursor()
    assert query_row(Query(from_=["t"]), cursor) == (3, "w")


def test_debug_writes_sql_and_args(conn):
    out = io.StringIO()
    query = Query(from_=["t"])
    query.append_where("a = ?", 7)
    query_rows(query, conn, debug=out)
    assert out.getvalue() == f"{query.raw_sql}\n{query.raw_args}\n"


def test_debug_true_writes_stdout(conn, capsys):
    query = raw("SELECT a FROM t WHERE a = ?", 4)
    query_rows(query, conn, debug=True)
    assert capsys.readouterr().out == "SELECT a FROM t WHERE a = ?\n[4]\n"


def test_bad_sql_raises(conn):
    with pytest.raises(sqlite3.OperationalError):
        execute(raw("SELECT nothing FROM missing_table"), conn)