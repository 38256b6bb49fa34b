# boilquery

A small, dependency-free toolkit for building SQL statements out of
composable pieces, running them on a DB-API connection or cursor, and mapping
result columns onto dataclass fields.

## Installation

```
pip install boilquery
```

For running the test suite:

```
pip install "boilquery[test]"
```

## Modules

- `boilquery.query`: the `Query` dataclass holding the parts of a statement,
  the `Dialect` (identifier quotes and placeholder style), `raw()` for raw SQL
  and `set_remove_soft_delete_rgx()`.
- `boilquery.builders`: `build_query()` and the pieces it is built from
  (`where_clause`, `convert_question_marks`, `convert_in_question_marks`,
  `placeholders`, `ident_quote`, `ident_quote_all`, `write_stars`,
  `write_as_statements`, `write_comment`, `parse_from_clause`).
- `boilquery.qm`: query mods, small objects that each change a query when
  applied.
- `boilquery.qmhelper`: `WhereQueryMod` and typed where helpers.
- `boilquery.execute`: `execute`, `query_row` and `query_rows`.
- `boilquery.mapping`: column-name to attribute-path mapping for dataclasses.
- `boilquery.helpers`: `non_zero_default_set`.

## Building queries

A `Query` collects the parts of a statement. Query mods from `boilquery.qm`
add those parts, and `build_query` returns the SQL text and its argument
list. The `Dialect` decides how identifiers are quoted (`lq`, `rq`), whether
placeholders are numbered (`$1`, `$2`, ...) or plain `?`
(`use_index_placeholders`), and whether `TOP`/`OFFSET ... FETCH` is used in
place of `LIMIT`/`OFFSET` (`use_top_clause`). The default dialect quotes with
`"` and uses `?`.

```python
from boilquery import qm
from boilquery.builders import build_query
from boilquery.query import Dialect, Query

q = Query(dialect=Dialect(lq='"', rq='"', use_index_placeholders=True))
qm.apply(
    q,
    qm.select("id", "name"),
    qm.from_("users"),
    qm.where("age > ?", 18),
    qm.or_("admin = ?", True),
    qm.where_in("id in ?", 1, 2, 3),
    qm.order_by("name ASC"),
    qm.limit(10),
)
sql, args = build_query(q)
# SELECT "id", "name" FROM "users" WHERE (age > $1) OR (admin = $2)
#   AND ("id" IN ($3,$4,$5)) ORDER BY name ASC LIMIT 10;
# args == [18, True, 1, 2, 3]
```

`build_query` stores the built text and arguments on the query, so building
it again returns the same result; `Query.set_args()` swaps the arguments
while keeping the text.

Mods available in `boilquery.qm`: `sql`, `load`, `inner_join`,
`left_outer_join`, `right_outer_join`, `full_outer_join`, `distinct`,
`with_`, `select`, `where`, `and_`, `or_`, `or2`, `where_in`, `and_in`,
`or_in`, `where_not_in`, `and_not_in`, `or_not_in`, `expr`, `group_by`,
`order_by`, `having`, `from_`, `limit`, `offset`, `for_`, `comment`,
`with_deleted`. `qm.rels("Videos", "Tags")` joins names with dots.
`QueryModFunc` wraps any function taking a query, and `QueryMods` applies a
sequence of mods in order.

Some behaviour worth knowing:

- Several `where` clauses are joined with `AND`; `or_` and `or2` join with
  `OR`.
- Once `expr` is used anywhere, automatic parentheses around where clauses
  stop and only `expr` groups are parenthesised.
- An empty `IN` list becomes `(1=0)` and an empty `NOT IN` list `(1=1)`.
- `"(a, b) in ?"` with four arguments expands to grouped placeholders such as
  `(($1,$2),($3,$4))`.
- A question mark written as `\?` is kept as a literal `?`.
- `with_deleted()` drops the last where clause matching `deleted_at is null`
  (the pattern can be changed with `set_remove_soft_delete_rgx`).

### Typed where helpers

```python
from boilquery import qmhelper

qm.apply(q, qmhelper.where("score", qmhelper.Operator.GTE, 10))
qm.apply(q, qmhelper.where_null_eq("deleted_by", False, None))  # deleted_by is null
qm.apply(q, qmhelper.where_is_not_null("email"))
```

`where_null_eq` treats `None`, or an object whose `is_zero()` returns true,
as null.

## Raw statements

```python
from boilquery.query import raw

q = raw("select * from users where id = ?", 5)
```

## Running queries

`boilquery.execute` builds a query and passes the SQL and a tuple of
arguments to `executor.execute(...)`. `execute` and `query_rows` return the
result (or the executor itself when its `execute` returns `None`);
`query_row` returns the first row or `None`. Pass `debug=True` to print the
SQL and arguments to stdout, or pass a stream to print there.

```python
import sqlite3
from boilquery.execute import query_rows

conn = sqlite3.connect(":memory:")
conn.execute("create table users (id integer, name text)")
conn.execute("insert into users values (1, 'ann')")

q = Query()
qm.apply(q, qm.from_("users"), qm.where("id = ?", 1))
rows = query_rows(q, conn).fetchall()
```

## Mapping columns onto dataclasses

`make_struct_mapping(cls)` maps every column name of a dataclass to an
attribute path. A field's column name comes from its `boil` metadata
(`field(metadata={"boil": "name"})`); otherwise the field name is converted
with `un_title_case` (`FunID` becomes `fun_id`). A name of `-` excludes the
field, and `",bind"` on a dataclass-typed field recurses into it with its
columns prefixed by `name.`.

```python
from dataclasses import dataclass
from boilquery.mapping import assign_from_mapping, bind_mapping, make_struct_mapping

@dataclass
class User:
    id: int = 0
    name: str = ""

cursor = query_rows(q, conn)
paths = bind_mapping(make_struct_mapping(User), [d[0] for d in cursor.description])
users = []
for row in cursor:
    user = User()
    assign_from_mapping(user, paths, row)
    users.append(user)
```

Columns the model lacks map to `None` and are skipped. `values_from_mapping`
reads values back along the same paths.

`helpers.non_zero_default_set(defaults, obj)` returns the column names from
`defaults` whose fields on `obj` are not zero values, and raises
`ValueError` for a name that belongs to no field.

## What this package does not do

- It does not bind query results into objects on its own: reading rows and
  filling objects is done with the mapping functions as shown above.
- It does not eager load relationships. `qm.load` only records relationship
  names (and their mods) on the query; nothing here runs those loads.
- It has no helpers for comparing or converting between plain values and
  nullable wrapper types.