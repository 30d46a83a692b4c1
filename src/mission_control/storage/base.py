"""Storage interface shared by the SQLite and PostgreSQL backends.

Callers write statements with ``?`` positional placeholders and pass plain
Python values (``bool``, aware ``datetime``, ``str``). Each backend rewrites
placeholders for its driver and normalizes the rows it returns, so services
never branch on the active engine.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

DialectName = Literal["sqlite", "postgres"]
PlaceholderStyle = Literal["qmark", "numeric"]

# Leading keywords whose statements produce a row set.
ROW_KEYWORDS = frozenset({"SELECT", "WITH", "PRAGMA", "VALUES", "EXPLAIN"})
_RETURNING = re.compile(r"\bRETURNING\b", re.IGNORECASE)


@dataclass(frozen=True)
class Dialect:
    """DDL vocabulary of one engine."""

    name: DialectName
    timestamp_type: str
    boolean_type: str
    false_literal: str
    now_expression: str
    placeholder_style: PlaceholderStyle


SQLITE_DIALECT = Dialect(
    name="sqlite",
    timestamp_type="TEXT",
    boolean_type="INTEGER",
    false_literal="0",
    now_expression="(strftime('%Y-%m-%d %H:%M:%f', 'now'))",
    placeholder_style="qmark",
)

POSTGRES_DIALECT = Dialect(
    name="postgres",
    timestamp_type="TIMESTAMPTZ",
    boolean_type="BOOLEAN",
    false_literal="FALSE",
    now_expression="CURRENT_TIMESTAMP",
    placeholder_style="numeric",
)


@dataclass
class QueryResult:
    """Rows for reads; ``rowcount`` for writes (``-1`` when the driver does not know)."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    rowcount: int = -1


class Database(Protocol):
    dialect: Dialect
    # Driver exception classes; never caught inside the store.
    errors: tuple[type[Exception], ...]

    def execute(self, sql: str, params: Sequence[Any] = ()) -> QueryResult: ...

    def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any] | None: ...

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]: ...

    def close(self) -> None: ...


def leading_keyword(sql: str) -> str:
    """Return the first SQL keyword, skipping whitespace, comments and parentheses."""
    index = 0
    length = len(sql)
    while index < length:
        char = sql[index]
        if char.isspace() or char == "(":
            index += 1
        elif sql.startswith("--", index):
            newline = sql.find("\n", index)
            index = length if newline == -1 else newline + 1
        elif sql.startswith("/*", index):
            end = sql.find("*/", index + 2)
            index = length if end == -1 else end + 2
        else:
            break
    start = index
    while index < length and (sql[index].isalpha() or sql[index] == "_"):
        index += 1
    return sql[start:index].upper()


def returns_rows(sql: str) -> bool:
    """Decide whether a statement yields a row set rather than a mutation result."""
    if leading_keyword(sql) in ROW_KEYWORDS:
        return True
    return _RETURNING.search(_strip_literals(sql)) is not None


def translate_placeholders(
    sql: str,
    params: Sequence[Any],
    style: PlaceholderStyle,
) -> str:
    """Rewrite ``?`` markers for the target driver.

    ``qmark`` keeps ``?``; ``numeric`` emits ``$1, $2, ...`` in order. Markers
    inside quoted literals, quoted identifiers, dollar-quoted bodies and
    comments are left alone. Raises ``ValueError`` when the number of markers
    differs from ``len(params)``.
    """
    out: list[str] = []
    count = 0
    index = 0
    length = len(sql)
    while index < length:
        char = sql[index]
        if char in ("'", '"'):
            end = _quoted_end(sql, index, char)
            out.append(sql[index:end])
            index = end
        elif sql.startswith("--", index):
            newline = sql.find("\n", index)
            end = length if newline == -1 else newline + 1
            out.append(sql[index:end])
            index = end
        elif sql.startswith("/*", index):
            close = sql.find("*/", index + 2)
            end = length if close == -1 else close + 2
            out.append(sql[index:end])
            index = end
        elif sql.startswith("$$", index):
            close = sql.find("$$", index + 2)
            end = length if close == -1 else close + 2
            out.append(sql[index:end])
            index = end
        elif char == "?":
            count += 1
            out.append("?" if style == "qmark" else f"${count}")
            index += 1
        else:
            out.append(char)
            index += 1

    if count != len(params):
        raise ValueError(
            f"Statement has {count} placeholder(s) but {len(params)} parameter(s) were given"
        )
    return "".join(out)


def _quoted_end(sql: str, start: int, quote: str) -> int:
    """Index just past the quoted run starting at ``start`` (doubled quotes escape)."""
    index = start + 1
    length = len(sql)
    while index < length:
        if sql[index] == quote:
            if index + 1 < length and sql[index + 1] == quote:
                index += 2
                continue
            return index + 1
        index += 1
    return length


def _strip_literals(sql: str) -> str:
    out: list[str] = []
    index = 0
    while index < len(sql):
        char = sql[index]
        if char in ("'", '"'):
            index = _quoted_end(sql, index, char)
            out.append(" ")
        else:
            out.append(char)
            index += 1
    return "".join(out)
