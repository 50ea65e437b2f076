"""Bind Sanitizer — substitutes bind values into a SQL template as quoted literals.

Invariants:
    - Positional "?" placeholders must match the number of binds exactly
    - Named ":name" placeholders are used only when the single bind is a mapping;
      "::type" casts are left alone and "\\:name" yields a literal ":name"
    - Sequence binds expand to comma-joined literals; an empty sequence becomes NULL
    - Quoting is delegated to the caller-supplied quote function (dialect-aware)

Design Decisions:
    - Pure function with injected quote(): no engine or dialect import in core/
    - Plain placeholder replacement, no SQL parsing: a "?" inside a string
      literal is still treated as a placeholder
"""

import re
from collections.abc import Mapping
from typing import Any, Callable, Sequence

from sqlcaller.core.errors import BindVariableError

QuoteFn = Callable[[Any], str]

_SEQUENCE_BINDS = (list, tuple, set, frozenset)
_NAMED_PLACEHOLDER = re.compile(r"([:\\]?):([a-zA-Z]\w*)")


def sanitize_sql_array(sql: str, binds: Sequence[Any], quote: QuoteFn) -> str:
    """Return sql with every placeholder replaced by the quoted bind value."""
    binds = list(binds)
    if len(binds) == 1 and isinstance(binds[0], Mapping) and _NAMED_PLACEHOLDER.search(sql):
        return _replace_named(sql, binds[0], quote)
    if "?" in sql or binds:
        return _replace_positional(sql, binds, quote)
    return sql


def quote_bound_value(value: Any, quote: QuoteFn) -> str:
    if isinstance(value, _SEQUENCE_BINDS):
        if not value:
            return quote(None)
        return ",".join(quote(item) for item in value)
    return quote(value)


def _replace_positional(sql: str, binds: list, quote: QuoteFn) -> str:
    expected = sql.count("?")
    if expected != len(binds):
        raise BindVariableError(
            f"wrong number of bind variables ({len(binds)} for {expected}) in: {sql}",
            sql,
        )
    values = iter(binds)
    return re.sub(r"\?", lambda _: quote_bound_value(next(values), quote), sql)


def _replace_named(sql: str, binds: Mapping, quote: QuoteFn) -> str:
    def replace(match: re.Match) -> str:
        prefix, name = match.group(1), match.group(2)
        if prefix == ":":
            return match.group(0)
        if prefix == "\\":
            return f":{name}"
        if name not in binds:
            raise BindVariableError(f"missing value for :{name} in {sql}", sql)
        return quote_bound_value(binds[name], quote)

    return _NAMED_PLACEHOLDER.sub(replace, sql)
