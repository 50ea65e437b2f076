"""Bind Sanitizer — tests for positional and named bind substitution.

Tests cover:
    - "?" placeholders replaced in order with quoted literals
    - Bind count mismatches raise BindVariableError
    - Sequences expand to comma-joined literals, empty ones to NULL
    - Named binds skip "::" casts and honour "\\:" escapes
"""

import pytest

from sqlcaller.core.errors import BindVariableError
from sqlcaller.core.sanitize import quote_bound_value, sanitize_sql_array


def quote(value):
    if value is None:
        return "NULL"
    if isinstance(value, str):
        return "'" + value.replace("'", "''") + "'"
    return str(value)


# ─── Positional ──────────────────────────────────────────────────

def test_positional_binds_are_quoted_in_order():
    sql = sanitize_sql_array(
        "select * from t where id = ? and name = ?", [1, "O'Brien"], quote,
    )
    assert sql == "select * from t where id = 1 and name = 'O''Brien'"


def test_too_few_binds_raise():
    with pytest.raises(BindVariableError, match=r"wrong number of bind variables \(1 for 2\)"):
        sanitize_sql_array("select ?, ?", [1], quote)


def test_binds_without_placeholders_raise():
    with pytest.raises(BindVariableError, match=r"\(1 for 0\)"):
        sanitize_sql_array("select 1", [1], quote)


def test_sql_without_binds_is_unchanged():
    assert sanitize_sql_array("select 1", [], quote) == "select 1"


def test_list_bind_expands():
    sql = sanitize_sql_array("select * from t where id in (?)", [[1, 2, 3]], quote)
    assert sql == "select * from t where id in (1,2,3)"


def test_empty_list_bind_becomes_null():
    sql = sanitize_sql_array("select * from t where id in (?)", [[]], quote)
    assert sql == "select * from t where id in (NULL)"


def test_none_bind_becomes_null():
    assert sanitize_sql_array("select ?", [None], quote) == "select NULL"


# ─── Named ───────────────────────────────────────────────────────

def test_named_binds():
    sql = sanitize_sql_array(
        "select * from t where id = :id and name = :name",
        [{"id": 5, "name": "x"}],
        quote,
    )
    assert sql == "select * from t where id = 5 and name = 'x'"


def test_named_binds_leave_casts_alone():
    assert sanitize_sql_array("select :value::text", [{"value": "a"}], quote) == (
        "select 'a'::text"
    )


def test_escaped_colon_is_kept_literally():
    sql = sanitize_sql_array("select '\\:literal', :id", [{"id": 1}], quote)
    assert sql == "select ':literal', 1"


def test_missing_named_bind_raises():
    with pytest.raises(BindVariableError, match="missing value for :name"):
        sanitize_sql_array("select :id, :name", [{"id": 1}], quote)


def test_bind_variable_error_carries_sql():
    with pytest.raises(BindVariableError) as exc_info:
        sanitize_sql_array("select ?", [], quote)
    assert exc_info.value.context.sql == "select ?"


# ─── quote_bound_value ───────────────────────────────────────────

def test_quote_bound_value_tuple():
    assert quote_bound_value(("a", "b"), quote) == "'a','b'"


def test_quote_bound_value_scalar():
    assert quote_bound_value(3, quote) == "3"
