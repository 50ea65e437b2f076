"""Boundary Protocols — contracts between the facade and its collaborators.

Invariants:
    - The facade only calls what these protocols declare
    - Implementations are provided by infrastructure/ (or by tests) via binding

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
"""

from contextlib import AbstractContextManager
from typing import Any, Protocol, Sequence

from sqlcaller.core.result_set import ResultSet


class ConnectionLike(Protocol):
    """Live connection: runs fully substituted SQL."""
    def execute(self, sql: str) -> Any: ...
    def select_all(self, sql: str) -> ResultSet: ...
    def select_rows(self, sql: str) -> list[tuple]: ...
    def select_values(self, sql: str) -> list: ...
    def select_value(self, sql: str) -> Any: ...
    def transaction(self) -> AbstractContextManager: ...
    def transaction_open(self) -> bool: ...


class ModelLike(Protocol):
    """Model a facade is bound to: hands out connections, sanitizes SQL."""
    def connection(self) -> ConnectionLike: ...
    def sanitize_sql_array(self, sql: str, binds: Sequence[Any]) -> str: ...
