"""Database Manager — SQLAlchemy engine, per-thread transactions and raw SQL primitives.

Invariants:
    - Outside a transaction every statement runs in its own short transaction (autocommit)
    - Inside transaction() all statements on the same thread share one pinned connection
    - transaction_open() is True only while a transaction is active on this thread
    - Nested transaction() calls join the outer transaction; requires_new=True uses a SAVEPOINT
    - SQL reaches the driver verbatim (exec_driver_sql with no_parameters):
      bind substitution already happened in sanitize_sql_array()
    - Driver errors are not caught, mapped, or logged here

Design Decisions:
    - Thread-local pinned connection: each thread has its own transaction scope
    - Literal quoting via SQLAlchemy literal_binds in the engine's dialect
    - Column type tags derived from cursor.description type codes (PostgreSQL OIDs);
      drivers without OIDs (SQLite) yield no type metadata
    - Module-level db_manager initialized on startup via init_db (no import side effects)
"""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

from sqlalchemy import create_engine, literal
from sqlalchemy.engine import Connection
from sqlalchemy.exc import CompileError

from sqlcaller.core.errors import BindVariableError, ConfigurationError
from sqlcaller.core.result_set import ResultSet
from sqlcaller.core.sanitize import sanitize_sql_array
from sqlcaller.core.type_registry import TypeRegistry, get_default_registry

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns the engine; hands out connections and sanitizes SQL for facades."""

    def __init__(
        self,
        database_url: str,
        *,
        pool_size: int | None = None,
        max_overflow: int | None = None,
        pool_recycle: int = 3600,
        echo: bool = False,
        type_registry: TypeRegistry | None = None,
    ):
        pool_options = {}
        if pool_size is not None:
            pool_options["pool_size"] = pool_size
        if max_overflow is not None:
            pool_options["max_overflow"] = max_overflow
        self.engine = create_engine(
            database_url,
            pool_pre_ping=True,
            pool_recycle=pool_recycle,
            echo=echo,
            **pool_options,
        )
        self.type_registry = (
            type_registry if type_registry is not None else get_default_registry()
        )
        self._local = threading.local()

    def connection(self) -> "DatabaseConnection":
        return DatabaseConnection(self)

    def sanitize_sql_array(self, sql: str, binds: Sequence[Any]) -> str:
        return sanitize_sql_array(sql, binds, self.quote)

    def quote(self, value: Any) -> str:
        """Render value as an SQL literal in the engine's dialect."""
        try:
            compiled = literal(value).compile(
                dialect=self.engine.dialect,
                compile_kwargs={"literal_binds": True},
            )
        except CompileError as exc:
            raise BindVariableError(f"cannot quote {value!r}: {exc}") from exc
        rendered = str(compiled)
        # format/pyformat dialects escape % for the driver's own substitution,
        # which never runs: SQL is sent with no_parameters
        if self.engine.dialect.identifier_preparer._double_percents:
            rendered = rendered.replace("%%", "%")
        return rendered

    def column_types(self, columns: list[str], description: Sequence | None) -> dict[str, str]:
        types: dict[str, str] = {}
        for column, entry in zip(columns, description or ()):
            type_code = entry[1]
            if isinstance(type_code, int):
                name = self.type_registry.name_for_oid(type_code)
                if name is not None:
                    types[column] = name
        return types

    def dispose(self) -> None:
        self.engine.dispose()

    # ─── Per-thread transaction pinning ──────────────────────────

    def _pinned(self) -> Connection | None:
        return getattr(self._local, "connection", None)

    def _pin(self, connection: Connection | None) -> None:
        self._local.connection = connection


class DatabaseConnection:
    """Raw SQL primitives over the manager's engine."""

    def __init__(self, manager: DatabaseManager):
        self._manager = manager

    def execute(self, sql: str) -> Any:
        """Run sql. Row-returning statements come back as a buffered Result."""
        with self._checkout() as conn:
            result = self._run(conn, sql)
            if result.returns_rows:
                return result.freeze()()
            return result

    def select_all(self, sql: str) -> ResultSet:
        with self._checkout() as conn:
            result = self._run(conn, sql)
            if not result.returns_rows:
                return ResultSet(columns=[], rows=[])
            description = result.cursor.description
            columns = list(result.keys())
            rows = [tuple(row) for row in result.fetchall()]
        return ResultSet(
            columns=columns,
            rows=rows,
            column_types=self._manager.column_types(columns, description),
        )

    def select_rows(self, sql: str) -> list[tuple]:
        return self.select_all(sql).rows

    def select_values(self, sql: str) -> list:
        return [row[0] for row in self.select_rows(sql)]

    def select_value(self, sql: str) -> Any:
        rows = self.select_rows(sql)
        return rows[0][0] if rows else None

    @contextmanager
    def transaction(self, requires_new: bool = False) -> Iterator[None]:
        """Transaction scope: commit on exit, rollback when the block raises."""
        conn = self._manager._pinned()
        if conn is None:
            with self._manager.engine.connect() as conn:
                self._manager._pin(conn)
                try:
                    with conn.begin():
                        yield
                finally:
                    self._manager._pin(None)
        elif requires_new:
            with conn.begin_nested():
                yield
        else:
            yield

    def transaction_open(self) -> bool:
        conn = self._manager._pinned()
        return conn is not None and conn.in_transaction()

    @contextmanager
    def _checkout(self) -> Iterator[Connection]:
        conn = self._manager._pinned()
        if conn is not None:
            yield conn
            return
        with self._manager.engine.begin() as conn:
            yield conn

    def _run(self, conn: Connection, sql: str):
        started = time.perf_counter()
        result = conn.exec_driver_sql(sql, execution_options={"no_parameters": True})
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug(
            f"SQL ({elapsed_ms:.1f}ms) {sql}",
            extra={"sql": sql, "elapsed_ms": round(elapsed_ms, 3), "rowcount": result.rowcount},
        )
        return result


# Singleton (initialized on startup)
db_manager: DatabaseManager | None = None


def init_db(database_url: str, **kwargs: Any) -> DatabaseManager:
    global db_manager
    db_manager = DatabaseManager(database_url, **kwargs)
    return db_manager


def close_db() -> None:
    global db_manager
    if db_manager is not None:
        db_manager.dispose()
    db_manager = None


def get_db_manager() -> DatabaseManager:
    if db_manager is None:
        raise ConfigurationError("Database not initialized; call init_db() first")
    return db_manager
