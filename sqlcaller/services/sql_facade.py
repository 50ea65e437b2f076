"""SQL Facade — raw SQL passthrough plus typed reads, array casting and transactions.

Invariants:
    - One singleton per facade subclass (instance()), created under a lock
    - Every public operation is callable on the class and on the instance with
      identical arguments and results
    - The model binding resolves at most once per instance; the connection is
      fetched from the model on every call and never cached
    - Bind values are substituted by the model's sanitizer before the SQL
      reaches the connection; without binds the SQL is passed through untouched
    - Serialized reads decode by column type only; columns without a type tag
      keep their raw value
    - Driver errors propagate unchanged; nothing here logs or retries them

Design Decisions:
    - Explicit dependencies: SqlFacade(model=..., type_registry=...) works standalone;
      instance() builds one from the class-level binding and the default registry
    - Row keys are interned strings (sys.intern): one shared key object per column name
    - Facade subclasses choose their model with class keyword or bind_model():
      class Reports(SqlFacade, model="myapp.db:manager")
"""

import logging
import re
import sys
import threading
from typing import Any, Callable

from sqlcaller.core.delegation import (
    SINGLETON, delegate, redelegate_overrides, sql_method,
)
from sqlcaller.core.errors import (
    ConfigurationError, EmptyResultError, ErrorContext,
    InvalidIdentifierError, MissingBlockError,
)
from sqlcaller.core.model_binding import ModelBinding, bind
from sqlcaller.core.protocols import ModelLike
from sqlcaller.core.result_set import ResultSet
from sqlcaller.core.type_registry import TypeRegistry, get_default_registry

logger = logging.getLogger(__name__)

CONNECTION_SQL_METHODS = (
    "select_value",
    "select_values",
    "execute",
    "select_all",
    "select_rows",
)

STATIC_OPERATIONS = (
    *CONNECTION_SQL_METHODS,
    "transaction_open",
    "select_all_serialized",
    "select_value_serialized",
    "select_values_serialized",
    "next_sequence_value",
    "table_full_size",
    "table_data_size",
    "select_row",
    "transaction",
    "explain_analyze",
    "typecast_array",
    "sanitize_sql_array",
    "current_database_name",
)

_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*(\.[A-Za-z_][A-Za-z0-9_$]*)?$")
_singleton_lock = threading.RLock()


class SqlFacade:
    """Executes raw SQL against the connection of one bound model."""

    _model_binding: ModelBinding | None = None

    def __init_subclass__(cls, model: Any = None, **kwargs: Any):
        super().__init_subclass__(**kwargs)
        redelegate_overrides(cls)
        if model is not None:
            cls.bind_model(model)

    def __init__(
        self, model: Any = None, type_registry: TypeRegistry | None = None,
    ):
        self._binding = bind(model) if model is not None else type(self)._model_binding
        self._model: ModelLike | None = None
        self._model_lock = threading.Lock()
        self.type_registry = (
            type_registry if type_registry is not None else get_default_registry()
        )

    # ─── Singleton & binding ─────────────────────────────────────

    @classmethod
    def instance(cls) -> "SqlFacade":
        """Process-wide instance of this facade subclass."""
        existing = cls.__dict__.get("_instance")
        if existing is not None:
            return existing
        with _singleton_lock:
            existing = cls.__dict__.get("_instance")
            if existing is None:
                existing = cls()
                cls._instance = existing
                logger.debug(
                    f"Created {cls.__name__} singleton",
                    extra={"facade": cls.__name__},
                )
            return existing

    @classmethod
    def bind_model(cls, target: Any) -> None:
        """Bind this subclass to a model handle or a "module:attribute" path. Once."""
        if target is None:
            raise ConfigurationError(f"cannot bind {cls.__name__} to None")
        if cls.__dict__.get("_model_binding") is not None:
            raise ConfigurationError(
                f"model binding already defined for {cls.__name__}",
                ErrorContext(facade=cls.__name__, operation="bind_model"),
            )
        cls._model_binding = bind(target)

    @property
    def model(self) -> ModelLike:
        model = self._model
        if model is not None:
            return model
        with self._model_lock:
            if self._model is None:
                facade = type(self).__name__
                if self._binding is None:
                    raise ConfigurationError(
                        f"model binding not defined in {facade}",
                        ErrorContext(facade=facade, operation="model"),
                    )
                self._model = self._binding.resolve()
                logger.debug(
                    f"Resolved model binding for {facade}",
                    extra={"facade": facade},
                )
            return self._model

    # ─── Raw passthrough ─────────────────────────────────────────

    select_value = sql_method("select_value")
    select_values = sql_method("select_values")
    execute = sql_method("execute")
    select_all = sql_method("select_all")
    select_rows = sql_method("select_rows")

    def select_row(self, sql: str, *binds: Any) -> tuple | None:
        rows = self.select_rows(sql, *binds)
        return rows[0] if rows else None

    def sanitize_sql_array(self, sql: str, *binds: Any) -> str:
        return self.model.sanitize_sql_array(sql, list(binds))

    # ─── Serialized reads ────────────────────────────────────────

    def select_all_serialized(self, sql: str, *binds: Any) -> list[dict[str, Any]]:
        """select_all with every value decoded through its column type."""
        result = self.select_all(sql, *binds)
        return [
            {
                sys.intern(key): self._deserialize_result(result, key, value)
                for key, value in row.items()
            }
            for row in result
        ]

    def select_value_serialized(self, sql: str, *binds: Any) -> Any:
        """First column of the first row, decoded. EmptyResultError without rows."""
        result = self.select_all(sql, *binds)
        row = result.first()
        if not row:
            raise EmptyResultError("select_value_serialized", sql)
        key, value = next(iter(row.items()))
        return self._deserialize_result(result, key, value)

    def select_values_serialized(self, sql: str, *binds: Any) -> list[list[Any]]:
        result = self.select_all(sql, *binds)
        return [
            [self._deserialize_result(result, key, value) for key, value in row.items()]
            for row in result
        ]

    def _deserialize_result(self, result: ResultSet, column: str, raw: Any) -> Any:
        type_name = result.column_types.get(column)
        if type_name is None:
            return raw
        return self.type_registry.lookup(type_name).deserialize(raw)

    # ─── Transactions ────────────────────────────────────────────

    def transaction_open(self) -> bool:
        return self.connection().transaction_open()

    def transaction(self, block: Callable | None = None, /, *args: Any, **kwargs: Any) -> Any:
        """Run block(*args, **kwargs) in the connection's transaction scope.

        Commits when block returns, rolls back and re-raises when it raises.
        Nested calls follow the connection's nesting rules.
        """
        if block is None or not callable(block):
            raise MissingBlockError(
                ErrorContext(facade=type(self).__name__, operation="transaction"),
            )
        with self.connection().transaction():
            return block(*args, **kwargs)

    # ─── Introspection ───────────────────────────────────────────

    def explain_analyze(self, sql: str, *binds: Any) -> str:
        plan = self.select_values(f"EXPLAIN ANALYZE {sql}", *binds)
        return "\n".join(["QUERY_PLAN", *plan])

    def next_sequence_value(self, table_name: str) -> int:
        """Peek at the id the table's <table>_id_seq sequence should hand out next.

        Reads last_value and adds one. Nothing is reserved: a concurrent insert
        can take that id first. Call nextval() when an id must be claimed.
        """
        if not _TABLE_NAME.match(table_name):
            raise InvalidIdentifierError(
                table_name,
                ErrorContext(facade=type(self).__name__, operation="next_sequence_value"),
            )
        last_value = self.select_value(f"SELECT last_value FROM {table_name}_id_seq")
        return int(last_value) + 1

    def table_full_size(self, table_name: str) -> int:
        """Bytes used by the table including indexes and TOAST."""
        return self.select_value("SELECT pg_total_relation_size(?)", table_name)

    def table_data_size(self, table_name: str) -> int:
        return self.select_value("SELECT pg_relation_size(?)", table_name)

    def current_database_name(self) -> str:
        return self.select_value("SELECT current_database();")

    # ─── Array casting ───────────────────────────────────────────

    def typecast_array(self, values: list, type_name: str) -> str:
        """Encode values as a database array literal of type_name, e.g. '{1,2,3}'."""
        codec = self.type_registry.lookup(type_name, array=True)
        data = codec.serialize(values)
        return data.encoder.encode(data.values)


delegate(SqlFacade, *STATIC_OPERATIONS, to=SINGLETON)
delegate(SqlFacade, "connection", to="model")
