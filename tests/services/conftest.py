"""Service test fixtures — in-memory SQLite manager, seeded ORM rows, fake collaborators.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - Every test gets a fresh facade subclass (so a fresh singleton)
    - FakeConnection records every SQL string handed to it, in order

Design Decisions:
    - SQLite in-memory for passthrough/transaction behaviour: fast, no external dependency
    - FakeConnection for PostgreSQL-only queries (sequences, relation sizes,
      EXPLAIN ANALYZE) and for typed column metadata, which SQLite never reports
"""

from contextlib import contextmanager

import pytest
from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

from sqlcaller.core.result_set import ResultSet
from sqlcaller.core.sanitize import sanitize_sql_array
from sqlcaller.infrastructure.database import DatabaseManager
from sqlcaller.services.sql_facade import SqlFacade


class Base(DeclarativeBase):
    pass


class Department(Base):
    __tablename__ = "departments"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    department_id: Mapped[int] = mapped_column(
        ForeignKey("departments.id"), nullable=False,
    )


# ─── Fakes ───────────────────────────────────────────────────────

def _quote(value):
    if value is None:
        return "NULL"
    if isinstance(value, str):
        return "'" + value.replace("'", "''") + "'"
    return str(value)


class FakeConnection:
    """Connection double: canned ResultSets keyed by SQL, records statements."""

    def __init__(self):
        self.statements: list[str] = []
        self.results: dict[str, ResultSet] = {}
        self.open = False
        self.commits = 0
        self.rollbacks = 0

    def _result(self, sql):
        self.statements.append(sql)
        return self.results.get(sql, ResultSet(columns=[], rows=[]))

    def execute(self, sql):
        self.statements.append(sql)
        return {"executed": sql}

    def select_all(self, sql):
        return self._result(sql)

    def select_rows(self, sql):
        return self._result(sql).rows

    def select_values(self, sql):
        return [row[0] for row in self._result(sql).rows]

    def select_value(self, sql):
        rows = self._result(sql).rows
        return rows[0][0] if rows else None

    @contextmanager
    def transaction(self):
        outer = not self.open
        self.open = True
        try:
            yield
        except Exception:
            if outer:
                self.rollbacks += 1
            raise
        else:
            if outer:
                self.commits += 1
        finally:
            if outer:
                self.open = False

    def transaction_open(self):
        return self.open


class FakeModel:
    """Model double: hands out one FakeConnection, sanitizes with simple quoting."""

    def __init__(self, connection):
        self._connection = connection
        self.connection_calls = 0

    def connection(self):
        self.connection_calls += 1
        return self._connection

    def sanitize_sql_array(self, sql, binds):
        return sanitize_sql_array(sql, binds, _quote)


# ─── Fake-backed fixtures ────────────────────────────────────────

@pytest.fixture
def fake_connection():
    return FakeConnection()


@pytest.fixture
def fake_model(fake_connection):
    return FakeModel(fake_connection)


@pytest.fixture
def caller(fake_model):
    """Fresh facade subclass bound directly to the fake model."""
    class Caller(SqlFacade, model=fake_model):
        pass

    return Caller


# ─── SQLite-backed fixtures ──────────────────────────────────────

@pytest.fixture
def manager():
    manager = DatabaseManager("sqlite://")
    Base.metadata.create_all(manager.engine)
    yield manager
    Base.metadata.drop_all(manager.engine)
    manager.dispose()


@pytest.fixture
def sqlite_caller(manager):
    """Fresh facade subclass bound to the SQLite manager."""
    class SqliteCaller(SqlFacade, model=manager):
        pass

    return SqliteCaller


@pytest.fixture
def departments(manager):
    """Tech (John, Jane) and Sales (Jake). Returns {name: id}."""
    with Session(manager.engine) as session:
        tech = Department(name="Tech")
        sales = Department(name="Sales")
        session.add_all([tech, sales])
        session.flush()
        ids = {"tech": tech.id, "sales": sales.id}
        session.add_all([
            Employee(name="John Doe", department_id=ids["tech"]),
            Employee(name="Jane Doe", department_id=ids["tech"]),
            Employee(name="Jake Doe", department_id=ids["sales"]),
        ])
        session.commit()
    return ids
