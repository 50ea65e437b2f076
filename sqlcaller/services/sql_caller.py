"""SqlCaller — the application facade bound to the process database manager.

Invariants:
    - Bound by name to sqlcaller.infrastructure.database:db_manager; the name is
      resolved on first use, so init_db() (or lifecycle.startup()) must run first
"""

from sqlcaller.services.sql_facade import SqlFacade


class SqlCaller(SqlFacade, model="sqlcaller.infrastructure.database:db_manager"):
    """Facade over the DatabaseManager created by init_db()."""
