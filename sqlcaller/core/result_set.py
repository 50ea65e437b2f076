"""Result Set — rows of raw values plus per-column type tags.

Invariants:
    - Iteration yields one dict per row, keys in column order
    - column_types may omit columns: no tag means no metadata
    - Produced per call, never cached
"""

from dataclasses import dataclass, field
from typing import Any, Iterator


@dataclass
class ResultSet:
    """Raw query result: column names, positional rows, column type tags."""
    columns: list[str]
    rows: list[tuple]
    column_types: dict[str, str] = field(default_factory=dict)

    def __iter__(self) -> Iterator[dict[str, Any]]:
        for row in self.rows:
            yield dict(zip(self.columns, row))

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def first(self) -> dict[str, Any] | None:
        if not self.rows:
            return None
        return dict(zip(self.columns, self.rows[0]))
