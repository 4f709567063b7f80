"""
Table - an immutable pyarrow table annotated with expression parameters.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import pyarrow as pa

from .transformable import Transformable

# Marks the no-argument call shape of ``params``.
_UNSET: Any = object()


class Table(Transformable):
    """
    Column-oriented table backed by ``pyarrow.Table``.

    Tables never change after construction. Verbs return new tables and
    ``params(values)`` returns a new table that shares the same columns.

    ::: This is-in-layer Domain-Layer.
    ::: This is a value-object.
    ::: This is stateless.
    """

    def __init__(self, data: pa.Table, params: Optional[Mapping[str, Any]] = None):
        super().__init__(params)
        if not isinstance(data, pa.Table):
            raise TypeError(f"Expected pyarrow.Table, got {type(data).__name__}")
        self._data = data

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def wrap(cls, value: Union["Table", pa.Table]) -> "Table":
        """Return ``value`` as a Table, wrapping raw pyarrow tables."""
        if isinstance(value, Table):
            return value
        return cls(value)

    @classmethod
    def from_pydict(cls, columns: Mapping[str, Iterable[Any]], params: Optional[Mapping[str, Any]] = None) -> "Table":
        return cls(pa.table({name: list(values) for name, values in columns.items()}), params)

    @classmethod
    def from_pylist(cls, rows: List[Dict[str, Any]], params: Optional[Mapping[str, Any]] = None) -> "Table":
        if not rows:
            return cls(pa.table({}), params)
        return cls(pa.Table.from_pylist(rows), params)

    # -------------------------------------------------------------------------
    # Parameters
    # -------------------------------------------------------------------------

    def params(self, values: Optional[Mapping[str, Any]] = _UNSET):
        """
        Get or set table expression parameter values.

        Called without arguments, returns the current mapping (or None).
        Called with a mapping, returns a new table over the same data whose
        parameters are the current ones overridden by ``values``.
        """
        if values is _UNSET:
            return self._params
        if values is None:
            return self
        return Table(self._data, self._merged(values))

    # -------------------------------------------------------------------------
    # Data access
    # -------------------------------------------------------------------------

    @property
    def data(self) -> pa.Table:
        return self._data

    @property
    def num_rows(self) -> int:
        return self._data.num_rows

    @property
    def num_columns(self) -> int:
        return self._data.num_columns

    @property
    def column_names(self) -> List[str]:
        return self._data.column_names

    def column(self, name: str) -> pa.ChunkedArray:
        return self._data.column(name)

    def to_pylist(self) -> List[Dict[str, Any]]:
        return self._data.to_pylist()

    def to_pydict(self) -> Dict[str, List[Any]]:
        return self._data.to_pydict()

    def with_data(self, data: pa.Table) -> "Table":
        """Return a table over ``data`` carrying this table's parameters."""
        return Table(data, self._params)

    def __len__(self) -> int:
        return self._data.num_rows

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Table):
            return self._data.equals(other._data)
        if isinstance(other, pa.Table):
            return self._data.equals(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Table({self.num_rows} rows x {self.num_columns} columns: {', '.join(self.column_names)})"
