"""
Catalog - resolves table names to tables.

A catalog is anything callable as ``catalog(name) -> Table``. ``Catalog``
is the bundled dictionary-backed implementation.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Union

import pyarrow as pa

from ..exceptions import TableNotFoundError
from .io import load_table
from .table import Table

logger = logging.getLogger(__name__)

CatalogFn = Callable[[Optional[str]], Union[Table, pa.Table]]


class Catalog:
    """
    Name to table registry usable wherever a catalog function is expected.

    Example:
        catalog = Catalog({"orders": orders_table})
        catalog.load("customers", "customers.csv")
        query("orders").join("customers", on="customer_id").evaluate(catalog=catalog)

    ::: This is-in-layer Domain-Layer.
    ::: This is a registry.
    ::: This is stateful.
    """

    def __init__(self, tables: Optional[Mapping[str, Union[Table, pa.Table]]] = None):
        self._tables: Dict[str, Table] = {}
        for name, table in (tables or {}).items():
            self.register(name, table)

    def register(self, name: str, table: Union[Table, pa.Table]) -> "Catalog":
        """Add or replace a named table. Returns the catalog for chaining."""
        if name in self._tables:
            logger.debug(f"Replacing table {name!r} in catalog")
        self._tables[name] = Table.wrap(table)
        return self

    def load(self, name: str, path: Union[str, Path]) -> Table:
        """Load a table file and register it under ``name``."""
        table = load_table(path)
        self.register(name, table)
        return table

    def names(self) -> List[str]:
        return sorted(self._tables)

    def __call__(self, name: Optional[str]) -> Table:
        if name is None or name not in self._tables:
            raise TableNotFoundError(name)
        return self._tables[name]

    def __contains__(self, name: object) -> bool:
        return name in self._tables

    def __len__(self) -> int:
        return len(self._tables)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __repr__(self) -> str:
        return f"Catalog({', '.join(self.names())})"
