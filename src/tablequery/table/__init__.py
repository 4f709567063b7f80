"""
Tables, the parameter store and the table catalog.
"""

from .transformable import Transformable
from .table import Table
from .catalog import Catalog, CatalogFn
from .io import load_table, write_table

__all__ = [
    "Transformable",
    "Table",
    "Catalog",
    "CatalogFn",
    "load_table",
    "write_table",
]
