"""
tablequery - immutable, serializable table query pipelines.

Build a pipeline of verbs, store or send it as a plain object, and run
it later against pyarrow tables resolved through a catalog::

    from tablequery import Catalog, Table, query, query_from

    catalog = Catalog({"orders": Table.from_pydict({"amount": [5, 20, 40]})})
    q = query("orders").filter("amount > $min").params({"min": 10})

    stored = q.to_object()
    query_from(stored).evaluate(catalog=catalog).to_pylist()
    # [{'amount': 20}, {'amount': 40}]
"""

from .exceptions import (
    TableQueryError,
    TableNotFoundError,
    TableLoadError,
    VerbDecodeError,
    ExpressionError,
    ExpressionParseError,
    ColumnNotFoundError,
    ParameterNotFoundError,
)
from .config import QueryConfig
from .logging_config import configure_logging, get_logger
from .table import Transformable, Table, Catalog, load_table, write_table
from .verbs import Verb, VerbRegistry, register_verb
from .builder import Query, query, query_from, add_query_verb, query_verbs

__version__ = "0.1.0"

__all__ = [
    # Query
    "Query",
    "query",
    "query_from",
    "add_query_verb",
    "query_verbs",
    # Verbs
    "Verb",
    "VerbRegistry",
    "register_verb",
    # Tables
    "Transformable",
    "Table",
    "Catalog",
    "load_table",
    "write_table",
    # Configuration
    "QueryConfig",
    "configure_logging",
    "get_logger",
    # Exceptions
    "TableQueryError",
    "TableNotFoundError",
    "TableLoadError",
    "VerbDecodeError",
    "ExpressionError",
    "ExpressionParseError",
    "ColumnNotFoundError",
    "ParameterNotFoundError",
]
