"""
Query - an immutable, serializable pipeline of table verbs.

A query is built fluently, one verb per call, and every call returns a
new Query; the one it was called on is left untouched::

    from tablequery import query

    q = (
        query("orders")
        .filter("amount > $min")
        .rollup({"total": "sum(amount)"}, groupby="region")
        .orderby("-total")
    )
    q.params({"min": 10})
    result = q.evaluate(catalog=catalog)

Queries serialize to plain objects (``to_object``) and to ASTs with
parsed expressions (``to_ast``), and are rebuilt with ``query_from``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pyarrow as pa

from .constants import QUERY_TYPE
from .exceptions import TableNotFoundError, VerbDecodeError
from .table import CatalogFn, Table, Transformable
from .verbs import Verb, VerbRegistry

logger = logging.getLogger(__name__)

# Marks the no-argument call shape of ``params``.
_UNSET: Any = object()

VerbFactory = Callable[..., Verb]
InternalVerb = Callable[..., "Query"]

# Fluent builder dispatch table: method name -> verb factory
_QUERY_VERBS: Dict[str, VerbFactory] = {}

# Internal variants, fn(qb, *args, **kwargs), for the verbs known at load time
_INTERNAL_VERBS: Dict[str, InternalVerb] = {}


class Query(Transformable):
    """
    Ordered, immutable sequence of verbs with optional parameters and
    an optional source table name.

    Verb builder methods (``filter``, ``select``, ``rollup``, ...) are
    looked up in the query verb table, so verbs added with
    ``add_query_verb`` become methods of every Query.

    ::: This is-in-layer Domain-Specific-Language-Layer.
    ::: This is a pipeline.
    ::: This is stateless.
    """

    def __init__(self, verbs: Optional[Sequence[Verb]] = None,
                 params: Optional[Mapping[str, Any]] = None,
                 table: Optional[str] = None):
        super().__init__(params)
        self._verbs: Tuple[Verb, ...] = tuple(verbs) if verbs else ()
        self._table = table

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def from_object(cls, obj: Mapping[str, Any], strict: bool = True) -> "Query":
        """
        Rebuild a query from its object form.

        Args:
            obj: ``{"verbs": [...], "table"?: name, "params"?: {...}}``
            strict: When False, verbs of unknown kind are logged and
                skipped instead of raising

        Raises:
            VerbDecodeError: If the object or one of its verbs is malformed
        """
        if not isinstance(obj, Mapping):
            raise VerbDecodeError(f"Not a query object: {obj!r}", obj)
        verbs = obj.get("verbs")
        if not isinstance(verbs, (list, tuple)):
            raise VerbDecodeError("Query object must have a 'verbs' list", obj)
        table = obj.get("table")
        if table is not None and not isinstance(table, str):
            raise VerbDecodeError(f"Query table must be a name, got {table!r}", obj)
        params = obj.get("params")
        if params is not None and not isinstance(params, Mapping):
            raise VerbDecodeError(f"Query params must be an object, got {params!r}", obj)

        decoded: List[Verb] = []
        for item in verbs:
            if not strict and isinstance(item, Mapping) and VerbRegistry.get(item.get("verb")) is None:
                logger.warning(f"Skipping unknown verb: {item.get('verb')!r}")
                continue
            decoded.append(Verb.from_object(item))
        return cls(decoded, params, table)

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def table_name(self) -> Optional[str]:
        """Name of the source table resolved through the catalog, if any."""
        return self._table

    @property
    def verbs(self) -> Tuple[Verb, ...]:
        return self._verbs

    def __len__(self) -> int:
        return len(self._verbs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Query):
            return NotImplemented
        return (
            self._verbs == other._verbs
            and self._params == other._params
            and self._table == other._table
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        source = f" on {self._table!r}" if self._table is not None else ""
        return f"Query: {len(self._verbs)} verbs{source}"

    # -------------------------------------------------------------------------
    # Building
    # -------------------------------------------------------------------------

    def _append(self, verb: Verb) -> "Query":
        """Return a new query with ``verb`` appended."""
        return Query(self._verbs + (verb,), self._params, self._table)

    def __getattr__(self, name: str) -> Callable[..., "Query"]:
        factory = None if name.startswith("_") else _QUERY_VERBS.get(name)
        if factory is None:
            raise AttributeError(f"'Query' object has no attribute {name!r}")

        def append_verb(*args, **kwargs) -> "Query":
            return self._append(factory(*args, **kwargs))

        append_verb.__name__ = name
        return append_verb

    def __dir__(self) -> List[str]:
        return sorted(set(super().__dir__()) | set(_QUERY_VERBS))

    @staticmethod
    def internal(name: str) -> InternalVerb:
        """
        Return the internal variant of a built-in verb.

        The variant appends to an explicitly passed query:
        ``Query.internal("rollup")(q, {"n": "count()"})``.
        """
        try:
            return _INTERNAL_VERBS[name]
        except KeyError:
            raise KeyError(f"No internal query verb: {name!r}") from None

    def count(self, groupby: Optional[Union[str, Sequence[str]]] = None, as_: str = "count") -> "Query":
        """Count rows, optionally per group, into a column named ``as_``."""
        return Query.internal("rollup")(self, {as_: "count()"}, groupby=groupby)

    # -------------------------------------------------------------------------
    # Parameters
    # -------------------------------------------------------------------------

    def params(self, values: Optional[Mapping[str, Any]] = _UNSET):
        """
        Get or set expression parameter values.

        Called without arguments, returns the current mapping (or None).
        Called with a mapping, merges it over the current parameters,
        updates this query in place and returns it.
        """
        if values is _UNSET:
            return self._params
        return self.merge_params(values)

    def merge_params(self, values: Optional[Mapping[str, Any]]) -> "Query":
        """Merge ``values`` over the current parameters in place; returns self."""
        if values is not None:
            self._params = self._merged(values)
        return self

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    def evaluate(self, table: Optional[Union[Table, pa.Table]] = None,
                 catalog: Optional[CatalogFn] = None) -> Table:
        """
        Run the verbs over a table.

        Args:
            table: Input table. When None, ``catalog(self.table_name)``
                supplies it
            catalog: Resolves table names, for the source table and for
                tables referenced by verbs such as join

        Returns:
            The transformed table. With no verbs, the input table itself.

        Raises:
            TableNotFoundError: If no table is given and none can be resolved
        """
        if table is None:
            if catalog is None:
                raise TableNotFoundError(self._table)
            table = catalog(self._table)
        table = Table.wrap(table)

        if not self._verbs:
            return table

        logger.debug(f"Evaluating {self!r} on {table.num_rows} rows")
        for verb in self._verbs:
            table = verb.evaluate(table.params(self._params), catalog)
            logger.debug(f"  {verb.name}: {table.num_rows} rows")
        return table

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def _serialize(self, method: str, props: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        obj: Dict[str, Any] = dict(props or {})
        obj["verbs"] = [getattr(verb, method)() for verb in self._verbs]
        if self._params is not None:
            obj["params"] = dict(self._params)
        if self._table is not None:
            obj["table"] = self._table
        return obj

    def to_object(self) -> Dict[str, Any]:
        """Serialize as ``{"verbs": [...], "params"?: {...}, "table"?: name}``."""
        return self._serialize("to_object")

    def to_json(self) -> Dict[str, Any]:
        """JSON-compatible form; same as ``to_object``."""
        return self.to_object()

    def to_ast(self) -> Dict[str, Any]:
        """Serialize as an AST, with verb expressions parsed."""
        return self._serialize("to_ast", {"type": QUERY_TYPE})


# =============================================================================
# Verb table
# =============================================================================

def add_query_verb(name: str, factory: VerbFactory) -> None:
    """
    Install a fluent builder method on Query.

    After ``add_query_verb("head", HeadVerb.create)``, ``q.head(5)``
    appends ``HeadVerb.create(5)``. To make such verbs decodable by
    ``query_from`` as well, register the class with ``@register_verb``.

    Raises:
        ValueError: If ``name`` is not a usable method name
    """
    if not isinstance(name, str) or not name.isidentifier() or name.startswith("_"):
        raise ValueError(f"Invalid query verb name: {name!r}")
    if hasattr(Query, name):
        raise ValueError(f"Query verb {name!r} would shadow an existing Query attribute")
    if not callable(factory):
        raise TypeError(f"Query verb factory for {name!r} must be callable")
    _QUERY_VERBS[name] = factory


def query_verbs() -> List[str]:
    """Names of the fluent builder methods currently installed."""
    return sorted(_QUERY_VERBS)


def _internal_variant(name: str, factory: VerbFactory) -> InternalVerb:
    def internal(qb: Query, *args, **kwargs) -> Query:
        return qb._append(factory(*args, **kwargs))

    internal.__name__ = name
    return internal


for _name, _factory in VerbRegistry.constructors().items():
    add_query_verb(_name, _factory)
    _INTERNAL_VERBS[_name] = _internal_variant(_name, _factory)


def query(table_name: Optional[str] = None) -> Query:
    """Create an empty query, optionally reading from a named table."""
    return Query(table=table_name)


def query_from(obj: Mapping[str, Any]) -> Query:
    """Rebuild a query from its object form (``Query.to_object``)."""
    return Query.from_object(obj)
