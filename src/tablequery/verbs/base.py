"""
Verb base class, verb registry and table references.

A verb is one immutable pipeline stage. Each verb kind is a frozen
dataclass registered under its name; ``Verb.from_object`` dispatches on
the ``"verb"`` field of a serialized verb to rebuild it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import (
    TYPE_CHECKING, Any, Callable, ClassVar, Dict, Iterable, List, Mapping,
    Optional, Sequence, Tuple, Type, TypeVar, Union,
)

from ..constants import TABLE_REF_TYPE, VERB_TYPE
from ..exceptions import (
    ColumnNotFoundError,
    ExpressionError,
    TableNotFoundError,
    VerbDecodeError,
)
from ..table import CatalogFn, Table

if TYPE_CHECKING:
    from ..builder import Query

V = TypeVar("V", bound="Verb")

TableRef = Union[str, "Query"]


# =============================================================================
# Verb
# =============================================================================

class Verb(ABC):
    """
    Base class for pipeline verbs.

    Subclasses are frozen dataclasses and implement:
    - ``create(*args, **kwargs)``: build the verb from builder arguments
    - ``evaluate(table, catalog)``: apply the verb, returning a new table
    - ``_object_fields()`` / ``_ast_fields()``: serialized fields
    - ``_decode(obj)``: rebuild the verb from its object form

    ::: This is-in-layer Domain-Specific-Language-Layer.
    ::: This is a step.
    ::: This is stateless.
    """

    name: ClassVar[str] = ""

    @classmethod
    @abstractmethod
    def create(cls: Type[V], *args, **kwargs) -> V:
        """Build a verb from fluent builder arguments."""

    @abstractmethod
    def evaluate(self, table: Table, catalog: Optional[CatalogFn] = None) -> Table:
        """Apply this verb to ``table``."""

    @abstractmethod
    def _object_fields(self) -> Dict[str, Any]:
        """JSON-compatible fields of the object form, without the verb tag."""

    def _ast_fields(self) -> Dict[str, Any]:
        """Fields of the AST form; defaults to the object fields."""
        return self._object_fields()

    @classmethod
    @abstractmethod
    def _decode(cls: Type[V], obj: Mapping[str, Any]) -> V:
        """Rebuild this verb kind from its object form."""

    def to_object(self) -> Dict[str, Any]:
        """Serialize this verb as a JSON-compatible object."""
        return {"verb": self.name, **self._object_fields()}

    def to_ast(self) -> Dict[str, Any]:
        """Serialize this verb as an AST node, with expressions parsed."""
        return {"type": VERB_TYPE, "verb": self.name, **self._ast_fields()}

    @staticmethod
    def from_object(obj: Union["Verb", Mapping[str, Any]]) -> "Verb":
        """
        Rebuild a verb from its object form.

        Raises:
            VerbDecodeError: If the object is not a recognized verb encoding
        """
        if isinstance(obj, Verb):
            return obj
        if not isinstance(obj, Mapping) or not isinstance(obj.get("verb"), str):
            raise VerbDecodeError(f"Not a verb object: {obj!r}", obj)

        name = obj["verb"]
        verb_cls = VerbRegistry.get(name)
        if verb_cls is None:
            raise VerbDecodeError(f"Unknown verb: {name!r}", obj)

        try:
            return verb_cls._decode(obj)
        except VerbDecodeError:
            raise
        except (KeyError, TypeError, ValueError, ExpressionError) as e:
            raise VerbDecodeError(f"Malformed {name!r} verb: {e}", obj) from e


# =============================================================================
# Registry
# =============================================================================

class VerbRegistry:
    """
    Registry of verb kinds by name.

    Verb classes are registered with the ``@register_verb`` decorator.
    The registry drives decoding (``Verb.from_object``) and seeds the
    fluent builder methods of ``Query``.

    Example:
        @register_verb("head")
        @dataclass(frozen=True)
        class HeadVerb(Verb):
            ...

        VerbRegistry.get("head")  # -> HeadVerb
    """

    _verbs: Dict[str, Type[Verb]] = {}

    @classmethod
    def register(cls, name: str, verb_cls: Type[Verb]) -> None:
        """
        Register a verb class under ``name``.

        Registering an existing name replaces the previous class.
        """
        verb_cls.name = name
        cls._verbs[name] = verb_cls

    @classmethod
    def unregister(cls, name: str) -> bool:
        """Remove a verb kind. Returns True if it was registered."""
        return cls._verbs.pop(name, None) is not None

    @classmethod
    def get(cls, name: str) -> Optional[Type[Verb]]:
        return cls._verbs.get(name)

    @classmethod
    def names(cls) -> List[str]:
        return list(cls._verbs)

    @classmethod
    def constructors(cls) -> Dict[str, Callable[..., Verb]]:
        """Name to builder-function dispatch table."""
        return {name: verb_cls.create for name, verb_cls in cls._verbs.items()}

    @classmethod
    def count(cls) -> int:
        return len(cls._verbs)


def register_verb(name: str) -> Callable[[Type[V]], Type[V]]:
    """Class decorator registering a verb kind under ``name``."""
    def decorator(verb_cls: Type[V]) -> Type[V]:
        VerbRegistry.register(name, verb_cls)
        return verb_cls
    return decorator


# =============================================================================
# Argument helpers
# =============================================================================

def column_list(args: Sequence[Any]) -> Tuple[str, ...]:
    """Accept ``f("a", "b")`` as well as ``f(["a", "b"])``."""
    if len(args) == 1 and isinstance(args[0], (list, tuple)):
        args = args[0]
    for name in args:
        if not isinstance(name, str):
            raise TypeError(f"Column names must be strings, got {name!r}")
    return tuple(args)


def expression_pairs(values: Optional[Mapping[str, str]], extra: Mapping[str, str]) -> Tuple[Tuple[str, str], ...]:
    """Merge a name -> expression mapping and keyword arguments into pairs."""
    merged = dict(values or {})
    merged.update(extra)
    for name, expr in merged.items():
        if not isinstance(expr, str):
            raise TypeError(f"Expression for {name!r} must be a string, got {expr!r}")
    return tuple(merged.items())


def list_field(obj: Mapping[str, Any], key: str, default: Optional[List[Any]] = None) -> List[Any]:
    """Read a list-valued field of a verb object; strings are not split."""
    if key not in obj and default is not None:
        return list(default)
    value = obj[key]
    if not isinstance(value, (list, tuple)):
        raise VerbDecodeError(f"Field {key!r} must be a list, got {value!r}", obj)
    return list(value)


def require_columns(table: Table, names: Iterable[str]) -> None:
    available = table.column_names
    for name in names:
        if name not in available:
            raise ColumnNotFoundError(name, available)


# =============================================================================
# Table references
# =============================================================================

def _query_class():
    from ..builder import Query
    return Query


def check_table_ref(ref: Any) -> TableRef:
    """Validate a table reference: a catalog name or a Query."""
    if isinstance(ref, str) or isinstance(ref, _query_class()):
        return ref
    raise TypeError(f"Table reference must be a table name or a Query, got {type(ref).__name__}")


def table_ref_object(ref: TableRef) -> Union[str, Dict[str, Any]]:
    if isinstance(ref, str):
        return ref
    return {"query": ref.to_object()}


def table_ref_ast(ref: TableRef) -> Dict[str, Any]:
    if isinstance(ref, str):
        return {"type": TABLE_REF_TYPE, "name": ref}
    return ref.to_ast()


def decode_table_ref(obj: Any) -> TableRef:
    if isinstance(obj, str):
        return obj
    if isinstance(obj, Mapping) and "query" in obj:
        return _query_class().from_object(obj["query"])
    raise VerbDecodeError(f"Not a table reference: {obj!r}", obj)


def resolve_table_ref(ref: TableRef, catalog: Optional[CatalogFn]) -> Table:
    """Resolve a table name through the catalog, or evaluate a sub-query."""
    if isinstance(ref, str):
        if catalog is None:
            raise TableNotFoundError(ref)
        return Table.wrap(catalog(ref))
    return ref.evaluate(None, catalog)
