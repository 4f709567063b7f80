"""
Pipeline verbs.

Importing this package registers the built-in verb kinds with
``VerbRegistry``.
"""

from .base import (
    Verb,
    VerbRegistry,
    register_verb,
    TableRef,
    resolve_table_ref,
)
from .transform import (
    FilterVerb,
    SelectVerb,
    RenameVerb,
    DeriveVerb,
    OrderByVerb,
    SliceVerb,
    DedupeVerb,
)
from .rollup import RollupVerb
from .join import JoinVerb, ConcatVerb, JOIN_TYPES

__all__ = [
    "Verb",
    "VerbRegistry",
    "register_verb",
    "TableRef",
    "resolve_table_ref",
    "FilterVerb",
    "SelectVerb",
    "RenameVerb",
    "DeriveVerb",
    "OrderByVerb",
    "SliceVerb",
    "DedupeVerb",
    "RollupVerb",
    "JoinVerb",
    "ConcatVerb",
    "JOIN_TYPES",
]
