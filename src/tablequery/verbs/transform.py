"""
Row and column verbs: filter, select, rename, derive, orderby, slice, dedupe.
"""

from __future__ import annotations

import builtins
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

import pyarrow as pa
import pyarrow.compute as pc

from ..constants import DESCENDING_TYPE
from ..expr import as_column, column_node, compile_expression, expression_ast
from ..table import CatalogFn, Table
from .base import (
    Verb,
    column_list,
    expression_pairs,
    list_field,
    register_verb,
    require_columns,
)


@register_verb("filter")
@dataclass(frozen=True)
class FilterVerb(Verb):
    """Keep rows for which ``criteria`` is true. Null results drop the row."""
    criteria: str

    @classmethod
    def create(cls, criteria: str) -> "FilterVerb":
        if not isinstance(criteria, str):
            raise TypeError(f"Filter criteria must be an expression string, got {criteria!r}")
        expression_ast(criteria)
        return cls(criteria)

    def evaluate(self, table: Table, catalog: Optional[CatalogFn] = None) -> Table:
        data = table.data
        mask = as_column(compile_expression(self.criteria)(data, table.get_params() or {}), data.num_rows)
        return table.with_data(data.filter(mask))

    def _object_fields(self) -> Dict[str, Any]:
        return {"criteria": self.criteria}

    def _ast_fields(self) -> Dict[str, Any]:
        return {"criteria": expression_ast(self.criteria)}

    @classmethod
    def _decode(cls, obj: Mapping[str, Any]) -> "FilterVerb":
        return cls.create(obj["criteria"])


@register_verb("select")
@dataclass(frozen=True)
class SelectVerb(Verb):
    """Keep only the named columns, in the given order."""
    columns: Tuple[str, ...]

    @classmethod
    def create(cls, *columns: str) -> "SelectVerb":
        return cls(column_list(columns))

    def evaluate(self, table: Table, catalog: Optional[CatalogFn] = None) -> Table:
        require_columns(table, self.columns)
        return table.with_data(table.data.select(list(self.columns)))

    def _object_fields(self) -> Dict[str, Any]:
        return {"columns": list(self.columns)}

    def _ast_fields(self) -> Dict[str, Any]:
        return {"columns": [column_node(c) for c in self.columns]}

    @classmethod
    def _decode(cls, obj: Mapping[str, Any]) -> "SelectVerb":
        return cls.create(list_field(obj, "columns"))


@register_verb("rename")
@dataclass(frozen=True)
class RenameVerb(Verb):
    """Rename columns; columns not mentioned keep their names."""
    columns: Tuple[Tuple[str, str], ...]

    @classmethod
    def create(cls, mapping: Optional[Mapping[str, str]] = None, **renames: str) -> "RenameVerb":
        merged = dict(mapping or {})
        merged.update(renames)
        for old, new in merged.items():
            if not isinstance(new, str):
                raise TypeError(f"New name for {old!r} must be a string, got {new!r}")
        return cls(tuple(merged.items()))

    def evaluate(self, table: Table, catalog: Optional[CatalogFn] = None) -> Table:
        mapping = dict(self.columns)
        require_columns(table, mapping)
        names = [mapping.get(name, name) for name in table.column_names]
        return table.with_data(table.data.rename_columns(names))

    def _object_fields(self) -> Dict[str, Any]:
        return {"columns": dict(self.columns)}

    @classmethod
    def _decode(cls, obj: Mapping[str, Any]) -> "RenameVerb":
        return cls.create(dict(obj["columns"]))


@register_verb("derive")
@dataclass(frozen=True)
class DeriveVerb(Verb):
    """
    Add or replace columns computed from expressions.

    Values are evaluated in order, so a later expression can use a column
    derived earlier in the same verb.
    """
    values: Tuple[Tuple[str, str], ...]

    @classmethod
    def create(cls, values: Optional[Mapping[str, str]] = None, **kwargs: str) -> "DeriveVerb":
        pairs = expression_pairs(values, kwargs)
        for _, expr in pairs:
            expression_ast(expr)
        return cls(pairs)

    def evaluate(self, table: Table, catalog: Optional[CatalogFn] = None) -> Table:
        data = table.data
        params = table.get_params() or {}
        for name, expr in self.values:
            column = as_column(compile_expression(expr)(data, params), data.num_rows)
            if name in data.column_names:
                data = data.set_column(data.column_names.index(name), name, column)
            else:
                data = data.append_column(name, column)
        return table.with_data(data)

    def _object_fields(self) -> Dict[str, Any]:
        return {"values": dict(self.values)}

    def _ast_fields(self) -> Dict[str, Any]:
        return {"values": {name: expression_ast(expr) for name, expr in self.values}}

    @classmethod
    def _decode(cls, obj: Mapping[str, Any]) -> "DeriveVerb":
        return cls.create(dict(obj["values"]))


@register_verb("orderby")
@dataclass(frozen=True)
class OrderByVerb(Verb):
    """Sort rows by columns. Prefix a key with ``-`` for descending order."""
    keys: Tuple[str, ...]

    @classmethod
    def create(cls, *keys: str) -> "OrderByVerb":
        keys = column_list(keys)
        if not keys:
            raise ValueError("orderby requires at least one key")
        return cls(keys)

    @staticmethod
    def _split(key: str) -> Tuple[str, str]:
        if key.startswith("-"):
            return key[1:], "descending"
        return key, "ascending"

    def evaluate(self, table: Table, catalog: Optional[CatalogFn] = None) -> Table:
        sort_keys = [self._split(key) for key in self.keys]
        require_columns(table, [name for name, _ in sort_keys])
        if table.num_rows == 0:
            return table
        indices = pc.sort_indices(table.data, sort_keys=sort_keys)
        return table.with_data(table.data.take(indices))

    def _object_fields(self) -> Dict[str, Any]:
        return {"keys": list(self.keys)}

    def _ast_fields(self) -> Dict[str, Any]:
        keys = []
        for key in self.keys:
            name, order = self._split(key)
            node = column_node(name)
            keys.append({"type": DESCENDING_TYPE, "expr": node} if order == "descending" else node)
        return {"keys": keys}

    @classmethod
    def _decode(cls, obj: Mapping[str, Any]) -> "OrderByVerb":
        return cls.create(list_field(obj, "keys"))


@register_verb("slice")
@dataclass(frozen=True)
class SliceVerb(Verb):
    """Keep rows ``start`` to ``end`` with Python slice semantics."""
    start: int = 0
    end: Optional[int] = None

    @classmethod
    def create(cls, start: int = 0, end: Optional[int] = None) -> "SliceVerb":
        if not isinstance(start, int) or (end is not None and not isinstance(end, int)):
            raise TypeError("slice bounds must be integers")
        return cls(start, end)

    def evaluate(self, table: Table, catalog: Optional[CatalogFn] = None) -> Table:
        begin, stop, _ = builtins.slice(self.start, self.end).indices(table.num_rows)
        return table.with_data(table.data.slice(begin, max(0, stop - begin)))

    def _object_fields(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {"start": self.start}
        if self.end is not None:
            fields["end"] = self.end
        return fields

    @classmethod
    def _decode(cls, obj: Mapping[str, Any]) -> "SliceVerb":
        return cls.create(obj.get("start", 0), obj.get("end"))


@register_verb("dedupe")
@dataclass(frozen=True)
class DedupeVerb(Verb):
    """
    Remove duplicate rows, keeping the first occurrence.

    With columns given, rows are compared on those columns only and all
    columns of the first matching row are kept.
    """
    columns: Tuple[str, ...] = ()

    @classmethod
    def create(cls, *columns: str) -> "DedupeVerb":
        return cls(column_list(columns))

    def evaluate(self, table: Table, catalog: Optional[CatalogFn] = None) -> Table:
        keys = list(self.columns) or table.column_names
        require_columns(table, keys)
        if table.num_rows == 0 or not keys:
            return table

        row_index = "__tablequery_row"
        indexed = table.data.select(keys).append_column(
            row_index, pa.array(range(table.num_rows), pa.int64())
        )
        first = indexed.group_by(keys, use_threads=False).aggregate([(row_index, "min")])
        rows = first.column(f"{row_index}_min").combine_chunks()
        return table.with_data(table.data.take(pc.take(rows, pc.sort_indices(rows))))

    def _object_fields(self) -> Dict[str, Any]:
        return {"columns": list(self.columns)}

    def _ast_fields(self) -> Dict[str, Any]:
        return {"columns": [column_node(c) for c in self.columns]}

    @classmethod
    def _decode(cls, obj: Mapping[str, Any]) -> "DedupeVerb":
        return cls.create(list_field(obj, "columns", default=[]))
