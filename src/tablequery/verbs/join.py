"""
Verbs that combine the input with other tables: join and concat.

Other tables are referenced by catalog name or by a nested Query and are
resolved through the catalog when the verb runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pyarrow as pa

from ..expr import column_node
from ..table import CatalogFn, Table
from .base import (
    TableRef,
    Verb,
    check_table_ref,
    column_list,
    decode_table_ref,
    list_field,
    register_verb,
    require_columns,
    resolve_table_ref,
    table_ref_ast,
    table_ref_object,
)

# join type -> pyarrow join_type
JOIN_TYPES: Dict[str, str] = {
    "inner": "inner",
    "left": "left outer",
    "right": "right outer",
    "outer": "full outer",
    "full": "full outer",
    "semi": "left semi",
    "anti": "left anti",
}

DEFAULT_SUFFIX: Tuple[str, str] = ("_1", "_2")


def _keys(value: Optional[Union[str, Sequence[str]]]) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return column_list([list(value)])


@register_verb("join")
@dataclass(frozen=True)
class JoinVerb(Verb):
    """
    Join the input (left) with another table (right) on key columns.

    Without ``on`` the tables are joined on the column names they share.
    ``right_on`` names the right-hand keys when they differ from ``on``.
    Non-key columns present on both sides get ``suffix`` appended.
    """
    other: TableRef
    on: Tuple[str, ...] = ()
    right_on: Tuple[str, ...] = ()
    how: str = "inner"
    suffix: Tuple[str, str] = DEFAULT_SUFFIX

    @classmethod
    def create(cls, other: TableRef,
               on: Optional[Union[str, Sequence[str]]] = None,
               right_on: Optional[Union[str, Sequence[str]]] = None,
               how: str = "inner",
               suffix: Sequence[str] = DEFAULT_SUFFIX) -> "JoinVerb":
        check_table_ref(other)
        if how not in JOIN_TYPES:
            raise ValueError(f"Unknown join type {how!r}; expected one of {sorted(JOIN_TYPES)}")
        left_keys = _keys(on)
        right_keys = _keys(right_on)
        if right_keys and len(right_keys) != len(left_keys):
            raise ValueError("right_on must name as many columns as on")
        suffix = tuple(suffix)
        if len(suffix) != 2 or not all(isinstance(s, str) for s in suffix):
            raise TypeError(f"suffix must be a pair of strings, got {suffix!r}")
        return cls(other, left_keys, right_keys, how, suffix)

    def evaluate(self, table: Table, catalog: Optional[CatalogFn] = None) -> Table:
        right = resolve_table_ref(self.other, catalog)

        left_keys: List[str] = list(self.on) or [
            name for name in table.column_names if name in right.column_names
        ]
        if not left_keys:
            raise ValueError("join requires key columns; the tables share no column names")
        right_keys = list(self.right_on) or left_keys
        require_columns(table, left_keys)
        require_columns(right, right_keys)

        joined = table.data.join(
            right.data,
            keys=left_keys,
            right_keys=right_keys,
            join_type=JOIN_TYPES[self.how],
            left_suffix=self.suffix[0],
            right_suffix=self.suffix[1],
            use_threads=False,
        )
        return table.with_data(joined)

    def _object_fields(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {"table": table_ref_object(self.other)}
        if self.on:
            fields["on"] = list(self.on)
        if self.right_on:
            fields["right_on"] = list(self.right_on)
        fields["how"] = self.how
        fields["suffix"] = list(self.suffix)
        return fields

    def _ast_fields(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {"table": table_ref_ast(self.other)}
        if self.on:
            fields["on"] = [column_node(key) for key in self.on]
        if self.right_on:
            fields["right_on"] = [column_node(key) for key in self.right_on]
        fields["how"] = self.how
        fields["suffix"] = list(self.suffix)
        return fields

    @classmethod
    def _decode(cls, obj: Mapping[str, Any]) -> "JoinVerb":
        return cls.create(
            decode_table_ref(obj["table"]),
            on=obj.get("on"),
            right_on=obj.get("right_on"),
            how=obj.get("how", "inner"),
            suffix=list_field(obj, "suffix", default=list(DEFAULT_SUFFIX)),
        )


@register_verb("concat")
@dataclass(frozen=True)
class ConcatVerb(Verb):
    """
    Append the rows of other tables to the input.

    Columns are matched by name; a column missing from one table is filled
    with nulls.
    """
    tables: Tuple[TableRef, ...]

    @classmethod
    def create(cls, *others: TableRef) -> "ConcatVerb":
        if len(others) == 1 and isinstance(others[0], (list, tuple)):
            others = tuple(others[0])
        if not others:
            raise ValueError("concat requires at least one table")
        return cls(tuple(check_table_ref(ref) for ref in others))

    def evaluate(self, table: Table, catalog: Optional[CatalogFn] = None) -> Table:
        parts = [table.data] + [resolve_table_ref(ref, catalog).data for ref in self.tables]
        return table.with_data(pa.concat_tables(parts, promote_options="default"))

    def _object_fields(self) -> Dict[str, Any]:
        return {"tables": [table_ref_object(ref) for ref in self.tables]}

    def _ast_fields(self) -> Dict[str, Any]:
        return {"tables": [table_ref_ast(ref) for ref in self.tables]}

    @classmethod
    def _decode(cls, obj: Mapping[str, Any]) -> "ConcatVerb":
        return cls.create([decode_table_ref(ref) for ref in list_field(obj, "tables")])
