"""
Aggregation verb.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pyarrow as pa

from ..expr import AggregateSpec, column_node, compile_aggregate, expression_ast
from ..table import CatalogFn, Table
from .base import Verb, column_list, expression_pairs, register_verb, require_columns


@register_verb("rollup")
@dataclass(frozen=True)
class RollupVerb(Verb):
    """
    Aggregate rows, optionally per group.

    Values map output names to aggregate calls such as ``sum(amount)`` or
    ``count()``. Without ``groupby`` the result is a single row; with it,
    one row per distinct key combination in first-appearance order, key
    columns first.
    """
    values: Tuple[Tuple[str, str], ...]
    groupby: Tuple[str, ...] = ()

    @classmethod
    def create(cls, values: Optional[Mapping[str, str]] = None,
               groupby: Optional[Union[str, Sequence[str]]] = None,
               **kwargs: str) -> "RollupVerb":
        pairs = expression_pairs(values, kwargs)
        for _, expr in pairs:
            compile_aggregate(expression_ast(expr))
        if groupby is None:
            keys: Tuple[str, ...] = ()
        elif isinstance(groupby, str):
            keys = (groupby,)
        else:
            keys = column_list([list(groupby)])
        clashes = [name for name, _ in pairs if name in keys]
        if clashes:
            raise ValueError(f"rollup output names collide with groupby keys: {clashes}")
        return cls(pairs, keys)

    def _specs(self) -> List[Tuple[str, AggregateSpec]]:
        return [(name, compile_aggregate(expression_ast(expr))) for name, expr in self.values]

    def evaluate(self, table: Table, catalog: Optional[CatalogFn] = None) -> Table:
        specs = self._specs()
        require_columns(table, [spec.column for _, spec in specs if spec.column is not None])

        if not self.groupby:
            columns = {}
            for name, spec in specs:
                scalar = spec.evaluate(table.data)
                columns[name] = pa.array([scalar.as_py()], type=scalar.type)
            return table.with_data(pa.table(columns))

        require_columns(table, self.groupby)
        unique: Dict[AggregateSpec, None] = dict.fromkeys(spec for _, spec in specs)
        grouped = table.data.group_by(list(self.groupby), use_threads=False).aggregate(
            [spec.group_spec() for spec in unique]
        )

        columns = {key: grouped.column(key) for key in self.groupby}
        for name, spec in specs:
            columns[name] = grouped.column(spec.output_name)
        return table.with_data(pa.table(columns))

    def _object_fields(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {"values": dict(self.values)}
        if self.groupby:
            fields["groupby"] = list(self.groupby)
        return fields

    def _ast_fields(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            "values": {name: expression_ast(expr) for name, expr in self.values}
        }
        if self.groupby:
            fields["groupby"] = [column_node(key) for key in self.groupby]
        return fields

    @classmethod
    def _decode(cls, obj: Mapping[str, Any]) -> "RollupVerb":
        return cls.create(dict(obj["values"]), groupby=obj.get("groupby"))
