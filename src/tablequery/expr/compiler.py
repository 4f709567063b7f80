"""
Expression Compiler.

Compiles expression ASTs into callables that evaluate against a
``pyarrow.Table`` with vectorized ``pyarrow.compute`` kernels, and
compiles aggregate calls (``sum(amount)``, ``count()``) into group-by
specifications for rollups.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

import pyarrow as pa
import pyarrow.compute as pc

from ..exceptions import (
    ColumnNotFoundError,
    ExpressionError,
    ParameterNotFoundError,
)
from .nodes import (
    BINARY, CALL, COLUMN, LITERAL, LOGICAL, PARAMETER, UNARY,
    Node, expression_ast,
)

Value = Union[pa.ChunkedArray, pa.Array, pa.Scalar, Any]
CompiledExpr = Callable[[pa.Table, Mapping[str, Any]], Value]


# ============================================================
# FUNCTIONS
# ============================================================

def _is_arrow(value: Any) -> bool:
    return isinstance(value, (pa.Array, pa.ChunkedArray, pa.Scalar))


def _as_float(value: Value) -> Value:
    if _is_arrow(value):
        return pc.cast(value, pa.float64())
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return value


def _pattern(value: Value) -> str:
    """String function patterns must be plain strings."""
    if isinstance(value, pa.Scalar):
        value = value.as_py()
    if not isinstance(value, str):
        raise ExpressionError(f"Expected a string pattern, got {value!r}")
    return value


def _logical_not(value: Value) -> Value:
    if _is_arrow(value):
        if pa.types.is_null(value.type):
            value = pc.cast(value, pa.bool_())
        elif not pa.types.is_boolean(value.type):
            raise ExpressionError(f"not requires a boolean operand, got {value.type}")
        return pc.invert(value)
    if value is None or isinstance(value, bool):
        return pc.invert(pa.scalar(value, type=pa.bool_()))
    raise ExpressionError(f"not requires a boolean operand, got {value!r}")


BINARY_OPS: Dict[str, Callable[[Value, Value], Value]] = {
    "+": pc.add,
    "-": pc.subtract,
    "*": pc.multiply,
    # Always true division, also for integer columns
    "/": lambda a, b: pc.divide(_as_float(a), _as_float(b)),
    "==": pc.equal,
    "!=": pc.not_equal,
    "<": pc.less,
    "<=": pc.less_equal,
    ">": pc.greater,
    ">=": pc.greater_equal,
}

LOGICAL_OPS: Dict[str, Callable[[Value, Value], Value]] = {
    "and": pc.and_kleene,
    "or": pc.or_kleene,
}

UNARY_OPS: Dict[str, Callable[[Value], Value]] = {
    "not": _logical_not,
    "-": pc.negate,
}

# name -> (callable, min args, max args)
FUNCTIONS: Dict[str, Tuple[Callable[..., Value], int, int]] = {
    # Math
    "abs": (pc.abs, 1, 1),
    "round": (lambda x, ndigits=0: pc.round(x, ndigits=int(ndigits)), 1, 2),
    "floor": (pc.floor, 1, 1),
    "ceil": (pc.ceil, 1, 1),
    "sqrt": (lambda x: pc.sqrt(_as_float(x)), 1, 1),

    # Strings
    "lower": (pc.utf8_lower, 1, 1),
    "upper": (pc.utf8_upper, 1, 1),
    "length": (pc.utf8_length, 1, 1),
    "contains": (lambda s, p: pc.match_substring(s, pattern=_pattern(p)), 2, 2),
    "starts_with": (lambda s, p: pc.starts_with(s, pattern=_pattern(p)), 2, 2),
    "ends_with": (lambda s, p: pc.ends_with(s, pattern=_pattern(p)), 2, 2),

    # Nulls and conditionals
    "is_null": (pc.is_null, 1, 1),
    "is_valid": (pc.is_valid, 1, 1),
    "coalesce": (pc.coalesce, 1, 16),
    "if_else": (pc.if_else, 3, 3),
}

# name -> pyarrow hash aggregate function
AGGREGATES: Dict[str, str] = {
    "count": "count",
    "sum": "sum",
    "mean": "mean",
    "min": "min",
    "max": "max",
    "distinct": "count_distinct",
    "stdev": "stddev",
    "variance": "variance",
}


# ============================================================
# EXPRESSION COMPILER
# ============================================================

class ExpressionCompiler:
    """
    Compiles expression ASTs to callables.

    A compiled expression takes ``(table, params)`` and returns a column
    (``ChunkedArray``) or, for column-free expressions, a scalar.
    """

    def __init__(self, functions: Optional[Mapping[str, Tuple[Callable[..., Value], int, int]]] = None):
        self.functions = dict(FUNCTIONS if functions is None else functions)

    def compile(self, node: Node) -> CompiledExpr:
        node_type = node.get("type") if isinstance(node, dict) else None
        method = getattr(self, f"_compile_{node_type}", None)
        if method is None:
            raise ExpressionError(f"Unknown expression node: {node!r}")
        return method(node)

    def _compile_Column(self, node: Node) -> CompiledExpr:
        name = node["name"]

        def column(table: pa.Table, params: Mapping[str, Any], n=name):
            if n not in table.column_names:
                raise ColumnNotFoundError(n, table.column_names)
            return table.column(n)

        return column

    def _compile_Parameter(self, node: Node) -> CompiledExpr:
        name = node["name"]

        def parameter(table: pa.Table, params: Mapping[str, Any], n=name):
            if params is None or n not in params:
                raise ParameterNotFoundError(n)
            return params[n]

        return parameter

    def _compile_Literal(self, node: Node) -> CompiledExpr:
        value = node["value"]
        return lambda table, params, v=value: v

    def _compile_BinaryExpression(self, node: Node) -> CompiledExpr:
        op = BINARY_OPS.get(node["operator"])
        if op is None:
            raise ExpressionError(f"Unknown operator: {node['operator']}")
        left = self.compile(node["left"])
        right = self.compile(node["right"])
        return lambda table, params: op(left(table, params), right(table, params))

    def _compile_LogicalExpression(self, node: Node) -> CompiledExpr:
        op = LOGICAL_OPS.get(node["operator"])
        if op is None:
            raise ExpressionError(f"Unknown logical operator: {node['operator']}")
        left = self.compile(node["left"])
        right = self.compile(node["right"])
        return lambda table, params: op(left(table, params), right(table, params))

    def _compile_UnaryExpression(self, node: Node) -> CompiledExpr:
        op = UNARY_OPS.get(node["operator"])
        if op is None:
            raise ExpressionError(f"Unknown unary operator: {node['operator']}")
        argument = self.compile(node["argument"])
        return lambda table, params: op(argument(table, params))

    def _compile_CallExpression(self, node: Node) -> CompiledExpr:
        name = node["callee"]["name"]
        if name in AGGREGATES:
            raise ExpressionError(f"Aggregate function {name}() is only allowed in rollup")
        if name not in self.functions:
            raise ExpressionError(f"Unknown function: {name}()")

        fn, min_args, max_args = self.functions[name]
        args = [self.compile(arg) for arg in node["arguments"]]
        if not min_args <= len(args) <= max_args:
            raise ExpressionError(
                f"{name}() takes {min_args}"
                + (f" to {max_args}" if max_args != min_args else "")
                + f" arguments, got {len(args)}"
            )
        return lambda table, params: fn(*[arg(table, params) for arg in args])


# ============================================================
# AGGREGATES
# ============================================================

@dataclass(frozen=True)
class AggregateSpec:
    """A single aggregate call: ``func`` applied to ``column`` (None = row count)."""
    func: str
    column: Optional[str] = None

    @property
    def options(self) -> Optional[pc.FunctionOptions]:
        if self.func in ("stddev", "variance"):
            return pc.VarianceOptions(ddof=1)
        return None

    def evaluate(self, table: pa.Table) -> pa.Scalar:
        """Aggregate the whole table to a single scalar."""
        if self.column is None:
            return pa.scalar(table.num_rows, pa.int64())
        if self.column not in table.column_names:
            raise ColumnNotFoundError(self.column, table.column_names)
        fn = getattr(pc, self.func)
        options = self.options
        if options is not None:
            return fn(table.column(self.column), options=options)
        return fn(table.column(self.column))

    def group_spec(self) -> tuple:
        """Aggregation tuple for ``pyarrow.TableGroupBy.aggregate``."""
        if self.column is None:
            return ([], "count_all")
        if self.options is not None:
            return (self.column, self.func, self.options)
        return (self.column, self.func)

    @property
    def output_name(self) -> str:
        """Column name pyarrow gives this aggregate in group-by output."""
        if self.column is None:
            return "count_all"
        return f"{self.column}_{self.func}"


def compile_aggregate(node: Node) -> AggregateSpec:
    """
    Compile an aggregate call node.

    Only direct calls on a column (``sum(amount)``) and ``count()`` are
    supported.
    """
    if not isinstance(node, dict) or node.get("type") != CALL:
        raise ExpressionError("Rollup values must be aggregate calls such as sum(column)")

    name = node["callee"]["name"]
    if name not in AGGREGATES:
        raise ExpressionError(f"Unknown aggregate function: {name}()")

    args = node["arguments"]
    if name == "count" and not args:
        return AggregateSpec("count_all")
    if len(args) != 1 or args[0].get("type") != COLUMN:
        raise ExpressionError(f"{name}() takes a single column argument")
    return AggregateSpec(AGGREGATES[name], args[0]["name"])


# ============================================================
# CONVENIENCE FUNCTIONS
# ============================================================

def compile_expression(source: Union[str, Node]) -> CompiledExpr:
    """Compile an expression string or AST to a callable."""
    node = expression_ast(source) if isinstance(source, str) else source
    return ExpressionCompiler().compile(node)


def evaluate_column(source: Union[str, Node], table: pa.Table,
                    params: Optional[Mapping[str, Any]] = None) -> pa.ChunkedArray:
    """Evaluate an expression to a full-length column, broadcasting scalars."""
    return as_column(compile_expression(source)(table, params or {}), table.num_rows)


def as_column(value: Value, length: int) -> Union[pa.ChunkedArray, pa.Array]:
    """Broadcast a scalar result to ``length`` rows; arrays pass through."""
    if isinstance(value, (pa.ChunkedArray, pa.Array)):
        return value
    if not isinstance(value, pa.Scalar):
        if value is None:
            return pa.nulls(length)
        value = pa.scalar(value)
    return pa.repeat(value, length)
