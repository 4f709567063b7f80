"""
Table expressions.

Expressions are strings such as ``"amount * 2 > $threshold"`` that are
parsed with Lark, represented as JSON-compatible ASTs and evaluated with
``pyarrow.compute``.

Example::

    from tablequery.expr import expression_ast, evaluate_column

    expression_ast("price > $min")
    # {'type': 'BinaryExpression', 'operator': '>',
    #  'left': {'type': 'Column', 'name': 'price'},
    #  'right': {'type': 'Parameter', 'name': 'min'}}
"""

from .parser import ExpressionParser, parse_expression
from .nodes import (
    ASTBuilder,
    expression_ast,
    referenced_columns,
    column_node,
    literal_node,
)
from .compiler import (
    ExpressionCompiler,
    AggregateSpec,
    compile_expression,
    compile_aggregate,
    evaluate_column,
    as_column,
    FUNCTIONS,
    AGGREGATES,
)

__all__ = [
    "ExpressionParser",
    "parse_expression",
    "ASTBuilder",
    "expression_ast",
    "referenced_columns",
    "column_node",
    "literal_node",
    "ExpressionCompiler",
    "AggregateSpec",
    "compile_expression",
    "compile_aggregate",
    "evaluate_column",
    "as_column",
    "FUNCTIONS",
    "AGGREGATES",
]
