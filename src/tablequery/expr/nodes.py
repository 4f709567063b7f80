"""
JSON-compatible abstract syntax trees for table expressions.

Node shapes follow the ESTree convention of a ``type`` tag plus
node-specific fields:

- ``{"type": "Column", "name": "price"}``
- ``{"type": "Parameter", "name": "threshold"}``
- ``{"type": "Literal", "value": 10, "raw": "10"}``
- ``{"type": "BinaryExpression", "operator": ">", "left": ..., "right": ...}``
- ``{"type": "LogicalExpression", "operator": "and", "left": ..., "right": ...}``
- ``{"type": "UnaryExpression", "operator": "not", "argument": ...}``
- ``{"type": "CallExpression", "callee": {"type": "Function", "name": "sum"}, "arguments": [...]}``
"""

import ast as pyast
from typing import Any, Dict, List

from lark import Token, Transformer, v_args

from .parser import parse_expression

# Node type tags
COLUMN = "Column"
PARAMETER = "Parameter"
LITERAL = "Literal"
BINARY = "BinaryExpression"
LOGICAL = "LogicalExpression"
UNARY = "UnaryExpression"
CALL = "CallExpression"
FUNCTION = "Function"

Node = Dict[str, Any]


def column_node(name: str) -> Node:
    return {"type": COLUMN, "name": name}


def literal_node(value: Any, raw: str) -> Node:
    return {"type": LITERAL, "value": value, "raw": raw}


def _fold(children: List[Any], node_type: str) -> Node:
    """Left-fold ``operand (op operand)*`` sequences into binary nodes."""
    result = children[0]
    i = 1
    while i < len(children):
        result = {
            "type": node_type,
            "operator": str(children[i]),
            "left": result,
            "right": children[i + 1],
        }
        i += 2
    return result


def _fold_logical(children: List[Node], operator: str) -> Node:
    result = children[0]
    for right in children[1:]:
        result = {"type": LOGICAL, "operator": operator, "left": result, "right": right}
    return result


class ASTBuilder(Transformer):
    """Transforms expression parse trees into AST dictionaries."""

    def or_expr(self, children):
        return _fold_logical(children, "or")

    def and_expr(self, children):
        return _fold_logical(children, "and")

    def not_op(self, children):
        return {"type": UNARY, "operator": "not", "argument": children[0]}

    def comparison(self, children):
        return _fold(children, BINARY)

    def sum(self, children):
        return _fold(children, BINARY)

    def product(self, children):
        return _fold(children, BINARY)

    def signed(self, children):
        op, argument = children
        if str(op) == "+":
            return argument
        # Fold negative numeric literals
        if argument["type"] == LITERAL and isinstance(argument["value"], (int, float)) \
                and not isinstance(argument["value"], bool):
            return literal_node(-argument["value"], "-" + argument["raw"])
        return {"type": UNARY, "operator": "-", "argument": argument}

    @v_args(inline=True)
    def number(self, token: Token):
        raw = str(token)
        if any(c in raw for c in ".eE"):
            return literal_node(float(raw), raw)
        return literal_node(int(raw), raw)

    @v_args(inline=True)
    def string(self, token: Token):
        raw = str(token)
        return literal_node(pyast.literal_eval(raw), raw)

    def true(self, children):
        return literal_node(True, "true")

    def false(self, children):
        return literal_node(False, "false")

    def null(self, children):
        return literal_node(None, "null")

    @v_args(inline=True)
    def param(self, token: Token):
        return {"type": PARAMETER, "name": str(token)}

    @v_args(inline=True)
    def column(self, token: Token):
        return column_node(str(token))

    def call(self, children):
        name = str(children[0])
        arguments = children[1] if len(children) > 1 else []
        return {
            "type": CALL,
            "callee": {"type": FUNCTION, "name": name},
            "arguments": arguments,
        }

    def arguments(self, children):
        return list(children)


def expression_ast(source: str) -> Node:
    """Parse an expression string and return its AST dictionary."""
    return ASTBuilder().transform(parse_expression(source))


def referenced_columns(node: Node) -> List[str]:
    """Return the column names referenced by an AST, in first-use order."""
    names: List[str] = []

    def visit(n: Any) -> None:
        if isinstance(n, dict):
            if n.get("type") == COLUMN and n["name"] not in names:
                names.append(n["name"])
            for value in n.values():
                visit(value)
        elif isinstance(n, list):
            for item in n:
                visit(item)

    visit(node)
    return names
