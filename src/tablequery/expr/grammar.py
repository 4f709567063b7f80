"""
Lark grammar for table expressions.

Examples::

    price * quantity
    status == 'open' and amount > $threshold
    lower(name)
    sum(amount)
"""

GRAMMAR = r"""
?start: expr

?expr: or_expr

?or_expr: and_expr (_OR and_expr)*
?and_expr: not_expr (_AND not_expr)*
?not_expr: _NOT not_expr -> not_op
         | comparison

?comparison: sum (COMP_OP sum)?
?sum: product (ADD_OP product)*
?product: unary (MUL_OP unary)*
?unary: ADD_OP unary -> signed
      | atom

?atom: NUMBER -> number
     | STRING -> string
     | _TRUE -> true
     | _FALSE -> false
     | _NULL -> null
     | "$" NAME -> param
     | NAME "(" [arguments] ")" -> call
     | NAME -> column
     | "(" expr ")"

arguments: expr ("," expr)*

_TRUE: "true"
_FALSE: "false"
_NULL: "null"
_AND: "and"
_OR: "or"
_NOT: "not"

COMP_OP: "==" | "!=" | "<=" | ">=" | "<" | ">"
ADD_OP: "+" | "-"
MUL_OP: "*" | "/"

NAME: /[A-Za-z_][A-Za-z0-9_]*/
NUMBER: /\d+(\.\d*)?([eE][+-]?\d+)?/
STRING: /"(\\.|[^"\\])*"/ | /'(\\.|[^'\\])*'/

%import common.WS
%ignore WS
"""
